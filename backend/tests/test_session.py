import pytest

from app.models import EMPTY, O, X, check_win, generate_room_id, is_full
from app.services.rooms import RoomFull, RoomSession
from app.services.rooms.session import IN_PROGRESS, ROUND_OVER, WAITING

# X and O alternate through all nine cells without anyone completing a line
DRAW_SEQUENCE = [0, 1, 2, 4, 3, 5, 7, 6, 8]


def play(session, *cells):
    """Play cells in order, each by whoever holds the turn."""
    events = []
    for cell in cells:
        player = session.players[0] if session.turn == X else session.players[1]
        events = session.move(player, cell)
        assert events, f"move to {cell} was rejected"
    return events


@pytest.fixture()
def session():
    room = RoomSession('123456', 'alice')
    room.add_player('bob')
    return room


def test_check_win_top_row():
    board = [X, X, X, '', '', '', '', '', '']
    assert check_win(board) == (0, 1, 2)


def test_check_win_reports_first_line_in_canonical_order():
    # Row 0 and column 0 both complete; rows come first
    board = [X, X, X, X, '', '', X, '', '']
    assert check_win(board) == (0, 1, 2)


def test_check_win_none_on_full_draw_board():
    board = [X, O, X, X, O, O, O, X, X]
    assert check_win(board) is None
    assert is_full(board)


def test_new_session_defaults():
    room = RoomSession('111111', 'alice')
    assert room.players == ['alice']
    assert room.board == [EMPTY] * 9
    assert room.turn == X
    assert room.active is True
    assert room.scores == {X: 0, O: 0}
    assert room.last_winner is None
    assert room.phase == WAITING


def test_add_player_assigns_o_then_rejects_third(session):
    assert session.mark_of('alice') == X
    assert session.mark_of('bob') == O
    assert session.phase == IN_PROGRESS
    with pytest.raises(RoomFull):
        session.add_player('carol')
    assert session.players == ['alice', 'bob']


def test_turn_alternates_x_on_odd_moves(session):
    for count, cell in enumerate(DRAW_SEQUENCE, start=1):
        expected = X if count % 2 == 1 else O
        assert session.turn == expected
        player = 'alice' if expected == X else 'bob'
        events = session.move(player, cell)
        assert events[0].payload == {'index': cell, 'mark': expected}


def test_move_on_occupied_cell_changes_nothing(session):
    session.move('alice', 4)
    board_before = list(session.board)
    assert session.move('bob', 4) == []
    assert session.board == board_before
    assert session.turn == O


def test_out_of_turn_move_changes_nothing(session):
    assert session.move('bob', 0) == []
    assert session.board == [EMPTY] * 9
    assert session.turn == X


def test_stranger_cannot_move(session):
    assert session.move('mallory', 0) == []
    assert session.turn == X


@pytest.mark.parametrize('index', [-1, 9, '4', None, 2.0, True])
def test_malformed_index_is_discarded(session, index):
    assert session.move('alice', index) == []
    assert session.board == [EMPTY] * 9


def test_creator_may_open_before_opponent_arrives():
    room = RoomSession('222222', 'alice')
    assert room.move('alice', 0)
    assert room.turn == O
    # No O player yet, so nobody can continue
    assert room.move('alice', 1) == []


def test_x_win_reports_line_and_scores(session):
    events = play(session, 0, 3, 1, 4, 2)
    assert [e.name for e in events] == ['move', 'game_over']
    assert events[1].payload == {
        'winner': X,
        'winning_line': [0, 1, 2],
        'scores': {X: 1, O: 0},
    }
    assert session.active is False
    assert session.last_winner == X
    assert session.phase == ROUND_OVER
    # Turn stays with the winner until reset
    assert session.turn == X


def test_no_moves_after_round_over(session):
    play(session, 0, 3, 1, 4, 2)
    assert session.move('bob', 5) == []
    assert session.board[5] == EMPTY


def test_draw_reports_no_winner(session):
    events = play(session, *DRAW_SEQUENCE)
    assert session.board == [X, O, X, X, O, O, O, X, X]
    assert events[-1].name == 'game_over'
    assert events[-1].payload['winner'] is None
    assert events[-1].payload['scores'] == {X: 0, O: 0}
    assert session.active is False
    assert session.last_winner is None


def test_reset_after_x_win_starts_with_o(session):
    play(session, 0, 3, 1, 4, 2)
    events = session.reset()
    assert events[0].name == 'reset_game'
    assert session.turn == O
    assert session.board == [EMPTY] * 9
    assert session.active is True


def test_reset_after_o_win_starts_with_x(session):
    play(session, 0, 3, 1, 4, 8, 5)
    assert session.last_winner == O
    session.reset()
    assert session.turn == X


def test_reset_after_draw_starts_with_x(session):
    play(session, *DRAW_SEQUENCE)
    session.reset()
    assert session.turn == X


def test_scores_accumulate_across_resets(session):
    play(session, 0, 3, 1, 4, 2)
    session.reset()
    # O opens the second round, X wins again on the top row
    play(session, 6, 0, 7, 1, 3, 2)
    assert session.scores == {X: 2, O: 0}
    session.reset()
    assert session.scores == {X: 2, O: 0}


def test_remove_player_resets_scores_for_survivor(session):
    play(session, 0, 3, 1, 4, 2)
    assert session.remove_player('bob') is True
    assert session.players == ['alice']
    assert session.scores == {X: 0, O: 0}


def test_remove_unknown_player_is_noop(session):
    play(session, 0, 3, 1, 4, 2)
    assert session.remove_player('mallory') is False
    assert session.scores == {X: 1, O: 0}


def test_generate_room_id_retries_on_collision():
    class FixedRng:
        def __init__(self, values):
            self.values = iter(values)

        def randint(self, a, b):
            return next(self.values)

    room_id = generate_room_id({'123456'}, FixedRng([123456, 123456, 654321]))
    assert room_id == '654321'
