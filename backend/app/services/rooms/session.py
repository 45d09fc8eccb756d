import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.models import (
    EMPTY, MAX_PLAYERS, MARKS, X, BOARD_SIZE,
    check_win, empty_board, empty_scores, is_full, other_mark,
)

WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
ROUND_OVER = 'round_over'


class JoinError(Exception):
    """A join attempt the client should be told about."""
    message = 'Unable to join room.'

    def __init__(self, room_id: str):
        super().__init__(f"{self.message} (room={room_id})")
        self.room_id = room_id


class RoomNotFound(JoinError):
    message = 'Room not found.'


class RoomFull(JoinError):
    message = 'Room is full.'


@dataclass(frozen=True)
class Event:
    """A state change to broadcast to every occupant of the room."""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


class RoomSession:
    """Game state for one room: player slots, board, turn and scores.

    Holds no connections and performs no I/O. Command methods return the
    list of events the transport should broadcast; an empty list means the
    command was discarded and nothing changed.
    """

    def __init__(self, room_id: str, creator_id: str):
        self.room_id = room_id
        self.players: List[str] = [creator_id]
        self.board: List[str] = empty_board()
        self.turn: str = X
        self.active: bool = True
        self.scores: Dict[str, int] = empty_scores()
        self.last_winner: Optional[str] = None
        # Serialises every mutation of this room; callers hold it around commands
        self.lock = threading.RLock()

    @property
    def phase(self) -> str:
        if not self.active:
            return ROUND_OVER
        if len(self.players) < MAX_PLAYERS:
            return WAITING
        return IN_PROGRESS

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    @property
    def is_empty(self) -> bool:
        return not self.players

    def mark_of(self, player_id: str) -> Optional[str]:
        for slot, occupant in enumerate(self.players):
            if occupant == player_id:
                return MARKS[slot]
        return None

    # -------------------- Player management -------------------- #

    def add_player(self, player_id: str) -> str:
        if self.is_full:
            raise RoomFull(self.room_id)
        self.players.append(player_id)
        return MARKS[len(self.players) - 1]

    def remove_player(self, player_id: str) -> bool:
        """Drop the player; a lone survivor starts over with zeroed scores."""
        if player_id not in self.players:
            return False
        self.players = [p for p in self.players if p != player_id]
        if self.players:
            self.scores = empty_scores()
        return True

    # -------------------- Game commands -------------------- #

    def _is_valid_move(self, player_id: str, index: Any) -> bool:
        if not self.active:
            return False
        # bool is an int subclass; True/False are not cell indexes
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < BOARD_SIZE or self.board[index] != EMPTY:
            return False
        slot = MARKS.index(self.turn)
        return slot < len(self.players) and self.players[slot] == player_id

    def move(self, player_id: str, index: Any) -> List[Event]:
        if not self._is_valid_move(player_id, index):
            return []

        mark = self.turn
        self.board[index] = mark
        events = [Event('move', {'index': index, 'mark': mark})]

        line = check_win(self.board)
        if line:
            self.scores[mark] += 1
            self.active = False
            self.last_winner = mark
            events.append(Event('game_over', {
                'winner': mark,
                'winning_line': list(line),
                'scores': dict(self.scores),
            }))
            return events

        if is_full(self.board):
            self.active = False
            self.last_winner = None
            events.append(Event('game_over', {
                'winner': None,
                'winning_line': None,
                'scores': dict(self.scores),
            }))
            return events

        self.turn = other_mark(mark)
        return events

    def reset(self) -> List[Event]:
        """Start a new round. The loser of the last round opens; X opens after a draw."""
        self.board = empty_board()
        self.turn = other_mark(self.last_winner) if self.last_winner else X
        self.active = True
        return [Event('reset_game', {'turn': self.turn})]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'room_id': self.room_id,
            'phase': self.phase,
            'player_count': len(self.players),
            'board': list(self.board),
            'turn': self.turn,
            'active': self.active,
            'scores': dict(self.scores),
            'last_winner': self.last_winner,
        }
