import random
from typing import Collection, List, Optional, Sequence, Tuple

X = 'X'
O = 'O'
EMPTY = ''
MARKS = (X, O)

BOARD_SIZE = 9
MAX_PLAYERS = 2

ROOM_ID_MIN = 100000
ROOM_ID_MAX = 999999

# Rows, then columns, then diagonals. The first complete line wins.
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


def empty_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def empty_scores() -> dict:
    return {X: 0, O: 0}


def other_mark(mark: str) -> str:
    return O if mark == X else X


def check_win(board: Sequence[str]) -> Optional[Tuple[int, int, int]]:
    """Return the first winning line on the board, or None."""
    for line in WIN_LINES:
        a, b, c = line
        if board[a] and board[a] == board[b] == board[c]:
            return line
    return None


def is_full(board: Sequence[str]) -> bool:
    return all(cell != EMPTY for cell in board)


def generate_room_id(taken: Collection[str], rng: Optional[random.Random] = None) -> str:
    """Generate a 6-digit room id not present in `taken`."""
    rng = rng or random
    while True:
        room_id = str(rng.randint(ROOM_ID_MIN, ROOM_ID_MAX))
        if room_id not in taken:
            return room_id
