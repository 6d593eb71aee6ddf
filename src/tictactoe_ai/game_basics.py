"""
Game basics: board representation, serialization, rules, winner/draw checks, validity.
Notes:
- State is a list of 9 cells: 0=empty, 1=X, 2=O. X always starts.
- A "ply" is a half-move (one player's turn).
- Valid states have counts either equal (X to move) or X has one more (O to move).
- get_winner assumes a board reachable by alternating legal moves; a board
  with winning lines for both markers has no defined winner.
"""
from typing import List, Sequence, Tuple

EMPTY = 0
PLAYER_X = 1
PLAYER_O = 2
PLAYER_NAMES = {PLAYER_X: 'X', PLAYER_O: 'O'}

WIN_PATTERNS = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


def serialize_board(board: Sequence[int]) -> str:
    return ''.join(str(cell) for cell in board)


def deserialize_board(board_str: str) -> List[int]:
    return [int(cell) for cell in board_str]


def get_winner(board: Sequence[int]) -> int:
    """Return the marker owning a complete line, or 0 when there is none."""
    for a, b, c in WIN_PATTERNS:
        v = board[a]
        if v != EMPTY and v == board[b] and v == board[c]:
            return v
    return 0


def is_draw(board: Sequence[int]) -> bool:
    return EMPTY not in board and get_winner(board) == 0


def is_terminal(board: Sequence[int]) -> bool:
    return get_winner(board) != 0 or EMPTY not in board


def legal_moves(board: Sequence[int]) -> List[int]:
    return [i for i, v in enumerate(board) if v == EMPTY]


def apply_move(board: Sequence[int], idx: int, player: int) -> List[int]:
    b = list(board)
    b[idx] = player
    return b


def other_player(player: int) -> int:
    return PLAYER_O if player == PLAYER_X else PLAYER_X


def get_piece_counts(board: Sequence[int]) -> Tuple[int, int]:
    return board.count(PLAYER_X), board.count(PLAYER_O)


def is_valid_state(board: Sequence[int]) -> bool:
    if len(board) != 9 or any(v not in (EMPTY, PLAYER_X, PLAYER_O) for v in board):
        return False
    x_count, o_count = get_piece_counts(board)
    if not (x_count == o_count or x_count == o_count + 1):
        return False
    w = get_winner(board)
    if w == PLAYER_X and x_count != o_count + 1:
        return False
    if w == PLAYER_O and x_count != o_count:
        return False
    # no double winners
    def count_wins(p: int) -> int:
        return sum(1 for pat in WIN_PATTERNS if all(board[i] == p for i in pat))
    if count_wins(PLAYER_X) > 0 and count_wins(PLAYER_O) > 0:
        return False
    return True


def current_player(board: Sequence[int]) -> int:
    x, o = get_piece_counts(board)
    return PLAYER_X if x == o else PLAYER_O


def render_board(board: Sequence[int]) -> str:
    """Three text rows; empty cells show their index."""
    cells = [PLAYER_NAMES.get(v, str(i)) for i, v in enumerate(board)]
    rows = [' | '.join(cells[r * 3:r * 3 + 3]) for r in range(3)]
    return '\n---------\n'.join(rows)
