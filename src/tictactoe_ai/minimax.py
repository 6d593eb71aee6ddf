"""
Exhaustive minimax with depth-sensitive terminal scoring.
Conventions:
- O is always the maximizing side and X the minimizing side, whichever side
  the agent plays; select_move orients only the top-level choice by `player`.
- Terminal scores: +10 when O has won, -10 when X has won, 0 for a draw.
  Wins lose one point per ply of depth (prefer faster wins), losses gain one
  (prefer slower losses).
- Ties between moves go to the lowest cell index, so the agent is deterministic.
"""
import logging
from functools import lru_cache
from typing import Dict, Optional, Sequence

from .game_basics import (
    PLAYER_O,
    PLAYER_X,
    apply_move,
    get_winner,
    is_draw,
    legal_moves,
    other_player,
)

WIN_SCORE = 10


def evaluate(board: Sequence[int]) -> int:
    w = get_winner(board)
    if w == PLAYER_O:
        return WIN_SCORE
    if w == PLAYER_X:
        return -WIN_SCORE
    return 0


def minimax(board: Sequence[int], maximizing: bool, depth: int = 0) -> int:
    """Score `board` with O maximizing; `maximizing` tells whether O is to move."""
    return _minimax(tuple(board), maximizing, depth)


@lru_cache(maxsize=None)
def _minimax(board_t: tuple, maximizing: bool, depth: int) -> int:
    if get_winner(board_t) != 0 or is_draw(board_t):
        score = evaluate(board_t)
        if score > 0:
            return score - depth
        if score < 0:
            return score + depth
        return 0
    mover = PLAYER_O if maximizing else PLAYER_X
    best: Optional[int] = None
    for mv in legal_moves(board_t):
        child = tuple(apply_move(board_t, mv, mover))
        score = _minimax(child, not maximizing, depth + 1)
        if _better(score, best, maximizing):
            best = score
    return best  # type: ignore[return-value]


def _better(score: int, best: Optional[int], maximizing: bool) -> bool:
    if best is None:
        return True
    return score > best if maximizing else score < best


class MinimaxAgent:
    """Hard level: never loses."""

    def move_scores(self, board: Sequence[int], player: int) -> Dict[int, int]:
        """Minimax score of every legal move for `player`, in ascending cell order."""
        if player not in (PLAYER_X, PLAYER_O):
            raise ValueError(f"Invalid player marker: {player!r}")
        reply_maximizing = other_player(player) == PLAYER_O
        scores: Dict[int, int] = {}
        for mv in legal_moves(board):
            child = apply_move(board, mv, player)
            scores[mv] = minimax(child, reply_maximizing, 0)
        return scores

    def select_move(self, board: Sequence[int], player: int) -> Optional[int]:
        scores = self.move_scores(board, player)
        maximizing = player == PLAYER_O
        best_move: Optional[int] = None
        best_score: Optional[int] = None
        for mv, score in scores.items():
            if _better(score, best_score, maximizing):
                best_score = score
                best_move = mv
        logging.debug("minimax scores=%s chose=%s", scores, best_move)
        return best_move


def clear_cache() -> None:
    _minimax.cache_clear()
