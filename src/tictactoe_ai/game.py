"""
Headless game driver: seating, the turn loop, and the scoreboard.

The driver owns the authoritative board. Agents only ever see a copy; the
driver checks each returned move before applying it.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .agents import Agent
from .config import LEVELS
from .game_basics import (
    EMPTY,
    PLAYER_NAMES,
    PLAYER_O,
    PLAYER_X,
    get_winner,
    is_terminal,
    other_player,
)

MODES = ("human-human", "human-ai", "ai-ai")
STARTERS = ("human", "machine")

# (board copy, player) -> cell index; None means no answer
HumanMove = Callable[[List[int], int], Optional[int]]


class IllegalMoveError(ValueError):
    pass


def resolve_seats(
    mode: str,
    level: str = "minimax",
    starter: str = "human",
    ai_x: str = "random",
    ai_o: str = "mcts",
) -> Dict[int, Optional[str]]:
    """Map each player to a difficulty label, or None for a human seat."""
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {mode!r}")
    if mode == "human-human":
        return {PLAYER_X: None, PLAYER_O: None}
    if mode == "ai-ai":
        for lv in (ai_x, ai_o):
            if lv not in LEVELS:
                raise ValueError(f"Unknown agent level: {lv!r}")
        return {PLAYER_X: ai_x, PLAYER_O: ai_o}
    if level not in LEVELS:
        raise ValueError(f"Unknown agent level: {level!r}")
    if starter not in STARTERS:
        raise ValueError(f"Unknown starter: {starter!r}")
    # X always opens, so the starter decides who plays X
    if starter == "machine":
        return {PLAYER_X: level, PLAYER_O: None}
    return {PLAYER_X: None, PLAYER_O: level}


@dataclass
class MoveRecord:
    ply: int
    player: int
    cell: int
    agent: Optional[str] = None
    think_ms: Optional[float] = None


@dataclass
class GameRecord:
    moves: List[MoveRecord]
    winner: int
    board: List[int]

    @property
    def result(self) -> str:
        """'X', 'O' or 'T' for a tie."""
        return PLAYER_NAMES.get(self.winner, "T")


@dataclass
class Scoreboard:
    X: int = 0
    O: int = 0
    T: int = 0
    history: List[str] = field(default_factory=list)

    def record(self, winner: int) -> None:
        if winner == PLAYER_X:
            self.X += 1
        elif winner == PLAYER_O:
            self.O += 1
        else:
            self.T += 1
        self.history.append(PLAYER_NAMES.get(winner, "T"))

    @property
    def games(self) -> int:
        return self.X + self.O + self.T

    def as_dict(self) -> Dict[str, int]:
        return {"X": self.X, "O": self.O, "T": self.T}


def validate_move(board: List[int], move: Optional[int]) -> int:
    if move is None:
        raise IllegalMoveError("no move returned for a board that still has empty cells")
    if isinstance(move, bool) or not isinstance(move, int) or not 0 <= move <= 8:
        raise IllegalMoveError(f"move out of range: {move!r}")
    if board[move] != EMPTY:
        raise IllegalMoveError(f"cell {move} is already occupied")
    return move


def _ask_human(human_move: HumanMove, board: List[int], player: int) -> int:
    while True:
        move = human_move(list(board), player)
        try:
            return validate_move(board, move)
        except IllegalMoveError as e:
            logging.warning("Rejected move for %s: %s", PLAYER_NAMES[player], e)


def play_game(
    seats: Mapping[int, Optional[str]],
    agents: Mapping[str, Agent],
    human_move: Optional[HumanMove] = None,
    first: int = PLAYER_X,
    on_move: Optional[Callable[[List[int], MoveRecord], None]] = None,
) -> GameRecord:
    """Play one game to a win or a draw and return its record."""
    if any(label is None for label in seats.values()) and human_move is None:
        raise ValueError("a human seat needs a human_move callback")
    board = [EMPTY] * 9
    player = first
    moves: List[MoveRecord] = []
    while not is_terminal(board):
        label = seats.get(player)
        name = PLAYER_NAMES[player]
        if label is None:
            cell = _ask_human(human_move, board, player)  # type: ignore[arg-type]
            rec = MoveRecord(ply=len(moves), player=player, cell=cell)
        else:
            logging.debug("Machine (%s) thinking...", name)
            t0 = time.perf_counter()
            move = agents[label].select_move(list(board), player)
            think_ms = (time.perf_counter() - t0) * 1000.0
            cell = validate_move(board, move)
            logging.info("Machine (%s) [%s] played %d (time: %.2f ms)", name, label, cell, think_ms)
            rec = MoveRecord(ply=len(moves), player=player, cell=cell, agent=label, think_ms=think_ms)
        board[cell] = player
        moves.append(rec)
        if on_move is not None:
            on_move(list(board), rec)
        player = other_player(player)
    winner = get_winner(board)
    if winner:
        logging.info("%s wins!", PLAYER_NAMES[winner])
    else:
        logging.info("Draw!")
    return GameRecord(moves=moves, winner=winner, board=board)
