"""
Move-selection agents and the difficulty-label registry.

Every agent offers a single operation, ``select_move(board, player)``, which
returns a cell index in 0..8 or None when the board has no empty cell. The
caller's board is never mutated.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Sequence

from .config import LEVELS, AgentConfig
from .game_basics import legal_moves
from .mcts import MCTSAgent
from .minimax import MinimaxAgent
from .rng import GeneratorFactory


class Agent(Protocol):
    def select_move(self, board: Sequence[int], player: int) -> Optional[int]:
        ...


class RandomAgent:
    """Easy level: uniform choice among the empty cells."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rngs = GeneratorFactory(seed)

    def select_move(self, board: Sequence[int], player: Optional[int] = None) -> Optional[int]:
        moves = legal_moves(board)
        if not moves:
            return None
        rng = self._rngs.spawn()
        return int(rng.choice(moves))


def make_agent(level: str, config: Optional[AgentConfig] = None) -> Agent:
    cfg = config or AgentConfig()
    if level == "random":
        return RandomAgent(seed=cfg.seed)
    if level == "mcts":
        return MCTSAgent(iterations=cfg.mcts_iterations, exploration=cfg.exploration, seed=cfg.seed)
    if level == "minimax":
        return MinimaxAgent()
    raise ValueError(f"Unknown agent level: {level!r} (expected one of {', '.join(LEVELS)})")


def build_agents(config: Optional[AgentConfig] = None) -> Dict[str, Agent]:
    """One agent per difficulty label, as the game driver holds them."""
    agents = {level: make_agent(level, config) for level in LEVELS}
    logging.debug("built agents: %s", sorted(agents))
    return agents
