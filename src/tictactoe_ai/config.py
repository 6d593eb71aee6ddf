"""Agent and match configuration.

Environment-first overrides use the ``TTT_*`` prefix, like the path helpers.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_MCTS_ITERATIONS = 5000
DEFAULT_EXPLORATION = math.sqrt(2)

LEVELS = ("random", "mcts", "minimax")
LEVEL_NAMES = {"random": "EASY", "mcts": "INTERMEDIATE", "minimax": "HARD"}


@dataclass
class AgentConfig:
    mcts_iterations: int = DEFAULT_MCTS_ITERATIONS
    exploration: float = DEFAULT_EXPLORATION
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, **overrides) -> "AgentConfig":
        cfg = cls()
        env_iters = os.getenv("TTT_MCTS_ITERATIONS")
        if env_iters:
            cfg.mcts_iterations = int(env_iters)
        env_c = os.getenv("TTT_MCTS_EXPLORATION")
        if env_c:
            cfg.exploration = float(env_c)
        env_seed = os.getenv("TTT_SEED")
        if env_seed:
            cfg.seed = int(env_seed)
        for k, v in overrides.items():
            if v is not None:
                setattr(cfg, k, v)
        return cfg


@dataclass
class MatchArgs:
    x: str = "minimax"
    o: str = "mcts"
    games: int = 10
    alternate: bool = False  # swap agents between X and O every other game
    agent_config: AgentConfig = field(default_factory=AgentConfig)
    out: Optional[Path] = None
    tracking: bool = False
    log_dir: Path = Path("runs")
    verbose: bool = False
    cli_argv: list[str] | None = None
