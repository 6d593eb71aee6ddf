#!/usr/bin/env python3
from __future__ import annotations

import argparse
import math
import statistics as stats
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from tictactoe_ai.agents import make_agent
from tictactoe_ai.config import AgentConfig
from tictactoe_ai.game_basics import PLAYER_O, PLAYER_X
from tictactoe_ai.minimax import clear_cache
from tictactoe_ai.tracking import log_metrics, log_params, maybe_mlflow_run

# (label, board, player to move)
POSITIONS: List[Tuple[str, List[int], int]] = [
    ("opening", [0] * 9, PLAYER_X),
    ("corner_reply", [1, 0, 0, 0, 0, 0, 0, 0, 0], PLAYER_O),
    ("midgame", [1, 0, 0, 0, 2, 0, 0, 0, 1], PLAYER_O),
]


def ci95(values: List[float]) -> Tuple[float, float]:
    if not values:
        return (float("nan"), float("nan"))
    m = stats.fmean(values)
    s = stats.pstdev(values) if len(values) > 1 else 0.0
    z = 1.96
    half = z * (s / math.sqrt(len(values)))
    return m, half


@dataclass
class Config:
    seeds: int = 10
    mcts_iterations: int = 5000
    levels: List[str] = field(default_factory=lambda: ["random", "mcts", "minimax"])
    tracking: str = "none"  # or "mlflow"
    log_dir: Path = Path("runs")


def main() -> int:
    ap = argparse.ArgumentParser(description="Time select_move per agent level")
    ap.add_argument("--seeds", type=int, default=10)
    ap.add_argument("--iterations", type=int, default=5000)
    ap.add_argument("--tracking", choices=["none", "mlflow"], default="none")
    ns = ap.parse_args()
    cfg = Config(seeds=ns.seeds, mcts_iterations=ns.iterations, tracking=ns.tracking)

    with maybe_mlflow_run(cfg.tracking == "mlflow", run_name="benchmarks", log_dir=cfg.log_dir):
        log_params({"seeds": cfg.seeds, "mcts_iterations": cfg.mcts_iterations})
        metrics: Dict[str, float] = {}
        for level in cfg.levels:
            for name, board, player in POSITIONS:
                times: List[float] = []
                for s in range(cfg.seeds):
                    # cold minimax cache on every run so timings are comparable
                    clear_cache()
                    agent = make_agent(level, AgentConfig(mcts_iterations=cfg.mcts_iterations, seed=s))
                    t0 = time.perf_counter()
                    agent.select_move(board, player)
                    times.append(time.perf_counter() - t0)
                m, h = ci95(times)
                metrics[f"{level}_{name}_mean_s"] = m
                metrics[f"{level}_{name}_ci95_half_s"] = h
                print(f"{level:8s} {name:13s} mean={m * 1000:.2f}ms ± {h * 1000:.2f}ms (95% CI, N={cfg.seeds})")
        log_metrics(metrics)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
