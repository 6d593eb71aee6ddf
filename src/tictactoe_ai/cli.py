from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .agents import build_agents, make_agent
from .config import LEVEL_NAMES, LEVELS, AgentConfig, MatchArgs
from .game import MODES, STARTERS, MoveRecord, Scoreboard, play_game, resolve_seats
from .game_basics import PLAYER_NAMES, current_player, is_valid_state, render_board
from .matches import run_match

DETERMINISTIC_SEED = 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt-ai", description="Tic-tac-toe agents: random, MCTS, minimax")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--info",
        action="store_true",
        help="Print environment and dependency info and exit",
    )
    p.add_argument("--seed", type=int, default=None, help="Seed for the randomized agents")
    p.add_argument(
        "--deterministic",
        action="store_true",
        help="Seed the randomized agents with 0 unless --seed or TTT_SEED is given",
    )
    p.add_argument(
        "--iterations", type=int, default=None, help="MCTS iterations per move (default: 5000)"
    )
    p.add_argument(
        "--exploration", type=float, default=None, help="MCTS UCT exploration constant (default: sqrt(2))"
    )

    # single decision
    p_move = sub.add_parser(
        "move",
        help="Select a move for a board (9 digits, 0=empty,1=X,2=O)",
    )
    p_move.add_argument("--board", help="Board string, e.g., 100020000 (omit with --stdin)")
    p_move.add_argument(
        "--player",
        type=int,
        choices=[1, 2],
        default=None,
        help="Side to move: 1=X, 2=O (default: inferred from piece counts)",
    )
    p_move.add_argument("--agent", choices=LEVELS, default="minimax", help="Agent level (default: minimax)")
    p_move.add_argument(
        "--stdin", action="store_true", help="Read many boards from stdin and stream CSV output"
    )

    # interactive play
    p_play = sub.add_parser("play", help="Play in the terminal")
    p_play.add_argument("--mode", choices=MODES, default="human-ai")
    p_play.add_argument("--level", choices=LEVELS, default="minimax", help="Machine level in human-ai mode")
    p_play.add_argument("--starter", choices=STARTERS, default="human", help="Who plays X (moves first) in human-ai mode")
    p_play.add_argument("--ai-x", choices=LEVELS, default="random", help="X agent in ai-ai mode")
    p_play.add_argument("--ai-o", choices=LEVELS, default="mcts", help="O agent in ai-ai mode")
    p_play.add_argument("--games", type=int, default=1)

    # batch matches
    p_match = sub.add_parser("match", help="Play a batch of AI-vs-AI games and report the tally")
    p_match.add_argument("--x", choices=LEVELS, default="minimax")
    p_match.add_argument("--o", choices=LEVELS, default="mcts")
    p_match.add_argument("--games", type=int, default=10)
    p_match.add_argument("--alternate", action="store_true", help="Swap sides every other game")
    p_match.add_argument("--out", type=Path, default=None, help="Write games.csv and manifest.json here")
    p_match.add_argument(
        "--tracking",
        choices=["none", "mlflow"],
        default="none",
        help="Experiment tracking backend",
    )
    p_match.add_argument(
        "--log-dir",
        type=Path,
        default=Path("runs"),
        help="Directory for tracking logs/artifacts (for mlflow local backend)",
    )

    return p


def _print_info() -> None:
    import importlib.util
    import platform

    print(f"python={sys.version.split()[0]} platform={platform.platform()}")
    for pkg in ["numpy", "mlflow"]:
        spec = importlib.util.find_spec(pkg)
        if spec is None:
            print(f"{pkg}=<not installed>")
        else:
            mod = __import__(pkg)
            ver = getattr(mod, "__version__", "?")
            print(f"{pkg}={ver}")


def _parse_board(raw: str) -> Optional[List[int]]:
    raw = raw.strip()
    if len(raw) != 9 or any(c not in "012" for c in raw):
        return None
    return [int(c) for c in raw]


def _agent_config(ns: argparse.Namespace) -> AgentConfig:
    cfg = AgentConfig.from_env(
        mcts_iterations=ns.iterations,
        exploration=ns.exploration,
        seed=ns.seed,
    )
    if ns.deterministic and cfg.seed is None:
        cfg.seed = DETERMINISTIC_SEED
    return cfg


def _cmd_move(ns: argparse.Namespace) -> int:
    agent = make_agent(ns.agent, _agent_config(ns))
    if ns.stdin:
        import csv as _csv

        w = _csv.writer(sys.stdout)
        w.writerow(["board", "player", "agent", "move", "think_ms"])
        for line in sys.stdin:
            raw = line.strip()
            if not raw:
                continue
            b = _parse_board(raw)
            if b is None or not is_valid_state(b):
                continue
            player = ns.player or current_player(b)
            t0 = time.perf_counter()
            mv = agent.select_move(b, player)
            ms = (time.perf_counter() - t0) * 1000.0
            w.writerow([raw, player, ns.agent, "" if mv is None else mv, f"{ms:.2f}"])
        return 0
    b = _parse_board(ns.board or "")
    if b is None:
        logging.error("Invalid board string. Must be 9 chars of 0/1/2.")
        return 2
    if not is_valid_state(b):
        logging.error("Board is not a valid reachable state.")
        return 2
    player = ns.player or current_player(b)
    t0 = time.perf_counter()
    mv = agent.select_move(b, player)
    ms = (time.perf_counter() - t0) * 1000.0
    logging.info(
        "agent=%s player=%s move=%s time_ms=%.2f",
        ns.agent,
        PLAYER_NAMES[player],
        "none" if mv is None else mv,
        ms,
    )
    print("none" if mv is None else mv)
    return 0


def _terminal_human(board: List[int], player: int) -> Optional[int]:
    print(render_board(board))
    raw = input(f"{PLAYER_NAMES[player]} to move, cell 0-8: ").strip()
    return int(raw) if raw.isdigit() else None


def _show_move(board: List[int], rec: MoveRecord) -> None:
    if rec.agent is not None:
        print(f"{PLAYER_NAMES[rec.player]} [{LEVEL_NAMES[rec.agent]}] -> {rec.cell} ({rec.think_ms:.2f} ms)")


def _cmd_play(ns: argparse.Namespace) -> int:
    seats = resolve_seats(ns.mode, level=ns.level, starter=ns.starter, ai_x=ns.ai_x, ai_o=ns.ai_o)
    agents = build_agents(_agent_config(ns))
    scores = Scoreboard()
    for _ in range(max(1, ns.games)):
        try:
            rec = play_game(seats, agents, human_move=_terminal_human, on_move=_show_move)
        except (EOFError, KeyboardInterrupt):
            logging.info("Game aborted.")
            return 1
        print(render_board(rec.board))
        print("Draw!" if rec.result == "T" else f"{rec.result} wins!")
        scores.record(rec.winner)
        print(f"Score: X={scores.X} O={scores.O} T={scores.T}")
    return 0


def _cmd_match(ns: argparse.Namespace, argv: Optional[List[str]]) -> int:
    if ns.games < 1:
        logging.error("--games must be >= 1")
        return 2
    result = run_match(MatchArgs(
        x=ns.x,
        o=ns.o,
        games=ns.games,
        alternate=ns.alternate,
        agent_config=_agent_config(ns),
        out=ns.out,
        tracking=ns.tracking == "mlflow",
        log_dir=ns.log_dir,
        verbose=ns.verbose,
        cli_argv=list(argv) if argv is not None else None,
    ))
    s = result.scoreboard
    logging.info("X=%d O=%d T=%d by_agent=%s", s.X, s.O, s.T, result.by_agent)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as _ver

        try:
            print(_ver("tictactoe-ai"))
        except PackageNotFoundError:
            print("unknown")
        return 0
    if getattr(ns, "info", False):
        _print_info()
        return 0

    if ns.iterations is not None and ns.iterations < 0:
        logging.error("--iterations must be >= 0")
        return 2
    if ns.exploration is not None and ns.exploration <= 0:
        logging.error("--exploration must be > 0")
        return 2

    if ns.cmd == "move":
        return _cmd_move(ns)
    if ns.cmd == "play":
        return _cmd_play(ns)
    if ns.cmd == "match":
        return _cmd_match(ns, argv)

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
