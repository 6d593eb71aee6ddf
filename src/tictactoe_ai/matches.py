"""
Batch AI-vs-AI matches with an optional CSV + manifest export.
"""
from __future__ import annotations

import csv
import hashlib
import importlib.util
import json
import logging
import sys
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .agents import build_agents
from .config import MatchArgs
from .game import GameRecord, Scoreboard, play_game, resolve_seats
from .game_basics import PLAYER_NAMES, PLAYER_O, PLAYER_X, serialize_board
from .paths import get_git_commit, get_git_is_dirty
from .tracking import log_artifact, log_metrics, log_params, maybe_mlflow_run

MANIFEST_VERSION = "1.0.0"


@dataclass
class MatchResult:
    scoreboard: Scoreboard
    rows: List[Dict[str, Any]] = field(default_factory=list)
    by_agent: Dict[str, Dict[str, int]] = field(default_factory=dict)
    out: Optional[Path] = None


def _game_row(index: int, x_label: str, o_label: str, rec: GameRecord) -> Dict[str, Any]:
    think = {PLAYER_X: 0.0, PLAYER_O: 0.0}
    for m in rec.moves:
        if m.think_ms is not None:
            think[m.player] += m.think_ms
    winner_agent = {PLAYER_X: x_label, PLAYER_O: o_label}.get(rec.winner, "")
    return {
        "game": index,
        "x_agent": x_label,
        "o_agent": o_label,
        "result": rec.result,
        "winner_agent": winner_agent,
        "plies": len(rec.moves),
        "moves": " ".join(str(m.cell) for m in rec.moves),
        "final_board": serialize_board(rec.board),
        "x_think_ms": round(think[PLAYER_X], 3),
        "o_think_ms": round(think[PLAYER_O], 3),
    }


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def _package_versions() -> Dict[str, str]:
    versions: Dict[str, str] = {}
    for pkg in ("numpy", "mlflow"):
        if importlib.util.find_spec(pkg) is None:
            continue
        mod = __import__(pkg)
        ver = getattr(mod, "__version__", None)
        if ver:
            versions[pkg] = ver
    return versions


def _write_outputs(out: Path, args: MatchArgs, result: MatchResult) -> None:
    out.mkdir(parents=True, exist_ok=True)
    games_csv = out / "games.csv"
    fieldnames = list(result.rows[0].keys()) if result.rows else ["game"]
    with games_csv.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for r in result.rows:
            w.writerow(r)
    cfg = asdict(args)
    cfg["out"] = str(args.out) if args.out is not None else None
    cfg["log_dir"] = str(args.log_dir)
    manifest = {
        "manifest_version": MANIFEST_VERSION,
        "created_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "git_commit": get_git_commit(),
        "git_is_dirty": get_git_is_dirty(),
        "python_version": sys.version.split(" ")[0],
        "packages": _package_versions(),
        "config": cfg,
        "scoreboard": result.scoreboard.as_dict(),
        "by_agent": result.by_agent,
        "files": {
            "games_csv": games_csv.name,
            "games_csv_sha256": _sha256_file(games_csv),
        },
    }
    (out / "manifest.json").write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote %s (%d games) and manifest.json", games_csv, len(result.rows))


def run_match(args: MatchArgs) -> MatchResult:
    if args.games < 1:
        raise ValueError(f"games must be >= 1, got {args.games}")
    agents = build_agents(args.agent_config)
    board = Scoreboard()
    tally: Dict[str, Counter] = {}
    rows: List[Dict[str, Any]] = []
    with maybe_mlflow_run(args.tracking, run_name="match", log_dir=args.log_dir):
        log_params({
            "x": args.x,
            "o": args.o,
            "games": args.games,
            "alternate": args.alternate,
            "mcts_iterations": args.agent_config.mcts_iterations,
            "exploration": args.agent_config.exploration,
            "seed": args.agent_config.seed,
        })
        for g in range(args.games):
            x_label, o_label = args.x, args.o
            if args.alternate and g % 2 == 1:
                x_label, o_label = o_label, x_label
            seats = resolve_seats("ai-ai", ai_x=x_label, ai_o=o_label)
            rec = play_game(seats, agents)
            board.record(rec.winner)
            rows.append(_game_row(g, x_label, o_label, rec))
            for player, label in ((PLAYER_X, x_label), (PLAYER_O, o_label)):
                c = tally.setdefault(label, Counter())
                if rec.winner == 0:
                    c["draws"] += 1
                elif rec.winner == player:
                    c["wins"] += 1
                else:
                    c["losses"] += 1
            logging.debug("game %d: %s(X) vs %s(O) -> %s", g, x_label, o_label, rec.result)
        by_agent = {k: {"wins": v["wins"], "draws": v["draws"], "losses": v["losses"]} for k, v in tally.items()}
        result = MatchResult(scoreboard=board, rows=rows, by_agent=by_agent, out=args.out)
        logging.info(
            "Match finished: %s=%d %s=%d T=%d",
            PLAYER_NAMES[PLAYER_X], board.X, PLAYER_NAMES[PLAYER_O], board.O, board.T,
        )
        log_metrics({
            "x_wins": float(board.X),
            "o_wins": float(board.O),
            "ties": float(board.T),
            "tie_rate": board.T / board.games,
        })
        if args.out is not None:
            _write_outputs(args.out, args, result)
            log_artifact(args.out / "manifest.json")
    return result
