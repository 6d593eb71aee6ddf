"""tictactoe_ai package.

Board rules and three move-selection agents (random, MCTS, minimax), a
headless game driver, batch matches, and a simple CLI.

Convenience imports are exposed for common workflows.
"""

from .agents import Agent, RandomAgent, build_agents, make_agent
from .config import AgentConfig, MatchArgs
from .game import Scoreboard, play_game, resolve_seats
from .game_basics import PLAYER_O, PLAYER_X, get_winner, is_draw, legal_moves
from .matches import run_match
from .mcts import MCTSAgent
from .minimax import MinimaxAgent

__all__ = [
    "Agent",
    "RandomAgent",
    "MCTSAgent",
    "MinimaxAgent",
    "make_agent",
    "build_agents",
    "AgentConfig",
    "MatchArgs",
    "Scoreboard",
    "play_game",
    "resolve_seats",
    "run_match",
    "get_winner",
    "is_draw",
    "legal_moves",
    "PLAYER_X",
    "PLAYER_O",
]
