"""
Monte Carlo Tree Search with UCT selection and uniform random rollouts.

Each decision grows a fresh tree and discards it afterwards. Nodes live in a
SearchTree arena and refer to their parent and children by integer handle, so
ownership flows from the arena and no node keeps another alive.

Outcomes are scored from a fixed evaluation perspective (O by default):
+1 the perspective side won, -1 it lost, 0 draw. A node's `wins` counts credit
for the player who made the move into that node: 1.0 per win, 0.5 per draw.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_EXPLORATION, DEFAULT_MCTS_ITERATIONS
from .game_basics import (
    PLAYER_O,
    PLAYER_X,
    apply_move,
    get_winner,
    is_terminal,
    legal_moves,
    other_player,
)
from .rng import GeneratorFactory

EVAL_PERSPECTIVE = PLAYER_O


@dataclass
class SearchNode:
    board: List[int]
    player_to_move: int
    parent: Optional[int] = None
    move: Optional[int] = None
    wins: float = 0.0
    visits: int = 0
    children: List[int] = field(default_factory=list)
    unexpanded: List[int] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        return self.wins / self.visits if self.visits else 0.0


def outcome_for(board: Sequence[int], perspective: int = EVAL_PERSPECTIVE) -> int:
    w = get_winner(board)
    if w == 0:
        return 0
    return 1 if w == perspective else -1


def win_credit(outcome: int) -> float:
    if outcome > 0:
        return 1.0
    if outcome == 0:
        return 0.5
    return 0.0


class SearchTree:
    def __init__(self, board: Sequence[int], player_to_move: int) -> None:
        self.nodes: List[SearchNode] = []
        self.root = self.add(board, player_to_move)

    def __getitem__(self, handle: int) -> SearchNode:
        return self.nodes[handle]

    def __len__(self) -> int:
        return len(self.nodes)

    def add(
        self,
        board: Sequence[int],
        player_to_move: int,
        parent: Optional[int] = None,
        move: Optional[int] = None,
    ) -> int:
        node = SearchNode(
            board=list(board),
            player_to_move=player_to_move,
            parent=parent,
            move=move,
            unexpanded=legal_moves(board),
        )
        self.nodes.append(node)
        handle = len(self.nodes) - 1
        if parent is not None:
            self.nodes[parent].children.append(handle)
        return handle

    def uct_score(self, handle: int, exploration: float) -> float:
        node = self.nodes[handle]
        if node.visits == 0 or node.parent is None:
            return math.inf
        parent_visits = self.nodes[node.parent].visits
        if parent_visits == 0:
            return math.inf
        return node.win_rate + exploration * math.sqrt(math.log(parent_visits) / node.visits)

    def select(self, exploration: float) -> int:
        """Descend by UCT until a node with unexpanded moves or no children."""
        handle = self.root
        node = self.nodes[handle]
        while not node.unexpanded and node.children:
            # max() keeps the first child on equal scores
            handle = max(node.children, key=lambda h: self.uct_score(h, exploration))
            node = self.nodes[handle]
        return handle

    def expand(self, handle: int) -> int:
        node = self.nodes[handle]
        move = node.unexpanded.pop()
        board = apply_move(node.board, move, node.player_to_move)
        return self.add(board, other_player(node.player_to_move), parent=handle, move=move)

    def backpropagate(self, handle: int, outcome: int, perspective: int = EVAL_PERSPECTIVE) -> None:
        """Credit `outcome` (scored for `perspective`) on the path up to the root.

        The mover into a node is the opponent of its player_to_move. Players
        alternate, so the local sign flips at every step up.
        """
        mover = other_player(self.nodes[handle].player_to_move)
        sign = 1 if mover == perspective else -1
        current: Optional[int] = handle
        while current is not None:
            node = self.nodes[current]
            node.visits += 1
            node.wins += win_credit(outcome * sign)
            sign = -sign
            current = node.parent

    def best_move(self) -> Optional[int]:
        """Root child with the highest win rate, then the most visits."""
        best: Optional[SearchNode] = None
        for h in self.nodes[self.root].children:
            node = self.nodes[h]
            if node.visits == 0:
                continue
            if (
                best is None
                or node.win_rate > best.win_rate
                or (node.win_rate == best.win_rate and node.visits > best.visits)
            ):
                best = node
        return best.move if best is not None else None


def rollout(
    board: Sequence[int],
    player_to_move: int,
    rng: np.random.Generator,
    perspective: int = EVAL_PERSPECTIVE,
) -> int:
    b = list(board)
    p = player_to_move
    while not is_terminal(b):
        moves = legal_moves(b)
        b[moves[int(rng.integers(len(moves)))]] = p
        p = other_player(p)
    return outcome_for(b, perspective)


class MCTSAgent:
    """Intermediate level: fixed iteration budget, fresh tree per decision."""

    def __init__(
        self,
        iterations: int = DEFAULT_MCTS_ITERATIONS,
        exploration: float = DEFAULT_EXPLORATION,
        seed: Optional[int] = None,
    ) -> None:
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        if exploration <= 0:
            raise ValueError(f"exploration must be > 0, got {exploration}")
        self.iterations = iterations
        self.exploration = exploration
        self._rngs = GeneratorFactory(seed)

    def search(self, board: Sequence[int], player: int) -> SearchTree:
        rng = self._rngs.spawn()
        tree = SearchTree(board, player)
        for _ in range(self.iterations):
            handle = tree.select(self.exploration)
            node = tree[handle]
            if is_terminal(node.board):
                tree.backpropagate(handle, outcome_for(node.board, EVAL_PERSPECTIVE), EVAL_PERSPECTIVE)
                continue
            child = tree.expand(handle)
            result = rollout(tree[child].board, tree[child].player_to_move, rng, EVAL_PERSPECTIVE)
            tree.backpropagate(child, result, EVAL_PERSPECTIVE)
        return tree

    def select_move(self, board: Sequence[int], player: int) -> Optional[int]:
        if player not in (PLAYER_X, PLAYER_O):
            raise ValueError(f"Invalid player marker: {player!r}")
        moves = legal_moves(board)
        if not moves:
            return None
        tree = self.search(board, player)
        move = tree.best_move()
        if move is None:
            logging.debug("mcts: no sampled root child after %d iterations, using first legal move", self.iterations)
            return moves[0]
        root = tree[tree.root]
        logging.debug(
            "mcts: iterations=%d nodes=%d root_visits=%d chose=%d",
            self.iterations, len(tree), root.visits, move,
        )
        return move
