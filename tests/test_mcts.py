import math

import numpy as np
import pytest

from tictactoe_ai.game_basics import PLAYER_O, PLAYER_X, is_terminal, legal_moves
from tictactoe_ai.mcts import (
    MCTSAgent,
    SearchTree,
    outcome_for,
    rollout,
    win_credit,
)


def _three_node_tree():
    tree = SearchTree([0] * 9, PLAYER_X)
    a = tree.expand(tree.root)  # X plays 8, O to move
    b = tree.expand(a)          # O plays 7, X to move
    return tree, a, b


def test_expand_pops_from_the_end_and_alternates_players():
    tree, a, b = _three_node_tree()
    assert tree[a].move == 8 and tree[a].board[8] == PLAYER_X and tree[a].player_to_move == PLAYER_O
    assert tree[b].move == 7 and tree[b].board[7] == PLAYER_O and tree[b].player_to_move == PLAYER_X
    assert tree[a].parent == tree.root and tree[b].parent == a
    assert tree[tree.root].children == [a] and tree[a].children == [b]
    assert tree[tree.root].unexpanded == list(range(8))
    assert tree[tree.root].board == [0] * 9


def test_backpropagate_o_win_credits_o_movers():
    tree, a, b = _three_node_tree()
    tree.backpropagate(b, +1, perspective=PLAYER_O)
    # b was entered by O, a by X, and the root is scored for O
    assert (tree[b].wins, tree[a].wins, tree[tree.root].wins) == (1.0, 0.0, 1.0)
    assert (tree[b].visits, tree[a].visits, tree[tree.root].visits) == (1, 1, 1)


def test_backpropagate_same_result_from_x_perspective():
    tree, a, b = _three_node_tree()
    # O won, scored from X's side
    tree.backpropagate(b, -1, perspective=PLAYER_X)
    assert (tree[b].wins, tree[a].wins, tree[tree.root].wins) == (1.0, 0.0, 1.0)


def test_backpropagate_x_win_and_draw():
    tree, a, b = _three_node_tree()
    tree.backpropagate(b, -1, perspective=PLAYER_O)
    assert (tree[b].wins, tree[a].wins) == (0.0, 1.0)
    tree.backpropagate(b, 0, perspective=PLAYER_O)
    assert (tree[b].wins, tree[a].wins, tree[tree.root].wins) == (0.5, 1.5, 0.5)
    assert tree[tree.root].visits == 2


def test_backpropagate_from_middle_node_only_touches_ancestors():
    tree, a, b = _three_node_tree()
    tree.backpropagate(a, +1, perspective=PLAYER_O)
    assert tree[b].visits == 0
    assert (tree[a].wins, tree[tree.root].wins) == (0.0, 1.0)


def test_win_credit_and_outcome():
    assert [win_credit(o) for o in (1, 0, -1)] == [1.0, 0.5, 0.0]
    assert outcome_for([2, 2, 2, 1, 1, 0, 1, 0, 0]) == 1
    assert outcome_for([1, 1, 1, 2, 2, 0, 0, 0, 0]) == -1
    assert outcome_for([1, 1, 1, 2, 2, 0, 0, 0, 0], perspective=PLAYER_X) == 1
    assert outcome_for([1, 1, 2, 2, 2, 1, 1, 2, 1]) == 0


def test_uct_unvisited_child_is_infinite():
    tree, a, _ = _three_node_tree()
    assert tree.uct_score(a, math.sqrt(2)) == math.inf
    tree[tree.root].visits = 10
    tree[a].visits = 4
    tree[a].wins = 3.0
    expected = 0.75 + math.sqrt(2) * math.sqrt(math.log(10) / 4)
    assert tree.uct_score(a, math.sqrt(2)) == pytest.approx(expected)


def test_select_prefers_unvisited_child():
    tree = SearchTree([1, 2, 1, 2, 1, 2, 0, 0, 0], PLAYER_X)
    kids = [tree.expand(tree.root) for _ in range(3)]
    for k in kids[:2]:
        tree.backpropagate(k, 0)
    assert tree.select(math.sqrt(2)) == kids[2]


def test_rollout_reaches_a_terminal_outcome():
    rng = np.random.default_rng(0)
    for _ in range(20):
        assert rollout([0] * 9, PLAYER_X, rng) in (-1, 0, 1)
    # already terminal: nothing to play
    assert rollout([2, 2, 2, 1, 1, 0, 1, 0, 0], PLAYER_X, rng) == 1


def test_visit_counts_are_consistent():
    agent = MCTSAgent(iterations=300, seed=5)
    tree = agent.search([0] * 9, PLAYER_X)
    root = tree[tree.root]
    assert root.visits == 300
    for handle in range(len(tree)):
        node = tree[handle]
        child_visits = sum(tree[c].visits for c in node.children)
        if handle == tree.root:
            assert node.visits == child_visits
        elif is_terminal(node.board):
            assert node.children == [] and node.visits >= 1
        else:
            # one rollout started here when it was created
            assert node.visits == child_visits + 1
        assert 0.0 <= node.wins <= node.visits


def test_takes_immediate_win():
    b = [1, 1, 0, 2, 2, 0, 0, 0, 0]
    assert MCTSAgent(iterations=2000, seed=7).select_move(b, PLAYER_X) == 2


def test_single_iteration_on_empty_board_returns_legal_move():
    mv = MCTSAgent(iterations=1, seed=0).select_move([0] * 9, PLAYER_X)
    assert mv in range(9)


def test_zero_iterations_falls_back_to_first_legal_move():
    b = [1, 2, 1, 2, 1, 2, 0, 0, 0]
    assert MCTSAgent(iterations=0).select_move(b, PLAYER_X) == 6


def test_full_board_returns_none():
    assert MCTSAgent(iterations=50).select_move([1, 1, 2, 2, 2, 1, 1, 2, 1], PLAYER_X) is None


def test_seeded_agents_agree_and_do_not_mutate():
    b = [1, 0, 0, 0, 2, 0, 0, 0, 0]
    snapshot = list(b)
    m1 = MCTSAgent(iterations=400, seed=42).select_move(b, PLAYER_X)
    m2 = MCTSAgent(iterations=400, seed=42).select_move(b, PLAYER_X)
    assert m1 == m2
    assert m1 in legal_moves(b)
    assert b == snapshot


def test_search_trees_are_not_reused():
    agent = MCTSAgent(iterations=100, seed=1)
    t1 = agent.search([0] * 9, PLAYER_O)
    t2 = agent.search([0] * 9, PLAYER_O)
    assert t1 is not t2
    assert t2[t2.root].visits == 100


@pytest.mark.parametrize("kwargs", [{"iterations": -1}, {"exploration": 0.0}, {"exploration": -1.0}])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        MCTSAgent(**kwargs)


def test_invalid_player_rejected():
    with pytest.raises(ValueError):
        MCTSAgent(iterations=5).select_move([0] * 9, 3)
