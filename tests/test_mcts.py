"""
MCTSのテストケース

- MCTSNodeの基本機能テスト（展開・プレイアウト・UCB1・選択）
- grow による探索サイクルと統計の不変条件
- MCTS探索ドライバと終局近くの局面での統合テスト
"""

import math

import numpy as np
import pytest

from gamemcts.games import TicTacToe, Connect4, InvalidScoreError
from gamemcts.mcts.node import MCTSNode, UCB_CONSTANT
from gamemcts.mcts.mcts import MCTS


def iter_nodes(node):
    """部分木のすべてのノードを列挙"""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


class BrokenGame:
    """不正なスコアを返すゲーム"""

    def apply_move(self, move_index, player):
        pass

    def terminal_score(self):
        return 2

    def legal_moves(self):
        return [0]

    def copy(self):
        return BrokenGame()


@pytest.fixture
def rng():
    """シード固定の乱数生成器"""
    return np.random.default_rng(0)


class TestMCTSNode:
    """MCTSNodeの基本機能テスト"""

    def test_node_initialization(self):
        """ノードの初期化テスト"""
        state = TicTacToe.from_string("..X\nO..\nXXO")
        node = MCTSNode(state, -1)

        assert node.state == TicTacToe.from_string("..X\nO..\nXXO")
        assert node.player == -1
        assert node.move_index is None
        assert node.visits == 0
        assert node.wins == 0
        assert node.losses == 0
        assert node.children == []
        assert node.is_leaf()
        assert not node.is_expanded

    def test_invalid_player(self):
        """プレイヤーは +1 / -1 のみ"""
        with pytest.raises(ValueError):
            MCTSNode(TicTacToe(), 0)

    def test_node_expansion(self):
        """ノードの展開テスト"""
        node = MCTSNode(TicTacToe.from_string("..X\nO..\nXXO"), -1)

        node.expand()

        assert node.is_expanded
        assert len(node.children) == 4
        assert [child.move_index for child in node.children] == [0, 1, 4, 5]
        assert node.children[0].state == TicTacToe.from_string("O.X\nO..\nXXO")

        # 親の局面は変更されない
        assert node.state == TicTacToe.from_string("..X\nO..\nXXO")

        for child in node.children:
            assert child.player == 1
            assert not child.is_expanded

    def test_expand_terminal_state(self):
        """決着済みの局面では子ノードを作らない"""
        node = MCTSNode(TicTacToe.from_string("XXX\nOO.\n..."), -1)

        node.expand()

        assert node.is_expanded
        assert node.children == []

    def test_rollout_forced(self, rng):
        """合法手が1つしかない局面のプレイアウト"""
        state = TicTacToe.from_string("XX.\nOOX\nOXO")

        assert MCTSNode(state, -1).rollout(rng) == -1
        assert MCTSNode(state, 1).rollout(rng) == 1

    def test_rollout_does_not_mutate_state(self, rng):
        """プレイアウトはコピーした局面で行う"""
        node = MCTSNode(TicTacToe(), 1)
        node.rollout(rng)

        assert node.state == TicTacToe()

    def test_rollout_all_outcomes(self, rng):
        """空の盤面からのプレイアウトで3種類の結果がすべて現れる"""
        node = MCTSNode(TicTacToe(), -1)
        seen = set()

        for _ in range(10000):
            result = node.rollout(rng)
            assert result in (-1, 0, 1)
            seen.add(result)
            if len(seen) == 3:
                break

        assert seen == {-1, 0, 1}

    def test_ucb_score(self):
        """UCB1値の計算"""
        node = MCTSNode(TicTacToe.from_string("..X\nO..\nXXO"), -1)

        assert node.ucb_score(1) == math.inf

        node.visits = 1
        node.wins = 1
        assert node.ucb_score(1) == 1.0

        node.visits = 2
        node.wins = 1
        assert abs(node.ucb_score(2) - 1.3654) < 1e-3

        expected = 0.5 + UCB_CONSTANT * math.sqrt(math.log(10) / 2)
        assert node.ucb_score(10) == pytest.approx(expected)

    def test_ucb_score_requires_parent_visits(self):
        """訪問済みノードの親訪問回数が0なのは不正"""
        node = MCTSNode(TicTacToe(), 1)
        node.visits = 1

        with pytest.raises(ValueError):
            node.ucb_score(0)

    def test_select_child(self, rng):
        """UCB1値による子ノード選択テスト"""
        node = MCTSNode(TicTacToe.from_string("X.O\nOXO\nXX."), -1)

        # 子ノードがなければ None
        assert node.select_child(rng) is None

        node.expand()
        assert node.select_child(rng) is not None

        # 未訪問の子はランダムに選ばれる
        for _ in range(100):
            if node.select_child(rng) is not node.children[0]:
                break
        else:
            pytest.fail("select_child never picked the second child")

        node.children[0].wins = 0
        node.children[0].visits = 1
        node.children[1].wins = 1
        node.children[1].visits = 2
        node.visits = 3

        assert abs(node.children[0].ucb_score(3) - 1.541) < 1e-3
        assert abs(node.children[1].ucb_score(3) - 1.589) < 1e-3
        assert node.select_child(rng) is node.children[1]

        node.children[1].wins = 10
        node.children[1].visits = 20
        node.visits = 21

        assert node.select_child(rng) is node.children[0]

    def test_select_prefers_unexpanded(self, rng):
        """未訪問の兄弟がいる間は展開済みの子へ下降しない"""
        node = MCTSNode(TicTacToe(), 1)
        node.grow(1, rng)

        for _ in range(9):
            unvisited = [child for child in node.children if child.visits == 0]
            selected = node.select_child(rng)
            assert not selected.is_expanded
            assert selected in unvisited
            node.grow(1, rng)

        assert all(child.visits == 1 for child in node.children)


class TestGrow:
    """探索サイクル (grow) のテスト"""

    def test_first_grow_expands_and_simulates(self, rng):
        """初回は展開とプレイアウトだけを行い、子ノードには触れない"""
        node = MCTSNode(TicTacToe(), 1)

        wins_plus, wins_minus = node.grow(10, rng)

        assert node.visits == 10
        assert node.is_expanded
        assert len(node.children) == 9
        assert wins_plus + wins_minus <= 10
        assert node.wins == wins_minus
        assert node.losses == wins_plus
        assert all(child.visits == 0 for child in node.children)

    def test_terminal_node_x_won(self, rng):
        """決着済み局面: 全プレイアウトを勝者に割り当てる"""
        node = MCTSNode(TicTacToe.from_string("XXX\nOO.\n..."), -1)

        assert node.grow(5, rng) == (5, 0)
        assert node.visits == 5
        assert node.wins == 5
        assert node.losses == 0
        assert not node.is_expanded
        assert node.children == []

    def test_terminal_node_o_won(self, rng):
        """O の勝ち局面で X の手番"""
        node = MCTSNode(TicTacToe.from_string("OOO\nXX.\nX.."), 1)

        assert node.grow(3, rng) == (0, 3)
        assert node.wins == 3
        assert node.losses == 0

    def test_full_board_without_children(self, rng):
        """引き分けで満杯の局面: 子ノードなし、以降の grow は (0, 0)"""
        node = MCTSNode(TicTacToe.from_string("XOX\nXOO\nOXX"), 1)

        assert node.grow(4, rng) == (0, 0)
        assert node.is_expanded
        assert node.children == []

        assert node.grow(4, rng) == (0, 0)
        assert node.visits == 8
        assert node.wins == 0
        assert node.get_most_visited_child() is None

    def test_invariants_after_search(self, rng):
        """多数の grow の後も木全体で不変条件が成り立つ"""
        root = MCTSNode(TicTacToe(), 1)
        for _ in range(500):
            root.grow(2, rng)

        assert root.visits == 1000
        assert sum(child.visits for child in root.children) == root.visits - 2

        for node in iter_nodes(root):
            assert 0 <= node.wins <= node.visits
            assert 0 <= node.losses
            assert node.wins + node.losses <= node.visits

            if not node.is_expanded:
                assert node.children == []
            elif node.state.terminal_score() == 0:
                assert len(node.children) == len(node.state.legal_moves())

            for child in node.children:
                assert child.player == -node.player
                expected = node.state.copy()
                expected.apply_move(child.move_index, node.player)
                assert child.state == expected

    def test_invalid_playouts(self, rng):
        """プレイアウト数は1以上"""
        node = MCTSNode(TicTacToe(), 1)

        with pytest.raises(ValueError):
            node.grow(0, rng)

    def test_invalid_score_raises(self, rng):
        """{-1, 0, 1} 以外のスコアは致命的エラー"""
        node = MCTSNode(BrokenGame(), 1)

        with pytest.raises(InvalidScoreError):
            node.grow(1, rng)


class TestQueries:
    """探索結果の問い合わせテスト"""

    @pytest.fixture
    def searched_root(self, rng):
        """探索済みのルート"""
        root = MCTSNode(TicTacToe(), 1)
        for _ in range(200):
            root.grow(1, rng)
        return root

    def test_most_visited_child(self, searched_root):
        """最大訪問回数の子ノード"""
        best = searched_root.get_most_visited_child()

        assert best.visits == max(child.visits for child in searched_root.children)

    def test_query_is_idempotent(self, searched_root):
        """grow を挟まなければ同じ結果を返す"""
        first = searched_root.get_most_visited_child()
        counts = searched_root.get_visit_counts()
        visits = searched_root.visits

        assert searched_root.get_most_visited_child() is first
        assert searched_root.get_visit_counts() == counts
        assert searched_root.visits == visits

    def test_get_child(self, searched_root):
        """手から子ノードを引く"""
        child = searched_root.get_child(4)

        assert child.move_index == 4
        assert searched_root.get_child(42) is None

    def test_visit_counts(self, searched_root):
        """訪問回数の辞書"""
        counts = searched_root.get_visit_counts()

        assert sorted(counts.keys()) == list(range(9))
        assert sum(counts.values()) == searched_root.visits - 1

    def test_policy_distribution(self):
        """訪問回数に基づく方策分布の生成テスト"""
        root = MCTSNode(TicTacToe.from_string("XO.\n.X.\nO.."), 1)
        root.expand()
        for child, visits in zip(root.children, [10, 5, 5, 0, 20]):
            child.visits = visits

        policy = root.get_policy_distribution(9, temperature=1.0)

        assert policy.shape == (9,)
        assert np.isclose(policy.sum(), 1.0)
        assert policy[8] == pytest.approx(0.5)
        assert policy[2] == pytest.approx(0.25)
        assert policy[7] == 0.0
        for move_index in (0, 1, 4, 6):
            assert policy[move_index] == 0.0

        # temperature = 0.0 (決定的)
        policy_deterministic = root.get_policy_distribution(9, temperature=0.0)
        assert policy_deterministic[8] == 1.0
        assert policy_deterministic.sum() == 1.0

    def test_policy_without_children(self):
        """子ノードがなければすべて0"""
        root = MCTSNode(TicTacToe(), 1)

        assert not root.get_policy_distribution(9).any()

    def test_rates(self):
        """勝率・負け率"""
        node = MCTSNode(TicTacToe(), 1)
        assert node.win_rate() == 0.0
        assert node.loss_rate() == 0.0

        node.visits = 4
        node.wins = 1
        node.losses = 2
        assert node.win_rate() == 0.25
        assert node.loss_rate() == 0.5


class TestMCTS:
    """MCTS探索ドライバのテスト"""

    def test_mcts_initialization(self):
        """MCTSの初期化テスト"""
        mcts = MCTS(num_iterations=100, playouts=2, seed=1)

        assert mcts.num_iterations == 100
        assert mcts.playouts == 2
        assert isinstance(mcts.rng, np.random.Generator)

    @pytest.mark.parametrize("kwargs", [
        {"num_iterations": 0},
        {"playouts": 0},
    ])
    def test_invalid_effort(self, kwargs):
        """探索量は1以上"""
        with pytest.raises(ValueError):
            MCTS(**kwargs)

    def test_search(self):
        """探索後のルートの統計"""
        state = TicTacToe()
        root = MCTS(num_iterations=50, playouts=3, seed=0).search(state, 1)

        assert root.visits == 150
        assert root.player == 1
        assert len(root.children) == 9

        # 元の局面は変更されない
        assert state == TicTacToe()

    def test_same_seed_same_tree(self):
        """同じシードなら同じ探索結果になる"""
        first = MCTS(num_iterations=300, seed=123).search(TicTacToe(), 1)
        second = MCTS(num_iterations=300, seed=123).search(TicTacToe(), 1)

        assert first.get_visit_counts() == second.get_visit_counts()
        assert first.wins == second.wins
        assert first.losses == second.losses

    def test_tree_reuse(self):
        """子ノードをルートにして探索を続けられる"""
        mcts = MCTS(num_iterations=200, seed=0)
        root = mcts.search(TicTacToe(), 1)

        child = root.get_most_visited_child()
        visits_before = child.visits

        new_root = mcts.search(child.state, -1, root=child)

        assert new_root is child
        assert child.visits == visits_before + 200

    def test_tree_reuse_player_mismatch(self):
        """再利用するルートの手番が一致しなければエラー"""
        mcts = MCTS(num_iterations=10, seed=0)
        root = mcts.search(TicTacToe(), 1)

        with pytest.raises(ValueError):
            mcts.search(root.state, -1, root=root)

    def test_no_recommendation_on_decided_game(self):
        """決着済みの局面では推奨手なし"""
        mcts = MCTS(num_iterations=10, seed=0)

        assert mcts.get_best_action(TicTacToe.from_string("XXX\nOO.\n..."), -1) is None
        assert mcts.get_best_action(TicTacToe.from_string("XOX\nXOO\nOXX"), 1) is None

    def test_action_probs(self):
        """行動確率は合法手のみに割り当てられる"""
        state = TicTacToe.from_string("XO.\n.X.\nO..")
        probs = MCTS(num_iterations=100, seed=0).get_action_probs(state, 1)

        assert probs.shape == (9,)
        assert np.isclose(probs.sum(), 1.0)
        for move_index in range(9):
            if move_index not in state.legal_moves():
                assert probs[move_index] == 0.0

    def test_evaluate(self):
        """評価値の合計は1"""
        result = MCTS(num_iterations=200, seed=0).evaluate(TicTacToe(), 1)

        total = result["player_win_rate"] + result["opponent_win_rate"] + result["draw_rate"]
        assert total == pytest.approx(1.0)
        assert result["visits"] == 200
        assert result["best_action"] in range(9)


class TestIntegration:
    """終局近くの局面での統合テスト"""

    def test_tictactoe_x_finds_winning_move(self):
        """X（中央と角）が1手で勝てる局面で勝ち手を選ぶ"""
        state = TicTacToe.from_string("XO.\n.X.\nO..")
        root = MCTS(num_iterations=1000, seed=0).search(state, 1)

        best = root.get_most_visited_child()
        assert best.move_index == 8
        assert best.state.terminal_score() == 1

    def test_tictactoe_o_finds_winning_move(self):
        """O の手番で勝ち手を選ぶ"""
        state = TicTacToe.from_string("XX.\nOO.\nX..")
        action = MCTS(num_iterations=1000, seed=0).get_best_action(state, -1)

        assert action == 5

    def test_connect4_finds_winning_move(self):
        """四目並べで横の4連を完成させる"""
        state = Connect4.from_string(
            "......\n"
            "......\n"
            "......\n"
            "......\n"
            "OO....\n"
            "XXX.O.\n"
        )
        action = MCTS(num_iterations=300, seed=0).get_best_action(state, 1)

        assert action == 3

        state.apply_move(action, 1)
        assert state.terminal_score() == 1
