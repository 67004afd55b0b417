"""
MCTSノード定義

ランダムプレイアウト方式のMCTSで使用する木構造のノードクラス
UCB1値計算と統計情報を管理し、1回の探索サイクル（選択・展開・
シミュレーション・逆伝播）を再帰的に実行する
"""

import math
import numpy as np
from typing import Dict, List, Optional, Tuple

from gamemcts.games.base import check_player, check_score


# UCB1式の探索定数
UCB_CONSTANT = 1.47


class MCTSNode:
    """
    MCTSの木構造ノード

    各ノードは「そこで手番を持つプレイヤー」の視点で1つの局面を表す:
    - 訪問回数 (visits)
    - 勝ち数 (wins) - このノードへ着手した側 (-player) が勝ったシミュレーション数
    - 負け数 (losses) - 手番側 (player) が勝ったシミュレーション数
    - 子ノードのリスト（合法手ごとに1つ、まとめて生成）

    UCB1式:
        wins / visits + C * sqrt(ln(N) / visits)

    N は親ノードの訪問回数。wins を着手側の勝ち数として数えるため、
    親から見て最も価値の高い子がそのまま最大スコアになる
    """

    def __init__(self, state, player: int, move_index: Optional[int] = None):
        """
        Args:
            state: ゲーム局面（このノードが専有する）
            player (int): この局面で手番を持つプレイヤー (+1 or -1)
            move_index (int, optional): 親からこのノードへ至る手（ルートは None）
        """
        self.state = state
        self.player = check_player(player)
        self.move_index = move_index

        # 統計情報
        self.visits = 0
        self.wins = 0
        self.losses = 0

        # 子ノード（合法手の順）
        self.children: List["MCTSNode"] = []

        # 展開済みフラグ
        self.is_expanded = False

    def is_leaf(self) -> bool:
        """リーフノードかどうか"""
        return len(self.children) == 0

    def expand(self):
        """
        ノードを展開し、合法手ごとに子ノードを作成

        すでに決着している局面では子ノードを作らない
        """
        self.is_expanded = True

        if check_score(self.state.terminal_score()) != 0:
            return

        for move_index in self.state.legal_moves():
            child_state = self.state.copy()
            child_state.apply_move(move_index, self.player)
            self.children.append(
                MCTSNode(child_state, -self.player, move_index=move_index)
            )

    def rollout(self, rng: np.random.Generator) -> int:
        """
        この局面から終局までランダムに打ち進める

        Args:
            rng (np.random.Generator): 乱数生成器

        Returns:
            int: 1 (先手勝ち), -1 (後手勝ち), 0 (引き分け)
        """
        state = self.state.copy()
        player = self.player

        while True:
            score = check_score(state.terminal_score())
            if score != 0:
                return score

            legal_moves = state.legal_moves()
            if len(legal_moves) == 0:
                return 0

            move_index = legal_moves[int(rng.integers(len(legal_moves)))]
            state.apply_move(move_index, player)
            player = -player

    def ucb_score(self, parent_visits: int) -> float:
        """
        UCB1値を計算

        Args:
            parent_visits (int): 親ノードの訪問回数

        Returns:
            float: UCB1値。未訪問の場合は inf
        """
        if self.visits == 0:
            return math.inf

        if parent_visits < 1:
            raise ValueError(
                f"parent_visits must be positive for a visited node, got {parent_visits}"
            )

        exploitation = self.wins / self.visits
        exploration = UCB_CONSTANT * math.sqrt(math.log(parent_visits) / self.visits)
        return exploitation + exploration

    def select_child(self, rng: np.random.Generator) -> Optional["MCTSNode"]:
        """
        UCB1値が最大の子ノードを選択

        同点の場合は先に見つかった子を選ぶ。未訪問の子がある場合
        （最大値が inf）は、未展開の子からランダムに選ぶ

        Args:
            rng (np.random.Generator): 乱数生成器

        Returns:
            MCTSNode or None: 子ノードがない場合は None
        """
        if len(self.children) == 0:
            return None

        best_score = -math.inf
        best_child = None

        for child in self.children:
            score = child.ucb_score(self.visits)
            if score > best_score:
                best_score = score
                best_child = child

        if best_score == math.inf:
            not_expanded = [child for child in self.children if not child.is_expanded]
            return not_expanded[int(rng.integers(len(not_expanded)))]

        return best_child

    def update(self, wins_plus: int, wins_minus: int):
        """
        勝ち数・負け数を更新（バックプロパゲーション）

        Args:
            wins_plus (int): プレイヤー +1 が勝ったシミュレーション数
            wins_minus (int): プレイヤー -1 が勝ったシミュレーション数
        """
        if self.player == 1:
            self.wins += wins_minus
            self.losses += wins_plus
        else:
            self.wins += wins_plus
            self.losses += wins_minus

    def grow(self, playouts: int, rng: np.random.Generator) -> Tuple[int, int]:
        """
        1回の探索サイクルを実行

        Select -> Expand -> Simulate -> Backpropagate を再帰的に行う。
        未展開ノードに到達したら展開し、その局面から playouts 回の
        プレイアウトをまとめて実行する

        Args:
            playouts (int): このサイクルで実行するプレイアウト数 (>= 1)
            rng (np.random.Generator): 乱数生成器

        Returns:
            Tuple[int, int]: (プレイヤー +1 の勝ち数, プレイヤー -1 の勝ち数)
        """
        if playouts < 1:
            raise ValueError(f"playouts must be at least 1, got {playouts}")

        self.visits += playouts

        # 決着済みの局面: シミュレーション不要
        score = check_score(self.state.terminal_score())
        if score != 0:
            wins_plus = playouts if score == 1 else 0
            wins_minus = playouts if score == -1 else 0
            self.update(wins_plus, wins_minus)
            return wins_plus, wins_minus

        wins_plus, wins_minus = 0, 0

        if not self.is_expanded:
            # 1. Expand: 子ノードを作成
            self.expand()

            # 2. Simulate: この局面からプレイアウト
            for _ in range(playouts):
                result = self.rollout(rng)
                if result == 1:
                    wins_plus += 1
                elif result == -1:
                    wins_minus += 1
        else:
            # Select: UCB1値が最大の子へ下降
            child = self.select_child(rng)
            if child is not None:
                wins_plus, wins_minus = child.grow(playouts, rng)

        # 3. Backpropagate
        self.update(wins_plus, wins_minus)

        return wins_plus, wins_minus

    def get_most_visited_child(self) -> Optional["MCTSNode"]:
        """
        訪問回数が最大の子ノード（推奨手）

        Returns:
            MCTSNode or None: 子ノードがない場合は None
        """
        best_child = None
        for child in self.children:
            if best_child is None or child.visits > best_child.visits:
                best_child = child
        return best_child

    def get_child(self, move_index: int) -> Optional["MCTSNode"]:
        """指定した手に対応する子ノード"""
        for child in self.children:
            if child.move_index == move_index:
                return child
        return None

    def win_rate(self) -> float:
        """このノードへ着手した側の勝率"""
        if self.visits == 0:
            return 0.0
        return self.wins / self.visits

    def loss_rate(self) -> float:
        """手番側の勝率"""
        if self.visits == 0:
            return 0.0
        return self.losses / self.visits

    def get_visit_counts(self) -> Dict[int, int]:
        """
        子ノードの訪問回数を取得

        Returns:
            Dict[int, int]: {move_index: visits}
        """
        return {child.move_index: child.visits for child in self.children}

    def get_policy_distribution(self, action_size: int, temperature: float = 1.0) -> np.ndarray:
        """
        訪問回数に基づく方策分布を生成

        温度パラメータ:
        - temperature = 1.0: 訪問回数に比例した確率
        - temperature → 0: 最大訪問回数の手に確率を集中（決定的）

        Args:
            action_size (int): 行動空間のサイズ
            temperature (float): 温度パラメータ

        Returns:
            np.ndarray: 方策分布 (action_size,)
        """
        policy = np.zeros(action_size, dtype=np.float32)

        if len(self.children) == 0:
            return policy

        moves = [child.move_index for child in self.children]
        counts = np.array([child.visits for child in self.children], dtype=np.float64)

        if temperature == 0 or counts.sum() == 0:
            best_child = self.get_most_visited_child()
            policy[best_child.move_index] = 1.0
            return policy

        # 温度付き正規化（最大値で割ってから累乗）
        counts = (counts / counts.max()) ** (1.0 / temperature)
        counts /= counts.sum()
        for move_index, prob in zip(moves, counts):
            policy[move_index] = prob

        return policy

    def __repr__(self) -> str:
        """デバッグ用の文字列表現"""
        return (f"MCTSNode(move={self.move_index}, "
                f"player={self.player}, "
                f"N={self.visits}, "
                f"W={self.wins}, "
                f"L={self.losses}, "
                f"children={len(self.children)})")
