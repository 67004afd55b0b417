"""
モンテカルロ木探索 (Monte Carlo Tree Search)

ランダムプレイアウト方式のMCTS実装:
- UCB1式による選択
- 遅延展開（初回到達時に子ノードをまとめて生成）
- 1サイクルあたり複数プレイアウトのバッチ実行
- 乱数生成器を明示的に受け渡し（シード固定で再現可能）
"""

import numpy as np
from typing import Optional

from .node import MCTSNode


class MCTS:
    """
    モンテカルロ木探索

    探索アルゴリズム:
    1. Select: UCB1値が最大の子ノードを選択
    2. Expand: 未展開ノードに到達したら子ノードを展開
    3. Simulate: その局面からランダムプレイアウト
    4. Backpropagate: 勝敗をルートまで伝播
    """

    def __init__(
        self,
        num_iterations: int = 1000,
        playouts: int = 1,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            num_iterations (int): 1回の探索で実行するサイクル数
            playouts (int): 1サイクルあたりのプレイアウト数
            seed (int, optional): 乱数シード（rng が与えられた場合は無視）
            rng (np.random.Generator, optional): 乱数生成器
        """
        if num_iterations < 1:
            raise ValueError(f"num_iterations must be at least 1, got {num_iterations}")
        if playouts < 1:
            raise ValueError(f"playouts must be at least 1, got {playouts}")

        self.num_iterations = num_iterations
        self.playouts = playouts
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def search(self, state, player: int, root: Optional[MCTSNode] = None) -> MCTSNode:
        """
        MCTS探索を実行し、ルートノードを返す

        Args:
            state: ゲーム局面（探索ではコピーを使うので変更されない）
            player (int): 手番 (+1 or -1)
            root (MCTSNode, optional): 前回の探索木を再利用する場合のルート

        Returns:
            MCTSNode: 探索済みのルートノード
        """
        if root is None:
            root = MCTSNode(state.copy(), player)
        elif root.player != player:
            raise ValueError(
                f"Root player ({root.player}) does not match player to move ({player})"
            )

        for _ in range(self.num_iterations):
            root.grow(self.playouts, self.rng)

        return root

    def get_best_action(self, state, player: int) -> Optional[int]:
        """
        MCTS探索を実行し、最良の行動を返す

        Returns:
            int or None: 最も訪問された手。決着済み・満杯の局面では None
        """
        root = self.search(state, player)
        best_child = root.get_most_visited_child()
        if best_child is None:
            return None
        return best_child.move_index

    def get_action_probs(self, state, player: int, temperature: float = 1.0) -> np.ndarray:
        """
        MCTS探索を実行し、行動確率を返す（便利メソッド）

        Returns:
            np.ndarray: 行動確率分布 (state.action_size,)
        """
        root = self.search(state, player)
        return root.get_policy_distribution(state.action_size, temperature)

    def evaluate(self, state, player: int) -> dict:
        """
        局面の評価（手番側・相手側の勝率）

        Args:
            state: ゲーム局面
            player (int): 手番

        Returns:
            dict:
                - player_win_rate: 手番側の勝率
                - opponent_win_rate: 相手側の勝率
                - draw_rate: 引き分け率
                - best_action: 推奨手（なければ None）
                - visits: ルートの訪問回数
        """
        root = self.search(state, player)
        best_child = root.get_most_visited_child()

        draws = root.visits - root.wins - root.losses

        return {
            "player_win_rate": root.loss_rate(),
            "opponent_win_rate": root.win_rate(),
            "draw_rate": draws / root.visits if root.visits > 0 else 0.0,
            "best_action": None if best_child is None else best_child.move_index,
            "visits": root.visits,
        }
