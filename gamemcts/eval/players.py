"""
プレイヤークラス

評価用のプレイヤーを実装:
- RandomPlayer: ランダムに着手
- MCTSPlayer: MCTSベースのAI（探索量を変えて比較できる）
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional

from gamemcts.mcts.mcts import MCTS


class Player(ABC):
    """
    プレイヤーの基底クラス
    """

    def __init__(self, name: str):
        """
        Args:
            name: プレイヤー名
        """
        self.name = name

    @abstractmethod
    def get_action(self, state, player: int) -> int:
        """
        着手を選択

        Args:
            state: 現在の局面
            player: 手番 (+1 or -1)

        Returns:
            int: 着手インデックス
        """
        pass

    def reset(self):
        """ゲーム開始時の初期化（必要に応じてオーバーライド）"""
        pass


class RandomPlayer(Player):
    """
    ランダムプレイヤー

    合法手の中からランダムに選択
    """

    def __init__(self, name: str = "Random", seed: Optional[int] = None):
        super().__init__(name)
        self.rng = np.random.default_rng(seed)

    def get_action(self, state, player: int) -> int:
        """ランダムに着手を選択"""
        legal_moves = state.legal_moves()

        if len(legal_moves) == 0:
            raise ValueError("No legal moves available")

        return legal_moves[int(self.rng.integers(len(legal_moves)))]


class MCTSPlayer(Player):
    """
    MCTSベースのAIプレイヤー

    着手ごとに新しい探索木を作り、最も訪問された手を選ぶ
    """

    def __init__(
        self,
        num_iterations: int = 1000,
        playouts: int = 1,
        seed: Optional[int] = None,
        name: Optional[str] = None,
    ):
        """
        Args:
            num_iterations: 1手あたりの探索サイクル数
            playouts: 1サイクルあたりのプレイアウト数
            seed: 乱数シード
            name: プレイヤー名
        """
        if name is None:
            name = f"MCTS-{num_iterations}x{playouts}"

        super().__init__(name)

        self.num_iterations = num_iterations
        self.playouts = playouts

        self.mcts = MCTS(
            num_iterations=num_iterations,
            playouts=playouts,
            seed=seed,
        )

    def get_action(self, state, player: int) -> int:
        """MCTSで最良の手を選択"""
        action = self.mcts.get_best_action(state, player)

        if action is None:
            raise ValueError("No recommendation available: game is already over")

        return action
