"""
Self-Play ワーカー

MCTS を使って自己対戦を行い、学習用の教師データを生成する

データ形式:
- state: 盤面配列（ゲームごとの形状、例: (3, 3), (6, 6)）
- policy: (action_size,) - ルートの子ノードの訪問回数分布
- value: 1 or -1 or 0 - 最終的な勝敗（手番視点）
"""

import numpy as np
from pathlib import Path
from typing import List, Tuple
from dataclasses import dataclass

from gamemcts.mcts.mcts import MCTS


@dataclass
class GameStep:
    """ゲームの1ステップのデータ"""
    state: np.ndarray
    policy: np.ndarray
    player: int  # 1 or -1 (手番)


class SelfPlayWorker:
    """
    自己対戦ワーカー

    MCTS を使って1ゲームをプレイし、学習データを生成する。
    着手後は選んだ子ノードを次のルートにして探索木を再利用できる
    """

    def __init__(
        self,
        game_class,
        mcts: MCTS,
        temperature_threshold: int = 4,
        reuse_tree: bool = True,
    ):
        """
        Args:
            game_class: 局面クラス（TicTacToe, Connect4 など）
            mcts (MCTS): MCTS インスタンス（乱数生成器もここから使う）
            temperature_threshold (int): 温度を下げる手数の閾値
                （この手数以降は決定的な選択になる）
            reuse_tree (bool): 着手後に部分木を再利用するか
        """
        self.game_class = game_class
        self.mcts = mcts
        self.temperature_threshold = temperature_threshold
        self.reuse_tree = reuse_tree

    def execute_episode(self) -> List[Tuple[np.ndarray, np.ndarray, float]]:
        """
        1エピソード（1ゲーム）を実行

        Returns:
            List[Tuple[np.ndarray, np.ndarray, float]]:
                [(state, policy, value), ...]
                - value: 1.0 (勝ち), -1.0 (負け), 0.0 (引き分け)
        """
        state = self.game_class()
        action_size = self.game_class.action_size
        player = 1
        root = None

        game_history: List[GameStep] = []
        move_count = 0

        while state.terminal_score() == 0 and len(state.legal_moves()) > 0:
            # 序盤は確率的、終盤は決定的
            temperature = 1.0 if move_count < self.temperature_threshold else 0.0

            root = self.mcts.search(state, player, root=root)
            policy = root.get_policy_distribution(action_size, temperature)

            game_history.append(GameStep(
                state=state.to_array(),
                policy=policy.copy(),
                player=player,
            ))

            # 行動選択
            if temperature == 0:
                child = root.get_most_visited_child()
            else:
                probs = policy.astype(np.float64)
                probs /= probs.sum()
                action = int(self.mcts.rng.choice(action_size, p=probs))
                child = root.get_child(action)

            # 着手
            state.apply_move(child.move_index, player)
            player = -player
            move_count += 1

            # 選ばなかった兄弟の部分木は破棄される
            root = child if self.reuse_tree else None

        winner = state.terminal_score()

        # 各プレイヤーの視点での価値
        training_data = []
        for step in game_history:
            training_data.append((
                step.state,
                step.policy,
                float(winner * step.player),
            ))

        return training_data

    def execute_episodes(
        self,
        num_episodes: int,
        verbose: bool = True,
    ) -> List[Tuple[np.ndarray, np.ndarray, float]]:
        """
        複数エピソードを実行

        Args:
            num_episodes (int): 実行するエピソード数
            verbose (bool): 進捗を表示するか

        Returns:
            List[Tuple[np.ndarray, np.ndarray, float]]:
                すべてのエピソードの学習データ
        """
        all_data = []

        for episode_idx in range(num_episodes):
            episode_data = self.execute_episode()
            all_data.extend(episode_data)

            if verbose and (episode_idx + 1) % 10 == 0:
                print(f"Self-Play: {episode_idx + 1}/{num_episodes} episodes completed")

        return all_data


def save_training_data(path, training_data: List[Tuple[np.ndarray, np.ndarray, float]]) -> Path:
    """
    学習データを .npz 形式で保存

    Args:
        path: 保存先
        training_data: [(state, policy, value), ...]

    Returns:
        Path: 保存したファイルのパス
    """
    if len(training_data) == 0:
        raise ValueError("No training data to save")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    states, policies, values = zip(*training_data)
    np.savez_compressed(
        path,
        states=np.stack(states),
        policies=np.stack(policies),
        values=np.array(values, dtype=np.float32).reshape(-1, 1),
    )
    return path


def load_training_data(path) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    save_training_data で保存したデータを読み込む

    Returns:
        Tuple[np.ndarray, np.ndarray, np.ndarray]: (states, policies, values)
    """
    with np.load(path) as data:
        return data["states"], data["policies"], data["values"]
