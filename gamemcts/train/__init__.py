"""
Training モジュール

自己対戦による教師データ（訪問回数分布）の生成を提供
"""

from .self_play import SelfPlayWorker, GameStep, save_training_data, load_training_data

__all__ = [
    "SelfPlayWorker",
    "GameStep",
    "save_training_data",
    "load_training_data",
]
