"""
Monte Carlo Tree Search モジュール

ゲームに依存しないUCB1方式のMCTS実装を提供
"""

from .mcts import MCTS
from .node import MCTSNode, UCB_CONSTANT

__all__ = [
    "MCTS",
    "MCTSNode",
    "UCB_CONSTANT",
]
