"""
評価モジュール

プレイヤー同士の対戦による強さの比較を提供
"""

from .players import Player, RandomPlayer, MCTSPlayer
from .arena import Arena, MatchResult, evaluate_player

__all__ = [
    "Player",
    "RandomPlayer",
    "MCTSPlayer",
    "Arena",
    "MatchResult",
    "evaluate_player",
]
