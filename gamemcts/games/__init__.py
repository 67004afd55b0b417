"""
ゲームモジュール

MCTSが扱うゲームの契約と、参照実装（三目並べ・四目並べ）を提供
"""

from .base import GameState, IllegalMoveError, InvalidScoreError, check_score, check_player
from .tictactoe import TicTacToe
from .connect4 import Connect4

GAMES = {
    "tictactoe": TicTacToe,
    "connect4": Connect4,
}

__all__ = [
    "GameState",
    "IllegalMoveError",
    "InvalidScoreError",
    "check_score",
    "check_player",
    "TicTacToe",
    "Connect4",
    "GAMES",
]
