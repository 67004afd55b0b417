"""
gamemcts - 二人零和完全情報ゲームのためのモンテカルロ木探索
"""

__version__ = "0.1.0"
