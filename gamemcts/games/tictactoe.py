"""
三目並べ (3x3)

着手インデックスは row * 3 + col
盤面は numpy の int8 配列で、X = +1, O = -1, 空 = 0
"""

import numpy as np
from typing import List, Optional

from .base import IllegalMoveError, check_player


SYMBOLS = {1: "X", -1: "O", 0: "."}


class TicTacToe:
    """三目並べの局面"""

    SIZE = 3
    action_size = SIZE * SIZE

    def __init__(self, board: Optional[np.ndarray] = None):
        """
        Args:
            board (np.ndarray, optional): 初期盤面 (3, 3)。省略時は空の盤面
        """
        if board is None:
            self.board = np.zeros((self.SIZE, self.SIZE), dtype=np.int8)
        else:
            self.board = np.array(board, dtype=np.int8)
            if self.board.shape != (self.SIZE, self.SIZE):
                raise ValueError(f"Board must be 3x3, got shape {self.board.shape}")

    @classmethod
    def from_string(cls, text: str) -> "TicTacToe":
        """
        文字列から盤面を作成

        例: "X.O\\n.X.\\n..O"

        Args:
            text (str): 'X', 'O', '.' からなる3行

        Returns:
            TicTacToe: 盤面
        """
        rows = text.strip().splitlines()
        if len(rows) != cls.SIZE:
            raise ValueError(f"Expected {cls.SIZE} rows, got {len(rows)}")

        values = {v: k for k, v in SYMBOLS.items()}
        board = np.zeros((cls.SIZE, cls.SIZE), dtype=np.int8)
        for i, row in enumerate(rows):
            row = row.strip()
            if len(row) != cls.SIZE or any(ch not in values for ch in row):
                raise ValueError(f"Invalid row: {row!r}")
            for j, ch in enumerate(row):
                board[i, j] = values[ch]

        return cls(board)

    def copy(self) -> "TicTacToe":
        return TicTacToe(self.board.copy())

    def legal_moves(self) -> List[int]:
        """空いているマスのインデックス（行優先）"""
        return [int(i) for i in np.flatnonzero(self.board == 0)]

    def apply_move(self, move_index: int, player: int):
        """
        着手

        Args:
            move_index (int): 0-8
            player (int): +1 (X) or -1 (O)

        Raises:
            IllegalMoveError: 範囲外・既に石がある・決着済みの場合
        """
        try:
            check_player(player)
        except ValueError as e:
            raise IllegalMoveError(str(e)) from e

        if not 0 <= move_index < self.action_size:
            raise IllegalMoveError(f"Move index out of range: {move_index}")
        if self.terminal_score() != 0:
            raise IllegalMoveError("Game is already decided")

        row, col = divmod(move_index, self.SIZE)
        if self.board[row, col] != 0:
            raise IllegalMoveError(f"Cell {move_index} is already occupied")

        self.board[row, col] = player

    def terminal_score(self) -> int:
        """
        勝敗判定

        Returns:
            int: 1 (X勝ち), -1 (O勝ち), 0 (未決着・引き分け)
        """
        lines = np.concatenate([
            self.board.sum(axis=1),
            self.board.sum(axis=0),
            [np.trace(self.board), np.trace(np.fliplr(self.board))],
        ])

        # 両者が揃っている不正な盤面では O を優先する
        for target in (-1, 1):
            if np.any(lines == target * self.SIZE):
                return target
        return 0

    def to_array(self) -> np.ndarray:
        return self.board.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TicTacToe):
            return NotImplemented
        return np.array_equal(self.board, other.board)

    def __str__(self) -> str:
        return "\n".join(
            " ".join(SYMBOLS[int(v)] for v in row) for row in self.board
        )

    def __repr__(self) -> str:
        return f"TicTacToe({self.board.tolist()})"
