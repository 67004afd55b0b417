"""
四目並べ (6x6 Connect-Four)

着手インデックスは列番号 (0-5)。石は列の一番下の空きマスに落ちる
盤面の 0 行目が最上段
"""

import numpy as np
from typing import List, Optional

from .base import IllegalMoveError, check_player
from .tictactoe import SYMBOLS


class Connect4:
    """四目並べの局面"""

    ROWS = 6
    COLUMNS = 6
    CONNECT = 4
    action_size = COLUMNS

    def __init__(self, board: Optional[np.ndarray] = None):
        """
        Args:
            board (np.ndarray, optional): 初期盤面 (6, 6)。省略時は空の盤面
        """
        if board is None:
            self.board = np.zeros((self.ROWS, self.COLUMNS), dtype=np.int8)
        else:
            self.board = np.array(board, dtype=np.int8)
            if self.board.shape != (self.ROWS, self.COLUMNS):
                raise ValueError(f"Board must be 6x6, got shape {self.board.shape}")

    @classmethod
    def from_string(cls, text: str) -> "Connect4":
        """
        文字列から盤面を作成（上段から6行）

        石が宙に浮いているかどうかは検査しない
        """
        rows = text.strip().splitlines()
        if len(rows) != cls.ROWS:
            raise ValueError(f"Expected {cls.ROWS} rows, got {len(rows)}")

        values = {v: k for k, v in SYMBOLS.items()}
        board = np.zeros((cls.ROWS, cls.COLUMNS), dtype=np.int8)
        for i, row in enumerate(rows):
            row = row.strip()
            if len(row) != cls.COLUMNS or any(ch not in values for ch in row):
                raise ValueError(f"Invalid row: {row!r}")
            for j, ch in enumerate(row):
                board[i, j] = values[ch]

        return cls(board)

    def copy(self) -> "Connect4":
        return Connect4(self.board.copy())

    def legal_moves(self) -> List[int]:
        """最上段が空いている列"""
        return [int(c) for c in np.flatnonzero(self.board[0] == 0)]

    def apply_move(self, move_index: int, player: int):
        """
        列に石を落とす

        Args:
            move_index (int): 列番号 0-5
            player (int): +1 or -1

        Raises:
            IllegalMoveError: 範囲外・列が満杯・決着済みの場合
        """
        try:
            check_player(player)
        except ValueError as e:
            raise IllegalMoveError(str(e)) from e

        if not 0 <= move_index < self.COLUMNS:
            raise IllegalMoveError(f"Column out of range: {move_index}")
        if self.terminal_score() != 0:
            raise IllegalMoveError("Game is already decided")

        empty_rows = np.flatnonzero(self.board[:, move_index] == 0)
        if len(empty_rows) == 0:
            raise IllegalMoveError(f"Column {move_index} is full")

        self.board[empty_rows[-1], move_index] = player

    def terminal_score(self) -> int:
        """
        勝敗判定

        4x4 の部分盤面ごとに行・列・対角線の和を調べる
        （6x6 上のすべての4連はいずれかの部分盤面に含まれる）

        Returns:
            int: 1, -1, 0
        """
        n = self.CONNECT
        for r in range(self.ROWS - n + 1):
            for c in range(self.COLUMNS - n + 1):
                block = self.board[r:r + n, c:c + n]
                lines = np.concatenate([
                    block.sum(axis=1),
                    block.sum(axis=0),
                    [np.trace(block), np.trace(np.fliplr(block))],
                ])
                if np.any(lines == n):
                    return 1
                if np.any(lines == -n):
                    return -1
        return 0

    def to_array(self) -> np.ndarray:
        return self.board.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Connect4):
            return NotImplemented
        return np.array_equal(self.board, other.board)

    def __str__(self) -> str:
        rows = [" ".join(SYMBOLS[int(v)] for v in row) for row in self.board]
        rows.append(" ".join(str(c + 1) for c in range(self.COLUMNS)))
        return "\n".join(rows)

    def __repr__(self) -> str:
        return f"Connect4({self.board.tolist()})"
