"""
ゲーム状態の共通インタフェース

MCTSエンジンが要求する最小限の契約:
- apply_move: 指定した手番で着手（盤面をその場で変更）
- terminal_score: 勝敗判定 (+1: 先手勝ち, -1: 後手勝ち, 0: 未決着・引き分け)
- legal_moves: 合法手のインデックス列
- copy: 独立した複製

このプロトコルを満たすクラスであれば、継承なしでMCTSに組み込める
"""

from typing import List, Protocol, runtime_checkable


class IllegalMoveError(ValueError):
    """合法でない着手（契約違反）"""


class InvalidScoreError(ValueError):
    """terminal_score が {-1, 0, 1} 以外を返した（ゲーム実装の不具合）"""


@runtime_checkable
class GameState(Protocol):
    """
    二人零和完全情報ゲームの局面

    プレイヤーは +1 / -1 で表す
    """

    def apply_move(self, move_index: int, player: int) -> None:
        """
        着手して盤面を更新する

        Args:
            move_index (int): legal_moves() に含まれる手
            player (int): 着手するプレイヤー (+1 or -1)

        Raises:
            IllegalMoveError: 合法でない手、または決着済みの局面への着手
        """
        ...

    def terminal_score(self) -> int:
        """勝敗を返す (+1, -1, 0)"""
        ...

    def legal_moves(self) -> List[int]:
        """合法手のリスト（盤面が埋まっていれば空）"""
        ...

    def copy(self) -> "GameState":
        """可変な部分を共有しない複製"""
        ...


def check_score(score: int) -> int:
    """
    terminal_score の戻り値を検証する

    Args:
        score (int): ゲームが返したスコア

    Returns:
        int: 検証済みのスコア

    Raises:
        InvalidScoreError: {-1, 0, 1} 以外の場合
    """
    if score not in (-1, 0, 1):
        raise InvalidScoreError(f"Invalid terminal score: {score!r}")
    return int(score)


def check_player(player: int) -> int:
    """プレイヤー値 (+1 / -1) の検証"""
    if player not in (1, -1):
        raise ValueError(f"Player must be 1 or -1, got {player!r}")
    return int(player)
