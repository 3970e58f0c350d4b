from .config import RAW_POINT_TYPE

import math
from typing import Iterable

def equals_2d(p: RAW_POINT_TYPE, q: RAW_POINT_TYPE) -> bool:
    """ 只比較 x, y """
    return p[0] == q[0] and p[1] == q[1]

def to_point(p) -> RAW_POINT_TYPE:
    """ 把 list / numpy array / tuple 統一轉成 float 的 tuple """
    return tuple(float(v) for v in p)

class PrecisionModel:
    """
    固定精度的格子（grid）。格子點的間距為 1 / scale。

    座標的 x, y 會被四捨五入（.5 往正方向進位）到最近的格子點，其餘的值（例如 z）保持不變。
    """

    def __init__(self, scale: float = 1.0):
        scale = float(scale)
        if not math.isfinite(scale) or scale <= 0:
            raise ValueError(f"scale factor must be a positive finite number, got {scale}")
        self._scale = scale
        # scale < 1 時直接用格子大小計算，避免 1 / scale 的表示誤差
        self._grid_size = 1.0 / scale if scale < 1 else None

    @classmethod
    def from_grid_size(cls, grid_size: float) -> "PrecisionModel":
        grid_size = float(grid_size)
        if not math.isfinite(grid_size) or grid_size <= 0:
            raise ValueError(f"grid size must be a positive finite number, got {grid_size}")
        return cls(1.0 / grid_size)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def grid_size(self) -> float:
        return 1.0 / self._scale

    def make_precise_value(self, v: float) -> float:
        if not math.isfinite(v):
            return v
        if self._grid_size is not None:
            return math.floor(v / self._grid_size + 0.5) * self._grid_size
        return math.floor(v * self._scale + 0.5) / self._scale

    def make_precise(self, p: RAW_POINT_TYPE) -> RAW_POINT_TYPE:
        """ 將點座標貼齊格子點 """
        return (self.make_precise_value(p[0]), self.make_precise_value(p[1])) + tuple(p[2:])

    def round_points(self, pts: Iterable[RAW_POINT_TYPE]) -> list[RAW_POINT_TYPE]:
        """
        將一串點貼齊格子點，並刪掉和前一點重複（x, y 相同）的點
        """
        result: list[RAW_POINT_TYPE] = []
        for p in pts:
            q = self.make_precise(p)
            if result and equals_2d(result[-1], q):
                continue
            result.append(q)
        return result

    def to_grid(self, p: RAW_POINT_TYPE) -> tuple[int, int]:
        """ 點所在的格子（整數索引） """
        if self._grid_size is not None:
            return (math.floor(p[0] / self._grid_size + 0.5), math.floor(p[1] / self._grid_size + 0.5))
        return (math.floor(p[0] * self._scale + 0.5), math.floor(p[1] * self._scale + 0.5))

    def from_grid(self, cell: tuple[int, int]) -> RAW_POINT_TYPE:
        """ 將格子索引轉回座標 """
        if self._grid_size is not None:
            return (cell[0] * self._grid_size, cell[1] * self._grid_size)
        return (cell[0] / self._scale, cell[1] / self._scale)

    def __eq__(self, other) -> bool:
        return isinstance(other, PrecisionModel) and self._scale == other._scale

    def __hash__(self) -> int:
        return hash(self._scale)

    def __repr__(self) -> str:
        return f"PrecisionModel(scale={self._scale})"
