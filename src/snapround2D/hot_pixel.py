from .config import RAW_POINT_TYPE

from fractions import Fraction
import math

#region Orientation ###################################################################################################
DP_SAFE_EPSILON = 1e-15

def orientation_index(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> int:
    """
    c 在有向線段 a -> b 的哪一側：1 為左側（逆時針），-1 為右側（順時針），0 為共線。

    先用浮點數計算，結果太接近 0 時改用 Fraction 做精確計算。
    """
    detleft = (bx - ax) * (cy - ay)
    detright = (by - ay) * (cx - ax)
    det = detleft - detright

    errbound = DP_SAFE_EPSILON * (abs(detleft) + abs(detright))
    if abs(det) > errbound:
        return 1 if det > 0 else -1

    ax, ay, bx, by, cx, cy = (Fraction(v) for v in (ax, ay, bx, by, cx, cy))
    det = (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)
    if det > 0:
        return 1
    if det < 0:
        return -1
    return 0
#endregion

#region Hot Pixel #####################################################################################################
class HotPixel:
    """
    以一個格子點為中心的格子（pixel）。

    pixel 的範圍為 [c - 0.5, c + 0.5) x [c - 0.5, c + 0.5)（以格子為單位），
    也就是剛好會被四捨五入到 c 的所有點。左邊和下邊屬於 pixel，上邊和右邊不屬於。
    所有測試都在放大過（乘上 scale）的座標中進行，pixel 的四個角都是 k ± 0.5，可以精確表示。
    """

    TOLERANCE = 0.5

    __slots__ = ("coordinate", "scale_factor", "_grid_size", "_hpx", "_hpy")

    def __init__(self, pt: RAW_POINT_TYPE, scale_factor: float):
        self.coordinate: RAW_POINT_TYPE = (pt[0], pt[1])
        self.scale_factor = scale_factor
        self._grid_size = 1.0 / scale_factor if scale_factor < 1 else None
        self._hpx = float(math.floor(self._scale(pt[0]) + 0.5))
        self._hpy = float(math.floor(self._scale(pt[1]) + 0.5))

    def _scale(self, v: float) -> float:
        if self._grid_size is not None:
            return v / self._grid_size
        return v * self.scale_factor

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """ (minx, miny, maxx, maxy)，原本座標系下的範圍 """
        half = 0.5 / self.scale_factor
        x, y = self.coordinate
        return (x - half, y - half, x + half, y + half)

    def contains(self, p: RAW_POINT_TYPE) -> bool:
        """ 點 p 是否落在 pixel 中 """
        px, py = self._scale(p[0]), self._scale(p[1])
        return (self._hpx - self.TOLERANCE <= px < self._hpx + self.TOLERANCE and
                self._hpy - self.TOLERANCE <= py < self._hpy + self.TOLERANCE)

    def intersects(self, p0: RAW_POINT_TYPE, p1: RAW_POINT_TYPE) -> bool:
        """ 線段 p0 - p1 是否和 pixel 相交 """
        return self._intersects_scaled(self._scale(p0[0]), self._scale(p0[1]),
                                       self._scale(p1[0]), self._scale(p1[1]))

    def _intersects_scaled(self, p0x: float, p0y: float, p1x: float, p1y: float) -> bool:
        # 讓 p 為最左邊的端點
        px, py, qx, qy = p0x, p0y, p1x, p1y
        if px > qx:
            px, py, qx, qy = p1x, p1y, p0x, p0y

        # bbox 不相交就不可能相交（上邊、右邊是開的）
        maxx = self._hpx + self.TOLERANCE
        if min(px, qx) >= maxx:
            return False
        minx = self._hpx - self.TOLERANCE
        if max(px, qx) < minx:
            return False
        maxy = self._hpy + self.TOLERANCE
        if min(py, qy) >= maxy:
            return False
        miny = self._hpy - self.TOLERANCE
        if max(py, qy) < miny:
            return False

        # 垂直 / 水平的線段此時一定和 pixel 相交
        if px == qx or py == qy:
            return True

        # 斜線：看 pixel 四個角在線段的哪一側
        orient_ul = orientation_index(px, py, qx, qy, minx, maxy)
        if orient_ul == 0:
            # 往上的線段只碰到左上角，沒有進入 pixel
            return py >= qy
        orient_ur = orientation_index(px, py, qx, qy, maxx, maxy)
        if orient_ur == 0:
            return py <= qy
        # 穿過上邊
        if orient_ul != orient_ur:
            return True
        orient_ll = orientation_index(px, py, qx, qy, minx, miny)
        # 左下角屬於 pixel
        if orient_ll == 0:
            return True
        # 穿過左邊
        if orient_ll != orient_ul:
            return True
        orient_lr = orientation_index(px, py, qx, qy, maxx, miny)
        if orient_lr == 0:
            return py >= qy
        # 穿過下邊 / 右邊
        if orient_ll != orient_lr:
            return True
        if orient_lr != orient_ur:
            return True
        return False

    def __eq__(self, other) -> bool:
        if not isinstance(other, HotPixel):
            return NotImplemented
        return self.coordinate == other.coordinate

    def __hash__(self) -> int:
        return hash(self.coordinate)

    def __repr__(self) -> str:
        return f"HotPixel({self.coordinate}, scale={self.scale_factor})"
#endregion

#region Registry ######################################################################################################
class HotPixelRegistry:
    """
    一次 snap rounding 中所有的 hot pixel，每個格子點最多只有一個 HotPixel。

    種完所有 hot pixel 後呼叫 `snapshot()` 取得固定順序的 hot pixel，之後不能再加入新的 pixel。
    """

    def __init__(self, scale_factor: float):
        self.scale_factor = scale_factor
        self._pixels: dict[tuple[float, float], HotPixel] = dict()
        self._snapshot: tuple[HotPixel, ...] | None = None

    def get_or_create(self, pt: RAW_POINT_TYPE) -> HotPixel:
        """ pt 必須已經貼齊格子點 """
        key = (pt[0], pt[1])
        if key in self._pixels.keys():
            return self._pixels[key]
        if self._snapshot is not None:
            raise RuntimeError("cannot add hot pixels after the registry has been snapshotted")

        hp = HotPixel(key, self.scale_factor)
        self._pixels[key] = hp
        return hp

    def get(self, pt: RAW_POINT_TYPE) -> HotPixel | None:
        return self._pixels.get((pt[0], pt[1]))

    def snapshot(self) -> tuple[HotPixel, ...]:
        if self._snapshot is not None:
            raise RuntimeError("hot pixel registry has already been snapshotted")
        self._snapshot = tuple(self._pixels.values())
        return self._snapshot

    def __contains__(self, pt) -> bool:
        return (pt[0], pt[1]) in self._pixels

    def __len__(self) -> int:
        return len(self._pixels)
#endregion
