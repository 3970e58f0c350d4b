from joblib import Parallel, delayed
import math
import time

from . import config as cfg
from .config import RAW_POINT_TYPE
from .hot_pixel import HotPixel, HotPixelRegistry
from .intersection import find_interior_intersections
from .precision import PrecisionModel, equals_2d
from .segment_string import NodedSegmentString

#region Snap 單一線串 #####################################################################################################
def snap_segment(p0: RAW_POINT_TYPE, p1: RAW_POINT_TYPE, hot_pixels: tuple[HotPixel, ...]) -> list[RAW_POINT_TYPE]:
    """
    回傳所有和線段 p0 - p1 相交的 hot pixel 的中心點（依 hot_pixels 的順序）。

    這裡用最暴力的方法，每條線段都和每個 hot pixel 比較，總共 O(線段數 x hot pixel 數)，不適合大量的輸入。
    """
    return [hp.coordinate for hp in hot_pixels if hp.intersects(p0, p1)]

def snap_chain(pts: list[RAW_POINT_TYPE], hot_pixels: tuple[HotPixel, ...], pm: PrecisionModel) -> tuple[list[RAW_POINT_TYPE], list[tuple[RAW_POINT_TYPE, int]]] | None:
    """
    將一串原始精度的點貼齊格子點，並找出要加入的節點。

    :return: None 代表整條線串縮成一點；否則回傳 (貼齊後的點, [(節點, 所在線段 index), ...])
    """
    pts_round = pm.round_points(pts)

    # 整條線縮成一點，直接丟掉
    if len(pts_round) <= 1:
        return None

    nodes: list[tuple[RAW_POINT_TYPE, int]] = []
    snap_index = 0
    for i in range(len(pts) - 1):
        curr_snap = pts_round[snap_index]

        # 這條線段貼齊後縮成一點，跳過
        p1 = pts[i + 1]
        if equals_2d(pm.make_precise(p1), curr_snap):
            continue

        # 用「原本」的線段去和 hot pixel 比較，貼齊後的線段可能會碰到原本沒碰到的 hot pixel
        p0 = pts[i]
        for co in snap_segment(p0, p1, hot_pixels):
            nodes.append((co, snap_index))
        snap_index += 1

    return pts_round, nodes

def _snap_chains(pts_list: list[list[RAW_POINT_TYPE]], hot_pixels: tuple[HotPixel, ...], pm: PrecisionModel) -> list:
    return [snap_chain(pts, hot_pixels, pm) for pts in pts_list]
#endregion

#region Snap Rounder ##################################################################################################
class SimpleSnapRounder:
    """
    用 Snap Rounding 把一堆線串貼齊格子點，並在所有交點處加入節點（fully noded）。

    參考 Hobby、Guibas & Marimont 以及 Goodrich et al. 的 Snap Rounding：
    1. 用原本的精度求出所有內部交點
    2. 交點和所有頂點所在的格子都是 hot pixel
    3. 將每條線串貼齊格子點，原本的線段經過哪些 hot pixel，就在貼齊後的線串上加入該 hot pixel 的中心點

    線段和 hot pixel 的比較是暴力法（每條線段和每個 hot pixel 都比），不適合大量的線段。
    使用整數格子時結果完全 robust；格子大小不是整數時不保證 100% 正確。
    """

    def __init__(self, pm: PrecisionModel, *, chunk_size: int | None = None):
        self.pm = pm
        self.scale_factor = pm.scale
        self.chunk_size = cfg.SNAP_CHUNK_SIZE if chunk_size is None else chunk_size

        self._hot_pixels: tuple[HotPixel, ...] | None = None
        self._intersections: list[RAW_POINT_TYPE] | None = None
        self._snapped_result: list[NodedSegmentString] | None = None

    def compute_nodes(self, segment_strings) -> None:
        """
        對輸入的線串做 snap rounding。輸入的線串不會被修改，結果用 `get_noded_substrings()` 取得。

        每條線串至少要有兩個點，否則結果無定義。
        """
        segment_strings = list(segment_strings)
        if cfg.DEBUG:
            print("\n\n== snap rounding ==")

        self._snapped_result = self._snap_round(segment_strings)

    def _snap_round(self, segment_strings: list) -> list[NodedSegmentString]:
        # 每次都建立新的線串和 hot pixel，不和上一次共用
        input_ss = [NodedSegmentString.from_segment_string(ss) for ss in segment_strings]
        registry = HotPixelRegistry(self.scale_factor)

        # 先用原本的精度求交點，再產生 hot pixel（四捨五入可能會讓頂點跑到另一條線段的另一側）
        self._intersections = find_interior_intersections(input_ss)
        self._add_hot_pixels(registry, self._intersections)
        self._add_vertex_pixels(registry, segment_strings)
        self._hot_pixels = registry.snapshot()

        if cfg.DEBUG:
            print(f"#Hot Pixels: {len(self._hot_pixels)}")

        return self._compute_snaps(input_ss)

    def _add_vertex_pixels(self, registry: HotPixelRegistry, segment_strings: list) -> None:
        # 用原本輸入的線串（不是加過交點的）
        for ss in segment_strings:
            self._add_hot_pixels(registry, ss.coordinates)

    def _add_hot_pixels(self, registry: HotPixelRegistry, pts) -> None:
        for p in pts:
            registry.get_or_create(self.pm.make_precise(p))

    def _compute_snaps(self, segment_strings: list[NodedSegmentString]) -> list[NodedSegmentString]:
        if cfg.DEBUG:
            start = time.perf_counter()

        pts_list = [ss.noded_coordinates for ss in segment_strings]
        chunk_size = self.chunk_size
        if len(pts_list) > 3 * chunk_size:
            # 每個 chunk 平行處理，只傳點和 hot pixel，線串（和 context）在這裡重建
            chunks : list[list] = Parallel(-1)(
                delayed(_snap_chains)(pts_list[i * chunk_size : i * chunk_size + chunk_size], self._hot_pixels, self.pm)
                    for i in range(math.ceil(len(pts_list) / chunk_size))
            )
            snaps = [s for chunk in chunks for s in chunk]
        else:
            snaps = _snap_chains(pts_list, self._hot_pixels, self.pm)

        snapped: list[NodedSegmentString] = []
        for ss, snap in zip(segment_strings, snaps):
            if snap is None:
                continue
            pts_round, nodes = snap
            snap_ss = NodedSegmentString(pts_round, ss.context)
            for co, segment_index in nodes:
                snap_ss.add_intersection(co, segment_index)
            snapped.append(snap_ss)

        if cfg.DEBUG:
            end = time.perf_counter()
            print(f"#Collapsed Strings: {len(segment_strings) - len(snapped)}")
            print(f"Compute Snaps: {end - start}")

        return snapped

    #region Results
    def _check_computed(self) -> None:
        if self._snapped_result is None:
            raise RuntimeError("compute_nodes() has not been called")

    @property
    def hot_pixels(self) -> tuple[HotPixel, ...]:
        """ 上一次執行時所有的 hot pixel """
        self._check_computed()
        return self._hot_pixels

    @property
    def interior_intersections(self) -> list[RAW_POINT_TYPE]:
        """ 上一次執行時以原本精度求出的內部交點 """
        self._check_computed()
        return list(self._intersections)

    def get_snapped_strings(self) -> list[NodedSegmentString]:
        """ 貼齊格子點、加入節點但還沒切割的線串 """
        self._check_computed()
        return list(self._snapped_result)

    def get_noded_substrings(self) -> list[NodedSegmentString]:
        """ 在所有節點處切割後的線串，context 和原本的線串相同 """
        self._check_computed()
        return NodedSegmentString.get_noded_substrings(self._snapped_result)
    #endregion

    def compute_vertex_snaps(self, edges) -> None:
        """
        Deprecated: 只靠頂點重合來做 snap 的功能已經移除，呼叫一定會失敗。
        """
        raise NotImplementedError("SimpleSnapRounder does not support vertex-only snapping")
#endregion
