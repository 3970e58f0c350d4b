from shapely.geometry import LineString
import shapely

from joblib import Parallel, delayed
import math
import time

from . import config as cfg
from .config import RAW_POINT_TYPE
from .precision import equals_2d
from .segment_string import NodedSegmentString

RAW_SEGMENT_TYPE = tuple[RAW_POINT_TYPE, RAW_POINT_TYPE]

def _is_interior(co: RAW_POINT_TYPE, a: RAW_SEGMENT_TYPE, b: RAW_SEGMENT_TYPE) -> bool:
    """ co 不是 a 的端點，或不是 b 的端點 """
    return not (equals_2d(co, a[0]) or equals_2d(co, a[1])) or not (equals_2d(co, b[0]) or equals_2d(co, b[1]))

#region 找交點 #########################################################################################################################
def find_intersections(segments: list[RAW_SEGMENT_TYPE], pairs: list[tuple[int, int]]) -> list[tuple[int, int, RAW_POINT_TYPE]]:
    """
    輸入一堆線段（segments）和要比較的兩條線段的 index（pairs），回傳 [(i, j, (x, y)), ...] 代表 segments[i] 和 segments[j] 相交於 (x, y)。

    只回傳內部交點（interior intersection）：交點至少不是其中一條線段的端點。只在端點相接的線段不算相交。
    """
    result = []
    for (i, j) in pairs:
        inter = LineString(segments[i]).intersection(LineString(segments[j]))
        if inter.is_empty:
            continue

        # 有兩種可能：相交一點，交於一線（共線重疊時取重疊部分的兩端）
        coords = [tuple(co) for co in shapely.get_coordinates(inter).tolist()]
        if not any(_is_interior(co, segments[i], segments[j]) for co in coords):
            continue

        for co in coords:
            result.append((i, j, co))

    return result

def find_interior_intersections(segment_strings: list[NodedSegmentString], chunk_size: int | None = None) -> list[RAW_POINT_TYPE]:
    """
    以原本的精度求出所有線段兩兩之間的內部交點，並將交點當作節點加入兩條線段所在的線串。

    必須在貼齊格子點之前執行，因為四捨五入可能會讓頂點跑到另一條線段的另一側。

    :return: 所有交點（不重複，順序固定）
    """
    if chunk_size is None:
        chunk_size = cfg.INTERSECTION_CHUNK_SIZE

    # 攤平成線段，記錄每條線段來自哪條線串的第幾段
    segments: list[RAW_SEGMENT_TYPE] = []
    owners: list[tuple[int, int]] = []
    for ss_index, ss in enumerate(segment_strings):
        pts = ss.coordinates
        for seg_index in range(len(pts) - 1):
            p0, p1 = pts[seg_index][:2], pts[seg_index + 1][:2]
            if equals_2d(p0, p1):
                # 長度為 0 的線段沒有內部
                continue
            segments.append((p0, p1))
            owners.append((ss_index, seg_index))

    if len(segments) < 2:
        return []

    lines = [LineString(s) for s in segments]
    # 建立空間索引
    tree = shapely.STRtree(lines)

    if cfg.DEBUG:
        start = time.perf_counter()

    pairs = tree.query(lines) # pairs[0, i] 和 pairs[1, i] 的 bbox 相交
    mask = pairs[0] < pairs[1] # (a, b) 為一對則 (b, a) 也是，留一個就好；也不和自己比
    unique_pairs: list[tuple[int, int]] = sorted(zip(pairs[0][mask].tolist(), pairs[1][mask].tolist()))

    if len(unique_pairs) > 3 * chunk_size:
        # 將 unique_pairs 拆成數個 chunk，每個 chunk 平行處理
        intersections : list[list[tuple[int, int, RAW_POINT_TYPE]]] = Parallel(-1)(
            delayed(find_intersections)(segments, unique_pairs[i * chunk_size : i * chunk_size + chunk_size])
                for i in range(math.ceil(len(unique_pairs) / chunk_size))
        )
    else:
        intersections : list[list[tuple[int, int, RAW_POINT_TYPE]]] = [find_intersections(segments, unique_pairs)]

    # 將交點加入線串，同時收集交點
    result: dict[tuple[float, float], RAW_POINT_TYPE] = dict()
    for subResult in intersections:
        for i, j, co in subResult:
            for k in (i, j):
                ss_index, seg_index = owners[k]
                segment_strings[ss_index].add_intersection(co, seg_index)
            result.setdefault((co[0], co[1]), co)

    if cfg.DEBUG:
        end = time.perf_counter()
        print(f"#Segments: {len(segments)}")
        print(f"#Unique Segment Pairs: {len(unique_pairs)}")
        print(f"#Interior Intersections: {len(result)}")
        print(f"Find Intersections: {end - start}")

    return list(result.values())
#endregion
