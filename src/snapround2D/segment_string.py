from .config import RAW_POINT_TYPE
from .precision import equals_2d, to_point

from typing import Any, Iterable, NamedTuple

class SegmentNode(NamedTuple):
    """ 插入在線串上的節點，segment_index 為節點所在的線段 """
    coordinate: RAW_POINT_TYPE
    segment_index: int
    is_interior: bool

def _fill_dimension(p: RAW_POINT_TYPE, dim: int) -> RAW_POINT_TYPE:
    """ 把 2D 的節點補上 NaN 的 z，讓同一條線串的點維度一致 """
    if len(p) >= dim:
        return p
    return tuple(p) + (float("nan"),) * (dim - len(p))

class NodedSegmentString:
    """
    一條線串（一串點）加上一個不透明的 context，context 會原封不動地帶到切割後的結果。

    節點只能用 `add_intersection` 加入，並依加入的順序記錄下來（不會被修改或刪除）。
    最後由 `split()` 依節點位置排序後一次切割成數條線串。
    """

    def __init__(self, pts: Iterable, context: Any = None):
        self._pts: list[RAW_POINT_TYPE] = [to_point(p) for p in pts]
        self.context = context
        self._nodes: list[SegmentNode] = []

    @classmethod
    def from_segment_string(cls, ss) -> "NodedSegmentString":
        """ 複製任何有 `coordinates` 和 `context` 的線串（不包含已加入的節點） """
        return cls(ss.coordinates, getattr(ss, "context", None))

    @property
    def coordinates(self) -> list[RAW_POINT_TYPE]:
        return list(self._pts)

    @property
    def nodes(self) -> tuple[SegmentNode, ...]:
        return tuple(self._nodes)

    def size(self) -> int:
        return len(self._pts)

    def __len__(self) -> int:
        return len(self._pts)

    def get_coordinate(self, i: int) -> RAW_POINT_TYPE:
        return self._pts[i]

    def is_closed(self) -> bool:
        return len(self._pts) > 1 and equals_2d(self._pts[0], self._pts[-1])

    #region 節點 ######################################################################################################
    def add_intersection(self, pt: RAW_POINT_TYPE, segment_index: int) -> SegmentNode:
        """
        在第 segment_index 條線段（pts[segment_index] -> pts[segment_index + 1]）上加入節點。

        若節點剛好是線段的終點，則改記錄在下一條線段的起點。
        """
        if not 0 <= segment_index < len(self._pts) - 1:
            raise IndexError(f"segment index {segment_index} out of range for a string of {len(self._pts)} points")

        pt = to_point(pt)
        normalized_index = segment_index
        if equals_2d(pt, self._pts[segment_index + 1]):
            normalized_index = segment_index + 1

        is_interior = not equals_2d(pt, self._pts[normalized_index])
        # 節點在頂點上時直接用頂點（保留 z）
        node = SegmentNode(pt if is_interior else self._pts[normalized_index], normalized_index, is_interior)
        self._nodes.append(node)
        return node

    def _position(self, node: SegmentNode) -> float:
        """ 節點投影在所在線段方向上的位置，用來排序同一條線段上的節點 """
        i = node.segment_index
        if i >= len(self._pts) - 1:
            return 0.0
        x0, y0 = self._pts[i][:2]
        x1, y1 = self._pts[i + 1][:2]
        return (node.coordinate[0] - x0) * (x1 - x0) + (node.coordinate[1] - y0) * (y1 - y0)

    def _split_nodes(self) -> list[SegmentNode]:
        """ 加入兩端點、去除重複後依位置排序的節點 """
        last = len(self._pts) - 1
        candidates = [SegmentNode(self._pts[0], 0, False)] + self._nodes + [SegmentNode(self._pts[last], last, False)]

        unique: dict[tuple[int, float, float], SegmentNode] = dict()
        for node in candidates:
            key = (node.segment_index, node.coordinate[0], node.coordinate[1])
            if key not in unique.keys():
                unique[key] = node

        return sorted(unique.values(), key=lambda n: (n.segment_index, self._position(n)))

    def _split_edge(self, n0: SegmentNode, n1: SegmentNode) -> list[RAW_POINT_TYPE]:
        """ 兩個相鄰節點之間的點 """
        dim = len(self._pts[0])
        pts = [_fill_dimension(n0.coordinate, dim)]
        pts += self._pts[n0.segment_index + 1 : n1.segment_index + 1]

        # n1 剛好是線段起點時，上面已經加過了
        last_seg_start = self._pts[n1.segment_index]
        if n1.is_interior or not equals_2d(n1.coordinate, last_seg_start):
            pts.append(_fill_dimension(n1.coordinate, dim))
        return pts
    #endregion

    #region 切割 ######################################################################################################
    def _split_coordinate_lists(self) -> list[list[RAW_POINT_TYPE]]:
        if len(self._pts) < 2:
            return [list(self._pts)]
        nodes = self._split_nodes()
        return [self._split_edge(nodes[i - 1], nodes[i]) for i in range(1, len(nodes))]

    @property
    def noded_coordinates(self) -> list[RAW_POINT_TYPE]:
        """ 包含所有節點的點序列（連續重複的點只留一個） """
        result: list[RAW_POINT_TYPE] = []
        for pts in self._split_coordinate_lists():
            for p in pts:
                if result and equals_2d(result[-1], p):
                    continue
                result.append(p)
        return result

    def split(self) -> list["NodedSegmentString"]:
        """ 在每個節點處切開，回傳的線串和自己有相同的 context """
        return [NodedSegmentString(pts, self.context) for pts in self._split_coordinate_lists()]

    @staticmethod
    def get_noded_substrings(segment_strings: Iterable["NodedSegmentString"]) -> list["NodedSegmentString"]:
        result = []
        for ss in segment_strings:
            result += ss.split()
        return result
    #endregion

    def __repr__(self) -> str:
        return f"NodedSegmentString({self._pts}, context={self.context!r})"
