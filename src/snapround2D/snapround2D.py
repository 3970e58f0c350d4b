from shapely.geometry import LineString, MultiLineString
import shapely

import time

from . import config as cfg
from .config import RAW_LINE_TYPE
from .precision import PrecisionModel
from .segment_string import NodedSegmentString
from .snap_rounder import SimpleSnapRounder

#region Utility #####################################################################################################################
def _make_segment_strings(raw_lines, contexts) -> list[NodedSegmentString]:
    segment_strings = []
    for i, (line, context) in enumerate(zip(raw_lines, contexts)):
        ss = NodedSegmentString(line, context)
        if ss.size() < 2:
            raise ValueError(f"line {i} has {ss.size()} coordinate(s), at least 2 are required")
        segment_strings.append(ss)
    return segment_strings

def _plot(lines: list[RAW_LINE_TYPE]):
    import matplotlib.pyplot as plt
    from shapely.plotting import plot_line

    plot_line(MultiLineString([[p[:2] for p in line] for line in lines]))
    plt.title("Snap Rounding")
    plt.show()
#endregion

#region Snap Rounding ###############################################################################################################
def snapround2D_contexts(raw_lines: list[RAW_LINE_TYPE], contexts: list, scale_factor: float = 1.0) -> list[tuple[object, RAW_LINE_TYPE]]:
    """
    輸入一堆線串和各自的 context，回傳貼齊格子點並在交點處切割後的線串 [(context, 點), ...]

    :param scale_factor: 格子點的間距為 1 / scale_factor
    """
    contexts = list(contexts)
    if len(contexts) != len(raw_lines):
        raise ValueError(f"got {len(raw_lines)} lines but {len(contexts)} contexts")

    if cfg.DEBUG:
        print("\n\n== snapround 2D ==")
        start_perf = time.perf_counter()

    noder = SimpleSnapRounder(PrecisionModel(scale_factor))
    noder.compute_nodes(_make_segment_strings(raw_lines, contexts))
    result = [(ss.context, ss.coordinates) for ss in noder.get_noded_substrings()]

    if cfg.DEBUG:
        end_perf = time.perf_counter()
        print(f"#Input Lines: {len(raw_lines)}")
        print(f"#Result Lines: {len(result)}")
        print(f"Snap Round: {end_perf - start_perf}")

        if cfg.DEBUG_PLOT:
            _plot([pts for _, pts in result])

    return result

def snapround2D(raw_lines: list[RAW_LINE_TYPE], scale_factor: float = 1.0) -> list[RAW_LINE_TYPE]:
    """
    輸入一堆線串，將所有頂點貼齊格子點，並在線段相交（或經過其他頂點、交點所在的格子）處切割，回傳切割後的線串
    """
    return [pts for _, pts in snapround2D_contexts(raw_lines, range(len(raw_lines)), scale_factor)]

def snapround2D_linestrings(lines: list[LineString], scale_factor: float = 1.0) -> list[LineString]:
    raw_lines = [shapely.get_coordinates(line, include_z=line.has_z).tolist() for line in lines]
    return [LineString(pts) for pts in snapround2D(raw_lines, scale_factor)]
#endregion
