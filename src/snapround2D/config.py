RAW_POINT_TYPE = tuple[float, ...]
""" (x, y) 或 (x, y, z)，z 只是附帶的值，不參與任何比較 """
RAW_LINE_TYPE = list[RAW_POINT_TYPE]

DEBUG = False
""" Turn on this flag to show performance diagnostic. """

DEBUG_PLOT = False
""" Turn on this flag to plot the result. It only take effects when `DEBUG == True`. """

INTERSECTION_CHUNK_SIZE = 10000
""" 線段配對超過 3 * INTERSECTION_CHUNK_SIZE 時，用 joblib 平行求交點 """

SNAP_CHUNK_SIZE = 1000
""" 線串超過 3 * SNAP_CHUNK_SIZE 時，用 joblib 平行做 snap """
