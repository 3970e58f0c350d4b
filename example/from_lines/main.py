import snapround2D.config as cfg
cfg.DEBUG = True
cfg.DEBUG_PLOT = True

from snapround2D.snapround2D import snapround2D, snapround2D_linestrings
from shapely import LineString

# 兩條交叉的線，交點在 (5, 5)
print(snapround2D([
    [(0, 0), (10, 10)],
    [(0, 10), (10, 0)],
]))

# 交點 (0.5, 0.5) 被四捨五入到 (1, 1)，第三條線經過 (1, 1) 的格子也會被切開
print(snapround2D_linestrings([
    LineString([(0, 0), (1, 1.2)]),
    LineString([(0, 1), (1, 0)]),
    LineString([(-1, 1.3), (3, 1.1)]),
]))

# 格子大小 0.5
print(snapround2D([
    [(0.1, 0.1), (3.3, 2.9)],
    [(0.2, 2.8), (3.1, 0.3)],
    [(1.1, 1.1), (1.2, 1.2)],
], scale_factor=2))
