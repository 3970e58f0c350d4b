import random

from joblib import parallel_config
import pytest
from shapely.geometry import LineString

from snapround2D import config as cfg
from snapround2D.precision import PrecisionModel
from snapround2D.segment_string import NodedSegmentString
from snapround2D.snap_rounder import SimpleSnapRounder, snap_chain, snap_segment
from snapround2D.hot_pixel import HotPixel


def run(lines, scale=1.0, **kwargs):
    noder = SimpleSnapRounder(PrecisionModel(scale), **kwargs)
    noder.compute_nodes([NodedSegmentString(pts, name) for name, pts in lines.items()])
    return noder


def substrings(noder):
    return [(ss.context, ss.coordinates) for ss in noder.get_noded_substrings()]


def test_crossing_lines_share_node():
    noder = run({"A": [(0, 0), (10, 10)], "B": [(0, 10), (10, 0)]})
    assert substrings(noder) == [
        ("A", [(0, 0), (5, 5)]),
        ("A", [(5, 5), (10, 10)]),
        ("B", [(0, 10), (5, 5)]),
        ("B", [(5, 5), (10, 0)]),
    ]


def test_collapsed_string_is_dropped():
    noder = run({"C": [(0.1, 0.1), (0.4, 0.4)]})
    assert noder.get_snapped_strings() == []
    assert noder.get_noded_substrings() == []
    assert [hp.coordinate for hp in noder.hot_pixels] == [(0, 0)]


def test_shared_vertex_adds_nothing():
    noder = run({"D": [(0, 0), (5, 0)], "E": [(5, 0), (5, 5)]})
    assert noder.interior_intersections == []
    assert substrings(noder) == [("D", [(0, 0), (5, 0)]), ("E", [(5, 0), (5, 5)])]


def test_collinear_chain():
    noder = run({"F": [(0, 0), (1, 1), (2, 2)]})
    assert [ss.coordinates for ss in noder.get_snapped_strings()] == [[(0, 0), (1, 1), (2, 2)]]
    # 中間的頂點也是 hot pixel，所以會在那裡切開
    assert substrings(noder) == [("F", [(0, 0), (1, 1)]), ("F", [(1, 1), (2, 2)])]


def test_segment_through_vertex_pixel():
    noder = run({"A": [(0, 0), (10, 0)], "P": [(5, 0.3), (5, 8)]})
    assert noder.interior_intersections == []
    assert substrings(noder) == [
        ("A", [(0, 0), (5, 0)]),
        ("A", [(5, 0), (10, 0)]),
        ("P", [(5, 0), (5, 8)]),
    ]


def test_collapsed_segment_is_skipped():
    noder = run({"G": [(0, 0), (3.1, 0.2), (3.3, -0.1), (6, 0)]})
    assert [ss.coordinates for ss in noder.get_snapped_strings()] == [[(0, 0), (3, 0), (6, 0)]]


def test_pixel_coverage():
    pm = PrecisionModel(1.0)
    lines = {"a": [(0.2, 0.3), (4.6, 4.1), (7.7, 0.4)], "b": [(0.1, 4.2), (8.4, 0.2)]}
    noder = run(lines)

    centers = {hp.coordinate for hp in noder.hot_pixels}
    assert len(centers) == len(noder.hot_pixels)
    for pts in lines.values():
        for p in pts:
            assert pm.make_precise(p) in centers
    assert len(noder.interior_intersections) == 2
    for x in noder.interior_intersections:
        assert pm.make_precise(x)[:2] in centers


def test_context_preservation():
    contexts = [object(), object()]
    noder = SimpleSnapRounder(PrecisionModel(1.0))
    noder.compute_nodes([
        NodedSegmentString([(0, 0), (10, 10)], contexts[0]),
        NodedSegmentString([(0, 10), (10, 0)], contexts[1]),
    ])
    parts = noder.get_noded_substrings()
    assert [ss.context for ss in parts] == [contexts[0], contexts[0], contexts[1], contexts[1]]
    assert parts[0].context is contexts[0]


def test_input_is_not_modified():
    a = NodedSegmentString([(0, 0), (10, 10)])
    b = NodedSegmentString([(0, 10), (10, 0)])
    SimpleSnapRounder(PrecisionModel(1.0)).compute_nodes([a, b])
    assert a.nodes == () and b.nodes == ()
    assert a.coordinates == [(0, 0), (10, 10)]


def test_each_run_is_independent():
    noder = run({"A": [(0, 0), (10, 10)], "B": [(0, 10), (10, 0)]})
    noder.compute_nodes([NodedSegmentString([(20, 20), (30, 20)])])
    assert {hp.coordinate for hp in noder.hot_pixels} == {(20, 20), (30, 20)}
    assert substrings(noder) == [(None, [(20, 20), (30, 20)])]


def random_lines(seed, n=15, size=20.0):
    rng = random.Random(seed)
    return {
        i: [(rng.uniform(0, size), rng.uniform(0, size)) for _ in range(rng.randint(2, 4))]
        for i in range(n)
    }


def test_deterministic():
    lines = random_lines(1)
    assert substrings(run(lines)) == substrings(run(lines))


@pytest.mark.parametrize("seed, scale", [(1, 1.0), (2, 1.0), (3, 2.0)])
def test_no_proper_crossings(seed, scale):
    noder = run(random_lines(seed), scale)

    segments = []
    for _, pts in substrings(noder):
        segments += [LineString([pts[i], pts[i + 1]]) for i in range(len(pts) - 1)]

    pm = PrecisionModel(scale)
    for s in segments:
        for p in s.coords:
            assert pm.make_precise(p) == p
    for i in range(len(segments)):
        for j in range(i + 1, len(segments)):
            assert not segments[i].crosses(segments[j])


def test_parallel_snaps_match_serial():
    lines = random_lines(4)
    serial = substrings(run(lines))
    with parallel_config(backend="threading"):
        chunked = substrings(run(lines, chunk_size=2))
    assert serial == chunked


def test_snap_chain():
    hot_pixels = (HotPixel((0, 0), 1.0), HotPixel((2, 1), 1.0), HotPixel((4, 0), 1.0))
    pts_round, nodes = snap_chain([(0, 0), (4, 0.2)], hot_pixels, PrecisionModel(1.0))
    assert pts_round == [(0, 0), (4, 0)]
    assert nodes == [((0, 0), 0), ((4, 0), 0)]

    assert snap_chain([(0.1, 0.1), (0.2, 0.2)], hot_pixels, PrecisionModel(1.0)) is None


def test_snap_segment_order():
    hot_pixels = (HotPixel((4, 0), 1.0), HotPixel((9, 9), 1.0), HotPixel((0, 0), 1.0))
    assert snap_segment((0, 0), (4, 0), hot_pixels) == [(4, 0), (0, 0)]


def test_vertex_snaps_not_supported():
    with pytest.raises(NotImplementedError):
        SimpleSnapRounder(PrecisionModel(1.0)).compute_vertex_snaps([])


def test_results_before_compute():
    noder = SimpleSnapRounder(PrecisionModel(1.0))
    with pytest.raises(RuntimeError):
        noder.get_noded_substrings()
    with pytest.raises(RuntimeError):
        noder.hot_pixels


def test_debug_output(monkeypatch, capsys):
    monkeypatch.setattr(cfg, "DEBUG", True)
    run({"A": [(0, 0), (10, 10)], "B": [(0, 10), (10, 0)]})
    out = capsys.readouterr().out
    assert "#Hot Pixels: 5" in out
    assert "#Interior Intersections: 1" in out
