from joblib import parallel_config
import pytest

from snapround2D.intersection import find_intersections, find_interior_intersections
from snapround2D.segment_string import NodedSegmentString


def test_crossing_lines():
    a = NodedSegmentString([(0, 0), (10, 10)])
    b = NodedSegmentString([(0, 10), (10, 0)])
    result = find_interior_intersections([a, b])

    assert len(result) == 1
    assert result[0] == pytest.approx((5, 5))
    assert len(a.noded_coordinates) == 3
    assert a.noded_coordinates[1] == pytest.approx((5, 5))
    assert len(b.noded_coordinates) == 3


def test_shared_endpoint_is_not_interior():
    d = NodedSegmentString([(0, 0), (5, 0)])
    e = NodedSegmentString([(5, 0), (5, 5)])
    assert find_interior_intersections([d, e]) == []
    assert d.nodes == () and e.nodes == ()


def test_t_junction():
    a = NodedSegmentString([(0, 0), (10, 0)])
    b = NodedSegmentString([(5, 0), (5, 5)])
    assert find_interior_intersections([a, b]) == [(5, 0)]
    assert a.noded_coordinates == [(0, 0), (5, 0), (10, 0)]
    assert b.noded_coordinates == [(5, 0), (5, 5)]


def test_self_intersection():
    bowtie = NodedSegmentString([(0, 0), (10, 10), (10, 0), (0, 10)])
    result = find_interior_intersections([bowtie])
    assert len(result) == 1
    assert result[0] == pytest.approx((5, 5))


def test_collinear_overlap():
    a = NodedSegmentString([(0, 0), (10, 0)])
    b = NodedSegmentString([(5, 0), (15, 0)])
    result = find_interior_intersections([a, b])
    assert sorted(result) == [(5, 0), (10, 0)]
    assert a.noded_coordinates == [(0, 0), (5, 0), (10, 0)]
    assert b.noded_coordinates == [(5, 0), (10, 0), (15, 0)]


def test_zero_length_segments_are_skipped():
    a = NodedSegmentString([(0, 0), (0, 0), (10, 10)])
    b = NodedSegmentString([(0, 10), (10, 0)])
    result = find_interior_intersections([a, b])
    assert len(result) == 1


def test_find_intersections_pairs():
    segments = [((0, 0), (2, 2)), ((0, 2), (2, 0)), ((2, 2), (3, 3))]
    result = find_intersections(segments, [(0, 1), (0, 2)])
    assert len(result) == 1
    i, j, co = result[0]
    assert (i, j) == (0, 1)
    assert co == pytest.approx((1, 1))


def grid_lines():
    horizontal = [NodedSegmentString([(0, y), (4, y)]) for y in (1, 2, 3)]
    vertical = [NodedSegmentString([(x, 0), (x, 4)]) for x in (1, 2, 3)]
    return horizontal + vertical


def test_chunked_matches_serial():
    serial = find_interior_intersections(grid_lines())

    with parallel_config(backend="threading"):
        chunked_strings = grid_lines()
        chunked = find_interior_intersections(chunked_strings, chunk_size=1)

    assert sorted(serial) == sorted(chunked)
    assert len(serial) == 9
    assert chunked_strings[0].noded_coordinates == [(0, 1), (1, 1), (2, 1), (3, 1), (4, 1)]
