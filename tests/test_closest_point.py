import numpy as np
import pytest

from isofem.fem import ClosestPointKind, FiniteElement
from isofem.fem.reference import ELEMENT_TYPES, get_reference
from isofem.fem.transform import closest_point_in_element, find_closest_element, x_mapping
from isofem.utils.meshgen import structured_quad, structured_tri

TRI = FiniteElement.from_vertices("tri3", [[1.0, 0.0], [2.0, 1.0], [-1.0, 2.0]])


@pytest.mark.parametrize("x, expected", [
    ([5.0, 2.0], [1.0, -1.0]),
    ([2.0, -1.0], [-1.0, -1.0]),
    ([-3.0, 2.0], [-1.0, 1.0]),
])
def test_tri3_exterior_points_project_to_vertices(x, expected):
    result = TRI.closest_point(x)
    assert result.kind is ClosestPointKind.CLOSEST_POINT
    np.testing.assert_allclose(result.point, expected, atol=1e-12)


def test_tri3_interior_point():
    xi = np.array([-0.5, -0.5])
    result = TRI.closest_point(TRI.map_reference_coords(xi))
    assert result.kind is ClosestPointKind.IN_ELEMENT
    assert result.in_element
    np.testing.assert_allclose(result.point, xi, atol=1e-12)


def test_tri3_collapsed_to_point():
    element = FiniteElement.from_vertices("tri3", [[3.0, 3.0]] * 3)
    for x in ([0.0, 0.0], [3.0, 3.0], [-2.0, 7.0]):
        xi = element.project_physical_coords(x)
        np.testing.assert_allclose(element.map_reference_coords(xi), [3.0, 3.0])


def test_tri3_collapsed_to_line():
    element = FiniteElement.from_vertices("tri3", [[1.0, 1.0], [2.0, 1.0], [0.5, 1.0]])
    xi = element.project_physical_coords([1.3, 1.5])
    np.testing.assert_allclose(element.map_reference_coords(xi), [1.3, 1.0], atol=1e-12)


def test_tri3_almost_degenerate():
    eps = 1e-15
    element = FiniteElement.from_vertices("tri3", [[0.0, 0.0], [1.0, 0.0], [0.5, eps]])
    xi = element.project_physical_coords([0.3, 0.5])
    np.testing.assert_allclose(element.map_reference_coords(xi), [0.3, 0.0], atol=1e-9)


@pytest.mark.parametrize("vertices", [
    [[0.0, 0.0], [2.0, 0.0], [1.0, 0.0]],
    [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]],
    [[1.0, 0.0], [0.0, 0.0], [2.0, 0.0]],
])
def test_tri3_collapsed_to_line_classification_ignores_vertex_order(vertices):
    element = FiniteElement.from_vertices("tri3", vertices)
    on_element = element.closest_point([1.9, 0.0])
    assert on_element.kind is ClosestPointKind.IN_ELEMENT
    np.testing.assert_allclose(element.map_reference_coords(on_element.point), [1.9, 0.0], atol=1e-12)
    assert element.closest_point([2.5, 0.0]).kind is ClosestPointKind.CLOSEST_POINT


def test_quad4_collapsed_to_segment():
    element = FiniteElement.from_vertices("quad4", [[0.0, 0.0], [2.0, 0.0], [2.0, 0.0], [0.0, 0.0]])
    xi = element.project_physical_coords([1.3, 0.7])
    np.testing.assert_allclose(element.map_reference_coords(xi), [1.3, 0.0], atol=1e-10)


def test_tie_break_is_deterministic():
    # both edges adjacent to the apex are equally close
    element = FiniteElement.from_vertices("tri3", [[-1.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    first = element.closest_point([0.0, 3.0])
    for _ in range(3):
        again = element.closest_point([0.0, 3.0])
        assert again.kind is first.kind
        np.testing.assert_array_equal(again.point, first.point)
    np.testing.assert_allclose(element.map_reference_coords(first.point), [0.0, 1.0], atol=1e-12)


# reference points on the boundary of the reference triangle and the edges they lie on
_TRI_EDGES = ((0, 1), (1, 2), (2, 0))
_BOUNDARY_POINTS = [
    ([-1.0, -1.0], 0),
    ([1.0, -1.0], 0),
    ([-1.0, 1.0], 1),
    ([-1.0, 0.5], 2),
    ([0.5, -1.0], 0),
    ([0.0, 0.0], 1),
]


@pytest.mark.parametrize("xi, edge", _BOUNDARY_POINTS)
def test_tri3_points_along_outward_normals(xi, edge):
    mesh = structured_tri(1.0, 1.0, 10, 10)
    xi = np.array(xi)
    for element in mesh.elements():
        a, b = (element.vertices[i] for i in _TRI_EDGES[edge])
        t = b - a
        normal = np.array([t[1], -t[0]]) / np.linalg.norm(t)
        x = element.map_reference_coords(xi) + 0.1 * normal
        result = element.closest_point(x)
        assert result.kind is ClosestPointKind.CLOSEST_POINT
        np.testing.assert_allclose(result.point, xi, atol=1e-10)


def test_quad4_exterior_point():
    element = FiniteElement.from_vertices("quad4", [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    result = element.closest_point([0.5, -0.3])
    assert result.kind is ClosestPointKind.CLOSEST_POINT
    np.testing.assert_allclose(result.point, [0.0, -1.0], atol=1e-10)

    corner = element.closest_point([2.0, 2.0])
    np.testing.assert_allclose(corner.point, [1.0, 1.0], atol=1e-10)


def test_hex8_exterior_point():
    element = FiniteElement.from_vertices("hex8", 2.0 * get_reference("hex8").nodes)
    result = element.closest_point([0.5, 0.25, 3.0])
    assert result.kind is ClosestPointKind.CLOSEST_POINT
    np.testing.assert_allclose(result.point, [0.25, 0.125, 1.0], atol=1e-10)


@pytest.mark.parametrize("tag", ELEMENT_TYPES)
def test_round_trip(tag, perturbed_element, reference_points):
    element = perturbed_element(tag)
    tol = 1e-9 * element.diameter()
    for xi in reference_points(element.reference.domain, n=10):
        x = element.map_reference_coords(xi)
        result = element.closest_point(x)
        assert element.reference.domain.contains(result.point, tol=1e-9)
        np.testing.assert_allclose(element.map_reference_coords(result.point), x, atol=tol)


def test_tet4_exterior_point():
    element = FiniteElement.from_vertices("tet4", [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]])
    result = element.closest_point([0.25, 0.25, -2.0])
    assert result.kind is ClosestPointKind.CLOSEST_POINT
    np.testing.assert_allclose(element.map_reference_coords(result.point), [0.25, 0.25, 0.0], atol=1e-12)


def test_wrong_point_dimension():
    with pytest.raises(ValueError):
        TRI.closest_point([0.0, 0.0, 0.0])


def test_closest_point_in_element_by_index():
    mesh = structured_tri(2.0, 1.0, 2, 1)
    for eid in range(mesh.n_elements):
        result = closest_point_in_element(mesh, eid, [5.0, 0.5])
        expected = mesh.element(eid).closest_point([5.0, 0.5])
        assert result.kind is expected.kind
        np.testing.assert_allclose(result.point, expected.point)


@pytest.mark.parametrize("make_mesh", [
    lambda: structured_tri(2.0, 1.0, 4, 2),
    lambda: structured_quad(2.0, 1.0, 4, 2, poly_order=2),
])
def test_find_closest_element_interior_points(make_mesh, rng):
    mesh = make_mesh()
    for eid in range(mesh.n_elements):
        xi = mesh.reference.domain.sample(2)[rng.integers(3)] * 0.5
        x = x_mapping(mesh, eid, xi)
        found, found_xi = find_closest_element(mesh, x)
        np.testing.assert_allclose(x_mapping(mesh, found, found_xi), x, atol=1e-10)
        assert mesh.element(found).closest_point(x).in_element


def test_find_closest_element_exterior_point():
    mesh = structured_quad(2.0, 1.0, 4, 2)
    eid, xi = find_closest_element(mesh, [3.0, 0.8])
    np.testing.assert_allclose(x_mapping(mesh, eid, xi), [2.0, 0.8], atol=1e-10)
    lo, hi = mesh.bounds_for_element(eid)
    assert np.isclose(hi[0], 2.0) and lo[1] <= 0.8 <= hi[1]


def test_find_closest_element_lowest_index_wins_ties():
    mesh = structured_quad(2.0, 1.0, 2, 1)
    # the shared edge x = 1 is equally close from both elements
    eid, xi = find_closest_element(mesh, [1.0, 0.5])
    assert eid == 0
    eid, xi = find_closest_element(mesh, [1.0, 3.0])
    assert eid == 0
    np.testing.assert_allclose(x_mapping(mesh, eid, xi), [1.0, 1.0], atol=1e-10)


def test_find_closest_element_rejects_wrong_dimension():
    mesh = structured_tri(1.0, 1.0, 1, 1)
    with pytest.raises(ValueError):
        find_closest_element(mesh, [0.0, 0.0, 0.0])
