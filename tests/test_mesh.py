import numpy as np
import pytest

from isofem.core import Mesh
from isofem.fem.reference import get_reference
from isofem.utils.meshgen import structured_hex, structured_quad, structured_tri


def test_structured_quad():
    mesh = structured_quad(2.0, 1.0, 4, 2, poly_order=2)
    assert mesh.element_type == "quad9"
    assert mesh.n_elements == 8
    assert mesh.n_vertices == 9 * 5
    assert mesh.poly_order == 2
    # nodes sit where the reference nodes map to
    for element in mesh.elements():
        corners = element.vertices[:4]
        np.testing.assert_allclose(element.vertices[8], corners.mean(axis=0))


def test_structured_tri_orientation():
    mesh = structured_tri(1.0, 1.0, 3, 2, poly_order=2)
    assert mesh.element_type == "tri6"
    assert mesh.n_elements == 12
    for element in mesh.elements():
        J = element.reference_jacobian([-1 / 3, -1 / 3])
        assert np.linalg.det(J) > 0.0
        a, b = element.vertices[0], element.vertices[1]
        np.testing.assert_allclose(element.vertices[3], 0.5 * (a + b))


def test_structured_hex():
    mesh = structured_hex(1.0, 2.0, 3.0, 2, 1, 1, offset=(1.0, 0.0, 0.0))
    assert mesh.element_type == "hex8"
    assert mesh.n_vertices == 3 * 2 * 2
    assert mesh.spatial_dim == 3
    np.testing.assert_allclose(mesh.vertices.min(axis=0), [1.0, 0.0, 0.0])
    for element in mesh.elements():
        assert np.linalg.det(element.reference_jacobian([0.0, 0.0, 0.0])) > 0.0
    hex27 = structured_hex(1.0, 1.0, 1.0, 1, 1, 1, poly_order=2)
    np.testing.assert_allclose(hex27.element(0).vertices[26], [0.5, 0.5, 0.5])


def test_unsupported_order():
    with pytest.raises(ValueError):
        structured_quad(1.0, 1.0, 1, 1, poly_order=3)


def test_mesh_validation():
    with pytest.raises(ValueError):
        Mesh([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], [[0, 1]], "tri3")
    with pytest.raises(ValueError):
        Mesh([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], [[0, 1, 3]], "tri3")
    with pytest.raises(KeyError):
        Mesh([[0.0, 0.0]], [[0]], "point1")


def test_element_views_share_the_vertex_buffer():
    mesh = structured_quad(1.0, 1.0, 2, 2)
    element = mesh.element(3)
    mesh.vertices[mesh.connectivity[3, 0]] += 0.1
    np.testing.assert_allclose(element.vertices, mesh.element_vertices(3))
    assert repr(mesh).startswith("<Mesh quad4")


def test_bounds_for_element():
    mesh = structured_quad(2.0, 1.0, 2, 1, offset=(1.0, -1.0))
    np.testing.assert_allclose(mesh.bounds_for_element(1), [[2.0, -1.0], [3.0, 0.0]])
    boxes = mesh.bounds_for_all_elements()
    assert boxes.shape == (2, 2, 2)
    np.testing.assert_allclose(boxes[0], [[1.0, -1.0], [2.0, 0.0]])


def test_bounds_for_curved_element():
    ref = get_reference("tri6")
    vertices = ref.nodes.copy()
    # bow the edge between nodes 0 and 1 outwards: the curve overshoots its midpoint node
    vertices[3, 1] = -1.5
    mesh = Mesh(vertices, [np.arange(6)], "tri6")
    lo, hi = mesh.bounds_for_element(0)
    assert lo[1] <= -1.5
    np.testing.assert_allclose(hi, [1.0, 1.0])
    for xi in ref.domain.sample(4):
        x = mesh.element(0).map_reference_coords(xi)
        assert np.all(x >= lo - 1e-12) and np.all(x <= hi + 1e-12)
