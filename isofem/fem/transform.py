"""isofem.fem.transform
Reference → physical mapping keyed by ``(mesh, elem_id, xi)``.
"""
import logging

import numpy as np

from isofem.fem.closest_point import DEFAULT_MAXITER, DEFAULT_TOL
from isofem.fem.element import measure_scale, physical_gradients

logger = logging.getLogger(__name__)


def x_mapping(mesh, elem_id, xi):
    return mesh.element(elem_id).map_reference_coords(xi)


def jacobian(mesh, elem_id, xi):
    return mesh.element(elem_id).reference_jacobian(xi)


def det_jacobian(mesh, elem_id, xi):
    J = jacobian(mesh, elem_id, xi)
    if J.shape[0] == J.shape[1]:
        return float(np.linalg.det(J))
    return measure_scale(J)


def inv_jac_T(mesh, elem_id, xi):
    J = jacobian(mesh, elem_id, xi)
    if J.shape[0] != J.shape[1]:
        # pseudo-inverse transpose for embedded elements
        return J @ np.linalg.inv(J.T @ J)
    return np.linalg.inv(J).T


def map_grad_scalar(mesh, elem_id, grad_ref, xi):
    """Physical gradient(s) from reference gradient(s) ``(r,)`` or ``(r, n)``."""
    J = jacobian(mesh, elem_id, xi)
    return physical_gradients(J, np.asarray(grad_ref, dtype=float))


def inverse_mapping(mesh, elem_id, x, tol=1e-10, maxiter=50):
    """Reference coordinates of ``x``; raises if ``x`` is not on the element."""
    element = mesh.element(elem_id)
    result = element.closest_point(x, maxiter=maxiter)
    residual = np.linalg.norm(element.map_reference_coords(result.point) - np.asarray(x, dtype=float))
    if residual > tol * max(element.diameter(), 1.0):
        raise ValueError(f"Point {x} is not on element {elem_id} (residual={residual:.3e})")
    return result.point


def diameter(mesh, elem_id):
    return mesh.element(elem_id).diameter()


def closest_point_in_element(mesh, elem_id, x, tol=DEFAULT_TOL, maxiter=DEFAULT_MAXITER):
    return mesh.element(elem_id).closest_point(x, tol=tol, maxiter=maxiter)


def _box_distance(box, x):
    return float(np.linalg.norm(np.maximum(box[0] - x, 0.0) + np.maximum(x - box[1], 0.0)))


def find_closest_element(mesh, x, tol=DEFAULT_TOL, maxiter=DEFAULT_MAXITER):
    """Element index and reference coordinates of the mesh point closest to ``x``.

    Distances within ``tol`` (relative to the mesh extent) count as equal and
    the lowest element index wins. Returns ``None`` for an empty mesh.
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    if x.size != mesh.spatial_dim:
        raise ValueError(f"point has dimension {x.size}, mesh lives in {mesh.spatial_dim}D")
    if mesh.n_elements == 0:
        return None

    boxes = mesh.bounds_for_all_elements()
    box_dist = np.array([_box_distance(box, x) for box in boxes])
    # sampled boxes of curved elements are not guaranteed to enclose them
    exact_boxes = mesh.poly_order == 1
    atol = tol * max(float(np.ptp(mesh.vertices, axis=0).max()), 1.0)

    best_eid, best_xi, best_dist = None, None, np.inf
    n_visited = 0
    for eid in np.argsort(box_dist, kind="stable"):
        eid = int(eid)
        if exact_boxes and box_dist[eid] > best_dist + atol:
            break
        n_visited += 1
        result = closest_point_in_element(mesh, eid, x, tol=tol, maxiter=maxiter)
        dist = float(np.linalg.norm(x_mapping(mesh, eid, result.point) - x))
        if dist < best_dist - atol or (dist <= best_dist + atol and eid < best_eid):
            best_eid, best_xi, best_dist = eid, result.point, min(dist, best_dist)
    logger.debug(f"closest element to {x}: {best_eid} at distance {best_dist:.3e} "
                 f"({n_visited} of {mesh.n_elements} elements searched)")
    return best_eid, best_xi


def transform_quadrature(element, weights, points):
    """Physical weights ``w * |det J|`` and mapped points for one element."""
    weights = np.asarray(weights, dtype=float)
    points = np.asarray(points, dtype=float).reshape(len(weights), -1)
    phys_w = np.array([w * element.measure(xi) for w, xi in zip(weights, points)])
    phys_x = np.array([element.map_reference_coords(xi) for xi in points]).reshape(len(weights), -1)
    return phys_w, phys_x
