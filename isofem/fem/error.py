"""isofem.fem.error
L2 error of a nodal field against an exact function.
"""
import numpy as np

from isofem.integration import volume
from isofem.integration.quadrature import default_strength


def _element_error_squared(element, u_exact, u_h_element, weights, points):
    n = element.reference.num_nodes
    U = np.asarray(u_h_element, dtype=float).reshape(n, -1)
    total = 0.0
    for w, xi in zip(weights, points):
        N = element.reference.evaluate_basis(xi)
        x = element.map_reference_coords(xi)
        e = np.atleast_1d(np.asarray(u_exact(x), dtype=float)) - N @ U
        total += w * element.measure(xi) * float(e @ e)
    return total


def estimate_element_L2_error(element, u_exact, u_h_element, weights, points) -> float:
    """``||u_exact - u_h||_L2`` over one element.

    ``u_h_element`` holds node values, ``(n,)`` or ``(n, s)`` (node-major when flat).
    """
    return float(np.sqrt(_element_error_squared(element, u_exact, u_h_element, weights, points)))


def estimate_L2_error(mesh, u_exact, u_h, quadrature=None) -> float:
    """Global L2 error; ``quadrature`` is a ``(weights, points)`` pair or ``None``."""
    if quadrature is None:
        # the error is squared, so double the default strength
        quadrature = volume(mesh.element_type, 2 * default_strength(mesh.element_type))
    weights, points = quadrature
    u_h = np.asarray(u_h, dtype=float).reshape(mesh.n_vertices, -1)
    total = 0.0
    for eid in range(mesh.n_elements):
        total += _element_error_squared(mesh.element(eid), u_exact,
                                        u_h[mesh.connectivity[eid]], weights, points)
    return float(np.sqrt(total))
