"""isofem.assembly.load_vector"""
import numpy as np

from isofem.integration import volume
from isofem.integration.quadrature import default_strength

__all__ = ["element_source_vector", "cg_element_load"]


def element_source_vector(output, element, source, weights, points, solution_dim=1):
    """Add ``int f phi_I`` to ``output``; ``source(x)`` returns a scalar or ``(s,)`` vector."""
    n = element.reference.num_nodes
    if output.shape != (n * solution_dim,):
        raise ValueError(f"output has shape {output.shape}, expected {(n * solution_dim,)}")
    for w, xi in zip(weights, points):
        N = element.reference.evaluate_basis(xi)
        x = element.map_reference_coords(xi)
        f = np.broadcast_to(np.asarray(source(x), dtype=float), (solution_dim,))
        output += w * element.measure(xi) * np.outer(N, f).ravel()
    return output


def cg_element_load(mesh, elem_id, rhs, *, solution_dim=1, quad_order=None):
    if quad_order is None:
        quad_order = default_strength(mesh.element_type)
    wts, pts = volume(mesh.element_type, quad_order)
    Fe = np.zeros(mesh.reference.num_nodes * solution_dim)
    return element_source_vector(Fe, mesh.element(elem_id), rhs, wts, pts, solution_dim)
