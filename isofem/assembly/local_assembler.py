"""isofem.assembly.local_assembler
Element-level quadrature loops for elliptic operators.

Local dofs are node-major: entry ``s * I + i`` is component ``i`` at node ``I``.
All routines add into ``output`` (running sum), so several quadrature rules or
operator terms can be accumulated into the same target.
"""
from collections.abc import Sequence

import numpy as np

from isofem.assembly.laplace import LaplaceOperator
from isofem.fem.element import measure_scale, physical_gradients
from isofem.integration import volume
from isofem.integration.quadrature import default_strength


def _point_parameters(operator, parameters, n_points):
    """One parameters object per quadrature point."""
    if parameters is None:
        return [operator.default_parameters()] * n_points
    if isinstance(parameters, operator.parameters_type):
        return [parameters] * n_points
    if isinstance(parameters, (Sequence, np.ndarray)):
        if len(parameters) != n_points:
            raise ValueError(f"got {len(parameters)} parameters for {n_points} quadrature points")
        return list(parameters)
    return [parameters] * n_points


def _element_field(element, u_element, solution_dim):
    n = element.reference.num_nodes
    if u_element is None:
        return np.zeros((n, solution_dim))
    U = np.asarray(u_element, dtype=float)
    if U.size != n * solution_dim:
        raise ValueError(f"element field has {U.size} values, expected {n * solution_dim}")
    return U.reshape(n, solution_dim)


def _point_data(element, xi, w, U):
    """Physical basis gradients ``(d, n)``, solution gradient ``(d, s)`` and ``w * |det J|``."""
    J = element.reference_jacobian(xi)
    grads = physical_gradients(J, element.reference.gradients(xi))
    return grads, grads @ U, w * measure_scale(J)


def assemble_element_elliptic_matrix(output, element, operator, u_element, weights, points, parameters=None):
    s = operator.solution_dim
    U = _element_field(element, u_element, s)
    for w, xi, params in zip(weights, points, _point_parameters(operator, parameters, len(weights))):
        grads, G, scale = _point_data(element, xi, w, U)
        phi = grads.T.ravel()
        operator.accumulate_contractions_into(output, scale, G, phi, phi, params)
    return output


def assemble_element_elliptic_vector(output, element, operator, u_element, weights, points, parameters=None):
    s = operator.solution_dim
    n = element.reference.num_nodes
    if output.shape != (n * s,):
        raise ValueError(f"output has shape {output.shape}, expected {(n * s,)}")
    U = _element_field(element, u_element, s)
    for w, xi, params in zip(weights, points, _point_parameters(operator, parameters, len(weights))):
        grads, G, scale = _point_data(element, xi, w, U)
        g = operator.compute_elliptic_term(G, params)
        output += scale * (grads.T @ g).ravel()
    return output


def compute_element_elliptic_energy(element, operator, u_element, weights, points, parameters=None) -> float:
    U = _element_field(element, u_element, operator.solution_dim)
    energy = 0.0
    for w, xi, params in zip(weights, points, _point_parameters(operator, parameters, len(weights))):
        _, G, scale = _point_data(element, xi, w, U)
        energy += scale * operator.compute_energy(G, params)
    return energy


def assemble_element_mass_matrix(output, element, weights, points, solution_dim=1, density=1.0):
    n = element.reference.num_nodes
    expected = (n * solution_dim, n * solution_dim)
    if output.shape != expected:
        raise ValueError(f"output has shape {output.shape}, expected {expected}")
    eye = np.eye(solution_dim)
    for w, xi in zip(weights, points):
        N = element.reference.evaluate_basis(xi)
        scale = w * element.measure(xi)
        output += density * scale * np.kron(np.outer(N, N), eye)
    return output


def stiffness_matrix(mesh, elem_id, operator=None, u=None, *, quad_order=None, parameters=None):
    """Element matrix and elliptic vector ``(Ke, Fe)`` of element ``elem_id``."""
    if operator is None:
        operator = LaplaceOperator()
    if quad_order is None:
        quad_order = default_strength(mesh.element_type)
    wts, pts = volume(mesh.element_type, quad_order)
    element = mesh.element(elem_id)
    s = operator.solution_dim
    n_loc = mesh.reference.num_nodes

    u_element = None
    if u is not None:
        u_element = np.asarray(u, dtype=float)[mesh.dof_indices(elem_id, s)]

    Ke = np.zeros((n_loc * s, n_loc * s))
    Fe = np.zeros(n_loc * s)
    assemble_element_elliptic_matrix(Ke, element, operator, u_element, wts, pts, parameters)
    assemble_element_elliptic_vector(Fe, element, operator, u_element, wts, pts, parameters)
    return Ke, Fe
