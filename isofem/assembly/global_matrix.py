"""isofem.assembly.global_matrix

Global dofs are node-major: dof ``s * node + c`` carries component ``c``.
Element contributions are reduced serially in element order, so repeated
runs produce bit-identical results.
"""
import logging

import numpy as np
import scipy.sparse as sp

from isofem.assembly.laplace import LaplaceOperator
from isofem.assembly.load_vector import element_source_vector
from isofem.assembly.local_assembler import (
    assemble_element_elliptic_matrix,
    assemble_element_elliptic_vector,
    assemble_element_mass_matrix,
    compute_element_elliptic_energy,
)
from isofem.integration import volume
from isofem.integration.quadrature import default_strength

logger = logging.getLogger(__name__)


def dof_indices(nodes, solution_dim: int = 1) -> np.ndarray:
    nodes = np.asarray(nodes, dtype=np.int64)
    return (solution_dim * nodes[:, None] + np.arange(solution_dim)[None, :]).ravel()


def scatter_add(target, local, dofs):
    """Add a local vector or square matrix into a dense global target."""
    local = np.asarray(local, dtype=float)
    dofs = np.asarray(dofs, dtype=np.int64)
    if local.ndim == 1:
        if local.shape[0] != dofs.size:
            raise ValueError(f"local vector has {local.shape[0]} entries but {dofs.size} dofs were given")
        np.add.at(target, dofs, local)
    else:
        if local.shape != (dofs.size, dofs.size):
            raise ValueError(f"local matrix has shape {local.shape} but {dofs.size} dofs were given")
        np.add.at(target, (dofs[:, None], dofs[None, :]), local)
    return target


def assemble(mesh, local_cb, solution_dim: int = 1):
    """Global CSR matrix from ``local_cb(eid) -> (Ke, Fe)``; duplicate entries are summed."""
    n_dofs = mesh.n_vertices * solution_dim
    rows, cols, data = [], [], []
    for eid in range(mesh.n_elements):
        Ke, _ = local_cb(eid)
        dofs = mesh.dof_indices(eid, solution_dim)
        if Ke.shape != (dofs.size, dofs.size):
            raise ValueError(f"element {eid}: local matrix has shape {Ke.shape}, expected {(dofs.size, dofs.size)}")
        rows.append(np.repeat(dofs, dofs.size))
        cols.append(np.tile(dofs, dofs.size))
        data.append(Ke.ravel())
    if rows:
        rows, cols, data = np.concatenate(rows), np.concatenate(cols), np.concatenate(data)
    K = sp.coo_matrix((data, (rows, cols)), shape=(n_dofs, n_dofs)).tocsr()
    return K


def _rule(mesh, quad_order):
    if quad_order is None:
        quad_order = default_strength(mesh.element_type)
    return volume(mesh.element_type, quad_order)


def _element_values(u, mesh, eid, solution_dim):
    if u is None:
        return None
    return np.asarray(u, dtype=float)[mesh.dof_indices(eid, solution_dim)]


def assemble_elliptic_matrix(mesh, operator=None, u=None, *, quad_order=None, parameters=None):
    if operator is None:
        operator = LaplaceOperator()
    s = operator.solution_dim
    wts, pts = _rule(mesh, quad_order)
    n_loc = mesh.reference.num_nodes * s
    logger.info(f"Assembling elliptic matrix: {mesh.n_elements} {mesh.element_type} elements, {operator!r}")

    def local_cb(eid):
        Ke = np.zeros((n_loc, n_loc))
        assemble_element_elliptic_matrix(Ke, mesh.element(eid), operator,
                                         _element_values(u, mesh, eid, s), wts, pts, parameters)
        return Ke, None

    K = assemble(mesh, local_cb, s)
    logger.info(f"Elliptic matrix assembled: shape {K.shape}, nnz {K.nnz}")
    return K


def assemble_elliptic_vector(mesh, operator, u, *, quad_order=None, parameters=None):
    s = operator.solution_dim
    wts, pts = _rule(mesh, quad_order)
    F = np.zeros(mesh.n_vertices * s)
    logger.info(f"Assembling elliptic vector: {mesh.n_elements} {mesh.element_type} elements, {operator!r}")
    for eid in range(mesh.n_elements):
        Fe = np.zeros(mesh.reference.num_nodes * s)
        assemble_element_elliptic_vector(Fe, mesh.element(eid), operator,
                                         _element_values(u, mesh, eid, s), wts, pts, parameters)
        scatter_add(F, Fe, mesh.dof_indices(eid, s))
    logger.info(f"Elliptic vector assembled: {F.size} dofs")
    return F


def assemble_elliptic_energy(mesh, operator, u, *, quad_order=None, parameters=None) -> float:
    s = operator.solution_dim
    wts, pts = _rule(mesh, quad_order)
    return float(sum(
        compute_element_elliptic_energy(mesh.element(eid), operator,
                                        _element_values(u, mesh, eid, s), wts, pts, parameters)
        for eid in range(mesh.n_elements)))


def assemble_mass_matrix(mesh, solution_dim: int = 1, density: float = 1.0, *, quad_order=None):
    wts, pts = _rule(mesh, quad_order)
    n_loc = mesh.reference.num_nodes * solution_dim
    logger.info(f"Assembling mass matrix: {mesh.n_elements} {mesh.element_type} elements")

    def local_cb(eid):
        Me = np.zeros((n_loc, n_loc))
        assemble_element_mass_matrix(Me, mesh.element(eid), wts, pts, solution_dim, density)
        return Me, None

    M = assemble(mesh, local_cb, solution_dim)
    logger.info(f"Mass matrix assembled: shape {M.shape}, nnz {M.nnz}")
    return M


def assemble_source_vector(mesh, source, solution_dim: int = 1, *, quad_order=None):
    wts, pts = _rule(mesh, quad_order)
    F = np.zeros(mesh.n_vertices * solution_dim)
    logger.info(f"Assembling source vector: {mesh.n_elements} {mesh.element_type} elements")
    for eid in range(mesh.n_elements):
        Fe = np.zeros(mesh.reference.num_nodes * solution_dim)
        element_source_vector(Fe, mesh.element(eid), source, wts, pts, solution_dim)
        scatter_add(F, Fe, mesh.dof_indices(eid, solution_dim))
    logger.info(f"Source vector assembled: {F.size} dofs")
    return F
