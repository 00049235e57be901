import logging
from typing import Callable, Dict, Union

import meshio
import numpy as np

from isofem.core.mesh import Mesh
from isofem.fem.transform import transform_quadrature
from isofem.integration import volume
from isofem.integration.quadrature import default_strength

logger = logging.getLogger(__name__)

# tag -> (meshio cell type, node permutation from Gmsh to VTK ordering)
_TET10 = [0, 1, 2, 3, 4, 5, 6, 7, 9, 8]
_HEX20 = list(range(8)) + [8, 11, 13, 9, 16, 18, 19, 17, 10, 12, 14, 15]
_VTK_CELLS = {
    "segment2": ("line", None),
    "tri3": ("triangle", None),
    "tri6": ("triangle6", None),
    "quad4": ("quad", None),
    "quad9": ("quad9", None),
    "tet4": ("tetra", None),
    "tet10": ("tetra10", _TET10),
    # no cubic tetrahedron in the VTK cell set; keep the corners
    "tet20": ("tetra", [0, 1, 2, 3]),
    "hex8": ("hexahedron", None),
    "hex20": ("hexahedron20", _HEX20),
    # written without face and body nodes
    "hex27": ("hexahedron20", _HEX20),
}


def _points_3d(points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=float)
    out = np.zeros((points.shape[0], 3))
    out[:, :points.shape[1]] = points
    return out


def _cell_block(mesh: Mesh) -> meshio.CellBlock:
    if mesh.element_type not in _VTK_CELLS:
        raise ValueError(f"Unsupported element type for VTK export: {mesh.element_type}")
    cell_type, perm = _VTK_CELLS[mesh.element_type]
    conn = mesh.connectivity if perm is None else mesh.connectivity[:, perm]
    return meshio.CellBlock(cell_type, conn)


def _point_field(name, obj, mesh: Mesh):
    num_nodes = mesh.n_vertices
    if callable(obj):
        obj = np.array([np.asarray(obj(x), dtype=float) for x in mesh.vertices])
    if not isinstance(obj, np.ndarray):
        raise TypeError(f"{name}: unsupported data type {type(obj)}")
    arr = np.asarray(obj, dtype=float)
    if arr.ndim == 1 and arr.shape[0] == num_nodes:
        return arr
    if arr.ndim == 2 and arr.shape[0] == num_nodes and arr.shape[1] in (1, 2, 3):
        # VTK expects 3D vectors
        v = np.zeros((num_nodes, 3))
        v[:, :arr.shape[1]] = arr
        return v
    raise ValueError(f"{name}: unexpected array shape {arr.shape}")


def export_vtk(
    filename: str,
    mesh: Mesh,
    point_data: Dict[str, Union[np.ndarray, Callable[[np.ndarray], float]]] = None,
):
    """
    Write a mesh and nodal fields to a VTK file.

    Args:
        filename: Output path; the format follows the extension (e.g. '.vtu').
        mesh: The mesh to write.
        point_data: Field name -> nodal array ``(n_vertices,)`` / ``(n_vertices, k)``
                    or a callable evaluated at every vertex.
    """
    data = {name: _point_field(name, obj, mesh) for name, obj in (point_data or {}).items()}
    meshio.Mesh(_points_3d(mesh.vertices), [_cell_block(mesh)], point_data=data).write(filename)
    logger.info(f"Mesh exported to {filename}")


def create_vtk_data_set_from_quadratures(mesh: Mesh, quadrature=None) -> meshio.Mesh:
    """Point cloud of all physical quadrature points with ``weight`` and ``cell_index``."""
    if quadrature is None:
        quadrature = volume(mesh.element_type, default_strength(mesh.element_type))
    weights, points = quadrature
    all_points, all_weights, owners = [], [], []
    for eid in range(mesh.n_elements):
        w, x = transform_quadrature(mesh.element(eid), weights, points)
        all_points.append(x)
        all_weights.append(w)
        owners.append(np.full(len(w), eid, dtype=np.int64))

    if all_points:
        pts = np.vstack(all_points)
        wts, cell_index = np.concatenate(all_weights), np.concatenate(owners)
    else:
        pts = np.zeros((0, mesh.spatial_dim))
        wts, cell_index = np.zeros(0), np.zeros(0, dtype=np.int64)
    vertices = np.arange(len(pts), dtype=np.int64).reshape(-1, 1)
    return meshio.Mesh(
        _points_3d(pts),
        [meshio.CellBlock("vertex", vertices)],
        point_data={"weight": wts, "cell_index": cell_index},
    )


def write_quadrature_vtk(filename: str, mesh: Mesh, quadrature=None):
    create_vtk_data_set_from_quadratures(mesh, quadrature).write(filename)
    logger.info(f"Quadrature points exported to {filename}")
