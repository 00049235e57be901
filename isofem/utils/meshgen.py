"""isofem.utils.meshgen
Structured meshes for quick tests.

Nodes live on a lattice with ``poly_order`` subdivisions per cell; local
connectivity is read off the reference nodes, so every generated element is
positively oriented.
"""
from typing import Optional, Sequence

import numba
import numpy as np

from isofem.core.mesh import Mesh
from isofem.fem.reference import get_reference

__all__ = ["structured_quad", "structured_tri", "structured_hex"]

_QUAD_TYPES = {1: "quad4", 2: "quad9"}
_TRI_TYPES = {1: "tri3", 2: "tri6"}
_HEX_TYPES = {1: "hex8", 2: "hex27"}


def _element_type(table, poly_order):
    if poly_order not in table:
        raise ValueError(f"poly_order must be one of {sorted(table)}, got {poly_order}")
    return table[poly_order]


def _lattice(lengths, counts, order, offset):
    """Lattice coordinates (x fastest) and the index strides per axis."""
    axes = [np.linspace(0.0, L, order * n + 1) for L, n in zip(lengths, counts)]
    grids = np.meshgrid(*axes, indexing="ij")
    coords = np.column_stack([g.ravel(order="F") for g in grids])
    if offset is not None:
        coords += np.asarray(offset, dtype=float)
    sizes = [len(a) for a in axes]
    strides = np.cumprod([1] + sizes[:-1]).astype(np.int64)
    return coords, strides


def _cell_origins(counts, order):
    grids = np.meshgrid(*[np.arange(n) for n in counts], indexing="ij")
    return order * np.column_stack([g.ravel(order="F") for g in grids]).astype(np.int64)


def _reference_offsets(element_type, order):
    ref = get_reference(element_type)
    return np.rint(0.5 * (ref.nodes + 1.0) * order).astype(np.int64)


@numba.njit(cache=True)
def _connectivity(origins, offsets, strides):
    ne = origins.shape[0]
    nl, dim = offsets.shape
    out = np.empty((ne, nl), dtype=np.int64)
    for e in range(ne):
        for k in range(nl):
            g = 0
            for l in range(dim):
                g += (origins[e, l] + offsets[k, l]) * strides[l]
            out[e, k] = g
    return out


def structured_quad(Lx: float, Ly: float, nx: int, ny: int, poly_order: int = 1,
                    offset: Optional[Sequence[float]] = None) -> Mesh:
    element_type = _element_type(_QUAD_TYPES, poly_order)
    coords, strides = _lattice((Lx, Ly), (nx, ny), poly_order, offset)
    conn = _connectivity(_cell_origins((nx, ny), poly_order),
                         _reference_offsets(element_type, poly_order), strides)
    return Mesh(coords, conn, element_type)


def structured_tri(Lx: float, Ly: float, nx: int, ny: int, poly_order: int = 1,
                   offset: Optional[Sequence[float]] = None) -> Mesh:
    """Each lattice cell ``a, b, c, d`` (CCW from bottom-left) is split into ``(a, b, c)`` and ``(a, c, d)``."""
    element_type = _element_type(_TRI_TYPES, poly_order)
    coords, strides = _lattice((Lx, Ly), (nx, ny), poly_order, offset)
    origins = _cell_origins((nx, ny), poly_order)

    u = 0.5 * (get_reference(element_type).nodes + 1.0)
    corners = np.array([[0, 0], [1, 0], [1, 1], [0, 1]]) * poly_order
    halves = []
    for a, b, c in ((0, 1, 2), (0, 2, 3)):
        pos = corners[a] + u[:, :1] * (corners[b] - corners[a]) + u[:, 1:] * (corners[c] - corners[a])
        halves.append(_connectivity(origins, np.rint(pos).astype(np.int64), strides))

    conn = np.empty((2 * len(origins), halves[0].shape[1]), dtype=np.int64)
    conn[0::2] = halves[0]
    conn[1::2] = halves[1]
    return Mesh(coords, conn, element_type)


def structured_hex(Lx: float, Ly: float, Lz: float, nx: int, ny: int, nz: int, poly_order: int = 1,
                   offset: Optional[Sequence[float]] = None) -> Mesh:
    element_type = _element_type(_HEX_TYPES, poly_order)
    coords, strides = _lattice((Lx, Ly, Lz), (nx, ny, nz), poly_order, offset)
    conn = _connectivity(_cell_origins((nx, ny, nz), poly_order),
                         _reference_offsets(element_type, poly_order), strides)
    return Mesh(coords, conn, element_type)
