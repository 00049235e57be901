import numpy as np
from typing import Iterator

from isofem.fem.element import FiniteElement
from isofem.fem.reference import get_reference


class Mesh:
    """
    Shared vertex buffer plus per-element node index lists.

    All elements have the same shape tag. Element views returned by
    :meth:`element` reference the buffer; vertex data is never copied into
    them.
    """

    def __init__(self, vertices: np.ndarray, connectivity: np.ndarray, element_type: str):
        self.vertices = np.asarray(vertices, dtype=float)
        if self.vertices.ndim == 1:
            self.vertices = self.vertices[:, None]
        self.connectivity = np.asarray(connectivity, dtype=np.int64)
        self.element_type = element_type
        self.reference = get_reference(element_type)
        if self.connectivity.ndim != 2 or self.connectivity.shape[1] != self.reference.num_nodes:
            raise ValueError(
                f"{element_type} elements need {self.reference.num_nodes} nodes each, "
                f"connectivity has shape {self.connectivity.shape}")
        if self.connectivity.size and self.connectivity.max() >= len(self.vertices):
            raise ValueError("connectivity refers to vertices that do not exist")

    def __repr__(self):
        return (f"<Mesh {self.element_type}: {self.n_elements} elements, "
                f"{self.n_vertices} vertices, {self.spatial_dim}D>")

    @property
    def n_elements(self) -> int:
        return self.connectivity.shape[0]

    @property
    def n_vertices(self) -> int:
        return self.vertices.shape[0]

    @property
    def spatial_dim(self) -> int:
        return self.vertices.shape[1]

    @property
    def poly_order(self) -> int:
        return self.reference.degree

    def element(self, eid: int) -> FiniteElement:
        return FiniteElement(self.reference, self.vertices, self.connectivity[eid])

    def elements(self) -> Iterator[FiniteElement]:
        for eid in range(self.n_elements):
            yield self.element(eid)

    def element_vertices(self, eid: int) -> np.ndarray:
        return self.vertices[self.connectivity[eid]]

    def dof_indices(self, eid: int, solution_dim: int = 1) -> np.ndarray:
        """Global dofs of element ``eid``, node-major: ``s * node + component``."""
        nodes = self.connectivity[eid]
        return (solution_dim * nodes[:, None] + np.arange(solution_dim)[None, :]).ravel()

    def bounds_for_element(self, eid: int) -> np.ndarray:
        """Bounding box ``[lower, upper]`` of element ``eid``; curved elements are sampled."""
        return self.element(eid).bounds()

    def bounds_for_all_elements(self) -> np.ndarray:
        """``(n_elements, 2, d)`` stack of element bounding boxes."""
        if self.n_elements == 0:
            return np.zeros((0, 2, self.spatial_dim))
        return np.stack([self.bounds_for_element(eid) for eid in range(self.n_elements)])
