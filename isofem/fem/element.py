"""isofem.fem.element
Geometric elements: a reference element paired with physical node coordinates.
"""
import numpy as np
from scipy.spatial.distance import pdist

from isofem.fem.closest_point import DEFAULT_MAXITER, DEFAULT_TOL, ClosestPoint, closest_point
from isofem.fem.reference import ReferenceElement, get_reference


# ---------- geometry helpers ----------

def measure_scale(J: np.ndarray) -> float:
    """Volume scaling of the map: |det J| if square, sqrt(det(J^T J)) otherwise."""
    d, r = J.shape
    if d == r:
        return abs(float(np.linalg.det(J)))
    return float(np.sqrt(max(np.linalg.det(J.T @ J), 0.0)))


def physical_gradients(J: np.ndarray, ref_grads: np.ndarray) -> np.ndarray:
    """Pull back reference gradients ``(r, n)`` to physical gradients ``(d, n)``.

    Square Jacobians use ``J^{-T}``; embedded elements (d > r) get the
    tangential (surface) gradient ``J (J^T J)^{-1} grad_xi``.
    """
    d, r = J.shape
    if d == r:
        return np.linalg.solve(J.T, ref_grads)
    return J @ np.linalg.solve(J.T @ J, ref_grads)


class FiniteElement:
    """Transient view of one element of a mesh.

    Holds the shared vertex buffer plus this element's node indices; node
    coordinates are gathered on demand.
    """

    def __init__(self, reference: ReferenceElement, vertex_buffer, node_indices=None):
        self.reference = reference
        self._buffer = np.asarray(vertex_buffer, dtype=float)
        if self._buffer.ndim == 1:
            self._buffer = self._buffer[:, None]
        if node_indices is None:
            node_indices = np.arange(self._buffer.shape[0])
        self.node_indices = np.asarray(node_indices, dtype=np.int64)
        if self.node_indices.size != reference.num_nodes:
            raise ValueError(
                f"{reference.name} needs {reference.num_nodes} vertices, got {self.node_indices.size}")

    @classmethod
    def from_vertices(cls, element_type: str, vertices):
        return cls(get_reference(element_type), vertices)

    def __repr__(self):
        return f"FiniteElement('{self.reference.name}', nodes={self.node_indices.tolist()})"

    @property
    def vertices(self) -> np.ndarray:
        """Node coordinates ``(n, d)``."""
        return self._buffer[self.node_indices]

    @property
    def geometry_dim(self) -> int:
        return self._buffer.shape[1]

    @property
    def reference_dim(self) -> int:
        return self.reference.reference_dim

    @property
    def reference_element(self) -> ReferenceElement:
        return self.reference

    def with_higher_order(self, element_type: str) -> "FiniteElement":
        """Straight-sided element of type ``element_type`` spanned by this one.

        The new nodes are the images of the target's reference nodes under
        this element's map, so both elements describe the same geometry.
        """
        target = get_reference(element_type)
        if target.domain is not self.reference.domain:
            raise ValueError(f"cannot build {element_type} from {self.reference.name}")
        mapped = np.array([self.map_reference_coords(xi) for xi in target.nodes])
        return FiniteElement(target, mapped)

    # ---------- map & derivatives ----------

    def map_reference_coords(self, xi) -> np.ndarray:
        return self.reference.evaluate_basis(xi) @ self.vertices

    def reference_jacobian(self, xi) -> np.ndarray:
        """d x r Jacobian of the reference-to-physical map."""
        return self.vertices.T @ self.reference.gradients(xi).T

    def measure(self, xi) -> float:
        return measure_scale(self.reference_jacobian(xi))

    def _extent_points(self) -> np.ndarray:
        """Physical points spanning the element: its nodes, plus a mapped lattice for curved shapes."""
        ref = self.reference
        if ref.degree == 1:
            return self.vertices
        samples = np.vstack([ref.domain.sample(5), ref.nodes])
        return np.array([self.map_reference_coords(xi) for xi in samples])

    def diameter(self) -> float:
        pts = self._extent_points()
        if len(pts) < 2:
            return 0.0
        return float(pdist(pts).max())

    def bounds(self) -> np.ndarray:
        """Axis-aligned bounding box as a ``(2, d)`` array of lower and upper corners."""
        pts = self._extent_points()
        return np.vstack([pts.min(axis=0), pts.max(axis=0)])

    def is_affine(self, tol: float = 1e-12) -> bool:
        """True for simplices whose nodes are the affine image of their reference nodes."""
        ref = self.reference
        if not ref.is_simplex:
            return False
        if ref.degree == 1:
            return True
        corners = self.vertices[:ref.num_vertices]
        lam = _simplex_barycentric(ref.nodes)
        scale = max(self.diameter(), 1.0)
        return bool(np.allclose(lam @ corners, self.vertices, rtol=0.0, atol=tol * scale))

    # ---------- projection ----------

    def closest_point(self, x, tol: float = DEFAULT_TOL, maxiter: int = DEFAULT_MAXITER) -> ClosestPoint:
        return closest_point(self, x, tol=tol, maxiter=maxiter)

    def project_physical_coords(self, x) -> np.ndarray:
        return self.closest_point(x).point


def _simplex_barycentric(xi):
    """Barycentric coordinates of reference simplex points (rows of ``xi``)."""
    xi = np.atleast_2d(xi)
    u = 0.5 * (xi + 1.0)
    return np.hstack([1.0 - u.sum(axis=1, keepdims=True), u])
