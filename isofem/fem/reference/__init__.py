# isofem.fem.reference
"""
Reference-element factory.

Every shape is a static table of monomial coefficients evaluated by a single
table-driven routine, so all element variants share one evaluator.
"""
from functools import lru_cache

import numpy as np

from isofem.fem.reference import nodes as _nodes
from isofem.fem.reference.domain import ReferenceDomain, get_domain
from isofem.fem.reference.polynomials import (
    eval_monomial_gradients,
    eval_monomials,
    serendipity_hex20_exponents,
    tensor_coefficients,
    to_numpy,
    total_degree_exponents,
    vandermonde_coefficients,
)

__all__ = ["ReferenceElement", "ReferenceDomain", "get_reference", "ELEMENT_TYPES"]

# tag -> (domain kind, reference dim, degree, basis family)
_SHAPES = {
    "segment2": ("cube", 1, 1, "tensor"),
    "tri3": ("simplex", 2, 1, "total"),
    "tri6": ("simplex", 2, 2, "total"),
    "quad4": ("cube", 2, 1, "tensor"),
    "quad9": ("cube", 2, 2, "tensor"),
    "tet4": ("simplex", 3, 1, "total"),
    "tet10": ("simplex", 3, 2, "total"),
    "tet20": ("simplex", 3, 3, "total"),
    "hex8": ("cube", 3, 1, "tensor"),
    "hex20": ("cube", 3, 2, "serendipity"),
    "hex27": ("cube", 3, 2, "tensor"),
}

ELEMENT_TYPES = tuple(_SHAPES)


class ReferenceElement:
    """Immutable per-shape data: nodes, domain and the basis coefficient table."""

    def __init__(self, name, domain, degree, nodes, exponents, coefficients):
        self.name = name
        self.domain = domain
        self.degree = degree
        self.nodes = nodes
        self.nodes.setflags(write=False)
        self._exponents = exponents
        self._coefficients = coefficients
        self._coefficients.setflags(write=False)

    def __repr__(self):
        return f"ReferenceElement('{self.name}', num_nodes={self.num_nodes}, degree={self.degree})"

    @property
    def reference_dim(self) -> int:
        return self.domain.dim

    @property
    def num_nodes(self) -> int:
        return self.nodes.shape[0]

    @property
    def num_vertices(self) -> int:
        """Number of corner nodes (always stored first)."""
        return self.domain.vertices.shape[0]

    @property
    def is_simplex(self) -> bool:
        # the segment is both a cube and a simplex
        return self.domain.kind == "simplex" or self.reference_dim == 1

    def _point(self, xi):
        xi = np.ascontiguousarray(xi, dtype=np.float64).reshape(-1)
        if xi.size != self.reference_dim:
            raise ValueError(f"{self.name}: expected a point of dimension {self.reference_dim}, got {xi.size}")
        return xi

    def evaluate_basis(self, xi) -> np.ndarray:
        """Basis values ``(n,)`` at the reference point ``xi``."""
        m = np.empty(self._exponents.shape[0])
        eval_monomials(self._exponents, self._point(xi), m)
        return self._coefficients @ m

    def gradients(self, xi) -> np.ndarray:
        """Basis gradients as an ``(r, n)`` matrix (column ``i`` is grad phi_i)."""
        dm = np.empty((self.reference_dim, self._exponents.shape[0]))
        eval_monomial_gradients(self._exponents, self._point(xi), dm)
        return dm @ self._coefficients.T

    def tabulate(self, points):
        """Values ``(q, n)`` and gradients ``(q, r, n)`` at a batch of reference points."""
        points = np.asarray(points, dtype=float).reshape(-1, self.reference_dim)
        N = np.array([self.evaluate_basis(xi) for xi in points]).reshape(len(points), self.num_nodes)
        dN = np.array([self.gradients(xi) for xi in points]).reshape(
            len(points), self.reference_dim, self.num_nodes)
        return N, dN


def _build_table(name, kind, dim, degree, family):
    exact_nodes = getattr(_nodes, name)()
    if family == "tensor":
        exponents, C = tensor_coefficients(exact_nodes, degree)
    elif family == "serendipity":
        exponents = serendipity_hex20_exponents()
        C = vandermonde_coefficients(exact_nodes, exponents)
    else:
        exponents = total_degree_exponents(dim, degree)
        C = vandermonde_coefficients(exact_nodes, exponents)
    exps, coeffs = to_numpy(exponents, C)
    nodes = np.array([[float(c) for c in node] for node in exact_nodes], dtype=float)
    return nodes, exps, coeffs


@lru_cache(maxsize=None)
def get_reference(element_type: str) -> ReferenceElement:
    if element_type not in _SHAPES:
        raise KeyError(element_type)
    kind, dim, degree, family = _SHAPES[element_type]
    nodes, exps, coeffs = _build_table(element_type, kind, dim, degree, family)
    return ReferenceElement(element_type, get_domain(kind, dim), degree, nodes, exps, coeffs)
