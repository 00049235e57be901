"""isofem.fem.reference.domain
Reference domains: the cube [-1,1]^r and the simplex with vertices
(-1,..,-1), (1,-1,..), ..., i.e. xi_i >= -1 and sum(xi) <= 2 - r.
"""
from functools import lru_cache
from math import factorial
import itertools

import numpy as np


class ReferenceDomain:
    """Closed convex reference domain described by ``A @ xi <= b``."""

    def __init__(self, kind: str, dim: int):
        if kind not in ("cube", "simplex"):
            raise KeyError(kind)
        self.kind = kind
        self.dim = dim
        eye = np.eye(dim)
        if kind == "cube":
            self.A = np.vstack([eye, -eye])
            self.b = np.ones(2 * dim)
            self.vertices = np.array(list(itertools.product((-1.0, 1.0), repeat=dim)))[:, ::-1]
            self.measure = 2.0 ** dim
        else:
            self.A = np.vstack([-eye, np.ones((1, dim))])
            self.b = np.concatenate([np.ones(dim), [2.0 - dim]])
            self.vertices = np.vstack([-np.ones((1, dim)), -np.ones((dim, dim)) + 2.0 * eye])
            self.measure = 2.0 ** dim / factorial(dim)
        self.centroid = self.vertices.mean(axis=0)

    def __repr__(self):
        return f"ReferenceDomain(kind='{self.kind}', dim={self.dim})"

    def slack(self, xi):
        return self.b - self.A @ np.asarray(xi, dtype=float)

    def contains(self, xi, tol: float = 1e-12) -> bool:
        return bool(np.all(self.slack(xi) >= -tol))

    def tight(self, xi, tol: float = 1e-12) -> np.ndarray:
        """Indices of the constraints that are active at ``xi``."""
        return np.flatnonzero(self.slack(xi) <= tol)

    def project(self, xi) -> np.ndarray:
        """Euclidean projection of ``xi`` onto the domain."""
        xi = np.asarray(xi, dtype=float)
        if self.kind == "cube":
            return np.clip(xi, -1.0, 1.0)
        # u = (xi + 1) / 2 lives in {u >= 0, sum(u) <= 1}; the scaling is uniform
        u = 0.5 * (xi + 1.0)
        clipped = np.maximum(u, 0.0)
        if clipped.sum() <= 1.0:
            return 2.0 * clipped - 1.0
        return 2.0 * _project_to_probability_simplex(u) - 1.0

    def sample(self, k: int = 5) -> np.ndarray:
        """Lattice of ``k`` points per direction, restricted to the domain."""
        t = np.linspace(-1.0, 1.0, k)
        grid = np.array(list(itertools.product(t, repeat=self.dim)))
        if self.kind == "simplex":
            grid = grid[grid.sum(axis=1) <= 2.0 - self.dim + 1e-12]
        return grid


def _project_to_probability_simplex(u):
    mu = np.sort(u)[::-1]
    cumulative = np.cumsum(mu) - 1.0
    ind = np.arange(1, u.size + 1)
    rho = np.flatnonzero(mu - cumulative / ind > 0)[-1]
    theta = cumulative[rho] / (rho + 1.0)
    return np.maximum(u - theta, 0.0)


@lru_cache(maxsize=None)
def get_domain(kind: str, dim: int) -> ReferenceDomain:
    return ReferenceDomain(kind, dim)
