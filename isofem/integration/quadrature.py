"""isofem.integration.quadrature
Quadrature tables for every reference domain, indexed by strength.

A rule of strength ``p`` integrates every polynomial of total degree ``<= p``
exactly. All rules return ``(weights, points)`` with ``points`` of shape
``(q, r)``; weights sum to the measure of the reference domain.
"""
import logging
from functools import lru_cache
from math import ceil

import numpy as np
from numpy.polynomial.legendre import leggauss

from isofem.fem.reference import get_reference

logger = logging.getLogger(__name__)

MAX_STRENGTH = 30


class StrengthNotAvailable(LookupError):
    """No rule of the requested strength exists for the shape."""

    def __init__(self, shape: str, strength: int):
        super().__init__(f"no {shape} quadrature rule of strength {strength} (max {MAX_STRENGTH})")
        self.shape = shape
        self.strength = strength


def _check(shape: str, strength: int):
    if strength < 0:
        raise ValueError(f"strength must be non-negative, got {strength}")
    if strength > MAX_STRENGTH:
        raise StrengthNotAvailable(shape, strength)


# -------------------------------------------------------------------------
# 1‑D Gauss–Legendre
# -------------------------------------------------------------------------
def gauss_legendre(n_points: int):
    if n_points < 1:
        raise ValueError(n_points)
    return leggauss(n_points)  # (points, weights)


def _gl01(n_points: int):
    """Gauss–Legendre nodes and weights mapped to [0,1]."""
    x, w = gauss_legendre(n_points)
    return 0.5 * (x + 1.0), 0.5 * w


def _frozen(weights, points):
    weights.setflags(write=False)
    points.setflags(write=False)
    return weights, points


# -------------------------------------------------------------------------
# Tensor‑product rules on [-1, 1]^r
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def _tensor_rule(dim: int, strength: int):
    n = max(1, ceil((strength + 1) / 2))
    x, w = gauss_legendre(n)
    grids = np.meshgrid(*([x] * dim), indexing="ij")
    wgrids = np.meshgrid(*([w] * dim), indexing="ij")
    points = np.column_stack([g.ravel() for g in grids])
    weights = np.prod(np.column_stack([g.ravel() for g in wgrids]), axis=1)
    return _frozen(weights, points)


def segment(strength: int):
    _check("segment", strength)
    return _tensor_rule(1, strength)


def quadrilateral(strength: int):
    _check("quadrilateral", strength)
    return _tensor_rule(2, strength)


def hexahedron(strength: int):
    _check("hexahedron", strength)
    return _tensor_rule(3, strength)


# -------------------------------------------------------------------------
# Collapsed (Duffy) rules on the simplices
# -------------------------------------------------------------------------
def _to_reference_simplex(u, w):
    """Map rules from the unit simplex ``{u >= 0, sum(u) <= 1}`` to ``xi = 2u - 1``."""
    dim = u.shape[1]
    return w * 2.0 ** dim, 2.0 * u - 1.0


@lru_cache(maxsize=None)
def _triangle_rule(strength: int):
    n = max(1, ceil((strength + 2) / 2))
    a, wa = _gl01(n)
    pts, wts = [], []
    for i in range(n):
        for j in range(n):
            pts.append([a[i], a[j] * (1.0 - a[i])])
            wts.append(wa[i] * wa[j] * (1.0 - a[i]))
    weights, points = _to_reference_simplex(np.array(pts), np.array(wts))
    return _frozen(weights, points)


@lru_cache(maxsize=None)
def _tetrahedron_rule(strength: int):
    n = max(1, ceil((strength + 3) / 2))
    a, wa = _gl01(n)
    pts, wts = [], []
    for i in range(n):
        for j in range(n):
            for k in range(n):
                s = 1.0 - a[i]
                t = 1.0 - a[j]
                pts.append([a[i], a[j] * s, a[k] * s * t])
                wts.append(wa[i] * wa[j] * wa[k] * s * s * t)
    weights, points = _to_reference_simplex(np.array(pts), np.array(wts))
    return _frozen(weights, points)


def triangle(strength: int):
    _check("triangle", strength)
    return _triangle_rule(strength)


def tetrahedron(strength: int):
    _check("tetrahedron", strength)
    return _tetrahedron_rule(strength)


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------
_RULES = {
    "segment2": segment,
    "tri3": triangle,
    "tri6": triangle,
    "quad4": quadrilateral,
    "quad9": quadrilateral,
    "tet4": tetrahedron,
    "tet10": tetrahedron,
    "tet20": tetrahedron,
    "hex8": hexahedron,
    "hex20": hexahedron,
    "hex27": hexahedron,
}


def volume(element_type: str, strength: int = 2):
    if element_type not in _RULES:
        raise KeyError(element_type)
    weights, points = _RULES[element_type](strength)
    logger.debug(f"{element_type}: strength {strength} rule with {len(weights)} points")
    return weights, points


def default_strength(element_type: str) -> int:
    """Strength used when the caller gives none: twice the element degree."""
    return 2 * get_reference(element_type).degree
