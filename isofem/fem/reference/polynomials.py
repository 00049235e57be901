"""isofem.fem.reference.polynomials
Monomial coefficient tables for Lagrange bases.

A basis is stored as ``(exponents, coefficients)`` with
``phi_k(xi) = sum_j coefficients[k, j] * prod_l xi_l ** exponents[j, l]``.
Tables are computed exactly with SymPy rationals and only converted to
floats at the very end.
"""
from functools import lru_cache
import itertools

import numba as nb
import numpy as np
import sympy as sp


# ---------- monomial spaces ----------

def total_degree_exponents(dim: int, degree: int):
    """All exponents with total degree <= ``degree``, graded then lexicographic."""
    out = []
    for total in range(degree + 1):
        for e in itertools.product(range(total + 1), repeat=dim):
            if sum(e) == total:
                out.append(e)
    return sorted(out, key=lambda e: (sum(e), tuple(-c for c in e)))


def tensor_exponents(dim: int, degree: int):
    """All exponents with max(e) <= ``degree`` (Q_p space)."""
    return sorted(itertools.product(range(degree + 1), repeat=dim),
                  key=lambda e: (sum(e), tuple(-c for c in e)))


def serendipity_hex20_exponents():
    """The 20-dimensional quadratic serendipity space on the cube."""
    extra = [(2, 1, 0), (2, 0, 1), (1, 2, 0), (0, 2, 1), (1, 0, 2), (0, 1, 2),
             (1, 1, 1), (2, 1, 1), (1, 2, 1), (1, 1, 2)]
    return total_degree_exponents(3, 2) + extra


def _monomial(point, exponent):
    value = sp.Integer(1)
    for c, e in zip(point, exponent):
        value *= c ** e
    return value


# ---------- coefficient construction ----------

def vandermonde_coefficients(nodes, exponents):
    """Lagrange coefficients from the inverse of the transposed Vandermonde matrix."""
    n = len(nodes)
    if len(exponents) != n:
        raise RuntimeError(f"Internal error: {n} nodes but {len(exponents)} monomials.")
    V = sp.Matrix(n, n, lambda i, j: _monomial(nodes[i], exponents[j]))
    try:
        C = V.T.inv(method="LU")
    except ValueError as exc:
        raise RuntimeError(f"Vandermonde matrix is singular for {n} nodes.") from exc
    return C


@lru_cache(maxsize=None)
def _lagrange_1d(degree: int):
    """1D Lagrange coefficients on equispaced nodes of [-1, 1] (row = node, col = power)."""
    x = sp.symbols("x")
    nodes = [sp.Integer(-1) + sp.Rational(2 * i, degree) for i in range(degree + 1)]
    rows = []
    for i, xi in enumerate(nodes):
        num = sp.Integer(1)
        den = sp.Integer(1)
        for j, xj in enumerate(nodes):
            if i == j:
                continue
            num *= (x - xj)
            den *= (xi - xj)
        poly = sp.Poly(sp.expand(num / den), x)
        rows.append([poly.coeff_monomial(x ** p) for p in range(degree + 1)])
    return nodes, rows


def tensor_coefficients(nodes, degree: int):
    """Coefficients of tensor-product Lagrange bases for arbitrary node orderings.

    Each node is located on the 1D lattice in every direction; the coefficient of
    monomial ``e`` for node ``k`` is the product of the matching 1D coefficients.
    """
    nodes_1d, rows_1d = _lagrange_1d(degree)
    dim = len(nodes[0])
    exponents = tensor_exponents(dim, degree)
    C = sp.zeros(len(nodes), len(exponents))
    for k, node in enumerate(nodes):
        idx = [nodes_1d.index(c) for c in node]
        for j, e in enumerate(exponents):
            value = sp.Integer(1)
            for l in range(dim):
                value *= rows_1d[idx[l]][e[l]]
            C[k, j] = value
    return exponents, C


def to_numpy(exponents, C):
    exps = np.array(exponents, dtype=np.int64).reshape(len(exponents), -1)
    coeffs = np.array([[float(c) for c in C.row(k)] for k in range(C.rows)], dtype=float)
    return exps, coeffs


# ---------- numba kernels ----------

@nb.njit(cache=True)
def eval_monomials(exponents, xi, out):
    m, r = exponents.shape
    for j in range(m):
        v = 1.0
        for k in range(r):
            v *= xi[k] ** exponents[j, k]
        out[j] = v


@nb.njit(cache=True)
def eval_monomial_gradients(exponents, xi, out):
    """out[l, j] = d/dxi_l of monomial j."""
    m, r = exponents.shape
    for j in range(m):
        for l in range(r):
            e = exponents[j, l]
            if e == 0:
                out[l, j] = 0.0
                continue
            v = e * xi[l] ** (e - 1)
            for k in range(r):
                if k != l:
                    v *= xi[k] ** exponents[j, k]
            out[l, j] = v
