"""isofem.assembly.operators
Operator capabilities used by the assembly loops.

Gradients follow the convention ``G[k, i] = du_i / dx_k``: a matrix with one
row per geometry dimension ``d`` and one column per solution component ``s``.
"""
import abc
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class NoParameters:
    """Parameter type of operators without material data."""


class Operator(abc.ABC):
    """Shared capability: a solution dimension and a parameter type."""

    parameters_type = NoParameters

    @property
    @abc.abstractmethod
    def solution_dim(self) -> int:
        ...

    def default_parameters(self):
        return self.parameters_type()


class EllipticOperator(Operator):
    @abc.abstractmethod
    def compute_elliptic_term(self, gradient: np.ndarray, parameters) -> np.ndarray:
        """Operator value ``g(G)``, same ``(d, s)`` shape as ``gradient``."""


class EllipticEnergy(Operator):
    @abc.abstractmethod
    def compute_energy(self, gradient: np.ndarray, parameters) -> float:
        """Energy density ``psi(G)``; ``g`` is its derivative with respect to ``G``."""


def check_contraction_batch(output, gradient, a, b, solution_dim):
    """Validate a batched contraction call; returns the stacked vectors as ``(M, d)`` and ``(N, d)``."""
    d = gradient.shape[0]
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.size % d != 0:
        raise ValueError(f"len(a) = {a.size} is not divisible by the geometry dimension {d}")
    if b.size % d != 0:
        raise ValueError(f"len(b) = {b.size} is not divisible by the geometry dimension {d}")
    M, N = a.size // d, b.size // d
    expected = (solution_dim * M, solution_dim * N)
    if output.shape != expected:
        raise ValueError(f"output has shape {output.shape}, expected {expected}")
    return a.reshape(M, d), b.reshape(N, d)


class EllipticContraction(Operator):
    @abc.abstractmethod
    def contract(self, gradient: np.ndarray, a, b, parameters) -> np.ndarray:
        """``C_ij = a_k dg_ki/dG_mj b_m`` as an ``(s, s)`` matrix."""

    def accumulate_contractions_into(self, output, alpha, gradient, a, b, parameters):
        """Add ``alpha * contract(G, a_I, b_J)`` to block ``(I, J)`` of ``output``.

        ``a`` and ``b`` stack ``M`` and ``N`` direction vectors of length ``d``;
        ``output`` must be ``(s*M, s*N)``. Blocks are visited column by column.
        """
        gradient = np.asarray(gradient, dtype=float)
        A, B = check_contraction_batch(output, gradient, a, b, self.solution_dim)
        s = self.solution_dim
        for J in range(B.shape[0]):
            for I in range(A.shape[0]):
                output[s * I:s * I + s, s * J:s * J + s] += alpha * self.contract(gradient, A[I], B[J], parameters)
