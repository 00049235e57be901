import numpy as np
from dataclasses import dataclass

from isofem.assembly.operators import (
    EllipticContraction,
    EllipticEnergy,
    EllipticOperator,
    check_contraction_batch,
)


@dataclass(frozen=True)
class LameParameters:
    mu: float = 1.0
    lam: float = 1.0

    @classmethod
    def from_young_poisson(cls, young: float, poisson: float) -> "LameParameters":
        mu = young / (2.0 * (1.0 + poisson))
        lam = young * poisson / ((1.0 + poisson) * (1.0 - 2.0 * poisson))
        return cls(mu=mu, lam=lam)


class LinearElasticityOperator(EllipticOperator, EllipticContraction, EllipticEnergy):
    """
    Isotropic linear elasticity, ``sigma = 2 mu eps + lam tr(eps) I``.

    The displacement has one component per geometry dimension, so the
    gradient is square.
    """

    parameters_type = LameParameters

    def __init__(self, dim: int):
        self.dim = int(dim)

    def __repr__(self):
        return f"LinearElasticityOperator(dim={self.dim})"

    @property
    def solution_dim(self) -> int:
        return self.dim

    def _strain(self, gradient):
        G = np.asarray(gradient, dtype=float)
        if G.shape != (self.dim, self.dim):
            raise ValueError(f"gradient must be {self.dim}x{self.dim}, got {G.shape}")
        return 0.5 * (G + G.T)

    def compute_elliptic_term(self, gradient, parameters):
        eps = self._strain(gradient)
        return 2.0 * parameters.mu * eps + parameters.lam * np.trace(eps) * np.eye(self.dim)

    def compute_energy(self, gradient, parameters):
        eps = self._strain(gradient)
        return float(parameters.mu * np.sum(eps * eps) + 0.5 * parameters.lam * np.trace(eps) ** 2)

    def contract(self, gradient, a, b, parameters):
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        mu, lam = parameters.mu, parameters.lam
        return mu * np.dot(a, b) * np.eye(self.dim) + mu * np.outer(b, a) + lam * np.outer(a, b)

    def accumulate_contractions_into(self, output, alpha, gradient, a, b, parameters):
        A, B = check_contraction_batch(output, np.asarray(gradient), a, b, self.dim)
        mu, lam = parameters.mu, parameters.lam
        s = self.dim
        T = (mu * np.einsum("IJ,ij->IiJj", A @ B.T, np.eye(s))
             + mu * np.einsum("Ij,Ji->IiJj", A, B)
             + lam * np.einsum("Ii,Jj->IiJj", A, B))
        output += alpha * T.reshape(A.shape[0] * s, B.shape[0] * s)
