import numpy as np

from isofem.assembly.operators import (
    EllipticContraction,
    EllipticEnergy,
    EllipticOperator,
    NoParameters,
    check_contraction_batch,
)


class LaplaceOperator(EllipticOperator, EllipticContraction, EllipticEnergy):
    """``-div(grad u)`` for each of ``solution_dim`` independent components."""

    parameters_type = NoParameters

    def __init__(self, solution_dim: int = 1):
        self._solution_dim = int(solution_dim)

    def __repr__(self):
        return f"LaplaceOperator(solution_dim={self._solution_dim})"

    @property
    def solution_dim(self) -> int:
        return self._solution_dim

    def compute_elliptic_term(self, gradient, parameters=None):
        return np.array(gradient, dtype=float)

    def compute_energy(self, gradient, parameters=None):
        G = np.asarray(gradient, dtype=float)
        return 0.5 * float(np.sum(G * G))

    def contract(self, gradient, a, b, parameters=None):
        return float(np.dot(a, b)) * np.eye(self._solution_dim)

    def accumulate_contractions_into(self, output, alpha, gradient, a, b, parameters=None):
        A, B = check_contraction_batch(output, np.asarray(gradient), a, b, self._solution_dim)
        output += alpha * np.kron(A @ B.T, np.eye(self._solution_dim))
