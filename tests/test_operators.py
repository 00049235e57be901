import numpy as np
import pytest

from isofem.assembly import (
    EllipticContraction,
    LameParameters,
    LaplaceOperator,
    LinearElasticityOperator,
    NoParameters,
)

OPERATORS = [
    (LaplaceOperator(1), 2, NoParameters()),
    (LaplaceOperator(3), 2, NoParameters()),
    (LaplaceOperator(2), 3, NoParameters()),
    (LinearElasticityOperator(2), 2, LameParameters(mu=2.0, lam=5.0)),
    (LinearElasticityOperator(3), 3, LameParameters.from_young_poisson(10.0, 0.3)),
]
IDS = ["laplace-1-2d", "laplace-3-2d", "laplace-2-3d", "elasticity-2d", "elasticity-3d"]


def finite_difference(f, G, h=1e-6):
    """Derivative of f with respect to every entry of G, shape G.shape + f(G).shape."""
    base = np.asarray(f(G))
    out = np.zeros(G.shape + base.shape)
    for idx in np.ndindex(*G.shape):
        E = np.zeros_like(G)
        E[idx] = h
        out[idx] = (np.asarray(f(G + E)) - np.asarray(f(G - E))) / (2 * h)
    return out


@pytest.mark.parametrize("operator, d, params", OPERATORS, ids=IDS)
def test_elliptic_term_is_energy_gradient(operator, d, params, rng):
    G = rng.normal(size=(d, operator.solution_dim))
    g = operator.compute_elliptic_term(G, params)
    assert g.shape == G.shape
    fd = finite_difference(lambda X: operator.compute_energy(X, params), G)
    np.testing.assert_allclose(g, fd, atol=1e-6)


@pytest.mark.parametrize("operator, d, params", OPERATORS, ids=IDS)
def test_contraction_matches_operator_derivative(operator, d, params, rng):
    s = operator.solution_dim
    G = rng.normal(size=(d, s))
    a, b = rng.normal(size=d), rng.normal(size=d)
    # dg[m, j, k, i] = d g_ki / d G_mj
    dg = finite_difference(lambda X: operator.compute_elliptic_term(X, params), G)
    expected = np.einsum("k,mjki,m->ij", a, dg, b)
    np.testing.assert_allclose(operator.contract(G, a, b, params), expected, atol=1e-6)


@pytest.mark.parametrize("operator, d, params", OPERATORS, ids=IDS)
def test_batched_contraction_equals_single_contractions(operator, d, params, rng):
    s = operator.solution_dim
    M, N = 4, 3
    G = rng.normal(size=(d, s))
    a, b = rng.normal(size=d * M), rng.normal(size=d * N)
    alpha = 0.7

    out = np.zeros((s * M, s * N))
    operator.accumulate_contractions_into(out, alpha, G, a, b, params)

    expected = np.zeros((s * M, s * N))
    for I in range(M):
        for J in range(N):
            block = operator.contract(G, a[d * I:d * I + d], b[d * J:d * J + d], params)
            expected[s * I:s * I + s, s * J:s * J + s] += alpha * block
    np.testing.assert_allclose(out, expected, atol=1e-12)

    # the generic double loop agrees with the specialised one
    generic = np.zeros_like(out)
    EllipticContraction.accumulate_contractions_into(operator, generic, alpha, G, a, b, params)
    np.testing.assert_allclose(out, generic, atol=1e-12)


def test_accumulation_is_a_running_sum(rng):
    op = LaplaceOperator(1)
    G = rng.normal(size=(2, 1))
    a = rng.normal(size=4)
    out = np.ones((2, 2))
    op.accumulate_contractions_into(out, 1.0, G, a, a, NoParameters())
    op.accumulate_contractions_into(out, 1.0, G, a, a, NoParameters())
    A = a.reshape(2, 2)
    np.testing.assert_allclose(out, 1.0 + 2.0 * A @ A.T)


@pytest.mark.parametrize("operator, d, params", OPERATORS, ids=IDS)
def test_batch_precondition_violations(operator, d, params):
    s = operator.solution_dim
    G = np.zeros((d, s))
    with pytest.raises(ValueError):
        operator.accumulate_contractions_into(np.zeros((s, s)), 1.0, G, np.ones(d + 1), np.ones(d), params)
    with pytest.raises(ValueError):
        operator.accumulate_contractions_into(np.zeros((s, s)), 1.0, G, np.ones(d), np.ones(2 * d + 1), params)
    with pytest.raises(ValueError):
        operator.accumulate_contractions_into(np.zeros((s, 2 * s)), 1.0, G, np.ones(2 * d), np.ones(d), params)
    with pytest.raises(ValueError):
        EllipticContraction.accumulate_contractions_into(
            operator, np.zeros((s + 1, s)), 1.0, G, np.ones(d), np.ones(d), params)


def test_lame_parameters():
    p = LameParameters.from_young_poisson(1.0, 0.25)
    assert np.isclose(p.mu, 0.4)
    assert np.isclose(p.lam, 0.4)
    assert LinearElasticityOperator(2).default_parameters() == LameParameters()
    assert LaplaceOperator().default_parameters() == NoParameters()


def test_elasticity_values():
    op = LinearElasticityOperator(2)
    params = LameParameters(mu=1.5, lam=2.0)
    # pure shear: symmetric part has zero trace
    G = np.array([[0.0, 1.0], [1.0, 0.0]])
    np.testing.assert_allclose(op.compute_elliptic_term(G, params), 3.0 * G)
    assert np.isclose(op.compute_energy(G, params), 1.5 * 2.0)
    # rotations carry no stress
    W = np.array([[0.0, 1.0], [-1.0, 0.0]])
    np.testing.assert_allclose(op.compute_elliptic_term(W, params), 0.0)
    with pytest.raises(ValueError):
        op.compute_elliptic_term(np.zeros((3, 2)), params)
