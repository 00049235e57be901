import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


def _random_points(domain, n, rng):
    if domain.kind == "cube":
        return rng.uniform(-1.0, 1.0, size=(n, domain.dim))
    # uniform barycentric coordinates, dropping the first
    lam = rng.dirichlet(np.ones(domain.dim + 1), size=n)
    return 2.0 * lam[:, 1:] - 1.0


@pytest.fixture
def reference_points(rng):
    """Random interior points plus a boundary lattice for a reference domain."""
    def sample(domain, n=20):
        return np.vstack([_random_points(domain, n, rng), domain.sample(5)])
    return sample


@pytest.fixture
def perturbed_element(rng):
    """Positively oriented element: a stretched reference element with jiggled nodes."""
    from isofem.fem import FiniteElement
    from isofem.fem.reference import get_reference

    def build(tag, amplitude=0.05):
        ref = get_reference(tag)
        r = ref.reference_dim
        A = np.eye(r) * 1.5 + 0.2 * np.triu(np.ones((r, r)), 1)
        vertices = ref.nodes @ A.T + np.arange(1, r + 1)
        vertices = vertices + amplitude * rng.uniform(-1.0, 1.0, size=vertices.shape)
        return FiniteElement(ref, vertices)
    return build
