"""isofem.fem.closest_point
Closest point on an element to an arbitrary physical point.

Affine simplices are handled exactly on barycentric coordinates. Every other
element goes through a projected Gauss-Newton iteration on the reference
domain. Degenerate elements never raise: the answer is the closest point on
whatever subspace the element has collapsed to.
"""
import enum
import itertools
import logging
from dataclasses import dataclass

import numpy as np
from scipy.linalg import null_space

logger = logging.getLogger(__name__)

DEFAULT_TOL = 1e-12
DEFAULT_MAXITER = 100

_ACTIVE_TOL = 1e-10
_MAX_HALVINGS = 40


class ClosestPointKind(enum.Enum):
    IN_ELEMENT = "in_element"
    CLOSEST_POINT = "closest_point"


@dataclass(frozen=True)
class ClosestPoint:
    kind: ClosestPointKind
    point: np.ndarray

    @property
    def in_element(self) -> bool:
        return self.kind is ClosestPointKind.IN_ELEMENT


def closest_point(element, x, tol: float = DEFAULT_TOL, maxiter: int = DEFAULT_MAXITER) -> ClosestPoint:
    x = np.asarray(x, dtype=float).reshape(-1)
    if x.size != element.geometry_dim:
        raise ValueError(f"point has dimension {x.size}, element lives in {element.geometry_dim}D")
    if element.is_affine():
        return _closest_point_affine(element, x, tol)
    return _closest_point_gauss_newton(element, x, tol, maxiter)


# ---------- affine simplices ----------

def _face_closest(P, x, ids):
    """Barycentric coordinates (on ``ids``) of the closest point of face ``ids`` to ``x``."""
    base = P[ids[0]]
    if len(ids) == 1:
        return np.ones(1), float(np.linalg.norm(base - x))
    E = (P[list(ids[1:])] - base).T
    mu, *_ = np.linalg.lstsq(E, x - base, rcond=1e-12)
    lam = np.concatenate([[1.0 - mu.sum()], mu])
    if np.all(lam >= 0.0):
        return lam, float(np.linalg.norm(lam @ P[list(ids)] - x))

    best_lam, best_dist = None, np.inf
    for sub in itertools.combinations(range(len(ids)), len(ids) - 1):
        sub_lam, dist = _face_closest(P, x, tuple(ids[i] for i in sub))
        # strict comparison: the first face in lexicographic order wins ties
        if dist < best_dist:
            best_dist = dist
            best_lam = np.zeros(len(ids))
            best_lam[list(sub)] = sub_lam
    return best_lam, best_dist


def _closest_point_affine(element, x, tol):
    ref = element.reference
    nv = ref.num_vertices
    P = element.vertices[:nv]
    ref_corners = ref.nodes[:nv]

    base = P[0]
    E = (P[1:] - base).T
    mu, *_ = np.linalg.lstsq(E, x - base, rcond=1e-12)
    full = np.concatenate([[1.0 - mu.sum()], mu])
    if np.all(full >= -tol):
        lam = np.clip(full, 0.0, None)
        lam /= lam.sum()
        return ClosestPoint(ClosestPointKind.IN_ELEMENT, lam @ ref_corners)

    lam, dist = _face_closest(P, x, tuple(range(nv)))
    # collapsed simplices: the minimum-norm barycentric solution may be negative on the element
    diameter = element.diameter()
    if dist <= tol * (diameter if diameter > 0.0 else 1.0):
        return ClosestPoint(ClosestPointKind.IN_ELEMENT, lam @ ref_corners)
    return ClosestPoint(ClosestPointKind.CLOSEST_POINT, lam @ ref_corners)


# ---------- general elements ----------

def _objective(element, xi, x):
    r = element.map_reference_coords(xi) - x
    return 0.5 * float(r @ r), r


def _line_search(element, domain, xi, x, f0, direction):
    alpha = 1.0
    for _ in range(_MAX_HALVINGS):
        trial = domain.project(xi + alpha * direction)
        f_trial, _ = _objective(element, trial, x)
        if f_trial < f0:
            return trial, f_trial
        alpha *= 0.5
    return None, f0


def _initial_guess(element, x):
    ref = element.reference
    seeds = np.vstack([ref.domain.centroid, ref.nodes])
    mapped = np.array([element.map_reference_coords(s) for s in seeds])
    return seeds[int(np.argmin(np.linalg.norm(mapped - x, axis=1)))].copy()


def _closest_point_gauss_newton(element, x, tol, maxiter):
    domain = element.reference.domain
    diameter = element.diameter()
    scale = diameter if diameter > 0.0 else 1.0

    xi = _initial_guess(element, x)
    f, r = _objective(element, xi, x)
    for it in range(maxiter):
        if np.sqrt(2.0 * f) <= tol * scale:
            break
        J = element.reference_jacobian(xi)
        g = J.T @ r

        active = domain.tight(xi, _ACTIVE_TOL)
        blocking = [i for i in active if domain.A[i] @ g < 0.0]
        if blocking:
            Z = null_space(domain.A[blocking])
        else:
            Z = np.eye(domain.dim)

        step = np.zeros(domain.dim)
        if Z.shape[1] > 0:
            JZ = J @ Z
            y, *_ = np.linalg.lstsq(JZ.T @ JZ, -(Z.T @ g), rcond=1e-12)
            step = Z @ y

        trial = None
        if np.linalg.norm(step) > 0.0:
            trial, f_trial = _line_search(element, domain, xi, x, f, step)
        if trial is None:
            logger.debug(f"closest point: Gauss-Newton step rejected at iteration {it}, "
                         f"falling back to projected gradient")
            trial, f_trial = _line_search(element, domain, xi, x, f, -g)
        if trial is None:
            break

        moved = np.linalg.norm(trial - xi)
        xi = trial
        f, r = _objective(element, xi, x)
        if moved <= tol:
            break
    else:
        logger.debug(f"closest point: no convergence after {maxiter} iterations, residual={np.sqrt(2.0 * f):.3e}")

    if len(domain.tight(xi, _ACTIVE_TOL)) == 0 or np.sqrt(2.0 * f) <= tol * scale:
        return ClosestPoint(ClosestPointKind.IN_ELEMENT, xi)
    return ClosestPoint(ClosestPointKind.CLOSEST_POINT, xi)
