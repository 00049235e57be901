"""isofem.fem.reference.nodes
Exact (sympy) node coordinates of every reference element, Gmsh ordering.
"""
import sympy as sp

_R = sp.Rational

SEGMENT_VERTICES = [(-1,), (1,)]
TRIANGLE_VERTICES = [(-1, -1), (1, -1), (-1, 1)]
QUAD_VERTICES = [(-1, -1), (1, -1), (1, 1), (-1, 1)]
TET_VERTICES = [(-1, -1, -1), (1, -1, -1), (-1, 1, -1), (-1, -1, 1)]
HEX_VERTICES = [(-1, -1, -1), (1, -1, -1), (1, 1, -1), (-1, 1, -1),
                (-1, -1, 1), (1, -1, 1), (1, 1, 1), (-1, 1, 1)]

TRI6_EDGES = ((0, 1), (1, 2), (2, 0))
QUAD9_EDGES = ((0, 1), (1, 2), (2, 3), (3, 0))
TET10_EDGES = ((0, 1), (1, 2), (0, 2), (0, 3), (2, 3), (1, 3))
TET20_EDGES = ((0, 1), (1, 2), (2, 0), (0, 3), (2, 3), (1, 3))
TET20_FACES = ((0, 1, 2), (0, 1, 3), (0, 2, 3), (1, 2, 3))
HEX20_EDGES = ((0, 1), (0, 3), (0, 4), (1, 2), (1, 5), (2, 3),
               (2, 6), (3, 7), (4, 5), (4, 7), (5, 6), (6, 7))
HEX27_FACES = ((0, 1, 2, 3), (0, 1, 5, 4), (0, 3, 7, 4),
               (1, 2, 6, 5), (2, 3, 7, 6), (4, 5, 6, 7))


def _exact(vertices):
    return [tuple(sp.Integer(c) for c in v) for v in vertices]


def _combine(vertices, ids, weights):
    dim = len(vertices[0])
    return tuple(sum((w * vertices[i][k] for i, w in zip(ids, weights)), sp.Integer(0))
                 for k in range(dim))


def _midpoints(vertices, edges):
    half = _R(1, 2)
    return [_combine(vertices, e, (half, half)) for e in edges]


def _centroids(vertices, faces):
    return [_combine(vertices, f, [_R(1, len(f))] * len(f)) for f in faces]


def segment2():
    return _exact(SEGMENT_VERTICES)


def tri3():
    return _exact(TRIANGLE_VERTICES)


def tri6():
    v = tri3()
    return v + _midpoints(v, TRI6_EDGES)


def quad4():
    return _exact(QUAD_VERTICES)


def quad9():
    v = quad4()
    return v + _midpoints(v, QUAD9_EDGES) + _centroids(v, ((0, 1, 2, 3),))


def tet4():
    return _exact(TET_VERTICES)


def tet10():
    v = tet4()
    return v + _midpoints(v, TET10_EDGES)


def tet20():
    v = tet4()
    edge_nodes = []
    for a, b in TET20_EDGES:
        edge_nodes.append(_combine(v, (a, b), (_R(2, 3), _R(1, 3))))
        edge_nodes.append(_combine(v, (a, b), (_R(1, 3), _R(2, 3))))
    return v + edge_nodes + _centroids(v, TET20_FACES)


def hex8():
    return _exact(HEX_VERTICES)


def hex20():
    v = hex8()
    return v + _midpoints(v, HEX20_EDGES)


def hex27():
    v = hex8()
    return hex20() + _centroids(v, HEX27_FACES) + _centroids(v, (tuple(range(8)),))
