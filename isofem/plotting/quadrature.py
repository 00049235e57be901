"""isofem.plotting.quadrature"""
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import PolyCollection

from isofem.fem.transform import transform_quadrature
from isofem.integration import volume
from isofem.integration.quadrature import default_strength


def _corner_polygons(mesh):
    nv = mesh.reference.num_vertices
    return [mesh.vertices[conn[:nv]] for conn in mesh.connectivity]


def plot_mesh(mesh, *, solution_on_nodes=None, plot_nodes=True, show=False, ax=None):
    """
    Plots a 2D mesh of triangles or quadrilaterals (corner outlines only).

    Args:
        mesh (Mesh): A mesh with a two-dimensional vertex buffer.
        solution_on_nodes (np.ndarray, optional): Nodal values shown as a filled contour.
        plot_nodes (bool, optional): If True, plots all nodes as points.
        show (bool, optional): If True, calls plt.show() at the end.
        ax (matplotlib.axes.Axes, optional): An existing axes object to plot on.
    Returns:
        matplotlib.axes.Axes: The axes object containing the plot.
    """
    if mesh.spatial_dim != 2 or mesh.reference.reference_dim != 2:
        raise ValueError(f"plot_mesh needs a 2D surface mesh, got {mesh!r}")
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    ax.add_collection(PolyCollection(_corner_polygons(mesh), facecolors="none",
                                     edgecolors="black", linewidths=0.8, zorder=2))
    if solution_on_nodes is not None:
        contour = ax.tricontourf(mesh.vertices[:, 0], mesh.vertices[:, 1], solution_on_nodes,
                                 levels=20, cmap="viridis", zorder=1)
        plt.colorbar(contour, ax=ax, label="Solution Value")
    if plot_nodes:
        ax.plot(mesh.vertices[:, 0], mesh.vertices[:, 1], "o", color="black", markersize=3, zorder=3)

    ax.set_aspect("equal", "box")
    xmin, ymin = mesh.vertices.min(axis=0)
    xmax, ymax = mesh.vertices.max(axis=0)
    xpad = 0.05 * max(xmax - xmin, 1e-12)
    ypad = 0.05 * max(ymax - ymin, 1e-12)
    ax.set_xlim(xmin - xpad, xmax + xpad)
    ax.set_ylim(ymin - ypad, ymax + ypad)
    if show:
        plt.show()
    return ax


def plot_quadrature_points(mesh, quadrature=None, ax=None, show=False):
    """Physical quadrature points of every element, coloured by their weight."""
    if quadrature is None:
        quadrature = volume(mesh.element_type, default_strength(mesh.element_type))
    weights, points = quadrature
    ax = plot_mesh(mesh, plot_nodes=False, ax=ax)

    phys = [transform_quadrature(mesh.element(eid), weights, points) for eid in range(mesh.n_elements)]
    w = np.concatenate([p[0] for p in phys])
    x = np.vstack([p[1] for p in phys])
    sc = ax.scatter(x[:, 0], x[:, 1], c=w, s=12, cmap="viridis", zorder=4)
    plt.colorbar(sc, ax=ax, label="Weight")
    ax.set_title(f"Quadrature points ({len(w)})")
    if show:
        plt.show()
    return ax
