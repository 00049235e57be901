from isofem.plotting.quadrature import plot_mesh, plot_quadrature_points

__all__ = ["plot_mesh", "plot_quadrature_points"]
