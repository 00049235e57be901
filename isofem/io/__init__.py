from isofem.io.vtk import create_vtk_data_set_from_quadratures, export_vtk, write_quadrature_vtk

__all__ = ["export_vtk", "create_vtk_data_set_from_quadratures", "write_quadrature_vtk"]
