from isofem.core.mesh import Mesh

__all__ = ["Mesh"]
