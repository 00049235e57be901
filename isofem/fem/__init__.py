from isofem.fem.element import FiniteElement, measure_scale, physical_gradients
from isofem.fem.closest_point import ClosestPoint, ClosestPointKind
from isofem.fem.reference import ReferenceElement, get_reference

__all__ = [
    "FiniteElement",
    "ReferenceElement",
    "ClosestPoint",
    "ClosestPointKind",
    "get_reference",
    "measure_scale",
    "physical_gradients",
]
