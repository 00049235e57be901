from isofem.assembly.operators import (
    EllipticContraction,
    EllipticEnergy,
    EllipticOperator,
    NoParameters,
    Operator,
)
from isofem.assembly.laplace import LaplaceOperator
from isofem.assembly.elasticity import LameParameters, LinearElasticityOperator
from isofem.assembly.global_matrix import (
    assemble,
    assemble_elliptic_energy,
    assemble_elliptic_matrix,
    assemble_elliptic_vector,
    assemble_mass_matrix,
    assemble_source_vector,
)

__all__ = [
    "Operator",
    "EllipticOperator",
    "EllipticContraction",
    "EllipticEnergy",
    "NoParameters",
    "LaplaceOperator",
    "LameParameters",
    "LinearElasticityOperator",
    "assemble",
    "assemble_elliptic_matrix",
    "assemble_elliptic_vector",
    "assemble_elliptic_energy",
    "assemble_mass_matrix",
    "assemble_source_vector",
]
