"""isofem: isoparametric finite elements, closest-point projection and elliptic assembly."""

__version__ = "0.1.0"
