from isofem.integration.quadrature import MAX_STRENGTH, StrengthNotAvailable, volume

__all__ = ["MAX_STRENGTH", "StrengthNotAvailable", "volume"]
