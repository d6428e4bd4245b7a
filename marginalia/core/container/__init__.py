__all__ = [
    "BootConfiguration",
    "MarginaliaContainer",
]

from .marginalia import BootConfiguration, MarginaliaContainer
