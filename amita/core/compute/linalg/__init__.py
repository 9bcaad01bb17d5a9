"""
Linear algebra kernels for amita.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood)
    - Decompositions return a structured result dataclass
    - Failures are raised immediately as typed NumericalError subclasses

Submodules:
    qr: QR decomposition, triangular inversion, leverage
"""

from amita.core.compute.linalg.qr import (
    QRResult,
    qr_decompose,
    qr_solve,
    invert_upper_triangular,
    invert_symmetric,
    gram_inverse,
    leverage,
)

__all__ = [
    "QRResult",
    "qr_decompose",
    "qr_solve",
    "invert_upper_triangular",
    "invert_symmetric",
    "gram_inverse",
    "leverage",
]
