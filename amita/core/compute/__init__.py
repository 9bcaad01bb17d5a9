"""
Shared compute infrastructure for amita.

This module provides timing utilities, linear algebra kernels and the
optimizer wrapper shared by the estimation engines.

IMPORTANT: This is NOT where estimation engines live. Those go in
regression/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical tolerance tiers
    linalg: Linear algebra kernels (QR, inverses, leverage)
    optimization: Quasi-Newton minimization
"""

from amita.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
