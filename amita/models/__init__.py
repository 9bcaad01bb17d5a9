"""
Econometric models built on the regression engines.

Public API:
    TWFE: two-way fixed-effects difference-in-differences
"""

from amita.models.did import TWFE

__all__ = [
    "TWFE",
]
