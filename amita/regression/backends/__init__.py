"""
Regression backends.

Available backends:
    CPUQRBackend: OLS via QR decomposition
    CPUQuasiNewtonBackend: Logit maximum likelihood via L-BFGS/BFGS/Newton-CG
"""

from amita.regression.backends.cpu import CPUQRBackend
from amita.regression.backends.cpu_logit import CPUQuasiNewtonBackend, LogitObjective

__all__ = [
    "CPUQRBackend",
    "CPUQuasiNewtonBackend",
    "LogitObjective",
]
