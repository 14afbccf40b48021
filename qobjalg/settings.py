r"""
qobjalg: Process-wide Numerical Settings
----------------------------------------
Holds the tolerances shared by the algebra, structural and steady-state layers,
and the explicit BLAS thread limit applied once by the host application.

Public API
----------
- ``settings``: the live :class:`CoreSettings` instance read by every layer.
- ``configure``: update one or more tolerances by name.
- ``set_blas_threads``, ``blas_threads``: explicit, idempotent BLAS thread limit.

Notes
-----
- Truncation tolerances (``expm_threshold``, ``expm_drop_tol``, ``floquet_tol``)
  trade accuracy for speed and sparsity. Entries discarded under
  ``expm_drop_tol`` are lost for good; lower it (or use dense data) when the
  exponential must be exact to machine precision.
- Nothing here runs at import time. Serializing BLAS kernels only pays off when
  the caller parallelizes at a coarser grain (see ``qobjkit.sweep``), so the
  limit is opt-in through :func:`set_blas_threads`.
"""

import warnings
from dataclasses import dataclass, fields

from threadpoolctl import threadpool_info, threadpool_limits

__all__ = [
    "CoreSettings",
    "settings",
    "configure",
    "set_blas_threads",
    "blas_threads",
]


@dataclass
class CoreSettings:
    """Tolerances used across ``qobjalg``.

    Attributes
    ----------
    atol : float
        Absolute tolerance for Hermiticity checks and structural equality.
    tidyup_tol : float
        Default magnitude below which :func:`qobjalg.functions.tidyup` drops entries.
    expm_threshold : float
        Series truncation for the sparse matrix exponential: summation stops
        once the infinity-norm of the next Taylor term is below this value.
    expm_drop_tol : float
        Sparse matrix exponential drop tolerance (lossy), applied after every
        series term and every squaring to bound fill-in.
    floquet_n_max : int
        Default number of harmonics eliminated by ``liouvillian_floquet``.
    floquet_tol : float
        Default drop tolerance applied to the effective Floquet generator.
    """

    atol: float = 1e-12
    tidyup_tol: float = 1e-14
    expm_threshold: float = 1e-14
    expm_drop_tol: float = 1e-20
    floquet_n_max: int = 4
    floquet_tol: float = 1e-15


settings = CoreSettings()
"""Live settings instance; read at call time by every layer."""

_blas_limit: int | None = None
"""BLAS thread count applied by :func:`set_blas_threads` (``None`` if never applied)."""

_blas_limiter = None
"""The ``threadpool_limits`` handle kept alive while the limit is in force."""


def configure(**kwargs) -> CoreSettings:
    """Update tolerances in :data:`settings`.

    Parameters
    ----------
    **kwargs
        Field names of :class:`CoreSettings` and their new values.

    Returns
    -------
    CoreSettings
        The (mutated) global settings instance.

    Raises
    ------
    ValueError
        If a name is not a settings field or a tolerance is negative.
    """
    known = {f.name for f in fields(CoreSettings)}
    for name, value in kwargs.items():
        if name not in known:
            raise ValueError(f"Unknown setting '{name}'. Known: {sorted(known)}.")
        if value < 0:
            raise ValueError(f"Setting '{name}' must be non-negative, got {value}.")
        setattr(settings, name, type(getattr(settings, name))(value))
    return settings


def set_blas_threads(n: int = 1) -> None:
    """Limit BLAS kernels to ``n`` threads for the whole process.

    Call once at start-up when independent solves are parallelized at a coarser
    grain, to avoid oversubscribing cores. Repeating the call with the same
    ``n`` is a no-op; a different ``n`` replaces the previous limit.

    Parameters
    ----------
    n : int, optional
        Number of BLAS threads (default 1, i.e. serial kernels).

    Raises
    ------
    ValueError
        If ``n`` is not a positive integer.
    """
    global _blas_limit, _blas_limiter
    if not isinstance(n, int) or n <= 0:
        raise ValueError("n must be a positive integer.")
    if _blas_limit == n:
        return
    if not any(info.get("user_api") == "blas" for info in threadpool_info()):
        warnings.warn("No BLAS library found by threadpoolctl; thread limit has no effect.",
                      RuntimeWarning)
    _blas_limiter = threadpool_limits(limits=n, user_api="blas")
    _blas_limit = n


def blas_threads() -> int | None:
    """Return the BLAS thread limit set by :func:`set_blas_threads`, if any."""
    return _blas_limit
