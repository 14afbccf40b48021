r"""
qobjkit.sweep: Parallel Steady-State Parameter Sweeps
-----------------------------------------------------
Evaluates steady states (and expectation values in them) over a list of
parameter values, one independent direct solve per value.

Public API
----------
- ``steadystate_sweep``: steady states for each parameter value, in input order.
- ``expect_sweep``: expectation values of observables in those steady states.

Notes
-----
- Parallelization: values are chunked and mapped with ``joblib.Parallel``
  (process-based ``loky`` by default, or ``threading``). Each worker runs under
  ``threadpool_limits(limits=blas_threads, user_api="blas")`` so that coarse
  parallelism over values is not multiplied by BLAS threads inside each solve.
- Auto-detection: ``n_jobs=None`` (or non-positive) picks physical cores for
  process backends and a conservative count for threads.
- Builders: ``build(value)`` returns either a SuperOperator generator or a
  ``(H, c_ops)`` pair. Process backends pickle it with cloudpickle, so
  lambdas and closures are fine.
"""

import warnings
from collections.abc import Callable, Iterable, Sequence

import joblib
import numpy as np
from threadpoolctl import threadpool_limits

from qobjalg import QuantumObject, expect, steadystate

__all__ = [
    "steadystate_sweep",
    "expect_sweep",
]


def _auto_n_jobs(backend: str = "loky") -> int:
    """Physical cores for process backends, half the logical CPUs (at most 16) for threads."""
    if backend in ("loky", "multiprocessing"):
        return max(1, joblib.cpu_count(only_physical_cores=True))
    return max(1, min(joblib.cpu_count() // 2, 16))


def _resolve_n_jobs(n_jobs: int | None, backend: str = "loky") -> int:
    """Resolve the requested worker count (always >= 1).

    ``None`` and non-positive values select :func:`_auto_n_jobs`. A value that
    is not an integer also does, with a ``RuntimeWarning``.
    """
    if n_jobs is None:
        return _auto_n_jobs(backend)
    try:
        n = int(n_jobs)
    except (TypeError, ValueError):
        warnings.warn(f"Ignoring invalid n_jobs={n_jobs!r}; using an automatic worker count.",
                      RuntimeWarning)
        return _auto_n_jobs(backend)
    if n <= 0:
        return _auto_n_jobs(backend)
    return n


def _solve_model(model, solver=None) -> QuantumObject:
    if isinstance(model, QuantumObject):
        return steadystate(model, solver=solver)
    H, c_ops = model
    return steadystate(H, c_ops, solver=solver)


def steadystate_sweep(
    build: Callable[[float], object],
    values: Iterable,
    *,
    n_jobs: int | None = None,
    backend: str = "auto",
    blas_threads: int = 1,
    verbose: int = 0,
    solver=None,
) -> list[QuantumObject]:
    """Steady state for every parameter value.

    Parameters
    ----------
    build : Callable
        ``build(value)`` returns a SuperOperator or a ``(H, c_ops)`` pair.
    values : iterable
        Parameter values.
    n_jobs : int, optional
        Number of workers. If None, chosen automatically. ``1`` runs
        sequentially in the calling thread.
    backend : str, optional
        Parallel backend ('loky', 'threading', 'multiprocessing', 'auto').
        Default is 'auto' (which maps to 'loky').
    blas_threads : int, optional
        BLAS threads per worker (default 1).
    verbose : int, optional
        joblib progress verbosity (default 0, silent).
    solver : SteadyStateSolver, optional
        Solver passed to :func:`qobjalg.steadystate`.

    Returns
    -------
    list of QuantumObject
        Steady states, in the order of ``values``.
    """
    if backend == "auto":
        backend = "loky"
    values = list(values)
    nj = _resolve_n_jobs(n_jobs, backend)

    if nj <= 1 or len(values) <= 1:
        return [_solve_model(build(v), solver) for v in values]

    # A few chunks per worker balances uneven solve times
    n_chunks = nj * 4
    chunk_size = max(1, len(values) // n_chunks)
    chunks = [values[i : i + chunk_size] for i in range(0, len(values), chunk_size)]

    def _worker(chunk: Sequence):
        with threadpool_limits(limits=blas_threads, user_api="blas"):
            return [_solve_model(build(v), solver) for v in chunk]

    chunk_results = joblib.Parallel(n_jobs=nj, backend=backend, verbose=verbose)(
        joblib.delayed(_worker)(chunk) for chunk in chunks
    )
    return [rho for sublist in chunk_results for rho in sublist]


def expect_sweep(
    build: Callable[[float], object],
    values: Iterable,
    e_ops: Sequence[QuantumObject],
    **kwargs,
) -> np.ndarray:
    """Expectation values of ``e_ops`` in the steady state of every value.

    Keyword arguments are forwarded to :func:`steadystate_sweep`.

    Returns
    -------
    ndarray
        Shape ``(len(values), len(e_ops))``; real when every observable is
        Hermitian, complex otherwise.
    """
    states = steadystate_sweep(build, values, **kwargs)
    out = np.array([[expect(e, rho) for e in e_ops] for rho in states])
    return out.reshape(len(states), len(e_ops))
