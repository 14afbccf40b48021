r"""
qobjalg: Steady-State Engine
----------------------------
Direct solver for the fixed point ``L vec(rho) = 0``, ``Tr rho = 1`` of a
generator, and its Floquet extension for harmonically driven systems.

Public API
----------
- ``steadystate``: steady state of a generator, or of ``H`` plus collapse operators.
- ``steadystate_floquet``: periodic steady state through ``liouvillian_floquet``.
- ``SteadyStateSolver``: solver interface.
- ``SteadyStateDirectSolver``: augmented direct linear solve.
- ``SteadyStateError``: failed solve.

Notes
-----
- The generator has a non-trivial null space, so ``L x = 0`` alone is
  singular. The direct solver adds ``w`` to row 0 at the columns of the
  vectorized diagonal (indices ``k*N + k``) and sets the right-hand side to
  ``w e_0``, with ``w`` the mean entry magnitude of ``L``. The augmented
  system is square and, for a unique steady state, regular.
- Solver failures propagate; there is no retry with a different
  regularization. A poor residual is reported with a ``RuntimeWarning``.
- Every call is stateless. Nothing is cached.
"""

import warnings
from dataclasses import dataclass
from math import prod

import numpy as np
import scipy.linalg as sla
from scipy.sparse import csc_matrix, csr_matrix, issparse
from scipy.sparse.linalg import splu

from .qobj import IncompatibleRoleError, QuantumObject, Role, _as_dense
from .superop import liouvillian, liouvillian_floquet

__all__ = [
    "SteadyStateError",
    "SteadyStateSolver",
    "SteadyStateDirectSolver",
    "steadystate",
    "steadystate_floquet",
]


class SteadyStateError(np.linalg.LinAlgError):
    """The augmented steady-state system could not be solved."""


class SteadyStateSolver:
    """Interface of steady-state solvers: ``solve(L) -> rho``."""

    def solve(self, L: QuantumObject) -> QuantumObject:
        raise NotImplementedError


@dataclass
class SteadyStateDirectSolver(SteadyStateSolver):
    """Direct solve of the trace-augmented generator.

    Attributes
    ----------
    use_sparse : bool or None
        Force the sparse (``splu``) or dense (``scipy.linalg.solve``) path.
        ``None`` follows the storage of the generator.
    residual_warn_tol : float
        Warn when ``max |L vec(rho)|`` exceeds this value.
    """

    use_sparse: bool | None = None
    residual_warn_tol: float = 1e-8

    def __post_init__(self):
        if self.residual_warn_tol < 0:
            raise ValueError("residual_warn_tol must be non-negative.")

    def solve(self, L: QuantumObject) -> QuantumObject:
        """Return the unit-trace Hermitian fixed point of ``L``.

        Parameters
        ----------
        L : QuantumObject
            SuperOperator generator on ``dims``.

        Returns
        -------
        QuantumObject
            Dense Operator on ``L.dims``.

        Raises
        ------
        IncompatibleRoleError
            If ``L`` is not a SuperOperator.
        SteadyStateError
            If the sparse system is singular or the solution is not finite.
        numpy.linalg.LinAlgError
            If the dense system is singular.
        """
        if L.role is not Role.SUPEROPERATOR:
            raise IncompatibleRoleError(f"steady state needs a SuperOperator generator, got {L.role}.")
        N = prod(L.dims)
        data = L.data
        sparse_path = issparse(data) if self.use_sparse is None else self.use_sparse

        # Mean entry magnitude keeps the trace row on the scale of L
        weight = float(abs(data).sum()) / N ** 4
        diag_idx = np.arange(N) * (N + 1)
        rhs = np.zeros(N * N, dtype=np.complex128)
        rhs[0] = weight

        if sparse_path:
            trace_row = csr_matrix(
                (np.full(N, weight, dtype=np.complex128), (np.zeros(N, dtype=int), diag_idx)),
                shape=(N * N, N * N),
            )
            A = csc_matrix(csr_matrix(data) + trace_row)
            try:
                x = splu(A).solve(rhs)
            except RuntimeError as exc:
                # SuperLU reports an exactly singular factor
                raise SteadyStateError("Augmented steady-state system is singular.") from exc
        else:
            A = _as_dense(data).copy()
            A[0, diag_idx] += weight
            x = sla.solve(A, rhs)

        x = np.asarray(x).ravel()
        if not np.all(np.isfinite(x)):
            raise SteadyStateError("Steady-state solve returned non-finite values.")

        rho = x.reshape(N, N, order="F")
        rho = (rho + rho.conj().T) / 2

        residual = float(np.max(np.abs(data @ rho.reshape(-1, order="F"))))
        if residual > self.residual_warn_tol:
            warnings.warn(
                f"Steady-state residual max|L vec(rho)| = {residual:.3e} exceeds "
                f"{self.residual_warn_tol:.1e}; the generator may have a degenerate "
                f"or ill-conditioned null space.",
                RuntimeWarning,
            )
        return QuantumObject(rho, Role.OPERATOR, list(L.dims), copy_data=False)


def steadystate(A: QuantumObject, c_ops=None, *, solver: SteadyStateSolver | None = None) -> QuantumObject:
    """Steady state of a generator or of a Hamiltonian with collapse operators.

    Parameters
    ----------
    A : QuantumObject
        SuperOperator generator, or Operator Hamiltonian.
    c_ops : iterable of QuantumObject, optional
        Collapse operators, combined with ``A`` through :func:`liouvillian`.
    solver : SteadyStateSolver, optional
        Defaults to :class:`SteadyStateDirectSolver`.

    Returns
    -------
    QuantumObject
        Hermitian, unit-trace Operator.
    """
    if A.role is Role.SUPEROPERATOR and not c_ops:
        L = A
    elif A.role in (Role.OPERATOR, Role.SUPEROPERATOR):
        L = liouvillian(A, c_ops)
    else:
        raise IncompatibleRoleError(f"steadystate needs an Operator or SuperOperator, got {A.role}.")
    solver = SteadyStateDirectSolver() if solver is None else solver
    return solver.solve(L)


def steadystate_floquet(H_0: QuantumObject, H_p: QuantumObject, H_m: QuantumObject,
                        omega: float, c_ops=None, *, n_max: int | None = None,
                        tol: float | None = None,
                        solver: SteadyStateSolver | None = None) -> QuantumObject:
    """Periodic steady state of ``H(t) = H_0 + H_p exp(i w t) + H_m exp(-i w t)``.

    ``c_ops`` enter the static generator. See :func:`liouvillian_floquet` for
    ``n_max`` and ``tol``; a too small ``n_max`` only costs accuracy.
    """
    L_0 = liouvillian(H_0, c_ops)
    L_eff = liouvillian_floquet(L_0, H_p, H_m, omega, n_max=n_max, tol=tol)
    return steadystate(L_eff, solver=solver)
