r"""
qobjalg: Super-operators and Generators
---------------------------------------
Builders for super-operators acting on column-stacked density operators, the
Lindblad generator, and the Floquet reduction of a periodically driven
generator to an effective static one.

Public API
----------
- ``spre``, ``spost``, ``sprepost``: left/right multiplication super-operators.
- ``lindblad_dissipator``: dissipator of one collapse operator.
- ``liouvillian``: ``-i[H, .]`` plus dissipators.
- ``liouvillian_floquet``: effective generator for
  ``L(t) = L0 + Lp exp(i w t) + Lm exp(-i w t)``.

Notes
-----
- With column stacking, ``vec(A X B) = (B^T kron A) vec(X)``, so
  ``spre(A) = I kron A`` and ``spost(B) = B^T kron I``. All builders return
  sparse (CSR) SuperOperators with the ``dims`` of their Operator arguments.
- The Floquet reduction eliminates harmonics ``n_max, ..., 1`` by a continued
  fraction. Truncation at ``n_max`` is an accuracy trade-off, not an error: a
  too small ``n_max`` gives an inaccurate but finite generator.
"""

import numpy as np
import scipy.linalg as sla
from scipy.sparse import csc_matrix, issparse
from scipy.sparse import identity as sparse_identity
from scipy.sparse import kron as sparse_kron
from scipy.sparse.linalg import spsolve

from .functions import tidyup
from .qobj import DimensionMismatchError, IncompatibleRoleError, QuantumObject, Role
from .settings import settings

__all__ = [
    "spre",
    "spost",
    "sprepost",
    "lindblad_dissipator",
    "liouvillian",
    "liouvillian_floquet",
]


def _require_operator(A: QuantumObject, name: str) -> None:
    if A.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"{name} needs an Operator, got {A.role}.")


def _identity(n: int):
    return sparse_identity(n, dtype=np.complex128, format="csr")


def spre(A: QuantumObject) -> QuantumObject:
    """Super-operator of left multiplication, ``X -> A X``."""
    _require_operator(A, "spre")
    data = sparse_kron(_identity(A.shape[0]), A.data, format="csr")
    return QuantumObject(data, Role.SUPEROPERATOR, list(A.dims), copy_data=False)


def spost(B: QuantumObject) -> QuantumObject:
    """Super-operator of right multiplication, ``X -> X B``."""
    _require_operator(B, "spost")
    data = sparse_kron(B.data.T, _identity(B.shape[0]), format="csr")
    return QuantumObject(data, Role.SUPEROPERATOR, list(B.dims), copy_data=False)


def sprepost(A: QuantumObject, B: QuantumObject) -> QuantumObject:
    """Super-operator ``X -> A X B``."""
    _require_operator(A, "sprepost")
    _require_operator(B, "sprepost")
    if A.dims != B.dims:
        raise DimensionMismatchError(f"Incompatible dims in sprepost: {A.dims} vs {B.dims}.")
    data = sparse_kron(B.data.T, A.data, format="csr")
    return QuantumObject(data, Role.SUPEROPERATOR, list(A.dims), copy_data=False)


def lindblad_dissipator(O: QuantumObject) -> QuantumObject:
    """``D[O] X = O X O^dagger - {O^dagger O, X} / 2``."""
    _require_operator(O, "lindblad_dissipator")
    Od = O.dag()
    OdO = Od * O
    return sprepost(O, Od) - 0.5 * spre(OdO) - 0.5 * spost(OdO)


def liouvillian(H: QuantumObject, c_ops=None) -> QuantumObject:
    """Lindblad generator ``-i[H, .] + sum_k D[c_k]``.

    Parameters
    ----------
    H : QuantumObject
        Hamiltonian (Operator) or an already built generator (SuperOperator).
    c_ops : iterable of QuantumObject, optional
        Collapse operators (Operators, turned into dissipators) or
        SuperOperators (added as they are).

    Returns
    -------
    QuantumObject
        SuperOperator with the ``dims`` of ``H``.

    Raises
    ------
    DimensionMismatchError
        If a collapse operator lives on different ``dims``.
    """
    if H.role is Role.OPERATOR:
        L = -1j * (spre(H) - spost(H))
    elif H.role is Role.SUPEROPERATOR:
        L = H.copy()
    else:
        raise IncompatibleRoleError(f"liouvillian needs an Operator or SuperOperator, got {H.role}.")

    for c in c_ops or ():
        if c.role is Role.OPERATOR:
            L += lindblad_dissipator(c)
        elif c.role is Role.SUPEROPERATOR:
            L += c
        else:
            raise IncompatibleRoleError(f"Collapse operators must be Operators or SuperOperators, got {c.role}.")
    return L


def _as_generator(A: QuantumObject) -> QuantumObject:
    if A.role is Role.SUPEROPERATOR:
        return A
    return liouvillian(A)


def liouvillian_floquet(L0: QuantumObject, Lp: QuantumObject, Lm: QuantumObject,
                        omega: float, n_max: int | None = None,
                        tol: float | None = None) -> QuantumObject:
    """Effective static generator of a harmonically driven generator.

    For ``L(t) = L0 + Lp exp(i w t) + Lm exp(-i w t)`` the harmonics
    ``rho_n`` of the periodic steady state obey
    ``i n w rho_n = L0 rho_n + Lp rho_(n-1) + Lm rho_(n+1)``. Writing
    ``rho_n = S_n rho_(n-1)`` for ``n > 0`` and ``rho_(-n) = T_n rho_(-n+1)``
    gives, truncated at ``n_max``::

        S = -(L0 - i n_max w)^-1 Lp,            T = -(L0 + i n_max w)^-1 Lm
        S = -(L0 - i n w + Lm S)^-1 Lp,         T = -(L0 + i n w + Lp T)^-1 Lm

    for ``n = n_max - 1, ..., 1``, and ``L_eff = L0 + Lm S + Lp T``.

    Parameters
    ----------
    L0, Lp, Lm : QuantumObject
        Static part and the ``exp(+i w t)`` / ``exp(-i w t)`` coefficients,
        each a SuperOperator or an Operator (turned into ``-i[H, .]``).
    omega : float
        Drive angular frequency.
    n_max : int, optional
        Number of eliminated harmonics (default ``settings.floquet_n_max``).
    tol : float, optional
        Entries of ``L_eff`` below ``tol`` are dropped when ``tol > 0``
        (default ``settings.floquet_tol``).

    Returns
    -------
    QuantumObject
        SuperOperator with the ``dims`` of ``L0``.

    Raises
    ------
    ValueError
        If ``n_max < 1``.
    DimensionMismatchError
        If the three generators live on different ``dims``.
    """
    n_max = settings.floquet_n_max if n_max is None else int(n_max)
    tol = settings.floquet_tol if tol is None else tol
    if n_max < 1:
        raise ValueError(f"n_max must be at least 1, got {n_max}.")

    L0, Lp, Lm = _as_generator(L0), _as_generator(Lp), _as_generator(Lm)
    for other in (Lp, Lm):
        if other.dims != L0.dims:
            raise DimensionMismatchError(f"Incompatible dims in liouvillian_floquet: {L0.dims} vs {other.dims}.")

    use_sparse = any(issparse(x.data) for x in (L0, Lp, Lm))
    if use_sparse:
        l0, lp, lm = (csc_matrix(x.data) for x in (L0, Lp, Lm))
        identity = sparse_identity(l0.shape[0], dtype=np.complex128, format="csc")

        def solve(A, B):
            return csc_matrix(spsolve(csc_matrix(A), B))
    else:
        l0, lp, lm = L0.data, Lp.data, Lm.data
        identity = np.eye(l0.shape[0], dtype=np.complex128)
        solve = sla.solve

    S = -solve(l0 - 1j * n_max * omega * identity, lp)
    T = -solve(l0 + 1j * n_max * omega * identity, lm)
    for n in range(n_max - 1, 0, -1):
        S = -solve(l0 - 1j * n * omega * identity + lm @ S, lp)
        T = -solve(l0 + 1j * n * omega * identity + lp @ T, lm)

    L_eff = L0._wrap_result(l0 + lm @ S + lp @ T)
    if tol > 0:
        tidyup(L_eff, tol, inplace=True)
    return L_eff
