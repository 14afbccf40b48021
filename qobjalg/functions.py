r"""
qobjalg: Algebraic Operator Layer
---------------------------------
Matrix functions, norms, trace-like scalars and element-wise helpers acting on
:class:`~qobjalg.qobj.QuantumObject`, with role and dims checks at call time.

Public API
----------
- ``expm``, ``logm``, ``sqrtm``, ``sinm``, ``cosm``, ``inv``: matrix functions
  (Operator and SuperOperator only).
- ``norm``, ``normalize``, ``svdvals``: vector p-norms / Schatten p-norms.
- ``tr``, ``diag``, ``purity``, ``proj``, ``entropy_vn``: state scalars.
- ``dot``, ``matrix_element``, ``expect``, ``commutator``: products.
- ``tidyup``, ``broadcast``: element-wise clean-up and ufunc application.

Notes
-----
- The sparse exponential is a scaling-and-squaring Taylor series. It drops
  entries smaller than ``settings.expm_drop_tol`` after every term and every
  squaring to keep fill-in bounded; this truncation is lossy by construction.
  Dense data goes through ``scipy.linalg.expm``.
- ``logm`` and ``sqrtm`` always densify (SciPy has no sparse counterpart).
"""

import math
from numbers import Number
from typing import Callable, Union

import numpy as np
import scipy.linalg as sla
from scipy.sparse import csc_matrix, csr_matrix, issparse
from scipy.sparse import identity as sparse_identity
from scipy.sparse.linalg import inv as sparse_inv
from scipy.sparse.linalg import norm as sparse_norm

from .qobj import (
    DimensionMismatchError,
    IncompatibleRoleError,
    QuantumObject,
    Role,
    _as_dense,
)
from .settings import settings

__all__ = [
    "expm",
    "logm",
    "sqrtm",
    "sinm",
    "cosm",
    "inv",
    "norm",
    "normalize",
    "svdvals",
    "tr",
    "diag",
    "purity",
    "proj",
    "dot",
    "matrix_element",
    "expect",
    "commutator",
    "tidyup",
    "broadcast",
    "entropy_vn",
]

_VECTOR_ROLES = (Role.KET, Role.BRA, Role.OPERATOR_KET, Role.OPERATOR_BRA)


# --------- Sparse helpers ---------
def _droptol(M: csr_matrix, tol: float) -> csr_matrix:
    """Remove stored entries of ``M`` with magnitude below ``tol`` (in place)."""
    M.data[np.abs(M.data) < tol] = 0
    M.eliminate_zeros()
    return M


def _spexp(A: csr_matrix, threshold: float, drop_tol: float) -> csr_matrix:
    """Scaling-and-squaring Taylor exponential of a sparse matrix.

    The matrix is divided by ``2**s`` with ``s = max(0, ceil(log2 ||A||_inf))``
    so that the scaled infinity-norm is at most 1. Taylor terms are added until
    the infinity-norm of the last one is ``<= threshold``; the sum is then
    squared ``s`` times. Entries below ``drop_tol`` are dropped after each term
    and each squaring.
    """
    n = A.shape[0]
    identity = sparse_identity(n, dtype=np.complex128, format="csr")
    a_norm = sparse_norm(A, np.inf)
    if a_norm == 0:
        return identity

    s = max(0, math.ceil(math.log2(a_norm)))
    B = A / (2.0 ** s)

    result = identity.copy()
    term = identity.copy()
    k = 1
    while True:
        term = _droptol(csr_matrix(term @ B) / k, drop_tol)
        result = result + term
        if term.nnz == 0 or sparse_norm(term, np.inf) <= threshold:
            break
        k += 1
    result = _droptol(csr_matrix(result), drop_tol)

    for _ in range(s):
        result = _droptol(csr_matrix(result @ result), drop_tol)
    return result


def _require_square(A: QuantumObject, name: str) -> None:
    if A.role not in (Role.OPERATOR, Role.SUPEROPERATOR):
        raise IncompatibleRoleError(f"{name} is only defined for Operator/SuperOperator, got {A.role}.")


# --------- Matrix functions ---------
def expm(A: QuantumObject, threshold: float | None = None,
         nonzero_tol: float | None = None) -> QuantumObject:
    """Matrix exponential ``exp(A)``.

    Parameters
    ----------
    A : QuantumObject
        Operator or SuperOperator.
    threshold : float, optional
        Sparse series truncation (default ``settings.expm_threshold``).
    nonzero_tol : float, optional
        Sparse drop tolerance (default ``settings.expm_drop_tol``). Lossy.

    Returns
    -------
    QuantumObject
        Same role, dims and storage kind as ``A``. A zero ``A`` gives the
        identity exactly.
    """
    _require_square(A, "expm")
    if issparse(A.data):
        threshold = settings.expm_threshold if threshold is None else threshold
        nonzero_tol = settings.expm_drop_tol if nonzero_tol is None else nonzero_tol
        return A._wrap_result(_spexp(A.data, threshold, nonzero_tol))
    if not np.any(A.data):
        return A._wrap_result(np.eye(A.shape[0], dtype=np.complex128))
    return A._wrap_result(sla.expm(A.data))


def logm(A: QuantumObject) -> QuantumObject:
    """Principal matrix logarithm (dense)."""
    _require_square(A, "logm")
    return A._wrap_result(sla.logm(_as_dense(A.data)))


def sqrtm(A: QuantumObject) -> QuantumObject:
    """Principal matrix square root (dense)."""
    _require_square(A, "sqrtm")
    return A._wrap_result(sla.sqrtm(_as_dense(A.data)))


def sinm(A: QuantumObject) -> QuantumObject:
    """Matrix sine ``(exp(iA) - exp(-iA)) / 2i``."""
    _require_square(A, "sinm")
    return (expm(1j * A) - expm(-1j * A)) / 2j


def cosm(A: QuantumObject) -> QuantumObject:
    """Matrix cosine ``(exp(iA) + exp(-iA)) / 2``."""
    _require_square(A, "cosm")
    return (expm(1j * A) + expm(-1j * A)) / 2


def inv(A: QuantumObject) -> QuantumObject:
    _require_square(A, "inv")
    if issparse(A.data):
        return A._wrap_result(sparse_inv(csc_matrix(A.data)))
    return A._wrap_result(sla.inv(A.data))


# --------- Norms ---------
def svdvals(A: QuantumObject) -> np.ndarray:
    """Singular values of the data, in descending order."""
    return sla.svdvals(_as_dense(A.data))


def norm(A: QuantumObject, p: float | None = None) -> float:
    """Vector p-norm for state-like roles, Schatten p-norm for square roles.

    Parameters
    ----------
    A : QuantumObject
        Any role.
    p : float, optional
        Order. Defaults to 2 for Ket/Bra/OperatorKet/OperatorBra and to 1
        (trace norm) for Operator/SuperOperator. ``np.inf`` gives the largest
        entry magnitude / largest singular value.

    Returns
    -------
    float
    """
    if A.role in _VECTOR_ROLES:
        return float(np.linalg.norm(_as_dense(A.data).ravel(), ord=2 if p is None else p))

    p = 1 if p is None else p
    if p == 2:
        # Frobenius norm equals the Schatten 2-norm
        entries = A.data.data if issparse(A.data) else A.data
        return float(np.sqrt(np.sum(np.abs(entries) ** 2)))
    s = svdvals(A)
    if p == np.inf:
        return float(s.max())
    return float(np.sum(s ** p) ** (1.0 / p))


def normalize(A: QuantumObject, p: float | None = None, inplace: bool = False) -> QuantumObject:
    """Divide ``A`` by its :func:`norm`.

    With ``inplace=True`` the data of ``A`` is rescaled and ``A`` itself is
    returned; any other reference to its backing array sees the change.

    Raises
    ------
    ValueError
        If the norm is zero.
    """
    value = norm(A, p)
    if value == 0:
        raise ValueError("Cannot normalize an object with zero norm.")
    if inplace:
        A /= value
        return A
    return A / value


# --------- Scalars ---------
def tr(A: QuantumObject) -> Union[float, complex]:
    """Trace of an Operator/SuperOperator (real for Hermitian input)."""
    return A.tr()


def diag(A: QuantumObject, k: int = 0) -> np.ndarray:
    """The ``k``-th diagonal of the data as a 1D array."""
    if issparse(A.data):
        return A.data.diagonal(k)
    return np.diag(A.data, k).copy()


def purity(rho: QuantumObject) -> float:
    """``Tr(rho^2)`` for an Operator, ``<psi|psi>^2`` for a Ket/Bra."""
    if rho.role in (Role.KET, Role.BRA):
        return float(np.sum(np.abs(_as_dense(rho.data)) ** 2) ** 2)
    if rho.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"purity is not defined for {rho.role}.")
    return float(np.real((rho.data @ rho.data).diagonal().sum()))


def proj(psi: QuantumObject) -> QuantumObject:
    """Projector ``|psi><psi|`` from a Ket or a Bra."""
    if psi.role is Role.KET:
        return psi * psi.dag()
    if psi.role is Role.BRA:
        return psi.dag() * psi
    raise IncompatibleRoleError(f"proj needs a Ket or a Bra, got {psi.role}.")


def entropy_vn(rho: QuantumObject, base: float = math.e, tol: float = 1e-15) -> float:
    """Von Neumann entropy ``-Tr(rho log rho)``.

    Parameters
    ----------
    rho : QuantumObject
        Density operator (a Ket/Bra is turned into its projector first).
    base : float, optional
        Logarithm base (default ``e``).
    tol : float, optional
        Eigenvalues not above ``tol`` contribute zero.
    """
    if rho.role in (Role.KET, Role.BRA):
        rho = proj(rho)
    elif rho.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"entropy_vn needs a state, got {rho.role}.")
    vals = np.linalg.eigvalsh(_as_dense(rho.data))
    vals = vals[vals > tol]
    return float(-np.sum(vals * np.log(vals)) / math.log(base))


# --------- Products ---------
def dot(A: QuantumObject, B: QuantumObject) -> complex:
    """Inner product ``<A|B>`` of two Kets or two OperatorKets."""
    if A.role is not B.role or A.role not in (Role.KET, Role.OPERATOR_KET):
        raise IncompatibleRoleError(f"dot needs two Kets or two OperatorKets, got {A.role} and {B.role}.")
    if A.dims != B.dims:
        raise DimensionMismatchError(f"Incompatible dims in dot: {A.dims} vs {B.dims}.")
    return complex(np.vdot(_as_dense(A.data).ravel(), _as_dense(B.data).ravel()))


def matrix_element(i: QuantumObject, A: QuantumObject, j: QuantumObject) -> complex:
    """``<i|A|j>``; ``i`` may be given as a Ket or as a Bra."""
    if i.role is Role.KET:
        i = i.dag()
    if i.role is not Role.BRA or j.role is not Role.KET or A.role is not Role.OPERATOR:
        raise IncompatibleRoleError("matrix_element needs (Ket|Bra, Operator, Ket).")
    return (i * A) * j


def expect(O: QuantumObject, state: QuantumObject) -> Union[float, complex]:
    """Expectation value of ``O`` in a pure (Ket/Bra) or mixed (Operator) state.

    Returns a float when ``O`` is Hermitian, a complex otherwise.
    """
    if O.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"expect needs an Operator observable, got {O.role}.")
    if O.dims != state.dims:
        raise DimensionMismatchError(f"Incompatible dims in expect: {O.dims} vs {state.dims}.")
    if state.role is Role.BRA:
        state = state.dag()
    if state.role is Role.KET:
        value = state.dag() * (O * state)
    elif state.role is Role.OPERATOR:
        value = complex((O.data @ state.data).diagonal().sum())
    else:
        raise IncompatibleRoleError(f"expect needs a Ket, Bra or Operator state, got {state.role}.")
    return value.real if O.isherm else value


def commutator(A: QuantumObject, B: QuantumObject, anti: bool = False) -> QuantumObject:
    """``AB - BA``, or ``AB + BA`` with ``anti=True``."""
    if anti:
        return A * B + B * A
    return A * B - B * A


# --------- Element-wise ---------
def tidyup(A: QuantumObject, tol: float | None = None, inplace: bool = False) -> QuantumObject:
    """Zero out entries with magnitude below ``tol`` (default ``settings.tidyup_tol``).

    Sparse data also loses the corresponding stored entries.
    """
    tol = settings.tidyup_tol if tol is None else tol
    target = A if inplace else A.copy()
    if issparse(target.data):
        _droptol(target.data, tol)
    else:
        target.data[np.abs(target.data) < tol] = 0
    return target


def broadcast(func: Callable, x, y=None) -> QuantumObject:
    """Apply a NumPy ufunc element-wise to objects, scalars or arrays.

    Every :class:`QuantumObject` operand must share role and dims with the
    first one; the result carries that role and dims. Sparse data is densified.

    Examples
    --------
    >>> broadcast(np.abs, rho)            # doctest: +SKIP
    >>> broadcast(np.multiply, A, B)      # Hadamard product, doctest: +SKIP
    """
    operands = (x,) if y is None else (x, y)
    objs = [o for o in operands if isinstance(o, QuantumObject)]
    if not objs:
        raise TypeError("broadcast needs at least one QuantumObject operand.")
    ref = objs[0]
    for o in objs[1:]:
        if o.role is not ref.role:
            raise IncompatibleRoleError(f"Cannot broadcast {ref.role} with {o.role}.")
        if o.dims != ref.dims:
            raise DimensionMismatchError(f"Incompatible dims in broadcast: {ref.dims} vs {o.dims}.")
    args = []
    for o in operands:
        if isinstance(o, QuantumObject):
            args.append(_as_dense(o.data))
        elif isinstance(o, Number) or isinstance(o, np.ndarray):
            args.append(o)
        else:
            raise TypeError(f"Unsupported broadcast operand of type {type(o).__name__}.")
    out = np.asarray(func(*args))
    return QuantumObject(out, ref.role, list(ref.dims), copy_data=False)
