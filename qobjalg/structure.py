r"""
qobjalg: Structural Transforms over Composite Spaces
----------------------------------------------------
Tensor products, partial traces, subsystem permutations and the operator
vectorization used by super-operators.

Public API
----------
- ``tensor``: Kronecker product with ``dims`` concatenation.
- ``ptrace``: reduce a Ket/Bra/Operator to the kept subsystems.
- ``permute``: reorder subsystem factors.
- ``partial_transpose``, ``negativity``, ``entanglement``: bipartite diagnostics.
- ``mat2vec``, ``vec2mat``: column-stacking on raw arrays.
- ``operator_to_vector``, ``vector_to_operator``: the same on objects.

Notes
-----
- Composite indices are row-major with the first subsystem most significant,
  which is the order ``numpy.kron`` produces. A Ket with ``dims = [d0, d1, d2]``
  reshapes to a ``(d0, d1, d2)`` tensor without any axis reversal.
- Subsystem indices are 0-based. ``sel`` in :func:`ptrace` is a set: order is
  ignored, duplicates and out-of-range entries raise ``ValueError``.
- Vectorization stacks columns: ``vec(A)[i + N*j] = A[i, j]``.
"""

import operator
from math import isqrt, prod
from typing import Iterable, Sequence, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse
from scipy.sparse import kron as sparse_kron

from .qobj import IncompatibleRoleError, QuantumObject, Role, _as_dense

__all__ = [
    "tensor",
    "ptrace",
    "permute",
    "partial_transpose",
    "negativity",
    "entanglement",
    "mat2vec",
    "vec2mat",
    "operator_to_vector",
    "vector_to_operator",
]

_STATE_ROLES = (Role.KET, Role.BRA, Role.OPERATOR)


def tensor(*objs) -> QuantumObject:
    """Tensor (Kronecker) product of Kets, Bras or Operators.

    Parameters
    ----------
    *objs : QuantumObject
        Factors in order, all with the same role; a single list or tuple of
        factors is also accepted.

    Returns
    -------
    QuantumObject
        Same role, ``dims`` the concatenation of the factors' ``dims``. Sparse
        if any factor is sparse.
    """
    if len(objs) == 1 and isinstance(objs[0], (list, tuple)):
        objs = tuple(objs[0])
    if not objs:
        raise ValueError("tensor needs at least one factor.")
    role = objs[0].role
    if role not in _STATE_ROLES:
        raise IncompatibleRoleError(f"tensor is not defined for {role}.")
    for o in objs[1:]:
        if o.role is not role:
            raise IncompatibleRoleError(f"Cannot tensor {role} with {o.role}.")

    use_sparse = any(o.issparse for o in objs)
    data = objs[0].data
    dims = list(objs[0].dims)
    for o in objs[1:]:
        data = sparse_kron(data, o.data, format="csr") if use_sparse else np.kron(data, o.data)
        dims += o.dims
    if len(objs) == 1:
        data = data.copy()
    return QuantumObject(data, role, dims, copy_data=False)


# --------- Partial trace ---------
def _as_indices(values: Iterable, what: str) -> list[int]:
    """Integer subsystem indices; floats and other non-integral entries raise."""
    values = list(values)
    try:
        return [operator.index(v) for v in values]
    except TypeError as exc:
        raise ValueError(f"{what} {values} must contain integers.") from exc


def _normalize_sel(sel: Union[int, Iterable[int]], n: int) -> list[int]:
    """Validate a subsystem selection and return it sorted."""
    if np.ndim(sel) == 0:
        sel = [sel]
    sel = _as_indices(sel, "Subsystem selection")
    if len(set(sel)) != len(sel):
        raise ValueError(f"Subsystem selection {sel} contains duplicates.")
    bad = [s for s in sel if s < 0 or s >= n]
    if bad:
        raise ValueError(f"Subsystem selection {sel} has indices outside 0..{n - 1}: {bad}.")
    return sorted(sel)


def ptrace(A: QuantumObject, sel: Union[int, Iterable[int]]) -> QuantumObject:
    """Partial trace keeping the subsystems in ``sel``.

    Parameters
    ----------
    A : QuantumObject
        Ket, Bra or Operator on ``dims = [d0, ..., d(n-1)]``.
    sel : int or iterable of int
        0-based indices of the subsystems to keep. An empty selection traces
        everything out.

    Returns
    -------
    QuantumObject
        Dense Operator on ``[d_k for k in sorted(sel)]`` (``[1]`` when empty).
        A single-subsystem ``A`` is returned as is, whatever ``sel`` is.

    Notes
    -----
    For a Ket the state is reshaped to ``dims``, kept axes are moved to the
    front, and the result is ``M @ M^dagger`` with ``M`` of shape
    ``(prod(kept), prod(traced))``. For an Operator the data is reshaped to the
    rank-``2n`` tensor ``dims + dims`` (row indices, then column indices), the
    axes are ordered as (kept rows, kept cols, traced rows, traced cols), and
    the two traced groups are contracted.
    """
    if A.role not in _STATE_ROLES:
        raise IncompatibleRoleError(f"ptrace is not defined for {A.role}.")
    if len(A.dims) == 1:
        return A
    if A.role is Role.BRA:
        A = A.dag()

    n = len(A.dims)
    keep = _normalize_sel(sel, n)
    rest = [i for i in range(n) if i not in keep]
    dims_keep = [A.dims[i] for i in keep]
    d_keep = prod(dims_keep)
    d_rest = prod(A.dims[i] for i in rest)

    if A.role is Role.KET:
        psi = _as_dense(A.data).reshape(A.dims).transpose(keep + rest).reshape(d_keep, d_rest)
        rho = psi @ psi.conj().T
    else:
        perm = keep + [i + n for i in keep] + rest + [i + n for i in rest]
        rho = (_as_dense(A.data)
               .reshape(A.dims + A.dims)
               .transpose(perm)
               .reshape(d_keep, d_keep, d_rest, d_rest)
               .trace(axis1=2, axis2=3))
    return QuantumObject(rho, Role.OPERATOR, dims_keep or [1], copy_data=False)


# --------- Permutation ---------
def _subsystem_index_map(dims: Sequence[int], order: Sequence[int]) -> np.ndarray:
    """Flat index map ``idx`` with ``new[p] = old[idx[p]]`` for a subsystem reorder."""
    return np.arange(prod(dims)).reshape(dims).transpose(order).ravel()


def permute(A: QuantumObject, order: Sequence[int]) -> QuantumObject:
    """Reorder subsystem factors to ``H[order[0]] x H[order[1]] x ...``.

    Parameters
    ----------
    A : QuantumObject
        Ket, Bra or Operator.
    order : sequence of int
        A permutation of ``0..n-1``.

    Returns
    -------
    QuantumObject
        Same role and storage kind, ``dims`` permuted by ``order``. The data is
        only gathered, never recombined, so the inverse permutation restores
        ``A`` bit for bit.

    Raises
    ------
    ValueError
        If ``order`` has the wrong length or is not a permutation.
    """
    if A.role not in _STATE_ROLES:
        raise IncompatibleRoleError(f"permute is not defined for {A.role}.")
    n = len(A.dims)
    order = _as_indices(order, "Permutation")
    if len(order) != n:
        raise ValueError(f"Permutation {order} has length {len(order)}, expected {n}.")
    if sorted(order) != list(range(n)):
        raise ValueError(f"{order} is not a permutation of 0..{n - 1}.")

    idx = _subsystem_index_map(A.dims, order)
    data = A.data
    if A.role is Role.KET:
        new = data[idx, :]
    elif A.role is Role.BRA:
        new = data[:, idx]
    elif issparse(data):
        new = data[idx, :][:, idx]
    else:
        new = data[np.ix_(idx, idx)]
    return A._wrap_result(new, dims=[A.dims[o] for o in order])


# --------- Bipartite diagnostics ---------
def partial_transpose(rho: QuantumObject, mask: Sequence[Union[bool, int]]) -> QuantumObject:
    """Transpose the subsystems flagged in ``mask`` (one flag per subsystem)."""
    if rho.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"partial_transpose needs an Operator, got {rho.role}.")
    n = len(rho.dims)
    if len(mask) != n:
        raise ValueError(f"mask has length {len(mask)}, expected {n}.")
    perm = list(range(2 * n))
    for i, flag in enumerate(mask):
        if flag:
            perm[i], perm[i + n] = i + n, i
    N = prod(rho.dims)
    out = _as_dense(rho.data).reshape(rho.dims + rho.dims).transpose(perm).reshape(N, N)
    return QuantumObject(out, Role.OPERATOR, list(rho.dims))


def negativity(rho: QuantumObject, subsys: int, logarithmic: bool = False) -> float:
    """Negativity of ``rho`` with respect to subsystem ``subsys``.

    Computed as ``(||rho^{T_A}||_1 - 1) / 2`` for a unit-trace state. With
    ``logarithmic=True`` returns ``log2(||rho^{T_A}||_1)``.
    """
    if rho.role is Role.KET:
        rho = rho * rho.dag()
    n = len(rho.dims)
    if not 0 <= subsys < n:
        raise ValueError(f"subsys={subsys} outside 0..{n - 1}.")
    rho_pt = partial_transpose(rho, [i == subsys for i in range(n)])
    trace_norm = float(np.sum(np.abs(np.linalg.eigvalsh(rho_pt.data))))
    if logarithmic:
        return float(np.log2(trace_norm))
    return (trace_norm - 1.0) / 2.0


def entanglement(psi: QuantumObject, sel: Union[int, Iterable[int]]) -> float:
    """Entanglement entropy: von Neumann entropy of ``ptrace(psi, sel)``."""
    from .functions import entropy_vn, normalize

    if psi.role not in (Role.KET, Role.OPERATOR):
        raise IncompatibleRoleError(f"entanglement needs a Ket or an Operator, got {psi.role}.")
    rho = ptrace(normalize(psi), sel)
    return entropy_vn(rho)


# --------- Vectorization ---------
def mat2vec(A):
    """Column-stack a square array into an ``(N*N, 1)`` column."""
    n, m = A.shape
    if issparse(A):
        return csr_matrix(A.reshape((n * m, 1), order="F"))
    return np.asarray(A).reshape(n * m, 1, order="F")


def vec2mat(v):
    """Inverse of :func:`mat2vec`."""
    length = v.shape[0] * v.shape[1]
    n = isqrt(length)
    if n * n != length:
        raise ValueError(f"Vector length {length} is not a perfect square.")
    if issparse(v):
        return csr_matrix(v.reshape((n, n), order="F"))
    return np.asarray(v).reshape(n, n, order="F")


def operator_to_vector(A: QuantumObject) -> QuantumObject:
    """Operator -> OperatorKet by column stacking."""
    if A.role is not Role.OPERATOR:
        raise IncompatibleRoleError(f"operator_to_vector needs an Operator, got {A.role}.")
    return A._wrap_result(mat2vec(A.data).copy(), role=Role.OPERATOR_KET)


def vector_to_operator(v: QuantumObject) -> QuantumObject:
    """OperatorKet -> Operator, undoing :func:`operator_to_vector`."""
    if v.role is not Role.OPERATOR_KET:
        raise IncompatibleRoleError(f"vector_to_operator needs an OperatorKet, got {v.role}.")
    return v._wrap_result(vec2mat(v.data).copy(), role=Role.OPERATOR)

