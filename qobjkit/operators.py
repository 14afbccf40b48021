r"""
qobjkit.operators: Standard Operator Factories
----------------------------------------------
Sparse ladder, number, spin and Pauli operators, identities, projections and
Jordan-Wigner fermions, all returned as :class:`qobjalg.QuantumObject`.

Public API
----------
- ``destroy``, ``create``, ``num``: bosonic operators on a truncated Fock space.
- ``jmat``, ``spin_Jx``, ``spin_Jy``, ``spin_Jz``, ``spin_Jp``, ``spin_Jm``,
  ``spin_J_set``: spin-j operators.
- ``sigmax``, ``sigmay``, ``sigmaz``, ``sigmap``, ``sigmam``: Pauli operators.
- ``eye``, ``qeye``, ``projection``: identities and ``|i><j|``.
- ``fdestroy``, ``fcreate``: fermionic operators on ``N`` sites.

Notes
-----
- Spin bases are ordered by decreasing magnetic number, ``m = j, j-1, ..., -j``.
  For spin 1/2 index 0 is spin up, so ``sigmaz = diag(1, -1)`` and ``sigmam``
  maps index 0 to index 1.
- Fermions use ``d_j = sigmaz^{(x)j} (x) sigmam (x) I^{(x)(N-j-1)}`` on
  ``dims = [2] * N`` with 0-based site index ``j``.
"""

import numpy as np
from scipy.sparse import csr_matrix, diags
from scipy.sparse import identity as sparse_identity
from scipy.sparse import kron as sparse_kron

from qobjalg import IncompatibleRoleError, QuantumObject, Role

__all__ = [
    "destroy",
    "create",
    "num",
    "jmat",
    "spin_Jx",
    "spin_Jy",
    "spin_Jz",
    "spin_Jp",
    "spin_Jm",
    "spin_J_set",
    "sigmax",
    "sigmay",
    "sigmaz",
    "sigmap",
    "sigmam",
    "eye",
    "qeye",
    "projection",
    "fdestroy",
    "fcreate",
]


def _operator(data, dims) -> QuantumObject:
    return QuantumObject(csr_matrix(data, dtype=np.complex128), Role.OPERATOR, dims, copy_data=False)


# --------- Bosonic ---------
def destroy(N: int) -> QuantumObject:
    """Annihilation operator, ``a|n> = sqrt(n)|n-1>``, on ``N`` Fock levels."""
    return _operator(diags(np.sqrt(np.arange(1, N)), 1, shape=(N, N)), [N])


def create(N: int) -> QuantumObject:
    """Creation operator, ``a^dagger|n> = sqrt(n+1)|n+1>``, on ``N`` Fock levels."""
    return _operator(diags(np.sqrt(np.arange(1, N)), -1, shape=(N, N)), [N])


def num(N: int) -> QuantumObject:
    """Number operator ``a^dagger a``."""
    return _operator(diags(np.arange(N, dtype=float), 0, shape=(N, N)), [N])


# --------- Spin ---------
def _spin_dim(j: float) -> int:
    d = 2 * j + 1
    if j < 0 or d != int(d):
        raise ValueError(f"Spin quantum number must be a non-negative integer or half-integer, got {j}.")
    return int(d)


def _jm(j: float, d: int) -> csr_matrix:
    """Lowering operator ``J_-`` in the ``m = j, ..., -j`` basis."""
    m = j - np.arange(d)
    return csr_matrix(diags(np.sqrt(j * (j + 1) - m[:-1] * (m[:-1] - 1)), -1, shape=(d, d)))


def jmat(j: float, which: str | None = None):
    """Spin-j operators.

    Parameters
    ----------
    j : float
        Spin quantum number (non-negative integer or half-integer).
    which : {"x", "y", "z", "+", "-"}, optional
        Component to return. ``None`` returns ``(Jx, Jy, Jz)``.

    Returns
    -------
    QuantumObject or tuple of QuantumObject
        Sparse Operators with ``dims = [2j + 1]``.

    Raises
    ------
    ValueError
        If ``j`` is not a valid spin or ``which`` is unknown.
    """
    d = _spin_dim(j)
    if which is None:
        return jmat(j, "x"), jmat(j, "y"), jmat(j, "z")
    jm = _jm(j, d)
    if which == "x":
        data = (jm.conj().T + jm) / 2
    elif which == "y":
        data = (jm.conj().T - jm) / 2j
    elif which == "z":
        data = diags(j - np.arange(d), 0, shape=(d, d), dtype=float)
    elif which == "+":
        data = jm.conj().T
    elif which == "-":
        data = jm
    else:
        raise ValueError(f"Invalid spin operator '{which}'; expected one of 'x', 'y', 'z', '+', '-'.")
    return _operator(data, [d])


def spin_Jx(j: float) -> QuantumObject:
    return jmat(j, "x")


def spin_Jy(j: float) -> QuantumObject:
    return jmat(j, "y")


def spin_Jz(j: float) -> QuantumObject:
    return jmat(j, "z")


def spin_Jp(j: float) -> QuantumObject:
    return jmat(j, "+")


def spin_Jm(j: float) -> QuantumObject:
    return jmat(j, "-")


def spin_J_set(j: float):
    """``(Jx, Jy, Jz)``, same as ``jmat(j)``."""
    return jmat(j)


def sigmax() -> QuantumObject:
    return 2 * jmat(0.5, "x")


def sigmay() -> QuantumObject:
    return 2 * jmat(0.5, "y")


def sigmaz() -> QuantumObject:
    return 2 * jmat(0.5, "z")


def sigmap() -> QuantumObject:
    """Raising operator ``|up><down|``."""
    return jmat(0.5, "+")


def sigmam() -> QuantumObject:
    """Lowering operator ``|down><up|``."""
    return jmat(0.5, "-")


# --------- Identities and projections ---------
def eye(N: int, role: Role = Role.OPERATOR, dims: list[int] | None = None) -> QuantumObject:
    """Sparse ``N x N`` identity.

    Parameters
    ----------
    N : int
        Matrix size.
    role : Role, optional
        ``Role.OPERATOR`` (default) or ``Role.SUPEROPERATOR``.
    dims : list of int, optional
        Subsystem dimensions. Defaults to ``[N]`` for an Operator and
        ``[sqrt(N)]`` for a SuperOperator.
    """
    role = Role(role)
    if role not in (Role.OPERATOR, Role.SUPEROPERATOR):
        raise IncompatibleRoleError(f"eye builds an Operator or a SuperOperator, not {role}.")
    data = sparse_identity(N, dtype=np.complex128, format="csr")
    return QuantumObject(data, role, dims, copy_data=False)


qeye = eye


def projection(N: int, i: int, j: int) -> QuantumObject:
    """``|i><j|`` on an ``N``-dimensional space (0-based indices)."""
    if not (0 <= i < N and 0 <= j < N):
        raise ValueError(f"Indices ({i}, {j}) outside 0..{N - 1}.")
    data = csr_matrix(([1.0], ([i], [j])), shape=(N, N), dtype=np.complex128)
    return _operator(data, [N])


# --------- Fermionic ---------
def _jordan_wigner(N: int, j: int, op: QuantumObject) -> QuantumObject:
    if N < 1:
        raise ValueError("The number of sites N must be at least 1.")
    if not 0 <= j < N:
        raise ValueError(f"Site index j={j} outside 0..{N - 1}.")
    sz = sigmaz().data
    data = sparse_identity(1, dtype=np.complex128, format="csr")
    for _ in range(j):
        data = sparse_kron(data, sz, format="csr")
    data = sparse_kron(data, op.data, format="csr")
    data = sparse_kron(data, sparse_identity(2 ** (N - j - 1), dtype=np.complex128), format="csr")
    return _operator(data, [2] * N)


def fdestroy(N: int, j: int) -> QuantumObject:
    """Fermionic annihilation operator on site ``j`` of ``N`` (Jordan-Wigner)."""
    return _jordan_wigner(N, j, sigmam())


def fcreate(N: int, j: int) -> QuantumObject:
    """Fermionic creation operator on site ``j`` of ``N`` (Jordan-Wigner)."""
    return _jordan_wigner(N, j, sigmap())
