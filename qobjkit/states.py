r"""
qobjkit.states: Standard State Factories
----------------------------------------
Fock, coherent and random states as :class:`qobjalg.QuantumObject`.

Public API
----------
- ``basis``, ``fock``: computational basis Ket ``|n>``.
- ``fock_dm``: ``|n><n|``.
- ``coherent``: displaced vacuum ``D(alpha)|0>`` on a truncated space.
- ``ket2dm``: pure state to density operator.
- ``maximally_mixed_dm``: ``I / N``.
- ``rand_dm``: random density operator from the Ginibre ensemble.
- ``get_coherence``: coherent amplitude ``<a>`` and the displaced-back state.
- ``n_th``: Bose-Einstein occupation number.
"""

import numpy as np
from scipy.sparse import identity as sparse_identity

from qobjalg import IncompatibleRoleError, QuantumObject, Role, expect

from .operators import create, destroy

__all__ = [
    "basis",
    "fock",
    "fock_dm",
    "coherent",
    "ket2dm",
    "maximally_mixed_dm",
    "rand_dm",
    "get_coherence",
    "n_th",
]


def basis(N: int, n: int, dims: list[int] | None = None) -> QuantumObject:
    """Dense Ket ``|n>`` of an ``N``-dimensional space (0-based ``n``)."""
    if not 0 <= n < N:
        raise ValueError(f"Basis index n={n} outside 0..{N - 1}.")
    data = np.zeros((N, 1), dtype=np.complex128)
    data[n, 0] = 1.0
    return QuantumObject(data, Role.KET, dims, copy_data=False)


fock = basis


def ket2dm(psi: QuantumObject) -> QuantumObject:
    """``|psi><psi|`` for a Ket; an Operator is returned unchanged."""
    if psi.role is Role.KET:
        return psi * psi.dag()
    if psi.role is Role.OPERATOR:
        return psi
    raise IncompatibleRoleError(f"ket2dm needs a Ket or an Operator, got {psi.role}.")


def fock_dm(N: int, n: int, dims: list[int] | None = None) -> QuantumObject:
    return ket2dm(basis(N, n, dims))


def _displacement(N: int, alpha: complex, dims: list[int] | None = None) -> QuantumObject:
    """Dense ``D(alpha) = exp(alpha a^dagger - alpha^* a)`` on ``N`` levels."""
    generator = alpha * create(N) - np.conj(alpha) * destroy(N)
    return QuantumObject(generator.full(), Role.OPERATOR, dims or [N], copy_data=False).expm()


def coherent(N: int, alpha: complex) -> QuantumObject:
    """Coherent state ``exp(alpha a^dagger - alpha^* a)|0>`` on ``N`` levels.

    The displacement is exponentiated densely, so the result is exact for the
    truncated generator; it deviates from the infinite-dimensional coherent
    state by the weight that leaks past level ``N - 1``.
    """
    return _displacement(N, alpha) * basis(N, 0)


def maximally_mixed_dm(N: int, dims: list[int] | None = None) -> QuantumObject:
    data = sparse_identity(N, dtype=np.complex128, format="csr") / N
    return QuantumObject(data, Role.OPERATOR, dims, copy_data=False)


def rand_dm(N: int, seed=None, dims: list[int] | None = None) -> QuantumObject:
    """Random full-rank density operator ``G G^dagger / Tr(G G^dagger)``.

    Parameters
    ----------
    N : int
        Dimension.
    seed : int or numpy.random.Generator, optional
        Seed or generator passed to ``numpy.random.default_rng``.
    dims : list of int, optional
        Subsystem dimensions (default ``[N]``).
    """
    rng = np.random.default_rng(seed)
    G = rng.standard_normal((N, N)) + 1j * rng.standard_normal((N, N))
    rho = G @ G.conj().T
    rho /= np.trace(rho).real
    return QuantumObject(rho, Role.OPERATOR, dims, copy_data=False)


# --------- Coherence and thermal occupation ---------
def get_coherence(psi: QuantumObject):
    """Split a state into its coherent amplitude and the fluctuations around it.

    Parameters
    ----------
    psi : QuantumObject
        Ket or density Operator of a single truncated mode.

    Returns
    -------
    alpha : complex
        ``<a>`` in ``psi``.
    delta : QuantumObject
        ``D(alpha)^dagger |psi>`` for a Ket, ``D(alpha)^dagger rho D(alpha)``
        for an Operator: the state with the coherent part displaced back to
        the origin.
    """
    if psi.role not in (Role.KET, Role.OPERATOR):
        raise IncompatibleRoleError(f"get_coherence needs a Ket or an Operator, got {psi.role}.")
    N = psi.shape[0]
    a = QuantumObject(destroy(N).data, Role.OPERATOR, list(psi.dims))
    alpha = complex(expect(a, psi))
    Dd = _displacement(N, alpha, list(psi.dims)).dag()
    if psi.role is Role.KET:
        return alpha, Dd * psi
    return alpha, Dd * psi * Dd.dag()


def n_th(omega: float, T: float) -> float:
    """Bose-Einstein occupation ``1 / (exp(omega / T) - 1)`` (``hbar = k_B = 1``).

    Zero when ``omega`` or ``T`` is zero, and when ``|omega / T| > 50`` where it
    is below ``2e-22``.
    """
    if T == 0 or omega == 0:
        return 0.0
    x = omega / T
    if abs(x) > 50:
        return 0.0
    return float(1.0 / np.expm1(x))
