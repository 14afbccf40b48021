r"""
qobjalg: Role-Tagged Quantum Objects on Composite Hilbert Spaces
----------------------------------------------------------------
Defines :class:`QuantumObject`, a complex array tagged with its physical role
(state vector, dual, operator, super-operator, vectorized operator) and the
factorization ``dims`` of the Hilbert space it lives on. Arithmetic dispatches
on the pair of roles and refuses combinations it does not define.

Public API
----------
- ``Role``: closed set of roles.
- ``QuantumObject``: the tagged array, with arithmetic and role transforms.
- ``DimensionMismatchError``, ``IncompatibleRoleError``: error kinds.

Notes
-----
- Shapes. With ``N = prod(dims)``: Ket ``(N, 1)``, Bra ``(1, N)``, Operator
  ``(N, N)``, SuperOperator ``(N**2, N**2)``, OperatorKet ``(N**2, 1)``,
  OperatorBra ``(1, N**2)``.
- Composite structure. ``dims`` is order-sensitive: ``[2, 3]`` and ``[3, 2]``
  describe different spaces even though both have ``N = 6``. Binary operations
  compare ``dims`` before touching the data.
- Storage. Dense data is a 2D ``complex128`` ndarray, sparse data a
  ``scipy.sparse.csr_matrix``. Operations keep sparse inputs sparse where the
  underlying SciPy operation does.
- Ownership. Every operation allocates a new object, except the augmented
  assignments (``+=``, ``-=``, ``*=``, ``/=``) which mutate ``data`` of the
  left operand and return it.
"""

from dataclasses import InitVar, dataclass
from enum import Enum
from math import isqrt, prod
from numbers import Number
from typing import Any, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse, spmatrix
from scipy.sparse import identity as sparse_identity

from .settings import settings

__all__ = [
    "Role",
    "QuantumObject",
    "DimensionMismatchError",
    "IncompatibleRoleError",
]


class DimensionMismatchError(ValueError):
    """Operands carry different composite ``dims`` (order-sensitive)."""


class IncompatibleRoleError(TypeError):
    """Operation is not defined for the role (or pair of roles) of its operands."""


class Role(Enum):
    """Physical role of a :class:`QuantumObject`."""

    KET = "Ket"
    BRA = "Bra"
    OPERATOR = "Operator"
    SUPEROPERATOR = "SuperOperator"
    OPERATOR_KET = "OperatorKet"
    OPERATOR_BRA = "OperatorBra"

    def __str__(self) -> str:
        return self.value


_COLUMN_ROLES = (Role.KET, Role.OPERATOR_KET)
_ROW_ROLES = (Role.BRA, Role.OPERATOR_BRA)
_SQUARE_ROLES = (Role.OPERATOR, Role.SUPEROPERATOR)
_VECTORIZED_ROLES = (Role.SUPEROPERATOR, Role.OPERATOR_KET, Role.OPERATOR_BRA)

_ADJOINT_ROLE = {
    Role.KET: Role.BRA,
    Role.BRA: Role.KET,
    Role.OPERATOR: Role.OPERATOR,
    Role.SUPEROPERATOR: Role.SUPEROPERATOR,
    Role.OPERATOR_KET: Role.OPERATOR_BRA,
    Role.OPERATOR_BRA: Role.OPERATOR_KET,
}

# (left, right) -> role of the product; None marks a scalar result
_PRODUCT_ROLE = {
    (Role.OPERATOR, Role.OPERATOR): Role.OPERATOR,
    (Role.OPERATOR, Role.KET): Role.KET,
    (Role.BRA, Role.OPERATOR): Role.BRA,
    (Role.KET, Role.BRA): Role.OPERATOR,
    (Role.BRA, Role.KET): None,
    (Role.SUPEROPERATOR, Role.SUPEROPERATOR): Role.SUPEROPERATOR,
    (Role.SUPEROPERATOR, Role.OPERATOR): Role.OPERATOR,
    (Role.SUPEROPERATOR, Role.OPERATOR_KET): Role.OPERATOR_KET,
    (Role.OPERATOR_BRA, Role.SUPEROPERATOR): Role.OPERATOR_BRA,
    (Role.OPERATOR_KET, Role.OPERATOR_BRA): Role.SUPEROPERATOR,
    (Role.OPERATOR_BRA, Role.OPERATOR_KET): None,
}


# --------- Shape helpers ---------
def _expected_shape(role: Role, dims: list[int]) -> tuple[int, int]:
    """Return the data shape implied by ``role`` and ``dims``."""
    n = prod(dims)
    if role in _VECTORIZED_ROLES:
        n = n * n
    if role in _COLUMN_ROLES:
        return (n, 1)
    if role in _ROW_ROLES:
        return (1, n)
    return (n, n)


def _as_dense(arr: Union[np.ndarray, spmatrix]) -> np.ndarray:
    """Return ``arr`` as a dense ndarray (no copy for dense input)."""
    if issparse(arr):
        return arr.toarray()
    return np.asarray(arr)


def _infer_role(shape: tuple[int, int]) -> Role:
    """Guess Ket, Bra or Operator from a 2D shape."""
    rows, cols = shape
    if rows == cols:
        return Role.OPERATOR
    if cols == 1:
        return Role.KET
    if rows == 1:
        return Role.BRA
    raise ValueError(f"Cannot infer a role for data of shape {shape}; pass role explicitly.")


# --------- Core class ---------
@dataclass
class QuantumObject:
    """Complex array tagged with a role and a composite Hilbert-space factorization.

    Parameters
    ----------
    data : array_like or scipy.sparse.spmatrix
        Numeric data. One-dimensional input is read as a column for Ket and
        OperatorKet roles and as a row for Bra and OperatorBra roles.
    role : Role or str, optional
        Physical role. Inferred from the shape when omitted (column -> Ket,
        row -> Bra, square -> Operator).
    dims : sequence of int, optional
        Subsystem dimensions. Inferred as ``[n]`` (or ``[sqrt(n)]`` for
        vectorized roles) when omitted.
    copy_data : bool, optional
        Copy ``data`` on construction (default ``True``).

    Raises
    ------
    ValueError
        If the data has the wrong orientation for its role, ``dims`` has
        non-positive entries, or a vectorized length is not a perfect square.
    DimensionMismatchError
        If ``prod(dims)`` does not match the data shape implied by the role.
    """

    data: Union[np.ndarray, spmatrix]
    role: Role | None = None
    dims: list[int] | None = None
    copy_data: InitVar[bool] = True

    # Prefer our arithmetic when mixed with NumPy arrays
    __array_priority__ = 1000

    def __post_init__(self, copy_data: bool) -> None:
        """Coerce data to complex storage and validate role/shape/dims."""
        arr = self.data
        if isinstance(arr, QuantumObject):
            raise TypeError("data must be an array, not a QuantumObject.")
        role = Role(self.role) if self.role is not None else None

        if issparse(arr):
            arr = csr_matrix(arr, dtype=np.complex128, copy=copy_data)
        else:
            arr = np.array(arr, dtype=np.complex128) if copy_data else np.asarray(arr, dtype=np.complex128)
            if arr.ndim == 1:
                arr = arr.reshape(1, -1) if role in _ROW_ROLES else arr.reshape(-1, 1)
                if role is None and arr.shape == (1, 1):
                    role = Role.KET
            elif arr.ndim != 2:
                raise ValueError(f"Expected 1D or 2D data, got {arr.ndim}D.")

        if role is None:
            role = _infer_role(arr.shape)

        if self.dims is None:
            n = arr.shape[1] if role in _ROW_ROLES else arr.shape[0]
            if role in _VECTORIZED_ROLES:
                root = isqrt(n)
                if root * root != n:
                    raise ValueError(f"{role} data length {n} is not a perfect square.")
                n = root
            dims = [int(n)]
        else:
            dims = [int(d) for d in self.dims]
            if not dims or any(d <= 0 for d in dims):
                raise ValueError(f"dims must be a non-empty list of positive integers, got {self.dims}.")

        expected = _expected_shape(role, dims)
        if arr.shape != expected:
            rows, cols = arr.shape
            if ((role in _COLUMN_ROLES and cols != 1)
                    or (role in _ROW_ROLES and rows != 1)
                    or (role in _SQUARE_ROLES and rows != cols)):
                raise ValueError(f"Data of shape {arr.shape} has the wrong orientation for {role}.")
            raise DimensionMismatchError(
                f"dims={dims} imply shape {expected} for {role}, data has shape {arr.shape}."
            )

        self.data = arr
        self.role = role
        self.dims = dims

    # ---- NumPy interop ----
    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        """Return the data as a dense NumPy array (optionally cast)."""
        arr = _as_dense(self.data)
        return arr.astype(dtype) if dtype is not None else arr

    # ---- Queries ----
    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    @property
    def size(self) -> int:
        """Number of matrix entries (stored or not)."""
        return int(self.data.shape[0] * self.data.shape[1])

    def __len__(self) -> int:
        return self.data.shape[0]

    @property
    def nnz(self) -> int:
        """Number of stored entries for sparse data, nonzero entries for dense data."""
        if issparse(self.data):
            return int(self.data.nnz)
        return int(np.count_nonzero(self.data))

    @property
    def issparse(self) -> bool:
        return issparse(self.data)

    @property
    def isket(self) -> bool:
        return self.role is Role.KET

    @property
    def isbra(self) -> bool:
        return self.role is Role.BRA

    @property
    def isoper(self) -> bool:
        return self.role is Role.OPERATOR

    @property
    def issuper(self) -> bool:
        return self.role is Role.SUPEROPERATOR

    @property
    def isoperket(self) -> bool:
        return self.role is Role.OPERATOR_KET

    @property
    def isoperbra(self) -> bool:
        return self.role is Role.OPERATOR_BRA

    @property
    def isherm(self) -> bool:
        """Hermiticity within ``settings.atol``; always ``False`` for non-square roles."""
        if self.role not in _SQUARE_ROLES:
            return False
        diff = self.data - self.data.conj().T
        if issparse(diff):
            return diff.nnz == 0 or float(abs(diff).max()) <= settings.atol
        return bool(np.all(np.abs(diff) <= settings.atol))

    def full(self) -> np.ndarray:
        """Return a dense copy of the data."""
        if issparse(self.data):
            return self.data.toarray()
        return self.data.copy()

    def copy(self) -> "QuantumObject":
        """Return a deep copy."""
        return self.__class__(self.data.copy(), self.role, list(self.dims), copy_data=False)

    def __repr__(self) -> str:
        """Compact summary with role, dims and shape."""
        storage = "sparse" if self.issparse else "dense"
        herm = f", isherm={self.isherm}" if self.role in _SQUARE_ROLES else ""
        return (f"QuantumObject(role={self.role}, dims={self.dims}, "
                f"shape={self.shape}, {storage}{herm})")

    # ---- Helpers ----
    def _wrap_result(self, arr: Any, role: Role | None = None,
                     dims: list[int] | None = None) -> "QuantumObject":
        """Wrap a freshly computed array, inheriting role/dims unless given."""
        if isinstance(arr, np.matrix):
            arr = np.asarray(arr)
        return QuantumObject(arr,
                             self.role if role is None else role,
                             list(self.dims) if dims is None else dims,
                             copy_data=False)

    def _store(self, arr: Any) -> None:
        """Replace ``data`` in place with a result of the same shape."""
        if issparse(arr):
            self.data = csr_matrix(arr, dtype=np.complex128)
        else:
            self.data = np.asarray(arr, dtype=np.complex128)

    def _require_same_dims(self, other: "QuantumObject", op: str) -> None:
        if self.dims != other.dims:
            raise DimensionMismatchError(
                f"Incompatible dims in {op}: {self.dims} vs {other.dims}."
            )

    def _require_same_role(self, other: "QuantumObject", op: str) -> None:
        if self.role is not other.role:
            raise IncompatibleRoleError(f"Cannot {op} {self.role} and {other.role}.")

    def _require_square(self, op: str) -> None:
        if self.role not in _SQUARE_ROLES:
            raise IncompatibleRoleError(f"{op} is only defined for Operator/SuperOperator, got {self.role}.")

    def _identity_like(self):
        """Identity matrix with the shape and storage of this (square) object."""
        n = self.data.shape[0]
        if issparse(self.data):
            return sparse_identity(n, dtype=np.complex128, format="csr")
        return np.eye(n, dtype=np.complex128)

    def _scalar_shift(self, other: Number, op: str):
        """``other * I`` for adding a scalar to a square object."""
        if self.role not in _SQUARE_ROLES:
            raise IncompatibleRoleError(f"Cannot {op} a scalar and a {self.role}.")
        return other * self._identity_like()

    # ---- Arithmetic operators ----
    def __add__(self, other):
        if isinstance(other, QuantumObject):
            self._require_same_role(other, "add")
            self._require_same_dims(other, "addition")
            return self._wrap_result(self.data + other.data)
        if isinstance(other, Number):
            if other == 0:
                return self.copy()
            return self._wrap_result(self.data + self._scalar_shift(other, "add"))
        return NotImplemented

    def __radd__(self, other):
        # commutative
        return self.__add__(other)

    def __sub__(self, other):
        if isinstance(other, QuantumObject):
            self._require_same_role(other, "subtract")
            self._require_same_dims(other, "subtraction")
            return self._wrap_result(self.data - other.data)
        if isinstance(other, Number):
            if other == 0:
                return self.copy()
            return self._wrap_result(self.data - self._scalar_shift(other, "subtract"))
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, Number):
            if other == 0:
                return -self
            return self._wrap_result(self._scalar_shift(other, "subtract") - self.data)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, QuantumObject):
            return self._product(other)
        if isinstance(other, Number):
            return self._wrap_result(self.data * other)
        return NotImplemented

    def __rmul__(self, other):
        # Scalar multiplication (commutative)
        if isinstance(other, Number):
            return self._wrap_result(other * self.data)
        return NotImplemented

    def __matmul__(self, other):
        if isinstance(other, QuantumObject):
            return self._product(other)
        return NotImplemented

    def __truediv__(self, other):
        # Only scalar division is supported
        if isinstance(other, Number):
            return self._wrap_result(self.data / other)
        return NotImplemented

    def __neg__(self):
        return self._wrap_result(-self.data)

    def __pow__(self, n):
        """Matrix power with a non-negative integer exponent."""
        if not isinstance(n, (int, np.integer)):
            return NotImplemented
        self._require_square("Matrix power")
        if n < 0:
            raise ValueError("Only non-negative integer powers are supported.")
        n = int(n)
        result = self._identity_like()
        base = self.data
        while n:
            if n & 1:
                result = result @ base
            n >>= 1
            if n:
                base = base @ base
        return self._wrap_result(result)

    def _product(self, other: "QuantumObject"):
        """Role-dispatched product ``self * other``."""
        key = (self.role, other.role)
        if key not in _PRODUCT_ROLE:
            raise IncompatibleRoleError(f"Product {self.role} * {other.role} is not defined.")
        self._require_same_dims(other, "product")
        role = _PRODUCT_ROLE[key]

        if key == (Role.SUPEROPERATOR, Role.OPERATOR):
            from .structure import mat2vec, vec2mat  # local import to avoid cycle
            out = self.data @ mat2vec(_as_dense(other.data))
            return self._wrap_result(vec2mat(_as_dense(out)), role=Role.OPERATOR)

        out = self.data @ other.data
        if role is None:
            return complex(_as_dense(out)[0, 0])
        return self._wrap_result(out, role=role)

    # ---- In-place operators (mutating) ----
    def __iadd__(self, other):
        if isinstance(other, QuantumObject):
            self._require_same_role(other, "add")
            self._require_same_dims(other, "addition")
            if not issparse(self.data) and not issparse(other.data):
                self.data += other.data
            else:
                self._store(self.data + other.data)
            return self
        if isinstance(other, Number):
            if other != 0:
                self._store(self.data + self._scalar_shift(other, "add"))
            return self
        return NotImplemented

    def __isub__(self, other):
        if isinstance(other, QuantumObject):
            self._require_same_role(other, "subtract")
            self._require_same_dims(other, "subtraction")
            if not issparse(self.data) and not issparse(other.data):
                self.data -= other.data
            else:
                self._store(self.data - other.data)
            return self
        if isinstance(other, Number):
            if other != 0:
                self._store(self.data - self._scalar_shift(other, "subtract"))
            return self
        return NotImplemented

    def __imul__(self, other):
        # Only scalar scaling is done in place
        if isinstance(other, Number):
            if issparse(self.data):
                self.data.data *= other
            else:
                self.data *= other
            return self
        return NotImplemented

    def __itruediv__(self, other):
        if isinstance(other, Number):
            if issparse(self.data):
                self.data.data /= other
            else:
                self.data /= other
            return self
        return NotImplemented

    def __eq__(self, other):
        """Same role, same dims, entries equal within ``settings.atol``."""
        if not isinstance(other, QuantumObject):
            return NotImplemented
        if self.role is not other.role or self.dims != other.dims:
            return False
        diff = self.data - other.data
        if issparse(diff):
            return diff.nnz == 0 or float(abs(diff).max()) <= settings.atol
        return bool(np.all(np.abs(np.asarray(diff)) <= settings.atol))

    # ---- Role transforms ----
    def dag(self) -> "QuantumObject":
        """Adjoint. Ket <-> Bra and OperatorKet <-> OperatorBra; square roles keep their role."""
        return self._wrap_result(self.data.conj().T, role=_ADJOINT_ROLE[self.role])

    def trans(self) -> "QuantumObject":
        """Transpose, with the same role mapping as :meth:`dag`."""
        return self._wrap_result(self.data.T.copy(), role=_ADJOINT_ROLE[self.role])

    def conj(self) -> "QuantumObject":
        """Element-wise complex conjugate (role preserved)."""
        return self._wrap_result(self.data.conj())

    def tr(self) -> Union[float, complex]:
        """Trace; real-valued for Hermitian objects."""
        self._require_square("Trace")
        out = complex(self.data.diagonal().sum())
        return out.real if self.isherm else out

    # ---- Delegates to the algebra / structure layers ----
    def norm(self, p: float | None = None) -> float:
        from .functions import norm
        return norm(self, p)

    def unit(self, p: float | None = None) -> "QuantumObject":
        """Return a normalized copy (see :func:`qobjalg.functions.normalize`)."""
        from .functions import normalize
        return normalize(self, p)

    def diag(self, k: int = 0) -> np.ndarray:
        from .functions import diag
        return diag(self, k)

    def proj(self) -> "QuantumObject":
        from .functions import proj
        return proj(self)

    def purity(self) -> float:
        from .functions import purity
        return purity(self)

    def expm(self) -> "QuantumObject":
        from .functions import expm
        return expm(self)

    def logm(self) -> "QuantumObject":
        from .functions import logm
        return logm(self)

    def sqrtm(self) -> "QuantumObject":
        from .functions import sqrtm
        return sqrtm(self)

    def sinm(self) -> "QuantumObject":
        from .functions import sinm
        return sinm(self)

    def cosm(self) -> "QuantumObject":
        from .functions import cosm
        return cosm(self)

    def inv(self) -> "QuantumObject":
        from .functions import inv
        return inv(self)

    def tidyup(self, tol: float | None = None) -> "QuantumObject":
        from .functions import tidyup
        return tidyup(self, tol)

    def ptrace(self, sel) -> "QuantumObject":
        from .structure import ptrace
        return ptrace(self, sel)

    def permute(self, order) -> "QuantumObject":
        from .structure import permute
        return permute(self, order)
