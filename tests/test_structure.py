"""
Tests for qobjalg.structure: tensor, partial trace, permutation, vectorization
"""

import numpy as np
import pytest

from qobjalg import (
    IncompatibleRoleError,
    QuantumObject,
    Role,
    entanglement,
    mat2vec,
    negativity,
    operator_to_vector,
    partial_transpose,
    permute,
    ptrace,
    spre,
    tensor,
    vec2mat,
    vector_to_operator,
)
from qobjkit import basis, destroy, ket2dm, rand_dm, sigmax, sigmaz


def _rand_ket(dims, seed):
    rng = np.random.default_rng(seed)
    n = int(np.prod(dims))
    v = rng.standard_normal(n) + 1j * rng.standard_normal(n)
    return QuantumObject(v / np.linalg.norm(v), Role.KET, dims)


def _rand_op(dims, seed):
    rng = np.random.default_rng(seed)
    n = int(np.prod(dims))
    M = rng.standard_normal((n, n)) + 1j * rng.standard_normal((n, n))
    return QuantumObject(M, Role.OPERATOR, dims)


def _bell():
    psi = tensor(basis(2, 0), basis(2, 0)) + tensor(basis(2, 1), basis(2, 1))
    return psi / np.sqrt(2)


class TestTensor:
    """Kronecker product with dims concatenation"""

    def test_dims_concatenate(self):
        psi = tensor(basis(2, 0), basis(3, 1), basis(4, 2))
        assert psi.dims == [2, 3, 4]
        assert psi.isket
        # first subsystem is the most significant digit
        assert psi.full()[0 * 12 + 1 * 4 + 2, 0] == 1

    def test_list_argument(self):
        assert tensor([sigmax(), sigmaz()]) == tensor(sigmax(), sigmaz())

    def test_sparse_if_any_factor_sparse(self):
        assert tensor(sigmax(), QuantumObject(np.eye(2))).issparse
        assert not tensor(basis(2, 0), basis(2, 1)).issparse

    def test_mixed_roles(self):
        with pytest.raises(IncompatibleRoleError):
            tensor(basis(2, 0), sigmax())
        with pytest.raises(IncompatibleRoleError):
            tensor(spre(sigmax()), spre(sigmax()))


class TestPartialTrace:
    """Reduction to the kept subsystems"""

    def test_product_state(self):
        psi = tensor(basis(2, 0), basis(2, 1))
        rho = ptrace(psi, [1])
        assert rho.isoper and rho.dims == [2]
        assert np.array_equal(rho.full(), np.diag([0, 1]))

    def test_bell_state(self):
        rho = ptrace(_bell(), [0])
        assert np.allclose(rho.full(), np.diag([0.5, 0.5]))

    def test_single_subsystem_is_identity(self):
        rho = rand_dm(3, seed=1)
        assert ptrace(rho, [0]) is rho
        psi = basis(3, 2)
        assert ptrace(psi, [5]) is psi

    def test_int_selection(self):
        rho = ket2dm(_rand_ket([2, 3], seed=2))
        assert ptrace(rho, 1) == ptrace(rho, [1])

    def test_selection_order_ignored(self):
        rho = _rand_op([2, 3, 4], seed=3)
        assert ptrace(rho, [2, 0]) == ptrace(rho, [0, 2])

    def test_invalid_selection(self):
        rho = _rand_op([2, 3], seed=4)
        with pytest.raises(ValueError):
            ptrace(rho, [0, 0])
        with pytest.raises(ValueError):
            ptrace(rho, [2])
        with pytest.raises(ValueError):
            ptrace(rho, [-1])

    def test_non_integer_selection(self):
        rho = _rand_op([2, 3], seed=4)
        with pytest.raises(ValueError):
            ptrace(rho, [0.9])
        with pytest.raises(ValueError):
            ptrace(rho, 1.0)
        assert ptrace(rho, np.int64(1)) == ptrace(rho, [1])

    def test_empty_selection_gives_trace(self):
        rho = _rand_op([2, 3], seed=5)
        out = ptrace(rho, [])
        assert out.dims == [1] and out.shape == (1, 1)
        assert np.isclose(out.full()[0, 0], np.trace(rho.full()))

    def test_bra_matches_ket(self):
        psi = _rand_ket([2, 3], seed=6)
        assert ptrace(psi.dag(), [0]) == ptrace(psi, [0])

    def test_superoperator_rejected(self):
        with pytest.raises(IncompatibleRoleError):
            ptrace(spre(tensor(sigmax(), sigmaz())), [0])

    def test_sparse_operator(self):
        op = tensor(sigmax(), destroy(3))
        dense = QuantumObject(op.full(), Role.OPERATOR, op.dims)
        assert ptrace(op, [1]) == ptrace(dense, [1])
        assert np.allclose(ptrace(op, [0]).full(), 0)

    @pytest.mark.parametrize(
        "sel, subscripts",
        [
            ([0], "abcdbc->ad"),
            ([1], "abcaec->be"),
            ([2], "abcabf->cf"),
            ([0, 1], "abcdec->abde"),
            ([0, 2], "abcdbf->acdf"),
            ([1, 2], "abcaef->bcef"),
        ],
    )
    def test_three_nonuniform_subsystems(self, sel, subscripts):
        """dims [2, 3, 4] against an explicit einsum contraction"""
        dims = [2, 3, 4]
        rho = _rand_op(dims, seed=7)
        k = int(np.prod([dims[i] for i in sel]))
        expected = np.einsum(subscripts, rho.full().reshape(dims + dims)).reshape(k, k)
        out = ptrace(rho, sel)
        assert out.dims == [dims[i] for i in sel]
        assert np.allclose(out.full(), expected)

        psi = _rand_ket(dims, seed=8)
        expected_ket = np.einsum(subscripts, ket2dm(psi).full().reshape(dims + dims)).reshape(k, k)
        assert np.allclose(ptrace(psi, sel).full(), expected_ket)

    def test_reduction_of_product_operator(self):
        A, B, C = rand_dm(2, seed=9), rand_dm(3, seed=10), rand_dm(4, seed=11)
        rho = tensor(A, B, C)
        assert ptrace(rho, [1]) == B
        assert ptrace(rho, [0, 2]) == tensor(A, C)


class TestPermute:
    """Subsystem reordering"""

    def test_tensor_consistency(self):
        a, b, c = basis(2, 1), basis(3, 2), basis(4, 3)
        assert permute(tensor(a, b, c), [1, 0, 2]) == tensor(b, a, c)

    def test_operator_consistency(self):
        A, B, C = _rand_op([2], 1), _rand_op([3], 2), _rand_op([4], 3)
        out = permute(tensor(A, B, C), [2, 0, 1])
        assert out.dims == [4, 2, 3]
        assert out == tensor(C, A, B)

    def test_bra(self):
        a, b = _rand_ket([2], 4), _rand_ket([3], 5)
        assert permute(tensor(a, b).dag(), [1, 0]) == tensor(b, a).dag()

    @pytest.mark.parametrize("order", [[0, 1, 2], [1, 0, 2], [2, 1, 0], [1, 2, 0], [2, 0, 1]])
    def test_round_trip_exact(self, order):
        inverse = list(np.argsort(order))
        for x in (_rand_ket([2, 3, 4], 6), _rand_op([2, 3, 4], 7)):
            back = permute(permute(x, order), inverse)
            assert back.dims == x.dims
            assert np.array_equal(back.full(), x.full())

    def test_sparse_stays_sparse(self):
        op = tensor(sigmax(), destroy(3))
        out = permute(op, [1, 0])
        assert out.issparse
        assert out == tensor(destroy(3), sigmax())

    def test_invalid_order(self):
        psi = _rand_ket([2, 3], 8)
        with pytest.raises(ValueError):
            permute(psi, [0, 0])
        with pytest.raises(ValueError):
            permute(psi, [0])
        with pytest.raises(ValueError):
            permute(psi, [0, 2])

    def test_non_integer_order(self):
        psi = _rand_ket([2, 3], 8)
        with pytest.raises(ValueError):
            permute(psi, [0.9, 1.2])
        with pytest.raises(ValueError):
            permute(psi, [1.0, 0.0])
        assert permute(psi, np.array([1, 0])).dims == [3, 2]


class TestBipartite:
    """Partial transpose, negativity, entanglement entropy"""

    def test_partial_transpose_of_product(self):
        A, B = _rand_op([2], 1), _rand_op([3], 2)
        assert partial_transpose(tensor(A, B), [True, False]) == tensor(A.trans(), B)
        assert partial_transpose(tensor(A, B), [1, 1]) == tensor(A, B).trans()

    def test_negativity(self):
        assert np.isclose(negativity(_bell(), 0), 0.5)
        assert np.isclose(negativity(_bell(), 1, logarithmic=True), 1.0)
        assert np.isclose(negativity(tensor(rand_dm(2, seed=1), rand_dm(2, seed=2)), 0), 0.0)

    def test_entanglement(self):
        assert np.isclose(entanglement(_bell(), [0]), np.log(2))
        assert np.isclose(entanglement(tensor(basis(2, 0), basis(3, 1)), 0), 0.0)


class TestVectorization:
    """Column stacking"""

    def test_column_stacking(self):
        A = np.arange(9).reshape(3, 3)
        v = mat2vec(A)
        assert v.shape == (9, 1)
        assert v[1 + 3 * 2, 0] == A[1, 2]
        assert np.array_equal(vec2mat(v), A)

    def test_operator_vector_round_trip(self):
        rho = rand_dm(3, seed=3)
        v = operator_to_vector(rho)
        assert v.isoperket and v.dims == [3]
        assert vector_to_operator(v) == rho

    def test_superoperator_acts_on_vector(self):
        rho = rand_dm(2, seed=4)
        out = spre(sigmax()) * operator_to_vector(rho)
        assert vector_to_operator(out) == sigmax() * rho

    def test_wrong_roles(self):
        with pytest.raises(IncompatibleRoleError):
            operator_to_vector(basis(2, 0))
        with pytest.raises(IncompatibleRoleError):
            vector_to_operator(sigmax())
