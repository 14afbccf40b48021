"""
Tests for qobjkit.operators and qobjkit.states
"""

import warnings

import numpy as np
import pytest

from qobjalg import IncompatibleRoleError, QuantumObject, Role, commutator, expect
from qobjkit import (
    basis,
    coherent,
    create,
    destroy,
    eye,
    fcreate,
    fdestroy,
    fock,
    fock_dm,
    get_coherence,
    jmat,
    ket2dm,
    maximally_mixed_dm,
    n_th,
    num,
    projection,
    qeye,
    rand_dm,
    sigmam,
    sigmap,
    sigmax,
    sigmay,
    sigmaz,
    spin_J_set,
    spin_Jm,
    spin_Jp,
    spin_Jx,
    spin_Jy,
    spin_Jz,
)


class TestBosonic:
    """Ladder and number operators"""

    def test_ladder_action(self):
        a = destroy(5)
        assert a * basis(5, 3) == np.sqrt(3) * basis(5, 2)
        assert create(5) * basis(5, 3) == 2 * basis(5, 4)
        assert create(5) == a.dag()

    def test_number_operator(self):
        assert num(4) == create(4) * destroy(4)
        assert np.array_equal(num(4).diag(), [0, 1, 2, 3])

    def test_canonical_commutator_below_cutoff(self):
        N = 6
        c = commutator(destroy(N), create(N)).full()
        assert np.allclose(c[:-1, :-1], np.eye(N - 1))

    def test_sparse_storage(self):
        assert destroy(4).issparse and destroy(4).dims == [4]


class TestSpin:
    """Spin-j matrices and Pauli operators"""

    @pytest.mark.parametrize("j", [0.5, 1, 1.5, 2])
    def test_commutation_relations(self, j):
        Jx, Jy, Jz = jmat(j)
        assert commutator(Jx, Jy) == 1j * Jz
        assert commutator(Jy, Jz) == 1j * Jx
        assert commutator(Jz, Jx) == 1j * Jy

    @pytest.mark.parametrize("j", [0.5, 1, 1.5])
    def test_casimir(self, j):
        Jx, Jy, Jz = spin_J_set(j)
        d = int(2 * j + 1)
        J2 = Jx * Jx + Jy * Jy + Jz * Jz
        assert np.allclose(J2.full(), j * (j + 1) * np.eye(d))

    def test_integer_spin_builds_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            Jz = spin_Jz(2)
        assert Jz.full().dtype == np.complex128
        assert np.allclose(Jz.diag(), [2, 1, 0, -1, -2])

    def test_basis_order(self):
        assert np.allclose(spin_Jz(1).diag(), [1, 0, -1])
        assert spin_Jp(1) * basis(3, 1) == np.sqrt(2) * basis(3, 0)
        assert spin_Jm(1) == spin_Jp(1).dag()

    def test_ladder_decomposition(self):
        assert spin_Jx(1.5) == (spin_Jp(1.5) + spin_Jm(1.5)) / 2
        assert spin_Jy(1.5) == (spin_Jp(1.5) - spin_Jm(1.5)) / 2j

    def test_pauli(self):
        assert np.array_equal(sigmaz().full(), np.diag([1, -1]))
        assert np.array_equal(sigmax().full(), [[0, 1], [1, 0]])
        assert np.allclose(sigmay().full(), [[0, -1j], [1j, 0]])
        assert sigmam() * basis(2, 0) == basis(2, 1)
        assert sigmap() * basis(2, 1) == basis(2, 0)

    def test_invalid_spin(self):
        with pytest.raises(ValueError):
            jmat(0.3)
        with pytest.raises(ValueError):
            jmat(-1)
        with pytest.raises(ValueError):
            jmat(1, "w")


class TestIdentityProjection:
    """eye, qeye and projection"""

    def test_eye(self):
        I = eye(6, dims=[2, 3])
        assert I.dims == [2, 3] and I.issparse
        assert np.array_equal(I.full(), np.eye(6))
        assert qeye is eye

    def test_super_eye(self):
        S = eye(9, role=Role.SUPEROPERATOR)
        assert S.issuper and S.dims == [3]

    def test_eye_rejects_vector_roles(self):
        with pytest.raises(IncompatibleRoleError):
            eye(3, role=Role.KET)

    def test_projection(self):
        P = projection(3, 0, 2)
        assert P == basis(3, 0) * basis(3, 2).dag()
        with pytest.raises(ValueError):
            projection(3, 3, 0)


class TestFermions:
    """Jordan-Wigner construction"""

    def test_anticommutators(self):
        N = 3
        d = [fdestroy(N, j) for j in range(N)]
        zero = QuantumObject(np.zeros((8, 8)), Role.OPERATOR, [2, 2, 2])
        one = eye(8, dims=[2, 2, 2])
        for i in range(N):
            for j in range(N):
                expected = one if i == j else zero
                assert commutator(d[i], d[j].dag(), anti=True) == expected
                assert commutator(d[i], d[j], anti=True) == zero

    def test_creation_is_adjoint(self):
        assert fcreate(2, 1) == fdestroy(2, 1).dag()
        assert fdestroy(2, 0).dims == [2, 2]

    def test_invalid_site(self):
        with pytest.raises(ValueError):
            fdestroy(2, 2)
        with pytest.raises(ValueError):
            fcreate(0, 0)


class TestStates:
    """Fock, coherent, mixed and random states"""

    def test_basis(self):
        psi = basis(4, 2)
        assert psi.isket and psi.dims == [4]
        assert np.array_equal(psi.full().ravel(), [0, 0, 1, 0])
        assert fock is basis
        with pytest.raises(ValueError):
            basis(2, 2)

    def test_basis_with_dims(self):
        assert basis(6, 5, dims=[2, 3]).dims == [2, 3]

    def test_fock_dm(self):
        assert fock_dm(3, 1) == projection(3, 1, 1)

    def test_ket2dm(self):
        psi = (basis(2, 0) + basis(2, 1)) / np.sqrt(2)
        rho = ket2dm(psi)
        assert np.allclose(rho.full(), 0.5 * np.ones((2, 2)))
        assert ket2dm(rho) is rho
        with pytest.raises(IncompatibleRoleError):
            ket2dm(psi.dag())

    def test_coherent(self):
        alpha = 0.8 - 0.3j
        psi = coherent(30, alpha)
        assert np.isclose(psi.norm(), 1)
        assert np.isclose(expect(destroy(30), psi), alpha)
        assert np.isclose(expect(num(30), psi), abs(alpha) ** 2)

    def test_maximally_mixed(self):
        rho = maximally_mixed_dm(4)
        assert np.isclose(rho.tr(), 1)
        assert np.isclose(rho.purity(), 0.25)

    def test_rand_dm(self):
        rho = rand_dm(5, seed=11)
        assert rho.isherm
        assert np.isclose(rho.tr(), 1)
        assert np.all(np.linalg.eigvalsh(rho.full()) > 0)
        assert rand_dm(5, seed=11) == rho
        assert rand_dm(4, seed=1, dims=[2, 2]).dims == [2, 2]


class TestCoherence:
    """Coherent amplitude and fluctuations"""

    def test_coherent_ket(self):
        alpha = 0.8 - 0.3j
        a_out, delta = get_coherence(coherent(30, alpha))
        assert np.isclose(a_out, alpha)
        assert delta.isket
        assert np.allclose(delta.full(), basis(30, 0).full(), atol=1e-8)

    def test_coherent_density_operator(self):
        alpha = 0.5j
        a_out, delta = get_coherence(ket2dm(coherent(25, alpha)))
        assert np.isclose(a_out, alpha)
        assert delta.isoper
        assert np.allclose(delta.full(), fock_dm(25, 0).full(), atol=1e-8)

    def test_vacuum_has_no_coherence(self):
        a_out, delta = get_coherence(basis(6, 0))
        assert a_out == 0
        assert delta == basis(6, 0)

    def test_fock_state_is_incoherent(self):
        a_out, delta = get_coherence(fock_dm(6, 2))
        assert np.isclose(a_out, 0)
        assert delta == fock_dm(6, 2)

    def test_rejects_bra(self):
        with pytest.raises(IncompatibleRoleError):
            get_coherence(basis(3, 0).dag())


class TestThermalOccupation:
    """Bose-Einstein occupation"""

    def test_value(self):
        assert np.isclose(n_th(1.0, 1.0), 1 / (np.e - 1))
        assert np.isclose(n_th(2.0, 0.5), 1 / (np.exp(4) - 1))

    def test_degenerate_arguments(self):
        assert n_th(1.0, 0.0) == 0.0
        assert n_th(0.0, 1.0) == 0.0
        assert n_th(100.0, 1.0) == 0.0

    def test_high_temperature_limit(self):
        assert np.isclose(n_th(1.0, 1e4), 1e4 - 0.5, rtol=1e-6)
