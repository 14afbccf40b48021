"""
Tests for qobjalg.settings: tolerances and BLAS thread limit
"""

from dataclasses import asdict

import numpy as np
import pytest
from scipy.sparse import csr_matrix

from qobjalg import QuantumObject, expm, liouvillian, liouvillian_floquet
from qobjalg.settings import (
    CoreSettings,
    blas_threads,
    configure,
    set_blas_threads,
    settings,
)
from qobjkit import sigmam, sigmax, sigmaz


@pytest.fixture
def restore_settings():
    saved = asdict(settings)
    yield settings
    for name, value in saved.items():
        setattr(settings, name, value)


class TestConfigure:
    """Updating tolerances"""

    def test_defaults(self):
        defaults = CoreSettings()
        assert defaults.atol == 1e-12
        assert defaults.expm_threshold == 1e-14
        assert defaults.expm_drop_tol == 1e-20
        assert defaults.floquet_n_max == 4
        assert defaults.floquet_tol == 1e-15

    def test_update(self, restore_settings):
        configure(atol=1e-6, floquet_n_max=2)
        assert settings.atol == 1e-6
        assert settings.floquet_n_max == 2
        assert isinstance(settings.floquet_n_max, int)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            configure(not_a_setting=1.0)

    def test_negative_value(self):
        with pytest.raises(ValueError):
            configure(atol=-1.0)

    def test_atol_drives_equality(self, restore_settings):
        a = QuantumObject(np.eye(2))
        b = QuantumObject(np.eye(2) + 1e-8)
        assert a != b
        configure(atol=1e-6)
        assert a == b

    def test_floquet_default_n_max(self, restore_settings):
        L0 = liouvillian(sigmaz(), [sigmam()])
        drive = 0.5 * sigmax()
        explicit = liouvillian_floquet(L0, drive, drive, 1.0, n_max=2)
        configure(floquet_n_max=2)
        assert liouvillian_floquet(L0, drive, drive, 1.0) == explicit

    def test_expm_drop_tol_is_lossy(self, restore_settings):
        A = QuantumObject(csr_matrix(0.01 * np.array([[0, 1], [1, 0]])))
        exact = expm(A)
        configure(expm_drop_tol=1e-3)
        lossy = expm(A)
        assert lossy.nnz <= exact.nnz
        assert not np.allclose(lossy.full(), exact.full(), atol=1e-9)


class TestBlasThreads:
    """Explicit, idempotent BLAS limit"""

    def test_invalid(self):
        with pytest.raises(ValueError):
            set_blas_threads(0)
        with pytest.raises(ValueError):
            set_blas_threads(1.5)

    def test_idempotent(self):
        set_blas_threads(1)
        set_blas_threads(1)
        assert blas_threads() == 1
