"""
Tests for qobjkit.sweep: parallel steady-state sweeps
"""

import warnings

import numpy as np
import pytest

from qobjalg import liouvillian, steadystate
from qobjkit import expect_sweep, sigmam, sigmax, sigmaz, steadystate_sweep
from qobjkit.sweep import _auto_n_jobs, _resolve_n_jobs


def _build(drive):
    H = 0.15 * sigmaz() + 0.5 * drive * sigmax()
    return H, [np.sqrt(0.2) * sigmam()]


class TestWorkerCount:
    """n_jobs resolution"""

    def test_auto_is_positive(self):
        assert _auto_n_jobs("loky") >= 1
        assert _auto_n_jobs("threading") >= 1

    def test_explicit_value_kept(self):
        assert _resolve_n_jobs(3) == 3

    def test_non_positive_uses_auto(self):
        assert _resolve_n_jobs(0, "threading") == _auto_n_jobs("threading")
        assert _resolve_n_jobs(None, "loky") == _auto_n_jobs("loky")

    def test_invalid_value_warns(self):
        with pytest.warns(RuntimeWarning):
            n = _resolve_n_jobs("many", "threading")
        assert n == _auto_n_jobs("threading")


class TestSteadyStateSweep:
    """Ordering and agreement with single solves"""

    values = [0.0, 0.2, 0.4, 0.6, 0.8, 1.0, 1.2]

    def test_sequential(self):
        states = steadystate_sweep(_build, self.values, n_jobs=1)
        assert len(states) == len(self.values)
        for value, rho in zip(self.values, states):
            H, c_ops = _build(value)
            assert rho == steadystate(H, c_ops)

    def test_threaded_preserves_order(self):
        sequential = steadystate_sweep(_build, self.values, n_jobs=1)
        threaded = steadystate_sweep(_build, self.values, n_jobs=2, backend="threading")
        assert all(a == b for a, b in zip(sequential, threaded))

    def test_generator_builder(self):
        states = steadystate_sweep(lambda v: liouvillian(*_build(v)), self.values[:3], n_jobs=1)
        assert states[0] == steadystate(*_build(self.values[0]))

    def test_empty(self):
        assert steadystate_sweep(_build, [], n_jobs=2, backend="threading") == []

    def test_process_backend_preserves_order(self):
        """Default backend runs in worker processes"""
        sequential = steadystate_sweep(_build, self.values[:4], n_jobs=1)
        pooled = steadystate_sweep(
            lambda v: (0.15 * sigmaz() + 0.5 * v * sigmax(), [np.sqrt(0.2) * sigmam()]),
            self.values[:4],
            n_jobs=2,
        )
        assert len(pooled) == 4
        assert all(a == b for a, b in zip(sequential, pooled))

    def test_threads_leave_warning_filters_alone(self):
        before = list(warnings.filters)
        for _ in range(10):
            steadystate_sweep(_build, self.values, n_jobs=8, backend="threading")
        assert list(warnings.filters) == before


class TestExpectSweep:
    """Expectation values over a sweep"""

    def test_shape_and_values(self):
        values = [0.1, 0.5, 0.9]
        out = expect_sweep(_build, values, [sigmaz(), sigmax()], n_jobs=2, backend="threading")
        assert out.shape == (3, 2)
        assert np.isrealobj(out)
        for row, value in zip(out, values):
            rho = steadystate(*_build(value))
            assert np.isclose(row[0], np.real(np.trace(sigmaz().full() @ rho.full())))

    def test_undriven_population(self):
        out = expect_sweep(_build, [0.0], [sigmaz()], n_jobs=1)
        assert np.isclose(out[0, 0], -1)
