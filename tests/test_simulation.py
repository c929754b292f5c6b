import logging
import math

import numpy as np
import pytest

import lvcomp.simulation
from lvcomp.competition import Competition, steady_state_residual
from lvcomp.config import STEADY_STATE_HORIZON, Mode, SimulationConfig
from lvcomp.errors import IntegrationFailure, InvalidConfiguration
from lvcomp.simulation import SimulationResult, recompute, simulate
from lvcomp.zngi import Outcome, interior_equilibrium


@pytest.fixture(autouse=True)
def _clear_cache():
    recompute.cache_clear()
    yield
    recompute.cache_clear()


def fixed(steps, **values):
    return SimulationConfig.from_options(values | dict(mode="fixed", steps=steps))


def steady(**values):
    return SimulationConfig.from_options(values | dict(mode="steady_state"))


def logistic(t, n0, k, r=1.0):
    return k / (1 + (k / n0 - 1) * np.exp(-r * t))


@pytest.mark.parametrize("steps", [1, 7, 100])
@pytest.mark.parametrize(
    "values",
    [
        dict(n1=10, n2=10, k1=500, k2=500, alpha=0.75, beta=0.75),
        dict(n1=1, n2=900, k1=1000, k2=50, alpha=2, beta=0),
        dict(n1=300, n2=300, k1=100, k2=100, alpha=1.5, beta=1.5),
    ],
)
def test_fixed_mode_sample_count(steps, values):
    result = simulate(fixed(steps, **values))

    assert len(result) == steps + 1
    np.testing.assert_array_equal(result.t, np.arange(steps + 1))
    assert result.mode is Mode.FIXED
    assert not result.steady


def test_fixed_mode_starts_at_initial_state():
    result = simulate(fixed(5, n1=12, n2=34, k1=500, k2=500, alpha=1, beta=1))

    assert result.final[0] == 5
    assert (result.N1[0], result.N2[0]) == (12, 34)
    np.testing.assert_allclose(result.total, result.N1 + result.N2)


def test_uncoupled_species_follow_logistic_growth():
    result = simulate(fixed(50, n1=10, n2=800, k1=500, k2=400, alpha=0, beta=0))
    t = result.t

    # species 1 grows, species 2 above capacity declines
    assert np.all(np.diff(result.N1) >= -1e-2)
    assert np.all(np.diff(result.N2) <= 1e-2)
    np.testing.assert_allclose(result.N1, logistic(t, 10, 500), rtol=1e-2)
    np.testing.assert_allclose(result.N2, logistic(t, 800, 400), rtol=1e-2)
    assert result.N1[-1] == pytest.approx(500, rel=1e-3)
    assert result.N2[-1] == pytest.approx(400, rel=1e-3)


def test_uncoupled_species_do_not_affect_each_other():
    values = dict(n1=10, k1=500, k2=400, alpha=0, beta=0)
    few = simulate(fixed(30, n2=5, **values))
    many = simulate(fixed(30, n2=350, **values))

    np.testing.assert_allclose(few.N1, many.N1, rtol=1e-2)


def test_coexistence_converges_to_interior_equilibrium():
    config = steady(n1=50, n2=50, k1=500, k2=400, alpha=0.5, beta=0.5)
    result = simulate(config)
    expected = interior_equilibrium(config.params)

    assert result.steady
    _, n1, n2 = result.final
    assert n1 == pytest.approx(expected.n1, rel=1e-2)
    assert n2 == pytest.approx(expected.n2, rel=1e-2)


def test_steady_state_final_sample_is_steady():
    config = steady(n1=10, n2=200, k1=500, k2=300, alpha=0.6, beta=1.2)
    result = simulate(config)
    _, n1, n2 = result.final

    assert result.steady
    assert result.mode is Mode.STEADY_STATE
    assert steady_state_residual(config.params, [n1, n2]) <= 0
    assert all(
        steady_state_residual(config.params, [a, b]) > 0
        for a, b in zip(result.N1[:2], result.N2[:2], strict=True)
    )


def test_steady_state_samples_integer_times_before_final_step():
    result = simulate(steady(n1=10, n2=10, k1=500, k2=500, alpha=0.75, beta=0.75))
    t = result.t

    assert np.all(np.diff(t) > 0)
    np.testing.assert_array_equal(t[:-1], np.arange(t.size - 1))
    assert t[-1] < STEADY_STATE_HORIZON


def test_steady_state_at_interior_equilibrium_stops_immediately(mocker):
    n = 500 / 1.75
    spy = mocker.spy(lvcomp.simulation, "steady_state_residual")

    result = simulate(steady(n1=n, n2=n, k1=500, k2=500, alpha=0.75, beta=0.75))

    assert result.steady
    assert spy.call_count <= 3
    np.testing.assert_allclose(result.N1, n, rtol=1e-6)
    np.testing.assert_allclose(result.N2, n, rtol=1e-6)


def test_symmetric_start_at_capacity_settles_at_coexistence():
    result = simulate(steady(n1=500, n2=500, k1=500, k2=500, alpha=0.75, beta=0.75))

    assert result.steady
    _, n1, n2 = result.final
    assert n1 == pytest.approx(500 / 1.75, rel=1e-2)
    assert n2 == pytest.approx(n1, rel=1e-6)


def test_steady_state_not_reached_covers_horizon():
    config = steady(n1=10, n2=10, k1=500, k2=500, alpha=0.5, beta=0.5, r1=1e-3)
    result = simulate(config)

    assert not result.steady
    assert len(result) == STEADY_STATE_HORIZON + 1
    assert result.final[0] == STEADY_STATE_HORIZON


@pytest.mark.parametrize("name", ["k1", "k2"])
def test_zero_capacity_fails_before_integration(mocker, name):
    lsoda = mocker.patch("lvcomp.ode.LSODA")
    values = dict(n1=10, n2=10, k1=500, k2=500, alpha=0.5, beta=0.5) | {name: 0}

    with pytest.raises(InvalidConfiguration, match=name):
        recompute(steady(**values))

    lsoda.assert_not_called()


@pytest.mark.parametrize("mode", ["fixed", "steady_state"])
def test_overflow_fails_instead_of_hanging(mode):
    values = dict(n1=1e300, n2=10, k1=1, k2=500, alpha=0.5, beta=0.5)
    config = SimulationConfig.from_options(values | dict(mode=mode, steps=10))

    with pytest.raises(IntegrationFailure):
        simulate(config)


def test_integration_failure_is_propagated(mocker):
    mocker.patch(
        "lvcomp.simulation.solve", side_effect=IntegrationFailure("istate -1", 3.0)
    )
    config = fixed(10, n1=10, n2=10, k1=500, k2=500, alpha=0.5, beta=0.5)

    with pytest.raises(IntegrationFailure, match=r"t=3: istate -1"):
        recompute(config)


def test_result_arrays_are_read_only():
    result = simulate(fixed(3, n1=10, n2=10, k1=500, k2=500, alpha=0.5, beta=0.5))

    with pytest.raises(ValueError, match="read-only"):
        result.N1[0] = 0


def test_result_iterates_over_samples():
    result = simulate(fixed(2, n1=10, n2=20, k1=500, k2=500, alpha=0.5, beta=0.5))
    samples = list(result)

    assert len(samples) == 3
    assert samples[0] == (0, 10, 20)
    assert [t for t, _, _ in samples] == [0, 1, 2]


def test_truncation_is_toward_zero():
    result = SimulationResult(
        t=np.array([0.0, 1.0]),
        N1=np.array([1.9, 2.99]),
        N2=np.array([-0.5, 3.2]),
        total=np.array([1.4, 6.19]),
        mode=Mode.FIXED,
    )

    np.testing.assert_array_equal(result.truncated(), [[0, 1, 0], [1, 2, 3]])


def test_result_shapes_must_match():
    with pytest.raises(ValueError, match="'N2'.*\\(2,\\) != \\(3,\\)"):
        SimulationResult(
            t=np.arange(3.0),
            N1=np.zeros(3),
            N2=np.zeros(2),
            total=np.zeros(3),
            mode=Mode.FIXED,
        )


def test_result_times_must_increase():
    with pytest.raises(ValueError, match="strictly increasing"):
        SimulationResult(
            t=np.array([0.0, 1.0, 1.0]),
            N1=np.zeros(3),
            N2=np.zeros(3),
            total=np.zeros(3),
            mode=Mode.STEADY_STATE,
        )


def test_report_contents():
    config = fixed(20, n1=10, n2=10, k1=500, k2=500, alpha=0.75, beta=0.75)
    report = recompute(config)

    assert report.config is config
    assert len(report.result) == 21
    assert report.caption == "K1=500, K2=500, r1=1, r2=1, Alpha=0.75, Beta=0.75"
    assert report.outcome is Outcome.COEXISTENCE
    assert report.bounds.x_max == pytest.approx(1.25 * 500 / 0.75)
    assert report.bounds.y_max == pytest.approx(1.25 * 500 / 0.75)
    assert report.isoclines.species1.start == (500, 0)
    assert len(report.equilibria) == 4


def test_report_with_degenerate_geometry(caplog):
    config = fixed(5, n1=10, n2=10, k1=500, k2=400, alpha=0, beta=0.5)

    with caplog.at_level(logging.WARNING, logger="lvcomp.simulation"):
        report = recompute(config)

    assert report.bounds is None
    assert report.isoclines.species1.end.n2 == math.inf
    assert not report.isoclines.bounded
    assert "unbounded" in caplog.text
    assert len(report.result) == 6


def test_recompute_is_cached_on_configuration(mocker):
    spy = mocker.spy(lvcomp.simulation, "simulate")
    values = dict(n1=10, n2=10, k1=500, k2=500, alpha=0.5, beta=0.5)

    first = recompute(fixed(10, **values))
    second = recompute(fixed(10, **values))
    third = recompute(fixed(11, **values))

    assert first is second
    assert third is not first
    assert spy.call_count == 2


def test_parameters_are_independent_between_runs():
    values = dict(n1=10, n2=10, k2=500, alpha=0.5, beta=0.5)

    small = recompute(fixed(10, k1=100, **values))
    large = recompute(fixed(10, k1=1000, **values))

    assert small.config.params == Competition(K1=100, K2=500, alpha=0.5, beta=0.5)
    assert large.result.N1[-1] > small.result.N1[-1]
