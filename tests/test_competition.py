import dataclasses

import numpy as np
import pytest

from lvcomp.competition import (
    STEADY_STATE_TOLERANCE,
    Competition,
    caption,
    steady_state_residual,
)
from lvcomp.errors import InvalidConfiguration


@pytest.fixture()
def symmetric():
    return Competition(K1=500, K2=500, alpha=0.75, beta=0.75)


def test_default_growth_rates_are_one(symmetric):
    assert symmetric.r1 == 1
    assert symmetric.r2 == 1


def test_parameters_are_immutable(symmetric):
    with pytest.raises(dataclasses.FrozenInstanceError):
        symmetric.K1 = 100


def test_variable_names(symmetric):
    assert symmetric.state_vars == ("N1", "N2")
    assert symmetric.derived_vars == ("total",)


def test_rhs_matches_model_equations():
    params = Competition(K1=400, K2=300, alpha=0.5, beta=1.5, r1=0.8, r2=1.2)
    n1, n2 = 100.0, 50.0

    dn1, dn2 = params.rhs(0.0, [n1, n2])

    assert dn1 == pytest.approx(0.8 * 100 * (1 - (100 + 0.5 * 50) / 400))
    assert dn2 == pytest.approx(1.2 * 50 * (1 - (50 + 1.5 * 100) / 300))


def test_rhs_does_not_depend_on_time(symmetric):
    assert symmetric.rhs(0.0, [10, 20]) == symmetric.rhs(123.0, [10, 20])


def test_rhs_vanishes_at_carrying_capacity_without_competitor(symmetric):
    assert symmetric.rhs(0.0, [500, 0]) == [0, 0]
    assert symmetric.rhs(0.0, [0, 500]) == [0, 0]


def test_rhs_is_not_clamped_for_negative_populations(symmetric):
    dn1, _ = symmetric.rhs(0.0, [-10, 0])
    assert dn1 < 0


def test_derived_total(symmetric):
    assert symmetric.derived([100, 250]) == [350]


@pytest.mark.parametrize("name", ["K1", "K2"])
@pytest.mark.parametrize("value", [0, -5, float("nan")])
def test_non_positive_carrying_capacity_is_rejected(name, value):
    values = dict(K1=500, K2=500, alpha=0.75, beta=0.75) | {name: value}

    with pytest.raises(InvalidConfiguration, match=name.lower()):
        Competition(**values)


def test_residual_at_rest_is_negative_tolerance(symmetric):
    assert steady_state_residual(symmetric, [0, 0]) == -STEADY_STATE_TOLERANCE


def test_residual_is_sum_of_absolute_rates(symmetric):
    state = np.array([500.0, 500.0])
    dn1, dn2 = symmetric.rhs(0.0, state)

    expected = abs(dn1) + abs(dn2) - 1e-3
    assert steady_state_residual(symmetric, state) == pytest.approx(expected)
    assert steady_state_residual(symmetric, state) > 0


def test_residual_near_interior_equilibrium_is_negative(symmetric):
    n = 500 / 1.75
    assert steady_state_residual(symmetric, [n, n]) <= 0


def test_caption_format():
    params = Competition(K1=500, K2=400, alpha=0.75, beta=1.5, r1=1, r2=0.5)

    assert caption(params) == "K1=500, K2=400, r1=1, r2=0.5, Alpha=0.75, Beta=1.5"


def test_caption_keeps_all_digits():
    params = Competition(K1=1234567, K2=500, alpha=0.123456789, beta=1.5)

    assert caption(params) == (
        "K1=1234567, K2=500, r1=1, r2=1, Alpha=0.123456789, Beta=1.5"
    )


def test_caption_of_numpy_values():
    params = Competition(K1=np.float64(500.0), K2=np.int64(400), alpha=0.5, beta=0.25)

    assert caption(params).startswith("K1=500, K2=400,")
