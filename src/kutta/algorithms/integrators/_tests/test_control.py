import math

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from kutta.algorithms.integrators import (AdaptiveConfig, AdaptiveRK,
                                          ButcherTable, IntegrationState,
                                          StepSizeController, embedded_step,
                                          get_table, integrate,
                                          relative_error)
from kutta.algorithms.utils.exceptions import (ConfigurationError,
                                               ConvergenceError,
                                               NonConvergenceError)


def _growth(t, y):
    return y


def _oscillator(t, y):
    return np.array([y[1], -y[0]])


def _recording_stepper(f, table):
    steps = []

    def stepper(t, dt, y):
        steps.append((t, dt))
        return embedded_step(f, t, dt, y, table)

    return stepper, steps


def test_relative_error_cases():
    assert relative_error(2.0, 1.0) == pytest.approx(0.5)
    assert relative_error(np.array([4.0, -1.0]), np.array([3.0, -2.0])) == pytest.approx(0.25)
    assert relative_error(np.zeros(3), np.zeros(3)) == 0.0
    assert relative_error(0.0, 1e-3) == math.inf


def test_loose_tolerance_accepts_first_attempt():
    table = get_table("dopri5")
    stepper, steps = _recording_stepper(_growth, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=1.0), order=table.order)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=0.5)

    controller.advance(state, 0.5)

    assert steps == [(0.0, 0.5)]
    assert state.n_rejected == 0
    assert state.n_accepted == 1
    assert state.current_time == 0.5
    assert state.current_value == pytest.approx(math.exp(0.5), rel=1e-4)


def test_terminal_step_keeps_candidate_for_next_interval():
    table = get_table("dopri5")
    stepper, steps = _recording_stepper(_growth, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=1.0), order=table.order)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=10.0)

    controller.advance(state, 0.25)

    assert steps == [(0.0, 0.25)]
    assert state.candidate_step == 10.0


def test_tight_tolerance_forces_reduced_retry():
    table = get_table("dopri5")
    tol = 1e-10
    stepper, steps = _recording_stepper(_growth, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=tol), order=table.order)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=1.0)

    controller.advance(state, 1.0)

    assert state.n_rejected >= 1
    first_dt = steps[0][1]
    second_dt = steps[1][1]
    y_high, y_low = embedded_step(_growth, 0.0, first_dt, 1.0, table)
    bound = first_dt * controller.step_factor(tol, relative_error(y_high, y_low))
    assert second_dt < first_dt
    assert second_dt <= bound
    assert second_dt == pytest.approx(bound)
    assert state.current_time == 1.0
    assert state.current_value == pytest.approx(math.e, rel=1e-8)


def test_time_is_monotone_and_bounded_within_interval():
    table = get_table("bogacki_shampine")
    stepper, steps = _recording_stepper(_oscillator, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=1e-6), order=table.order)
    state = IntegrationState(current_time=0.0, current_value=np.array([1.0, 0.0]), candidate_step=0.1)

    controller.advance(state, 2.0)

    times = [t for t, _ in steps]
    assert all(t1 >= t0 for t0, t1 in zip(times[:-1], times[1:]))
    assert all(t + dt <= 2.0 + 1e-12 for t, dt in steps)
    assert state.current_time == 2.0


def test_step_factor_is_clamped():
    controller = StepSizeController(lambda t, dt, y: (y, y), AdaptiveConfig(), order=4)
    assert controller.step_factor(1e-6, 1e6) == 0.01
    assert controller.step_factor(1e-6, 1e-30) == 10.0
    assert controller.step_factor(1e-6, 0.0) == 10.0
    assert controller.step_factor(1e-6, 1.6e-5) == pytest.approx(0.5)


def _inconsistent_pair():
    # b2 does not sum to one, so the estimates never agree for f = 1.
    return ButcherTable(a=[[]], b=[1.0], c=[0.0], b2=[0.0], name="broken")


def test_unknown_order_halves_rejected_steps():
    table = _inconsistent_pair()
    stepper, steps = _recording_stepper(lambda t, y: 1.0, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=0.3, min_step=0.0), order=None)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=1.0)

    controller.advance(state, 1.0)

    # error = dt / (1 + dt): 0.5 -> reject, 1/3 -> reject, 0.2 -> accept
    assert [dt for _, dt in steps[:3]] == [1.0, 0.5, 0.25]
    assert state.n_rejected == 2
    assert state.current_time == 1.0


def test_min_step_raises_non_convergence():
    table = _inconsistent_pair()
    stepper, steps = _recording_stepper(lambda t, y: 1.0, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=1e-9, min_step=1e-3), order=None)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=1.0)

    with pytest.raises(NonConvergenceError) as excinfo:
        controller.advance(state, 1.0)

    err = excinfo.value
    assert isinstance(err, ConvergenceError)
    assert err.step == steps[-1][1]
    assert err.step < 2e-3
    assert err.error_ratio > 1.0
    assert state.current_time == 0.0


def test_max_rejections_raises_non_convergence():
    table = _inconsistent_pair()
    stepper, steps = _recording_stepper(lambda t, y: 1.0, table)
    config = AdaptiveConfig(tol=1e-9, min_step=0.0, max_rejections=3)
    controller = StepSizeController(stepper, config, order=None)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=1.0)

    with pytest.raises(NonConvergenceError):
        controller.advance(state, 1.0)
    assert len(steps) == 3


def test_zero_solution_is_accepted():
    traj = AdaptiveRK("dopri5", tol=1e-12).integrate(lambda t, y: 0.0 * y, np.zeros(3), [0.0, 1.0, 5.0])
    for value in traj.values:
        np.testing.assert_array_equal(value, np.zeros(3))


def test_adaptive_exponential_decay():
    t_vals = np.linspace(0.0, 2.0, 5)
    traj = integrate(lambda t, y: -y, 1.0, t_vals, adaptive=True, tol=1e-8)
    assert traj.times == list(t_vals)
    np.testing.assert_allclose(traj.values, np.exp(-t_vals), rtol=1e-6)


@pytest.mark.parametrize("method", ["dopri5", "bogacki_shampine"])
def test_adaptive_matches_scipy_reference(method):
    t_vals = np.linspace(0.0, 10.0, 11)
    y0 = np.array([1.0, 0.0])
    traj = AdaptiveRK(method, tol=1e-9).integrate(_oscillator, y0, t_vals)
    ref = solve_ivp(_oscillator, (t_vals[0], t_vals[-1]), y0, t_eval=t_vals, rtol=1e-12, atol=1e-12)
    assert traj.states.shape == (11, 2)
    np.testing.assert_allclose(traj.states, ref.y.T, atol=1e-6)


def test_adaptive_with_initial_step_and_config_object():
    config = AdaptiveConfig(tol=1e-8, initial_step=1e-3)
    traj = AdaptiveRK("dopri5", config=config).integrate(_growth, 1.0, [0.0, 1.0])
    assert traj.values[-1] == pytest.approx(math.e, rel=1e-6)


def test_adaptive_jit_matches_generic_path():
    t_vals = np.linspace(0.0, 5.0, 6)
    y0 = np.array([1.0, 0.0])
    generic = AdaptiveRK("dopri5", tol=1e-8).integrate(_oscillator, y0, t_vals)
    compiled = AdaptiveRK("dopri5", tol=1e-8, jit=True).integrate(_oscillator, y0, t_vals)
    np.testing.assert_allclose(compiled.states, generic.states, atol=1e-6)


def test_adaptive_requires_embedded_table():
    with pytest.raises(ConfigurationError):
        AdaptiveRK("rk4")


def test_config_and_options_are_exclusive():
    with pytest.raises(ConfigurationError):
        AdaptiveRK("dopri5", config=AdaptiveConfig(), tol=1e-6)


@pytest.mark.parametrize(
    "kwargs",
    [dict(tol=0.0), dict(initial_step=-1.0), dict(min_step=-1.0), dict(max_rejections=0),
     dict(min_factor=1.5), dict(max_factor=0.5)],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        AdaptiveConfig(**kwargs)


def test_short_remaining_interval_is_not_cut_by_min_step():
    table = _inconsistent_pair()
    stepper, steps = _recording_stepper(lambda t, y: 1.0, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=0.2, min_step=0.5), order=None)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=1.0)

    # the whole interval is shorter than min_step, halving below it stays allowed
    controller.advance(state, 0.4)

    assert [dt for _, dt in steps] == [0.4, 0.2, 0.2]
    assert state.current_time == 0.4


def test_relative_error_flags_overflowed_estimates():
    with np.errstate(invalid="ignore"):
        assert relative_error(np.array([np.inf, 1.0]), np.array([np.inf, 1.0])) == math.inf
        assert relative_error(np.array([np.nan]), np.array([1.0])) == math.inf
    assert relative_error(np.array([1.0]), np.array([np.inf])) == math.inf


def test_overflowing_trial_step_is_retried():
    # y' = -y**3 from y = 10: 1 / y**2 = 1 / 100 + 2 t
    with np.errstate(over="ignore", invalid="ignore"):
        traj = AdaptiveRK("dopri5", tol=1e-6).integrate(lambda t, y: -y**3, np.array([10.0]), [0.0, 1.0])
    assert np.all(np.isfinite(traj.values[-1]))
    assert traj.values[-1][0] == pytest.approx(1.0 / math.sqrt(2.01), rel=1e-4)


def test_accepted_intermediate_step_targets_half_tolerance():
    table = get_table("dopri5")
    dt0 = 0.05
    error = relative_error(*embedded_step(_growth, 0.0, dt0, 1.0, table))
    tol = 4.0 * error
    stepper, steps = _recording_stepper(_growth, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=tol), order=table.order)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=dt0)

    controller.advance(state, 1.0)

    assert steps[0] == (0.0, dt0)
    expected = dt0 * controller.step_factor(tol / 2, error)
    assert steps[1][1] == pytest.approx(expected)
    assert steps[1][1] != pytest.approx(dt0 * controller.step_factor(tol, error))
    assert state.current_time == 1.0


def test_unknown_order_keeps_accepted_intermediate_step():
    table = _inconsistent_pair()
    stepper, steps = _recording_stepper(lambda t, y: 1.0, table)
    controller = StepSizeController(stepper, AdaptiveConfig(tol=0.5), order=None)
    state = IntegrationState(current_time=0.0, current_value=1.0, candidate_step=0.25)

    controller.advance(state, 1.0)

    assert [dt for _, dt in steps] == [0.25, 0.25, 0.25, 0.25]
    assert state.n_rejected == 0
