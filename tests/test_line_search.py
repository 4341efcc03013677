"""Tests for the Armijo and strong Wolfe line searches."""

import pytest
import torch

from mcdenoise import MatrixDenoising
from mcdenoise.optim import (GradientProblem, LineSearch, LineSearchFunction, LineSearchType,
                             SolverOptions)
from mcdenoise.optim.line_search import ArmijoLineSearch, WolfeLineSearch, cubic_interpolate


def make_function():
    """phi(t) = 0.5 * (2t - 2)^2 along the steepest descent direction."""
    problem = GradientProblem(MatrixDenoising(torch.tensor([[2.0]], dtype=torch.float64)))
    x = torch.zeros(1, 1, dtype=torch.float64)
    cost, gradient = problem.evaluate(x)
    function = LineSearchFunction(problem)
    function.init(x, -1 * gradient)
    return function, cost, float(torch.sum(gradient * -gradient))


def test_line_search_function_samples():
    function, cost, slope = make_function()

    sample = function.evaluate(0.5)

    assert cost == pytest.approx(2.0)
    assert slope == pytest.approx(-4.0)
    assert sample.value == pytest.approx(0.5)
    assert sample.gradient == pytest.approx(-2.0)
    assert torch.allclose(sample.vector_x, torch.tensor([[1.0]], dtype=torch.float64))
    assert function.num_function_evaluations == 1
    assert function.num_gradient_evaluations == 1


def test_create_dispatches_on_type():
    assert isinstance(LineSearch.create(SolverOptions()), WolfeLineSearch)
    options = SolverOptions(line_search_type=LineSearchType.ARMIJO)
    assert isinstance(LineSearch.create(options), ArmijoLineSearch)


def test_armijo_backtracks_to_quadratic_minimizer():
    function, cost, slope = make_function()
    options = SolverOptions(line_search_type=LineSearchType.ARMIJO)

    summary = ArmijoLineSearch(options).search(function, 10.0, cost, slope)

    assert summary.success
    assert summary.optimal_point.x == pytest.approx(1.0)
    assert summary.optimal_point.value <= cost + 1e-4 * summary.optimal_point.x * slope
    assert summary.num_iterations == 2
    assert summary.num_gradient_evaluations == 0


@pytest.mark.parametrize("initial_step", [0.02, 1.0, 5.0, 40.0])
def test_wolfe_satisfies_strong_wolfe_conditions(initial_step):
    function, cost, slope = make_function()
    options = SolverOptions()

    summary = WolfeLineSearch(options).search(function, initial_step, cost, slope)

    assert summary.success
    point = summary.optimal_point
    assert point.x > 0
    assert point.value <= cost + options.line_search_sufficient_function_decrease * point.x * slope
    assert abs(point.gradient) <= -options.line_search_sufficient_curvature_decrease * slope


def test_wolfe_accepts_exact_step():
    function, cost, slope = make_function()

    summary = WolfeLineSearch(SolverOptions()).search(function, 1.0, cost, slope)

    assert summary.optimal_point.x == 1.0
    assert summary.optimal_point.value == 0.0
    assert summary.num_iterations == 1


def test_cubic_interpolation_recovers_quadratic_minimum():
    # f(t) = 0.5 * (2t - 2)^2 sampled at t = 0 and t = 0.5
    assert cubic_interpolate(0.0, 2.0, -4.0, 0.5, 0.5, -2.0, 0.0, 5.0) == pytest.approx(1.0)


def test_cubic_interpolation_is_clamped():
    assert cubic_interpolate(0.0, 2.0, -4.0, 0.5, 0.5, -2.0, 0.0, 0.7) == pytest.approx(0.7)
