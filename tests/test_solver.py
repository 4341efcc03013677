"""Tests for the gradient problem wrapper and the line search minimizer."""

import dataclasses

import pytest
import torch

from mcdenoise import (AutoDiffFirstOrderFunction, DimensionMismatchError, DoublyStochastic,
                       FirstOrderFunction, MatrixDenoising, Stiefel)
from mcdenoise.manifolds import create_manifold, manifold_random_, projection_svd
from mcdenoise.optim import (GradientProblem, LineSearchDirectionType, LineSearchType, LoggingType,
                             NonlinearConjugateGradientType, SolverOptions, TerminationType, solve)

QUIET = SolverOptions(logging_type=LoggingType.SILENT)


class WrongSignGradient(FirstOrderFunction):
    """0.5 * ||X||^2 reporting -X as its gradient."""

    def _evaluate(self, X, G):
        if G is not None:
            torch.neg(X, out=G)
        return 0.5 * float(torch.sum(X * X))


def test_identity_parameterization_recovers_identity():
    A = torch.eye(2, dtype=torch.float64)
    X = torch.tensor([[0.0, 1.0], [1.0, 0.0]], dtype=torch.float64)
    problem = GradientProblem(MatrixDenoising(A))

    summary = solve(QUIET, problem, X)

    assert summary.termination_type == TerminationType.CONVERGENCE
    assert summary.message.startswith("Gradient tolerance reached")
    assert summary.is_solution_usable()
    assert torch.max(torch.abs(X - A)) <= QUIET.gradient_tolerance
    assert summary.initial_cost == pytest.approx(2.0)
    assert summary.final_cost == pytest.approx(0.0)
    assert summary.num_iterations == 1


def test_accepted_iterations_decrease_cost(generator):
    A = torch.randn(4, 4, dtype=torch.float64, generator=generator)
    manifold = Stiefel(4, 4)
    X = manifold.rand(generator=generator)
    problem = GradientProblem(MatrixDenoising(A), manifold)

    summary = solve(QUIET, problem, X)

    costs = [it.cost for it in summary.iterations]
    assert len(costs) > 1
    assert all(later < earlier for earlier, later in zip(costs, costs[1:]))


@pytest.mark.parametrize("direction,line_search,beta", [
    (LineSearchDirectionType.LBFGS, LineSearchType.WOLFE, None),
    (LineSearchDirectionType.STEEPEST_DESCENT, LineSearchType.WOLFE, None),
    (LineSearchDirectionType.STEEPEST_DESCENT, LineSearchType.ARMIJO, None),
    (LineSearchDirectionType.NONLINEAR_CONJUGATE_GRADIENT, LineSearchType.WOLFE,
     NonlinearConjugateGradientType.FLETCHER_REEVES),
    (LineSearchDirectionType.NONLINEAR_CONJUGATE_GRADIENT, LineSearchType.WOLFE,
     NonlinearConjugateGradientType.POLAK_RIBIERE),
    (LineSearchDirectionType.NONLINEAR_CONJUGATE_GRADIENT, LineSearchType.ARMIJO,
     NonlinearConjugateGradientType.HESTENES_STIEFEL),
])
def test_every_direction_solves_euclidean_problem(generator, direction, line_search, beta):
    A = torch.randn(4, 3, dtype=torch.float64, generator=generator)
    X = 5 * torch.randn(4, 3, dtype=torch.float64, generator=generator)
    options = dataclasses.replace(QUIET, line_search_direction_type=direction,
                                  line_search_type=line_search,
                                  nonlinear_conjugate_gradient_type=(
                                      beta or NonlinearConjugateGradientType.FLETCHER_REEVES))
    problem = GradientProblem(MatrixDenoising(A))

    summary = solve(options, problem, X)

    assert summary.termination_type == TerminationType.CONVERGENCE
    assert torch.allclose(X, A, atol=1e-6)


def test_autodiff_function_with_solver(generator):
    A = torch.randn(3, 3, dtype=torch.float64, generator=generator)
    X = torch.zeros(3, 3, dtype=torch.float64)
    function = AutoDiffFirstOrderFunction(lambda Y: 0.5 * torch.sum((Y - A) ** 2), A.shape)

    summary = solve(QUIET, GradientProblem(function), X)

    assert summary.termination_type == TerminationType.CONVERGENCE
    assert torch.allclose(X, A, atol=1e-8)


def test_stiefel_denoising_matches_closed_form(generator):
    A = torch.randn(6, 3, dtype=torch.float64, generator=generator)
    manifold = Stiefel(6, 3)
    X = manifold.rand(generator=generator)
    options = dataclasses.replace(QUIET, function_tolerance=1e-14, gradient_tolerance=1e-10,
                                  parameter_tolerance=1e-14)
    problem = GradientProblem(MatrixDenoising(A), manifold)

    summary = solve(options, problem, X)

    expected = projection_svd(A)
    assert manifold.check(X, atol=1e-8)
    assert torch.allclose(X, expected, atol=1e-5)
    assert summary.final_cost <= MatrixDenoising(A).cost(expected) + 1e-8


def test_doubly_stochastic_target_is_recovered(generator):
    manifold = DoublyStochastic(5)
    A = manifold.rand(generator=generator)
    X = manifold.rand(generator=generator)
    problem = GradientProblem(MatrixDenoising(A), manifold)

    summary = solve(QUIET, problem, X)

    assert manifold.check(X, atol=1e-6)
    assert summary.final_cost < summary.initial_cost
    assert torch.allclose(X, A, atol=1e-3)


def test_doubly_stochastic_denoising_stays_on_manifold(generator):
    A = torch.rand(6, 6, dtype=torch.float64, generator=generator)
    manifold = DoublyStochastic(6)
    X = manifold.rand(generator=generator)
    problem = GradientProblem(MatrixDenoising(A), manifold)

    summary = solve(QUIET, problem, X)

    assert manifold.check(X, atol=1e-4)
    assert summary.final_cost <= summary.initial_cost


def test_iteration_cap_is_not_an_error(generator):
    A = torch.randn(3, 3, dtype=torch.float64, generator=generator)
    X = torch.zeros(3, 3, dtype=torch.float64)
    options = dataclasses.replace(QUIET, max_num_iterations=0)

    summary = solve(options, GradientProblem(MatrixDenoising(A)), X)

    assert summary.termination_type == TerminationType.NO_CONVERGENCE
    assert summary.is_solution_usable()
    assert torch.equal(X, torch.zeros(3, 3, dtype=torch.float64))


def test_stalled_line_search_reports_failure():
    X = torch.ones(2, 2, dtype=torch.float64)
    problem = GradientProblem(WrongSignGradient((2, 2)))

    summary = solve(QUIET, problem, X)

    assert summary.termination_type == TerminationType.FAILURE
    assert not summary.is_solution_usable()
    assert "line search" in summary.message
    assert torch.equal(X, torch.ones(2, 2, dtype=torch.float64))
    assert summary.final_cost == summary.initial_cost


def test_non_finite_initial_cost_reports_failure():
    function = AutoDiffFirstOrderFunction(lambda Y: torch.sum(torch.log(Y)), (2, 2))
    X = -torch.ones(2, 2, dtype=torch.float64)

    summary = solve(QUIET, GradientProblem(function), X)

    assert summary.termination_type == TerminationType.FAILURE
    assert summary.num_iterations == 0


def test_parameter_size_mismatch_raises():
    problem = GradientProblem(MatrixDenoising(torch.eye(2, dtype=torch.float64)))

    with pytest.raises(DimensionMismatchError):
        solve(QUIET, problem, torch.zeros(5, dtype=torch.float64))


def test_flat_parameters_are_updated_in_place():
    A = torch.eye(2, dtype=torch.float64)
    X = torch.zeros(4, dtype=torch.float64)

    solve(QUIET, GradientProblem(MatrixDenoising(A)), X)

    assert torch.allclose(X, A.reshape(-1))


def test_column_major_start_is_updated_in_place(generator):
    A = torch.randn(3, 3, dtype=torch.float64, generator=generator)
    X = torch.zeros(3, 3, dtype=torch.float64).t()
    assert not X.is_contiguous()

    summary = solve(QUIET, GradientProblem(MatrixDenoising(A)), X)

    assert summary.termination_type == TerminationType.CONVERGENCE
    assert X.stride() == (1, 3)
    assert torch.allclose(X, A, atol=1e-6)


def test_stiefel_solve_from_random_point(generator):
    A = torch.randn(4, 4, dtype=torch.float64, generator=generator)
    manifold = Stiefel(4, 4)
    X = manifold.rand(generator=generator)
    assert not X.is_contiguous()

    summary = solve(QUIET, GradientProblem(MatrixDenoising(A), manifold), X)

    assert summary.is_solution_usable()
    assert manifold.check(X, atol=1e-8)
    assert torch.allclose(X, projection_svd(A), atol=1e-5)


def test_single_precision_doubly_stochastic_solve(generator):
    A = torch.rand(4, 4, generator=generator)
    manifold = create_manifold("birkhoff", A.shape)
    X = torch.empty_like(A)
    manifold_random_(X, manifold, generator=generator)

    summary = solve(QUIET, GradientProblem(MatrixDenoising(A), manifold), X)

    assert X.dtype == torch.float32
    assert summary.num_iterations > 0
    assert summary.final_cost < summary.initial_cost
    assert manifold.check(X, atol=1e-4)


def test_manifold_must_match_function():
    with pytest.raises(DimensionMismatchError):
        GradientProblem(MatrixDenoising(torch.zeros(3, 2, dtype=torch.float64)), Stiefel(3, 3))


def test_problem_sizes():
    problem = GradientProblem(MatrixDenoising(torch.zeros(5, 3, dtype=torch.float64)),
                              Stiefel(5, 3))

    assert problem.num_parameters() == 15
    assert problem.num_tangent_parameters() == 9


class TestOptions:
    def test_defaults(self):
        options = SolverOptions()

        assert options.max_num_iterations == 200
        assert options.function_tolerance == 1e-8
        assert options.gradient_tolerance == 1e-8
        assert options.line_search_direction_type == LineSearchDirectionType.LBFGS
        assert options.line_search_type == LineSearchType.WOLFE
        assert options.validate()

    def test_options_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SolverOptions().max_num_iterations = 10

    @pytest.mark.parametrize("changes", [
        dict(max_num_iterations=-1),
        dict(function_tolerance=-1.0),
        dict(max_lbfgs_rank=0),
        dict(line_search_sufficient_function_decrease=0.95),
        dict(max_line_search_step_contraction=0.7),
        dict(line_search_type=LineSearchType.ARMIJO),
    ])
    def test_invalid_options(self, changes):
        with pytest.raises(ValueError):
            SolverOptions(**changes).validate()

    def test_solve_rejects_invalid_options(self):
        problem = GradientProblem(MatrixDenoising(torch.eye(2, dtype=torch.float64)))

        with pytest.raises(ValueError):
            solve(SolverOptions(max_num_iterations=-5), problem,
                  torch.zeros(2, 2, dtype=torch.float64))


class TestReporting:
    def test_progress_to_stdout(self, capsys):
        options = SolverOptions(minimizer_progress_to_stdout=True)
        X = torch.zeros(2, 2, dtype=torch.float64)

        solve(options, GradientProblem(MatrixDenoising(torch.eye(2, dtype=torch.float64))), X)

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("   0: f:")
        assert lines[1].startswith("   1: f:")

    def test_silent_logging(self, capsys):
        options = SolverOptions(logging_type=LoggingType.SILENT, minimizer_progress_to_stdout=True)
        X = torch.zeros(2, 2, dtype=torch.float64)

        solve(options, GradientProblem(MatrixDenoising(torch.eye(2, dtype=torch.float64))), X)

        assert capsys.readouterr().out == ""

    def test_reports(self):
        X = torch.zeros(2, 2, dtype=torch.float64)
        problem = GradientProblem(MatrixDenoising(torch.eye(2, dtype=torch.float64)))

        summary = solve(QUIET, problem, X)

        brief = summary.brief_report()
        full = summary.full_report()
        assert "Iterations: 1" in brief
        assert "CONVERGENCE" in brief
        assert "LBFGS (20)" in full
        assert "WOLFE" in full
        assert "Termination:" in full
        assert "Euclidean manifold" in full
