import logging
import math
import time

import torch

from ..errors import DimensionMismatchError
from .directions import LineSearchDirection
from .line_search import LineSearch, LineSearchFunction
from .options import LineSearchDirectionType, LoggingType, SolverOptions
from .summary import IterationSummary, Summary, TerminationType

logger = logging.getLogger(__name__)


class State(object):
    """Point reached by the minimizer together with its gradient data."""

    def __init__(self, x=None, cost=None, gradient=None):
        self.x = x
        self.cost = cost
        self.gradient = gradient
        self.gradient_squared_norm = 0.0
        self.gradient_max_norm = 0.0
        self.search_direction = None
        self.directional_derivative = 0.0
        self.step_size = 0.0

    def update_gradient_norms(self, problem):
        manifold = problem.manifold
        self.gradient_squared_norm = float(manifold.inner(self.x, self.gradient, self.gradient))
        # Measured in the ambient space so the tolerance means the same
        # thing for every parameterization.
        projected = self.x - problem.plus(self.x, -1 * self.gradient)
        self.gradient_max_norm = float(torch.max(torch.abs(projected)))


class LineSearchMinimizer(object):
    """
    Minimizes a GradientProblem with line searches along the manifold.

    Each iteration picks a search direction in the tangent space, runs the
    line search on t -> f(retr(x, t * d)) and moves to the accepted point.
    Accepted points always decrease the cost.
    """

    def __init__(self, options):
        self.options = options

    def _log_iteration(self, iteration_summary):
        if self.options.logging_type == LoggingType.SILENT:
            return
        line = iteration_summary.format()
        if self.options.minimizer_progress_to_stdout:
            print(line)
        else:
            logger.debug(line)

    def _terminate(self, summary, termination_type, message):
        summary.termination_type = termination_type
        summary.message = message
        if termination_type == TerminationType.FAILURE:
            logger.warning("Terminating: %s", message)
        else:
            logger.debug("Terminating: %s", message)

    def minimize(self, problem, x, summary):
        """
        Run from the point x (a matrix on the manifold) and return the
        final point. summary is filled in place.
        """
        options = self.options
        start_time = time.time()
        manifold = problem.manifold

        current = State(x=x)
        current.cost, current.gradient = problem.evaluate(x)
        summary.num_cost_evaluations += 1
        summary.num_gradient_evaluations += 1
        summary.initial_cost = current.cost
        summary.final_cost = current.cost

        if not math.isfinite(current.cost) or not bool(torch.all(torch.isfinite(current.gradient))):
            self._terminate(summary, TerminationType.FAILURE,
                            "Initial cost and gradient evaluation failed: "
                            "cost {}".format(current.cost))
            return x

        current.update_gradient_norms(problem)
        iteration_summary = IterationSummary(
            iteration=0, cost=current.cost,
            gradient_max_norm=current.gradient_max_norm,
            gradient_norm=math.sqrt(current.gradient_squared_norm),
            cumulative_time_in_seconds=time.time() - start_time)
        iteration_summary.iteration_time_in_seconds = \
            iteration_summary.cumulative_time_in_seconds
        summary.iterations.append(iteration_summary)
        self._log_iteration(iteration_summary)

        if current.gradient_max_norm <= options.gradient_tolerance:
            self._terminate(summary, TerminationType.CONVERGENCE,
                            "Gradient tolerance reached. Gradient max norm: "
                            "{:e} <= {:e}".format(current.gradient_max_norm,
                                                 options.gradient_tolerance))
            return current.x

        direction = LineSearchDirection.create(options)
        line_search = LineSearch.create(options)
        function = LineSearchFunction(problem)
        is_quasi_newton = (options.line_search_direction_type ==
                           LineSearchDirectionType.LBFGS)

        previous = State()
        iteration = 0
        num_restarts = 0
        use_steepest_descent = True
        while True:
            iteration_start = time.time()
            if iteration >= options.max_num_iterations:
                self._terminate(summary, TerminationType.NO_CONVERGENCE,
                                "Maximum number of iterations reached. Number of "
                                "iterations: {}.".format(iteration))
                break

            elapsed = iteration_start - start_time
            if elapsed >= options.max_solver_time_in_seconds:
                self._terminate(summary, TerminationType.NO_CONVERGENCE,
                                "Maximum solver time reached. Total solver time: "
                                "{:e} >= {:e}.".format(elapsed,
                                                      options.max_solver_time_in_seconds))
                break

            if use_steepest_descent:
                search_direction = -1 * current.gradient
            else:
                search_direction = direction.next_direction(manifold, previous, current)
            directional_derivative = float(
                manifold.inner(current.x, current.gradient, search_direction))

            if not directional_derivative < 0 and not use_steepest_descent:
                num_restarts += 1
                if num_restarts > options.max_num_line_search_direction_restarts:
                    self._terminate(summary, TerminationType.FAILURE,
                                    "Search direction is not a descent direction, "
                                    "directional derivative {:e}; maximum number "
                                    "of restarts ({}) reached.".format(
                                        directional_derivative,
                                        options.max_num_line_search_direction_restarts))
                    break
                logger.debug("Restarting %s with steepest descent, directional "
                             "derivative %e", direction.__class__.__name__,
                             directional_derivative)
                direction.reset()
                search_direction = -1 * current.gradient
                directional_derivative = -current.gradient_squared_norm
                use_steepest_descent = True

            current.search_direction = search_direction
            current.directional_derivative = directional_derivative

            if iteration == 0:
                initial_step_size = min(1.0, 1.0 / current.gradient_max_norm)
            elif is_quasi_newton and not use_steepest_descent:
                initial_step_size = 1.0
            else:
                initial_step_size = min(1.0, 2.0 * (current.cost - previous.cost) /
                                        directional_derivative)
                if not (initial_step_size > 0 and math.isfinite(initial_step_size)):
                    initial_step_size = 1.0

            function.init(current.x, search_direction)
            ls_summary = line_search.search(function, initial_step_size,
                                            current.cost, directional_derivative)
            summary.num_cost_evaluations += ls_summary.num_function_evaluations
            summary.num_gradient_evaluations += ls_summary.num_gradient_evaluations

            if not ls_summary.success:
                logger.warning("%s Initial step size: %e, initial cost: %e, "
                               "directional derivative: %e", ls_summary.error,
                               initial_step_size, current.cost, directional_derivative)
                if use_steepest_descent or num_restarts >= options.max_num_line_search_direction_restarts:
                    self._terminate(summary, TerminationType.FAILURE,
                                    "Numerical failure in line search, failed to find "
                                    "a valid step size: {}".format(ls_summary.error))
                    break
                num_restarts += 1
                direction.reset()
                use_steepest_descent = True
                continue

            sample = ls_summary.optimal_point
            current.step_size = sample.x
            previous = current
            current = State(x=sample.vector_x, cost=sample.value,
                            gradient=sample.vector_gradient)
            if current.gradient is None:
                current.cost, current.gradient = problem.evaluate(current.x)
                summary.num_cost_evaluations += 1
                summary.num_gradient_evaluations += 1
            current.update_gradient_norms(problem)
            use_steepest_descent = False
            iteration += 1

            cost_change = previous.cost - current.cost
            step_norm = float(torch.linalg.norm(current.x - previous.x))
            now = time.time()
            iteration_summary = IterationSummary(
                iteration=iteration, cost=current.cost, cost_change=cost_change,
                gradient_max_norm=current.gradient_max_norm,
                gradient_norm=math.sqrt(max(current.gradient_squared_norm, 0.0)),
                step_norm=step_norm, step_size=previous.step_size,
                line_search_function_evaluations=ls_summary.num_function_evaluations,
                line_search_gradient_evaluations=ls_summary.num_gradient_evaluations,
                line_search_iterations=ls_summary.num_iterations,
                iteration_time_in_seconds=now - iteration_start,
                cumulative_time_in_seconds=now - start_time)
            summary.iterations.append(iteration_summary)
            summary.final_cost = current.cost
            self._log_iteration(iteration_summary)

            if current.gradient_max_norm <= options.gradient_tolerance:
                self._terminate(summary, TerminationType.CONVERGENCE,
                                "Gradient tolerance reached. Gradient max norm: "
                                "{:e} <= {:e}".format(current.gradient_max_norm,
                                                     options.gradient_tolerance))
                break

            x_norm = float(torch.linalg.norm(previous.x))
            step_tolerance = options.parameter_tolerance * (x_norm + options.parameter_tolerance)
            if step_norm <= step_tolerance:
                self._terminate(summary, TerminationType.CONVERGENCE,
                                "Parameter tolerance reached. Relative step_norm: "
                                "{:e} <= {:e}.".format(
                                    step_norm / (x_norm + options.parameter_tolerance),
                                    options.parameter_tolerance))
                break

            if abs(cost_change) <= options.function_tolerance * abs(previous.cost):
                self._terminate(summary, TerminationType.CONVERGENCE,
                                "Function tolerance reached. |cost_change|/cost: "
                                "{:e} <= {:e}".format(
                                    abs(cost_change) / abs(previous.cost) if previous.cost else 0.0,
                                    options.function_tolerance))
                break

        summary.final_cost = current.cost
        return current.x


def solve(options, problem, parameters):
    """
    Minimize problem starting from parameters, a tensor holding a point on
    problem.manifold. parameters is overwritten in place with the final
    point; the returned Summary describes how the solve terminated.

    Arguments:
        options (SolverOptions): solver configuration, ``None`` for defaults.
        problem (GradientProblem): cost function and manifold.
        parameters (torch.Tensor): matrix of problem.shape, or a flat view of
            it with problem.num_parameters() entries.
    """
    if options is None:
        options = SolverOptions()
    options.validate()

    if not isinstance(parameters, torch.Tensor):
        raise TypeError("parameters should be a torch.Tensor, got {}".format(
            type(parameters).__name__))
    if parameters.numel() != problem.num_parameters():
        raise DimensionMismatchError("parameters do not match the problem size",
                                     expected=problem.num_parameters(),
                                     actual=parameters.numel())

    summary = Summary()
    summary.num_parameters = problem.num_parameters()
    summary.num_tangent_parameters = problem.num_tangent_parameters()
    summary.manifold = str(problem.manifold)
    summary.line_search_direction_type = options.line_search_direction_type
    summary.line_search_type = options.line_search_type
    summary.nonlinear_conjugate_gradient_type = options.nonlinear_conjugate_gradient_type
    summary.max_lbfgs_rank = options.max_lbfgs_rank

    start_time = time.time()
    with torch.no_grad():
        x = parameters.detach().reshape(problem.shape).clone(
            memory_format=torch.contiguous_format)
        minimizer = LineSearchMinimizer(options)
        solution = minimizer.minimize(problem, x, summary)
        parameters.copy_(solution.reshape(parameters.shape))
    summary.total_time_in_seconds = time.time() - start_time

    logger.info(summary.brief_report())
    return summary
