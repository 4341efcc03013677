from enum import Enum


class TerminationType(Enum):
    CONVERGENCE = "CONVERGENCE"
    NO_CONVERGENCE = "NO_CONVERGENCE"
    FAILURE = "FAILURE"


class IterationSummary(object):
    """Diagnostics for one accepted iteration (iteration 0 is the start point)."""

    def __init__(self, iteration=0, cost=0.0, cost_change=0.0,
                 gradient_max_norm=0.0, gradient_norm=0.0, step_norm=0.0,
                 step_size=0.0, line_search_function_evaluations=0,
                 line_search_gradient_evaluations=0, line_search_iterations=0,
                 iteration_time_in_seconds=0.0, cumulative_time_in_seconds=0.0):
        self.iteration = iteration
        self.cost = cost
        self.cost_change = cost_change
        self.gradient_max_norm = gradient_max_norm
        self.gradient_norm = gradient_norm
        self.step_norm = step_norm
        self.step_size = step_size
        self.line_search_function_evaluations = line_search_function_evaluations
        self.line_search_gradient_evaluations = line_search_gradient_evaluations
        self.line_search_iterations = line_search_iterations
        self.iteration_time_in_seconds = iteration_time_in_seconds
        self.cumulative_time_in_seconds = cumulative_time_in_seconds

    def format(self):
        return ("% 4d: f:% 8e d:% 3.2e g:% 3.2e h:% 3.2e s:% 3.2e e:% 3d "
                "it:% 3.2e tt:% 3.2e" % (
                    self.iteration, self.cost, self.cost_change,
                    self.gradient_max_norm, self.step_norm, self.step_size,
                    self.line_search_function_evaluations,
                    self.iteration_time_in_seconds,
                    self.cumulative_time_in_seconds))


class Summary(object):
    """Result of :func:`mcdenoise.optim.solve`.

    A solve never raises because of how it terminated; inspect
    ``termination_type`` and ``message`` instead.
    """

    def __init__(self):
        self.termination_type = TerminationType.FAILURE
        self.message = "mcdenoise.optim.solve was not called."
        self.initial_cost = -1.0
        self.final_cost = -1.0
        self.iterations = []
        self.num_cost_evaluations = 0
        self.num_gradient_evaluations = 0
        self.total_time_in_seconds = -1.0

        self.num_parameters = -1
        self.num_tangent_parameters = -1
        self.manifold = ""
        self.line_search_direction_type = None
        self.line_search_type = None
        self.nonlinear_conjugate_gradient_type = None
        self.max_lbfgs_rank = -1

    @property
    def num_iterations(self):
        # iteration 0 is the evaluation of the starting point
        return max(len(self.iterations) - 1, 0)

    def is_solution_usable(self):
        return self.termination_type in (TerminationType.CONVERGENCE,
                                         TerminationType.NO_CONVERGENCE)

    def brief_report(self):
        return ("mcdenoise GradientProblemSolver Report: Iterations: {}, "
                "Initial cost: {:e}, Final cost: {:e}, Termination: {}".format(
                    self.num_iterations, self.initial_cost, self.final_cost,
                    self.termination_type.value))

    def full_report(self):
        direction = self.line_search_direction_type.value if self.line_search_direction_type else "N/A"
        if self.line_search_direction_type is not None:
            if direction == "LBFGS":
                direction = "LBFGS ({})".format(self.max_lbfgs_rank)
            elif direction == "NONLINEAR_CONJUGATE_GRADIENT":
                direction = "{} ({})".format(
                    direction, self.nonlinear_conjugate_gradient_type.value)
        line_search = self.line_search_type.value if self.line_search_type else "N/A"

        rows = [
            "",
            "Solver Summary",
            "",
            "{:<30}{:>25}".format("Manifold", self.manifold),
            "{:<30}{:>25}".format("Parameters", self.num_parameters),
            "{:<30}{:>25}".format("Effective parameters", self.num_tangent_parameters),
            "",
            "{:<30}{:>25}".format("Minimizer", "LINE_SEARCH"),
            "{:<30}{:>25}".format("Line search direction", direction),
            "{:<30}{:>25}".format("Line search type", line_search),
            "",
            "Cost:",
            "{:<30}{:>25e}".format("Initial", self.initial_cost),
        ]
        if self.termination_type != TerminationType.FAILURE or self.iterations:
            rows.append("{:<30}{:>25e}".format("Final", self.final_cost))
            rows.append("{:<30}{:>25e}".format("Change",
                                                self.initial_cost - self.final_cost))
        rows.extend([
            "",
            "{:<30}{:>25}".format("Minimizer iterations", self.num_iterations),
            "",
            "{:<30}{:>25}".format("Cost evaluations", self.num_cost_evaluations),
            "{:<30}{:>25}".format("Gradient evaluations", self.num_gradient_evaluations),
            "",
            "Time (in seconds):",
            "{:<30}{:>25.6f}".format("Total", self.total_time_in_seconds),
            "",
            "Termination: {:>20} ({})".format(self.termination_type.value, self.message),
        ])
        return "\n".join(rows)
