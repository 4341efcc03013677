"""Solver configuration for :func:`mcdenoise.optim.solve`.

The option names and defaults follow the Ceres GradientProblemSolver
options, with the defaults the denoising drivers run with (200 iterations,
1e-8 tolerances, L-BFGS directions with a strong Wolfe line search).
"""

from dataclasses import dataclass
from enum import Enum


class LineSearchDirectionType(Enum):
    STEEPEST_DESCENT = "STEEPEST_DESCENT"
    NONLINEAR_CONJUGATE_GRADIENT = "NONLINEAR_CONJUGATE_GRADIENT"
    LBFGS = "LBFGS"


class NonlinearConjugateGradientType(Enum):
    FLETCHER_REEVES = "FLETCHER_REEVES"
    POLAK_RIBIERE = "POLAK_RIBIERE"
    HESTENES_STIEFEL = "HESTENES_STIEFEL"


class LineSearchType(Enum):
    ARMIJO = "ARMIJO"
    WOLFE = "WOLFE"


class LoggingType(Enum):
    SILENT = "SILENT"
    PER_MINIMIZER_ITERATION = "PER_MINIMIZER_ITERATION"


@dataclass(frozen=True)
class SolverOptions:
    """Immutable options for one solve.

    Attributes:
        max_num_iterations: Iteration cap.
        max_solver_time_in_seconds: Wall time cap.
        function_tolerance: Stop when |df| <= function_tolerance * |f|.
        gradient_tolerance: Stop when max|x - retr(x, -g)| <= gradient_tolerance.
        parameter_tolerance: Stop when |dx| <= parameter_tolerance * (|x| + parameter_tolerance).
        line_search_direction_type: How search directions are built.
        nonlinear_conjugate_gradient_type: Beta formula for conjugate gradients.
        max_lbfgs_rank: Number of correction pairs kept by L-BFGS.
        use_approximate_eigenvalue_bfgs_scaling: Scale the initial inverse
            Hessian by s'y / y'y instead of using the identity.
        line_search_type: ARMIJO (sufficient decrease only) or WOLFE (strong Wolfe).
        logging_type: SILENT or PER_MINIMIZER_ITERATION.
        minimizer_progress_to_stdout: Print progress lines to stdout.
    """

    max_num_iterations: int = 200
    max_solver_time_in_seconds: float = 1e9
    function_tolerance: float = 1e-8
    gradient_tolerance: float = 1e-8
    parameter_tolerance: float = 1e-8

    line_search_direction_type: LineSearchDirectionType = LineSearchDirectionType.LBFGS
    nonlinear_conjugate_gradient_type: NonlinearConjugateGradientType = (
        NonlinearConjugateGradientType.FLETCHER_REEVES)
    max_lbfgs_rank: int = 20
    use_approximate_eigenvalue_bfgs_scaling: bool = False

    line_search_type: LineSearchType = LineSearchType.WOLFE
    min_line_search_step_size: float = 1e-9
    line_search_sufficient_function_decrease: float = 1e-4
    max_line_search_step_contraction: float = 1e-3
    min_line_search_step_contraction: float = 0.6
    max_num_line_search_step_size_iterations: int = 20
    max_num_line_search_direction_restarts: int = 5
    line_search_sufficient_curvature_decrease: float = 0.9
    max_line_search_step_expansion: float = 10.0

    logging_type: LoggingType = LoggingType.PER_MINIMIZER_ITERATION
    minimizer_progress_to_stdout: bool = False

    def validate(self):
        """Raise ValueError describing the first invalid option."""
        if self.max_num_iterations < 0:
            raise ValueError("max_num_iterations should be >= 0, got {}".format(
                self.max_num_iterations))
        if self.max_solver_time_in_seconds < 0:
            raise ValueError("max_solver_time_in_seconds should be >= 0, got {}".format(
                self.max_solver_time_in_seconds))
        for name in ("function_tolerance", "gradient_tolerance", "parameter_tolerance"):
            if getattr(self, name) < 0:
                raise ValueError("{} should be >= 0, got {}".format(
                    name, getattr(self, name)))
        if self.max_lbfgs_rank <= 0:
            raise ValueError("max_lbfgs_rank should be > 0, got {}".format(
                self.max_lbfgs_rank))
        if self.min_line_search_step_size <= 0:
            raise ValueError("min_line_search_step_size should be > 0, got {}".format(
                self.min_line_search_step_size))
        if not 0.0 < self.line_search_sufficient_function_decrease < 1.0:
            raise ValueError(
                "line_search_sufficient_function_decrease should be in (0, 1), "
                "got {}".format(self.line_search_sufficient_function_decrease))
        if not (0.0 < self.max_line_search_step_contraction
                < self.min_line_search_step_contraction < 1.0):
            raise ValueError(
                "Need 0 < max_line_search_step_contraction < "
                "min_line_search_step_contraction < 1, got {} and {}".format(
                    self.max_line_search_step_contraction,
                    self.min_line_search_step_contraction))
        if self.max_num_line_search_step_size_iterations <= 0:
            raise ValueError(
                "max_num_line_search_step_size_iterations should be > 0, got {}".format(
                    self.max_num_line_search_step_size_iterations))
        if self.max_num_line_search_direction_restarts < 0:
            raise ValueError(
                "max_num_line_search_direction_restarts should be >= 0, got {}".format(
                    self.max_num_line_search_direction_restarts))
        if self.line_search_type == LineSearchType.WOLFE:
            if not (self.line_search_sufficient_function_decrease
                    < self.line_search_sufficient_curvature_decrease < 1.0):
                raise ValueError(
                    "Need line_search_sufficient_function_decrease < "
                    "line_search_sufficient_curvature_decrease < 1 for WOLFE, "
                    "got {} and {}".format(
                        self.line_search_sufficient_function_decrease,
                        self.line_search_sufficient_curvature_decrease))
            if self.max_line_search_step_expansion <= 1.0:
                raise ValueError(
                    "max_line_search_step_expansion should be > 1, got {}".format(
                        self.max_line_search_step_expansion))
        if (self.line_search_type == LineSearchType.ARMIJO
                and self.line_search_direction_type == LineSearchDirectionType.LBFGS):
            # the curvature condition keeps the L-BFGS updates positive definite
            raise ValueError(
                "LBFGS directions need the WOLFE line search, "
                "got {}".format(self.line_search_type.value))
        return True
