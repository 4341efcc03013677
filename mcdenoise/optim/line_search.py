"""Line searches along a retraction curve.

For a point x on the manifold and a tangent direction d the searches work
on the one dimensional function

    phi(t) = f(retr(x, t * d))

whose derivative is approximated by <grad f(y), transp(x, y, d)>_y with
y = retr(x, t * d). At t = 0 this is the exact directional derivative.
"""

import logging
import math

from .options import LineSearchType

logger = logging.getLogger(__name__)


class FunctionSample(object):
    """Value of phi (and optionally phi') at a step size.

    ``vector_x`` is the point on the manifold reached with that step and
    ``vector_gradient`` the Riemannian gradient there.
    """

    def __init__(self, x=0.0, value=None, gradient=None, vector_x=None,
                 vector_gradient=None):
        self.x = x
        self.value = value
        self.gradient = gradient
        self.vector_x = vector_x
        self.vector_gradient = vector_gradient

    @property
    def value_is_valid(self):
        return self.value is not None and math.isfinite(self.value)

    @property
    def gradient_is_valid(self):
        return self.gradient is not None and math.isfinite(self.gradient)

    def __repr__(self):
        return "FunctionSample(x={:.5e}, value={}, gradient={})".format(
            self.x, self.value, self.gradient)


class LineSearchFunction(object):
    """phi(t) for a GradientProblem, a position and a search direction."""

    def __init__(self, problem):
        self.problem = problem
        self.position = None
        self.direction = None
        self.num_function_evaluations = 0
        self.num_gradient_evaluations = 0

    def init(self, position, direction):
        self.position = position
        self.direction = direction

    def direction_norm(self):
        return float(self.problem.manifold.norm(self.position, self.direction))

    def evaluate(self, step, evaluate_gradient=True):
        manifold = self.problem.manifold
        sample = FunctionSample(x=step)
        sample.vector_x = self.problem.plus(self.position, step * self.direction)

        self.num_function_evaluations += 1
        if evaluate_gradient:
            self.num_gradient_evaluations += 1
        cost, rgrad = self.problem.evaluate(sample.vector_x,
                                            with_gradient=evaluate_gradient)
        sample.value = float(cost)
        if not evaluate_gradient:
            return sample

        sample.vector_gradient = rgrad
        moved = manifold.transp(self.position, sample.vector_x, self.direction)
        sample.gradient = float(manifold.inner(sample.vector_x, rgrad, moved))
        return sample


class LineSearchSummary(object):

    def __init__(self):
        self.success = False
        self.optimal_point = None
        self.num_function_evaluations = 0
        self.num_gradient_evaluations = 0
        self.num_iterations = 0
        self.error = ""


def cubic_interpolate(x1, f1, g1, x2, f2, g2, xmin, xmax):
    """
    Minimizer of the cubic matching values and slopes at x1 and x2,
    clamped to [xmin, xmax] (Nocedal & Wright, eq. 3.59).
    """
    d1 = g1 + g2 - 3 * (f1 - f2) / (x1 - x2)
    d2_square = d1 ** 2 - g1 * g2
    if d2_square >= 0:
        d2 = math.sqrt(d2_square)
        if x1 <= x2:
            denom = g2 - g1 + 2 * d2
            min_pos = x2 - (x2 - x1) * ((g2 + d2 - d1) / denom) if denom != 0 else None
        else:
            denom = g1 - g2 + 2 * d2
            min_pos = x1 - (x1 - x2) * ((g1 + d2 - d1) / denom) if denom != 0 else None
        if min_pos is not None and math.isfinite(min_pos):
            return min(max(min_pos, xmin), xmax)
    return (xmin + xmax) / 2.


def quadratic_interpolate(f0, g0, x1, f1, xmin, xmax):
    """
    Minimizer of the quadratic through (0, f0) with slope g0 and (x1, f1),
    clamped to [xmin, xmax].
    """
    denom = 2 * (f1 - f0 - g0 * x1)
    if denom > 0 and math.isfinite(f1):
        min_pos = -g0 * x1 * x1 / denom
        if math.isfinite(min_pos):
            return min(max(min_pos, xmin), xmax)
    return xmax


class LineSearch(object):
    """
    Base class for line searches.

    ``search`` looks for a step size along the direction set on the
    LineSearchFunction, starting at ``step_size_estimate``.
    """

    def __init__(self, options):
        self.options = options

    @staticmethod
    def create(options):
        if options.line_search_type == LineSearchType.ARMIJO:
            return ArmijoLineSearch(options)
        if options.line_search_type == LineSearchType.WOLFE:
            return WolfeLineSearch(options)
        raise ValueError("Unknown line_search_type: {}".format(
            options.line_search_type))

    def search(self, function, step_size_estimate, initial_cost,
               initial_gradient):
        summary = LineSearchSummary()
        evals = function.num_function_evaluations
        grad_evals = function.num_gradient_evaluations

        initial = FunctionSample(x=0.0, value=initial_cost,
                                 gradient=initial_gradient,
                                 vector_x=function.position)
        self._do_search(function, step_size_estimate, initial, summary)

        summary.num_function_evaluations = function.num_function_evaluations - evals
        summary.num_gradient_evaluations = function.num_gradient_evaluations - grad_evals
        return summary

    def _sufficient_decrease(self, initial, sample):
        c1 = self.options.line_search_sufficient_function_decrease
        # the strict comparison keeps rounding from accepting a flat step
        return (sample.value_is_valid and sample.value < initial.value and
                sample.value <= initial.value + c1 * sample.x * initial.gradient)

    def _do_search(self, function, step_size_estimate, initial, summary):
        raise NotImplementedError


class ArmijoLineSearch(LineSearch):
    """
    Backtracking line search enforcing the sufficient decrease condition

        phi(t) <= phi(0) + c1 * t * phi'(0)

    New trial steps minimize a quadratic model, kept inside
    [max_contraction * t, min_contraction * t].
    """

    def _do_search(self, function, step_size_estimate, initial, summary):
        options = self.options
        step_size = step_size_estimate
        current = function.evaluate(step_size, evaluate_gradient=False)
        summary.num_iterations = 1

        while not self._sufficient_decrease(initial, current):
            if summary.num_iterations >= options.max_num_line_search_step_size_iterations:
                summary.error = ("Line search failed: Armijo failed to find a point "
                                 "satisfying the sufficient decrease condition within "
                                 "specified max_num_iterations: {}.".format(
                                     options.max_num_line_search_step_size_iterations))
                return

            step_size = quadratic_interpolate(
                initial.value, initial.gradient, current.x, current.value,
                current.x * options.max_line_search_step_contraction,
                current.x * options.min_line_search_step_contraction)
            if step_size * function.direction_norm() < options.min_line_search_step_size:
                summary.error = ("Line search failed: step_size too small: {:.5e} "
                                 "with initial step size {:.5e}".format(
                                     step_size, step_size_estimate))
                return

            current = function.evaluate(step_size, evaluate_gradient=False)
            summary.num_iterations += 1

        summary.optimal_point = current
        summary.success = True


class WolfeLineSearch(LineSearch):
    """
    Line search enforcing the strong Wolfe conditions

        phi(t) <= phi(0) + c1 * t * phi'(0)
        |phi'(t)| <= c2 * |phi'(0)|

    A bracketing phase expands the step until an interval holding an
    acceptable step is found, a zoom phase then shrinks it using cubic
    interpolation (Nocedal & Wright, algorithms 3.5 and 3.6).
    """

    def _curvature(self, initial, sample):
        c2 = self.options.line_search_sufficient_curvature_decrease
        return sample.gradient_is_valid and abs(sample.gradient) <= -c2 * initial.gradient

    def _do_search(self, function, step_size_estimate, initial, summary):
        options = self.options
        max_iterations = options.max_num_line_search_step_size_iterations

        previous = initial
        step_size = step_size_estimate
        bracket = None
        while summary.num_iterations < max_iterations:
            current = function.evaluate(step_size)
            summary.num_iterations += 1

            if not (current.value_is_valid and current.gradient_is_valid):
                # Overshot into a region where the cost is not defined.
                step_size = previous.x + (step_size - previous.x) * \
                    options.min_line_search_step_contraction
                if step_size * function.direction_norm() < options.min_line_search_step_size:
                    summary.error = ("Line search failed: step_size too small: {:.5e} "
                                     "with initial step size {:.5e}".format(
                                         step_size, step_size_estimate))
                    return
                continue

            if (not self._sufficient_decrease(initial, current) or
                    (previous is not initial and current.value >= previous.value)):
                bracket = (previous, current)
                break

            if self._curvature(initial, current):
                summary.optimal_point = current
                summary.success = True
                return

            if current.gradient >= 0:
                bracket = (current, previous)
                break

            min_step = current.x + 0.01 * (current.x - previous.x)
            max_step = current.x * options.max_line_search_step_expansion
            next_step = cubic_interpolate(previous.x, previous.value, previous.gradient,
                                          current.x, current.value, current.gradient,
                                          min_step, max_step)
            previous = current
            step_size = next_step

        if bracket is None:
            self._accept_best(initial, previous, summary,
                              "Line search failed: Wolfe bracketing phase failed to "
                              "find a bracket within {} iterations.".format(
                                  max_iterations))
            return

        self._zoom(function, initial, bracket[0], bracket[1], summary)

    def _zoom(self, function, initial, low, high, summary):
        """
        low satisfies sufficient decrease with the lower cost of the two,
        and low.gradient * (high.x - low.x) < 0.
        """
        options = self.options
        max_iterations = options.max_num_line_search_step_size_iterations
        while summary.num_iterations < max_iterations:
            width = abs(high.x - low.x)
            if width * function.direction_norm() < options.min_line_search_step_size:
                self._accept_best(initial, low, summary,
                                  "Line search failed: Wolfe zoom bracket width {:.5e} "
                                  "too small.".format(width))
                return

            lo_x, hi_x = min(low.x, high.x), max(low.x, high.x)
            # stay away from the bracket ends to guarantee progress
            guard = 0.1 * (hi_x - lo_x)
            if high.gradient_is_valid:
                step_size = cubic_interpolate(low.x, low.value, low.gradient,
                                              high.x, high.value, high.gradient,
                                              lo_x + guard, hi_x - guard)
            else:
                step_size = (lo_x + hi_x) / 2.

            current = function.evaluate(step_size)
            summary.num_iterations += 1

            if (not self._sufficient_decrease(initial, current) or
                    not current.gradient_is_valid or current.value >= low.value):
                high = current
                continue

            if self._curvature(initial, current):
                summary.optimal_point = current
                summary.success = True
                return

            if current.gradient * (high.x - low.x) >= 0:
                high = low
            low = current

        self._accept_best(initial, low, summary,
                          "Line search failed: Wolfe zoom phase failed to find a "
                          "point satisfying strong Wolfe conditions within "
                          "specified max_num_iterations: {}.".format(max_iterations))

    def _accept_best(self, initial, best, summary, error):
        # A point with sufficient decrease still makes progress even if the
        # curvature condition could not be met.
        if best is not initial and best.x > 0 and self._sufficient_decrease(initial, best):
            logger.debug("%s Accepting step %.5e with sufficient decrease only.",
                         error, best.x)
            summary.optimal_point = best
            summary.success = True
            return
        summary.error = error
