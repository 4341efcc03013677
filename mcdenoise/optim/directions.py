import logging

from .options import LineSearchDirectionType, NonlinearConjugateGradientType

logger = logging.getLogger(__name__)


class LineSearchDirection(object):
    """
    Base class for search directions.

    ``next_direction(manifold, previous, current)`` returns a tangent vector
    at ``current.x``; ``previous`` and ``current`` are minimizer states
    holding x, gradient, search_direction and step_size.
    """

    @staticmethod
    def create(options):
        direction_type = options.line_search_direction_type
        if direction_type == LineSearchDirectionType.STEEPEST_DESCENT:
            return SteepestDescent()
        if direction_type == LineSearchDirectionType.NONLINEAR_CONJUGATE_GRADIENT:
            return NonlinearConjugateGradient(options.nonlinear_conjugate_gradient_type)
        if direction_type == LineSearchDirectionType.LBFGS:
            return LBFGS(options.max_lbfgs_rank,
                         options.use_approximate_eigenvalue_bfgs_scaling)
        raise ValueError("Unknown line_search_direction_type: {}".format(direction_type))

    def next_direction(self, manifold, previous, current):
        raise NotImplementedError

    def reset(self):
        pass


class SteepestDescent(LineSearchDirection):

    def next_direction(self, manifold, previous, current):
        return -1 * current.gradient


class NonlinearConjugateGradient(LineSearchDirection):
    """Nonlinear conjugate gradient directions

    The previous gradient and direction are moved to the current tangent
    space with the manifold's vector transport before the beta formula
    is applied.
    """

    def __init__(self, beta_type=NonlinearConjugateGradientType.FLETCHER_REEVES):
        if not isinstance(beta_type, NonlinearConjugateGradientType):
            raise ValueError("Invalid beta_type: {}".format(beta_type))
        self.beta_type = beta_type

    def next_direction(self, manifold, previous, current):
        x = current.x
        grad = current.gradient
        old_grad = manifold.transp(previous.x, x, previous.gradient)
        desc_dir = manifold.transp(previous.x, x, previous.search_direction)
        ograd_ograd = previous.gradient_squared_norm

        if not abs(ograd_ograd) > 0:
            return -1 * grad

        if self.beta_type == NonlinearConjugateGradientType.FLETCHER_REEVES:
            beta = current.gradient_squared_norm / ograd_ograd

        elif self.beta_type == NonlinearConjugateGradientType.POLAK_RIBIERE:
            diff = grad - old_grad
            ip_diff = float(manifold.inner(x, grad, diff))
            beta = max(0, ip_diff / ograd_ograd)

        elif self.beta_type == NonlinearConjugateGradientType.HESTENES_STIEFEL:
            diff = grad - old_grad
            ip_diff = float(manifold.inner(x, grad, diff))
            deno = float(manifold.inner(x, diff, desc_dir))
            if abs(deno) > 0:
                beta = max(0, ip_diff / deno)
            else:
                beta = 1

        else:
            raise ValueError('Unknown beta_type: {}'.format(self.beta_type))

        desc_dir = -1 * grad + beta * desc_dir

        df0 = float(manifold.inner(x, grad, desc_dir))
        if df0 >= 0:
            logger.debug("Conjugate gradient direction is not a descent "
                         "direction, using steepest descent.")
            desc_dir = -1 * grad
        return desc_dir


class LBFGS(LineSearchDirection):
    """Limited memory BFGS directions

    Keeps up to ``max_lbfgs_rank`` correction pairs (s, y). Every pair is
    carried along to the current tangent space each iteration and the
    direction comes from the two-loop recursion using the manifold metric.
    """

    def __init__(self, max_lbfgs_rank=20, use_approximate_eigenvalue_scaling=False):
        if max_lbfgs_rank <= 0:
            raise ValueError("Invalid max_lbfgs_rank: {}".format(max_lbfgs_rank))
        self.max_lbfgs_rank = max_lbfgs_rank
        self.use_approximate_eigenvalue_scaling = use_approximate_eigenvalue_scaling
        self.reset()

    def reset(self):
        self.s = []
        self.y = []
        self.rho = []
        self.gamma = 1.0

    @property
    def rank(self):
        return len(self.s)

    def _update(self, manifold, previous, current):
        x_old, x = previous.x, current.x
        self.s = [manifold.transp(x_old, x, s) for s in self.s]
        self.y = [manifold.transp(x_old, x, y) for y in self.y]

        s_new = manifold.transp(x_old, x, previous.step_size * previous.search_direction)
        y_new = current.gradient - manifold.transp(x_old, x, previous.gradient)
        sy = float(manifold.inner(x, s_new, y_new))
        yy = float(manifold.inner(x, y_new, y_new))
        if not sy > 1e-16 * yy or yy == 0:
            logger.debug("Skipping L-BFGS update, s'y = %.5e", sy)
            return

        self.s.append(s_new)
        self.y.append(y_new)
        self.rho.append(1.0 / sy)
        if len(self.s) > self.max_lbfgs_rank:
            del self.s[0]
            del self.y[0]
            del self.rho[0]
        if self.use_approximate_eigenvalue_scaling:
            self.gamma = sy / yy

    def next_direction(self, manifold, previous, current):
        self._update(manifold, previous, current)

        x = current.x
        q = current.gradient.clone()
        alpha = [0.0] * self.rank
        for i in reversed(range(self.rank)):
            alpha[i] = self.rho[i] * float(manifold.inner(x, self.s[i], q))
            q = q - alpha[i] * self.y[i]

        r = self.gamma * q
        for i in range(self.rank):
            beta = self.rho[i] * float(manifold.inner(x, self.y[i], r))
            r = r + (alpha[i] - beta) * self.s[i]

        return -1 * r
