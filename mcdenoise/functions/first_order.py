import torch

from ..errors import DimensionMismatchError


def _check_buffer(buffer, num_parameters, name):
    if not isinstance(buffer, torch.Tensor):
        raise TypeError("{} should be a torch.Tensor, got {}".format(
            name, type(buffer).__name__))
    if buffer.numel() != num_parameters:
        raise DimensionMismatchError(
            "{} has the wrong number of entries".format(name),
            expected=num_parameters, actual=buffer.numel())


class FirstOrderFunction(object):
    """
    Base class for a scalar cost over a (rows x cols) matrix whose
    Euclidean gradient is available.

    Subclasses implement ``_evaluate(X, G)`` on matrix views. Callers use
    ``evaluate`` which takes flat buffers:

        cost = function.evaluate(parameters)            # cost only
        cost = function.evaluate(parameters, gradient)  # writes gradient

    ``parameters`` is read, ``gradient`` is written in place.
    """

    def __init__(self, shape):
        if len(shape) != 2:
            raise DimensionMismatchError("Cost functions act on matrices",
                                         expected=2, actual=len(shape))
        self._shape = torch.Size(shape)

    @property
    def shape(self):
        return self._shape

    def num_parameters(self):
        return self._shape[0] * self._shape[1]

    def evaluate(self, parameters, gradient=None):
        _check_buffer(parameters, self.num_parameters(), "parameters")
        X = parameters.view(self._shape)
        if gradient is None:
            return self._evaluate(X, None)

        _check_buffer(gradient, self.num_parameters(), "gradient")
        G = gradient.view(self._shape)
        return self._evaluate(X, G)

    def _evaluate(self, X, G):
        raise NotImplementedError


class AutoDiffFirstOrderFunction(FirstOrderFunction):
    """
    Wraps a differentiable torch callable ``cost_fn(X) -> scalar tensor``;
    the gradient comes from torch.autograd.
    """

    def __init__(self, cost_fn, shape):
        super(AutoDiffFirstOrderFunction, self).__init__(shape)
        self.cost_fn = cost_fn

    def _evaluate(self, X, G):
        if G is None:
            with torch.no_grad():
                return float(self.cost_fn(X))

        with torch.enable_grad():
            Xvar = X.detach().clone().requires_grad_(True)
            cost = self.cost_fn(Xvar)
            egrad, = torch.autograd.grad(cost, Xvar)
        with torch.no_grad():
            G.copy_(egrad)
        return float(cost.detach())
