import torch

from ..errors import DimensionMismatchError
from ..manifolds import create_manifold


class GradientProblem(object):
    """
    A first order cost function together with the manifold its parameter
    lives on.

    Arguments:
        function (FirstOrderFunction): cost and Euclidean gradient.
        manifold (Manifold, optional): parameterization of the matrix.
            Defaults to the Euclidean space of the function's shape.
    """

    def __init__(self, function, manifold=None):
        if manifold is None:
            manifold = create_manifold("euclidean", function.shape)
        if manifold.size() != function.shape:
            raise DimensionMismatchError(
                "Manifold {} does not match the cost function".format(manifold),
                expected=tuple(function.shape), actual=tuple(manifold.size()))
        self.function = function
        self.manifold = manifold

    @property
    def shape(self):
        return self.function.shape

    def num_parameters(self):
        return self.function.num_parameters()

    def num_tangent_parameters(self):
        return self.manifold.dim

    def evaluate(self, x, with_gradient=True):
        """
        Cost at the point x and, if requested, the Riemannian gradient
        (a tangent vector at x). Returns (cost, gradient or None).
        """
        # retractions such as QR may return column-major matrices
        x = x.contiguous()
        if not with_gradient:
            return self.function.evaluate(x.reshape(-1)), None

        egrad = torch.empty_like(x, memory_format=torch.contiguous_format)
        cost = self.function.evaluate(x.reshape(-1), egrad.view(-1))
        return cost, self.manifold.egrad2rgrad(x, egrad)

    def plus(self, x, delta):
        return self.manifold.retr(x, delta)
