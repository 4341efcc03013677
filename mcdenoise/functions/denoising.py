import torch

from ..errors import DimensionMismatchError, NonFiniteError
from .first_order import FirstOrderFunction


class MatrixDenoising(FirstOrderFunction):
    """
    Find a matrix X closest to a given matrix A in the Frobenius sense:

        argmin_X 0.5 * ||X - A||_F^2,   gradient X - A

    On the Euclidean manifold the solution is X = A. A is held by
    reference and never modified.
    """

    def __init__(self, A):
        if not isinstance(A, torch.Tensor):
            raise TypeError("A should be a torch.Tensor, got {}".format(
                type(A).__name__))
        if A.dim() != 2:
            raise DimensionMismatchError("A should be a matrix",
                                         expected=2, actual=A.dim())
        if not torch.all(torch.isfinite(A)):
            raise NonFiniteError("A holds NaN or Inf entries")
        super(MatrixDenoising, self).__init__(A.shape)
        self.A = A

    def _evaluate(self, X, G):
        if G is None:
            return self.cost(X)
        return self.cost_gradient(X, G)

    def cost(self, X):
        return 0.5 * float(torch.sum((X - self.A) ** 2))

    def gradient(self, X):
        return X - self.A

    def cost_gradient(self, X, out):
        torch.sub(X, self.A, out=out)
        return 0.5 * float(torch.sum(out * out))
