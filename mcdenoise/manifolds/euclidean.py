import torch

from .manifold import Manifold


class Euclidean(Manifold):
    """
    Euclidean space of the given shape, i.e. the identity parameterization.
    The optimizer moves freely in the ambient space.
    """

    def __init__(self, *shape, dtype=torch.float64):
        if len(shape) <= 0:
            raise ValueError("Need shape parameters.")

        super(Euclidean, self).__init__()
        self._dim = 1
        for s in shape:
            self._dim *= s
        self._size = torch.Size(shape)
        self._dtype = dtype

    def __str__(self):
        return "Euclidean manifold of {} shape".format(tuple(self._size))

    def rand(self, generator=None):
        """
        Generate random tensor
        """
        return torch.randn(*self._size, dtype=self._dtype, generator=generator)

    def proj(self, X, U):
        return U

    def inner(self, X, G1, G2):
        return torch.sum(G1 * G2)

    def retr(self, X, G):
        """
        Retraction on euclidean is X + G
        """
        return X + G

    def norm(self, X, G):
        return torch.linalg.norm(G)

    def transp(self, x1, x2, d):
        return d

    def check(self, X, atol=1e-4):
        return X.size() == self._size and bool(torch.all(torch.isfinite(X)))
