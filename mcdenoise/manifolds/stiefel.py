import torch

from ..utils.manifold_multi import multiprod, multitransp, multisym
from .manifold import Manifold


def projection_svd(A):
    """
    Closest point on the Stiefel manifold to A in the Frobenius sense.

    With A = U S V^T (thin SVD) the minimizer of ||X - A||_F over
    orthonormal frames X is U V^T.
    """
    U, _, Vh = torch.linalg.svd(A, full_matrices=False)
    return multiprod(U, Vh)


class Stiefel(Manifold):
    """
    Class for Stiefel manifold of (height x width) matrices with
    orthonormal columns. With height == width this is the orthogonal group.
    """

    def __init__(self, height, width, dtype=torch.float64):
        if height < width or width < 1:
            raise ValueError(("Need height >= width >= 1. Values supplied were "
                             "height = {} and width = {}.").format(height, width))

        super(Stiefel, self).__init__()
        self._n = height
        self._p = width
        self._dtype = dtype

        self._dim = int(self._n * self._p - 0.5 * self._p * (self._p + 1))
        self._size = torch.Size((height, width))

    def __str__(self):
        return "Stiefel manifold St({}, {})".format(self._n, self._p)

    def rand(self, generator=None):
        """
        Generate random Stiefel point using qr of random normally distributed
        matrix
        """
        X = torch.randn(self._n, self._p, dtype=self._dtype, generator=generator)
        q, r = torch.linalg.qr(X)
        return q

    def proj(self, X, U):
        return U - multiprod(X, multisym(multiprod(multitransp(X), U)))

    def inner(self, X, G1, G2):
        return torch.sum(G1 * G2)

    def retr(self, X, G):
        """
        Retract to the Stiefel using the qr decomposition of X + G.
        """
        # Calculate 'thin' qr decomposition of X + G
        q, r = torch.linalg.qr(X + G)
        # Unflip any flipped signs
        return torch.matmul(q, torch.diag(
            torch.sign(torch.sign(torch.diag(r)) + .5)))

    def norm(self, X, G):
        """
        Norm on the tangent space of the Stiefel is simply the Euclidean
        norm.
        """
        return torch.linalg.norm(G)

    def check(self, X, atol=1e-4):
        if X.size() != self._size:
            return False
        eye = torch.eye(self._p, dtype=X.dtype)
        return bool(torch.max(torch.abs(multiprod(multitransp(X), X) - eye)) <= atol)
