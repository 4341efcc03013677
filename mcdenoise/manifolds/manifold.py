import torch


class Manifold(object):
    """
    Base class for manifold parameterizations

    A parameterization tells the solver how to move on the manifold:

        retr(X, G)          next point on the manifold from an ambient step
        egrad2rgrad(X, G)   Euclidean gradient to a tangent vector at X

    All functions map to corresponding functions in
    Manopt `<http://www.manopt.org>` and its python derivation
    pymanopt `<https://github.com/pymanopt/pymanopt>`

    Points and tangent vectors are (height x width) torch tensors.
    """

    def __init__(self):
        self._dim = None
        self._size = None
        self._dtype = torch.float64

    def __str__(self):
        """
        Name of the manifold
        """
        return self.__class__.__name__

    @property
    def dim(self):
        """
        Dimension of the manifold, i.e. number of tangent parameters
        """
        return self._dim

    def size(self):
        """
        Returns torch.Size of a point on manifold
        """
        return self._size

    def inner(self, X, G, H):
        """
        Inner product (Riemannian metric) on the tangent space
        """
        raise NotImplementedError

    def proj(self, X, G):
        """
        Project into the tangent space. Usually the same as egrad2rgrad
        """
        raise NotImplementedError

    def egrad2rgrad(self, X, G):
        """
        A mapping from the Euclidean gradient G into the tangent space
        to the manifold at X. For embedded manifolds, this is simply the
        projection of G on the tangent space at X.
        """
        return self.proj(X, G)

    def retr(self, X, G):
        """
        A retraction mapping from the tangent space at X to the manifold.
        See Absil for definition of retraction.
        """
        raise NotImplementedError

    def norm(self, X, G):
        """
        Compute the norm of a tangent vector G, which is tangent to the
        manifold at X.
        """
        return torch.sqrt(self.inner(X, G, G))

    def rand(self, generator=None):
        """
        A function which returns a random point on the manifold.
        """
        raise NotImplementedError

    def randvec(self, X, generator=None):
        """
        Returns a random, unit norm vector in the tangent space at X.
        """
        U = torch.randn(*X.size(), dtype=X.dtype, generator=generator)
        U = self.proj(X, U)
        return U / self.norm(X, U)

    def transp(self, x1, x2, d):
        """
        Transports d, which is a tangent vector at x1, into the tangent
        space at x2. Embedded manifolds project onto the new tangent space.
        """
        return self.proj(x2, d)

    def zerovec(self, X):
        """
        Returns the zero tangent vector at X.
        """
        return torch.zeros_like(X)

    def check(self, X, atol=1e-4):
        """
        Whether X lies on the manifold up to atol
        """
        raise NotImplementedError
