import math
import warnings

import torch

from ..utils.manifold_multi import multiprod, multitransp
from .manifold import Manifold


def SKnopp(A, p, q, maxiters=None, checkperiod=None):
    """
    Sinkhorn-Knopp scaling of a positive (n x m) matrix A to row sums p
    and column sums q. Returns diag(d2) A diag(d1).
    """
    tol = 1e-9
    if maxiters is None:
        maxiters = A.shape[0] * A.shape[1]

    if checkperiod is None:
        checkperiod = 10

    C = A
    d1 = q / torch.sum(C, dim=0)
    d2 = p / multiprod(C, d1)

    gap = float("inf")

    iters = 0
    while iters < maxiters:
        row = multiprod(d2, C)

        if iters % checkperiod == 0:
            gap = torch.max(torch.abs(row * d1 - q))
            if torch.isnan(gap) or gap <= tol:
                break
        iters += 1

        d1_prev = d1
        d2_prev = d2
        d1 = q / row
        d2 = p / multiprod(C, d1)

        if not (torch.all(torch.isfinite(d1)) and torch.all(torch.isfinite(d2))):
            warnings.warn("SKnopp: NanInfEncountered "
                          "Nan or Inf occured at iter {:d}".format(iters))
            d1 = d1_prev
            d2 = d2_prev
            break

    return d2[:, None] * C * d1[None, :]


class DoublyStochastic(Manifold):
    """
    Manifold of (n x m) positive matrices with row sums p and column sums q.

    With n == m and p, q all ones this is the interior of the Birkhoff
    polytope. The metric is the Fisher information metric.

    Implementation is based on multinomialdoublystochasticgeneralfactory.m
    """

    def __init__(self, n, m=None, p=None, q=None, maxSKnoppIters=None,
                 checkperiod=None, dtype=torch.float64):
        super(DoublyStochastic, self).__init__()
        if m is None:
            m = n
        if n < 2 or m < 2:
            raise ValueError(("Need n >= 2 and m >= 2. Values supplied were "
                             "n = {} and m = {}.").format(n, m))
        self._n = n
        self._m = m
        self._dtype = dtype

        if p is None:
            p = torch.ones(n, dtype=dtype)
        if q is None:
            # rows and columns have to carry the same total mass
            q = torch.full((m,), float(torch.sum(p)) / m, dtype=dtype)
        self._p = torch.as_tensor(p, dtype=dtype)
        self._q = torch.as_tensor(q, dtype=dtype)

        if self._p.shape != (n,) or self._q.shape != (m,):
            raise ValueError(("Marginals should have shapes ({},) and ({},), got "
                             "{} and {}").format(n, m, tuple(self._p.shape),
                                                 tuple(self._q.shape)))
        if torch.any(self._p <= 0) or torch.any(self._q <= 0):
            raise ValueError("Marginals p and q should be positive")
        if not math.isclose(float(torch.sum(self._p)), float(torch.sum(self._q)),
                            rel_tol=1e-9):
            raise ValueError(("Sum of p ({}) and sum of q ({}) should "
                             "match").format(float(torch.sum(self._p)),
                                             float(torch.sum(self._q))))

        self._maxSKnoppIters = maxSKnoppIters
        if maxSKnoppIters is None:
            self._maxSKnoppIters = min(2000, 100 + m + n)
        self._checkperiod = checkperiod
        if checkperiod is None:
            self._checkperiod = 10

        self._size = torch.Size((self._n, self._m))
        self._dim = (self._n - 1) * (self._m - 1)

    def __str__(self):
        return ("{:d}X{:d} matrices with positive entries such that row sum is "
                "p and column sum is q respectively.".format(self._n, self._m))

    def inner(self, x, u, v):
        return torch.sum(u * v / x)

    def rand(self, generator=None):
        Z = torch.abs(torch.randn(self._n, self._m, dtype=self._dtype,
                                  generator=generator))
        return SKnopp(Z, self._p, self._q, self._maxSKnoppIters, self._checkperiod)

    def _marginals(self, x):
        # points may be stored in another floating point type than the manifold
        return self._p.to(x.dtype), self._q.to(x.dtype)

    def _lsolve(self, x, b):
        p, q = self._marginals(x)
        # The system is singular along (alpha + c, beta - c); any solution
        # gives the same projection, so a least squares solve is used.
        A = torch.cat((
            torch.cat((torch.diag(p), x), dim=-1),
            torch.cat((multitransp(x), torch.diag(q)), dim=-1),
        ), dim=0)
        zeta = torch.linalg.lstsq(A, b[:, None]).solution[:, 0]
        return zeta[:self._n], zeta[self._n:]

    def proj(self, x, v):
        b = torch.cat((torch.sum(v, dim=1), torch.sum(v, dim=0)))
        alpha, beta = self._lsolve(x, b)
        return v - (alpha[:, None] + beta[None, :]) * x

    def egrad2rgrad(self, x, u):
        mu = x * u
        return self.proj(x, mu)

    def retr(self, x, u):
        Y = x * torch.exp(u / x)
        Y = torch.clip(Y, 1e-16, 1e16)
        p, q = self._marginals(Y)
        return SKnopp(Y, p, q, self._maxSKnoppIters, self._checkperiod)

    def check(self, x, atol=1e-4):
        if x.size() != self._size:
            return False
        if torch.any(x < -atol):
            return False
        p, q = self._marginals(x)
        row_gap = torch.max(torch.abs(torch.sum(x, dim=1) - p))
        col_gap = torch.max(torch.abs(torch.sum(x, dim=0) - q))
        return bool(row_gap <= atol and col_gap <= atol)
