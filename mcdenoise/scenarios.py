"""Denoising drivers.

Each driver draws a random target matrix, a random starting point on the
manifold, solves for the closest point on the manifold and prints the
matrices together with the solver report.
"""

import sys
from collections import namedtuple

import numpy as np
import torch

from .functions import MatrixDenoising
from .manifolds import create_manifold, manifold_random_, projection_svd
from .optim import GradientProblem, SolverOptions, solve

DenoisingResult = namedtuple("DenoisingResult",
                             ["target", "solution", "summary", "on_manifold"])

DEFAULT_OPTIONS = SolverOptions(minimizer_progress_to_stdout=True)


def _format(matrix):
    return np.array2string(matrix.detach().cpu().numpy(), precision=6,
                           suppress_small=True, max_line_width=160)


def _uniform(shape, generator=None):
    # entries uniform in [-1, 1]
    return 2 * torch.rand(*shape, dtype=torch.float64, generator=generator) - 1


def denoise(A, manifold, options=None, generator=None, atol=1e-4):
    """
    Solve argmin_X 0.5 ||X - A||_F^2 over manifold from a random start.
    """
    X = torch.empty_like(A)
    manifold_random_(X, manifold, generator=generator)

    print("Given Matrix:\n{}\n".format(_format(A)))
    print("Initial Solution:\n{}\n".format(_format(X)))

    problem = GradientProblem(MatrixDenoising(A), manifold)
    summary = solve(options or DEFAULT_OPTIONS, problem, X)

    print(summary.full_report())
    print()

    on_manifold = manifold.check(X, atol)
    print("Final Solution:\n{}\n".format(_format(X)))
    print("Is X on Manifold: {}".format(on_manifold))
    return DenoisingResult(A, X, summary, on_manifold)


def ds_denoise(n=10, options=None, generator=None):
    """Doubly stochastic denoising of a random non-negative n x n matrix."""
    A = torch.abs(_uniform((n, n), generator))
    manifold = create_manifold("birkhoff", A.shape)
    return denoise(A, manifold, options, generator)


def stiefel_denoise(n=10, k=10, options=None, generator=None):
    """
    Stiefel denoising of a random n x k matrix. For n == k this is the
    orthogonal group.
    """
    A = _uniform((n, k), generator)
    manifold = create_manifold("stiefel", A.shape)
    result = denoise(A, manifold, options, generator)
    print()
    print("Solution by projection (closed form solution should be close to "
          "Final Solution):\n{}\n".format(_format(projection_svd(A))))
    return result


def main():
    generator = torch.Generator().manual_seed(0)
    ds_denoise(generator=generator)
    print()
    stiefel_denoise(generator=generator)
    return 0


if __name__ == "__main__":
    sys.exit(main())
