"""Matrix denoising on matrix manifolds.

Finds the matrix closest to a target in Frobenius norm among doubly
stochastic matrices, orthonormal frames, or unconstrained matrices, using
line search minimizers that move along manifold retractions.
"""

from . import manifolds
from . import optim
from .errors import McDenoiseError, DimensionMismatchError, NonFiniteError
from .functions import FirstOrderFunction, AutoDiffFirstOrderFunction, MatrixDenoising
from .manifolds import (Manifold, Euclidean, Stiefel, DoublyStochastic,
                        create_manifold, manifold_random_)
from .optim import GradientProblem, SolverOptions, Summary, TerminationType, solve

__version__ = "0.1.0"
