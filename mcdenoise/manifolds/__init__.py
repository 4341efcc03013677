from .manifold import Manifold
from .stiefel import Stiefel, projection_svd
from .euclidean import Euclidean
from .doublystochastic import DoublyStochastic, SKnopp
from .manifold_factory import create_manifold, manifold_random_
