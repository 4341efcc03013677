import torch

from .stiefel import Stiefel
from .euclidean import Euclidean
from .doublystochastic import DoublyStochastic


class ManifoldShapeFactory(object):
    """
    Base class for manifold shape factory. This is used to build the
    manifold matching the shape of the matrix being denoised.

    Factories are registered for a manifold class and, optionally, for
    names so drivers can select a manifold by string.

    To register a new factory implement a new subclass and create its object
    with manifold as parameter

    """
    factories = {}
    names = {}

    @staticmethod
    def _addFactory(manifold, factory, names=()):
        ManifoldShapeFactory.factories[manifold] = factory
        for name in names:
            ManifoldShapeFactory.names[name] = manifold

    @staticmethod
    def create_manifold(manifold, shape, **kwargs):
        if isinstance(manifold, str):
            key = manifold.lower()
            if key not in ManifoldShapeFactory.names:
                raise ValueError("Unknown manifold {!r}, expected one of {}".format(
                    manifold, sorted(ManifoldShapeFactory.names)))
            manifold = ManifoldShapeFactory.names[key]
        if manifold not in ManifoldShapeFactory.factories:
            raise NotImplementedError(
                "No shape factory registered for {}".format(manifold))
        return ManifoldShapeFactory.factories[manifold].create(tuple(shape), **kwargs)

    def __init__(self, manifold, names=()):
        self.manifold = manifold
        ManifoldShapeFactory._addFactory(manifold, self, names)

    def create(self, shape, **kwargs):
        raise NotImplementedError


class StiefelLikeFactory(ManifoldShapeFactory):
    """
    Stiefel like factory implements shape factory where tensor constrains are
    similar to that of Stiefel.

    Constraints:
        2D tensor (h,w) with h >= w >= 1

    A denoising target cannot be transposed behind the caller's back, so
    wide shapes are rejected instead of flipped.
    """
    def create(self, shape, **kwargs):
        if len(shape) != 2:
            raise ValueError(("Invalid shape {}, length of shape "
                             "tuple should be 2").format(shape))
        h, w = shape
        if h < w:
            raise ValueError(("Invalid shape {}, Stiefel needs height >= "
                             "width").format(shape))
        return self.manifold(h, w, **kwargs)


class EuclideanManifoldFactory(ManifoldShapeFactory):
    """
    Manifold factory for euclidean just initializes manifold with
    shape parameter of create
    """
    def create(self, shape, **kwargs):
        if len(shape) == 0:
            raise ValueError("Shape length cannot be 0")
        return self.manifold(*shape, **kwargs)


class DSManifoldFactory(ManifoldShapeFactory):
    """
    Manifold factory for DoublyStochastic manifold
    """
    def create(self, shape, **kwargs):
        if len(shape) != 2:
            raise ValueError(("Invalid shape {}, length of shape "
                             "tuple should be 2").format(shape))
        n, m = shape
        return self.manifold(n=n, m=m, **kwargs)


create_manifold = ManifoldShapeFactory.create_manifold
StiefelLikeFactory(Stiefel, names=("stiefel",))
EuclideanManifoldFactory(Euclidean, names=("euclidean", "identity"))
DSManifoldFactory(DoublyStochastic, names=("doublystochastic", "birkhoff"))


def manifold_random_(tensor, manifold, generator=None):
    """
    Fill tensor in place with a random point of manifold
    """
    if manifold is None:
        return tensor

    with torch.no_grad():
        return tensor.copy_(manifold.rand(generator=generator))
