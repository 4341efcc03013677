from .first_order import FirstOrderFunction, AutoDiffFirstOrderFunction
from .denoising import MatrixDenoising
