from .manifold_multi import multiprod, multitransp, multisym, multiskew
