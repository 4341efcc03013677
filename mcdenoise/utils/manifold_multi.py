import torch


def multiprod(A, B):
    # Kept parallel to the manopt/pymanopt naming
    return torch.matmul(A, B)


def multitransp(A):
    # Swaps the last two axes so stacks of matrices are handled as well
    if A.dim() < 2:
        raise ValueError("Need at least a 2D tensor, got {}D".format(A.dim()))
    return A.transpose(-2, -1)


def multisym(A):
    # Inspired by MATLAB multisym function by Nicholas Boumal.
    return 0.5 * (A + multitransp(A))


def multiskew(A):
    # Inspired by MATLAB multiskew function by Nicholas Boumal.
    return 0.5 * (A - multitransp(A))
