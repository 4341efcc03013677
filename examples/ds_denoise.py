import torch
import mcdenoise
from mcdenoise import optim as moptim

torch.manual_seed(0)
n = 10

# 1. Noisy target and a starting point on the Birkhoff polytope
A = torch.rand(n, n, dtype=torch.float64)
manifold = mcdenoise.create_manifold("birkhoff", A.shape)
X = manifold.rand()

# 2. Define Cost - 0.5 * ||X - A||_F^2
problem = moptim.GradientProblem(mcdenoise.MatrixDenoising(A), manifold)

# 3. Optimize
options = moptim.SolverOptions(minimizer_progress_to_stdout=True)
summary = moptim.solve(options, problem, X)
print(summary.full_report())

# 4. Test Results
print("Row sums:", X.sum(dim=1))
print("Column sums:", X.sum(dim=0))
print("Is X on Manifold:", manifold.check(X, 1e-4))
