import torch
import mcdenoise
from mcdenoise import optim as moptim
from mcdenoise.manifolds import projection_svd

torch.manual_seed(0)

# 1. Noisy target and a starting point on St(6, 3)
A = torch.randn(6, 3, dtype=torch.float64)
manifold = mcdenoise.Stiefel(6, 3)
X = manifold.rand()

# 2. Define Cost - 0.5 * ||X - A||_F^2
problem = moptim.GradientProblem(mcdenoise.MatrixDenoising(A), manifold)

# 3. Optimize
options = moptim.SolverOptions(minimizer_progress_to_stdout=True)
summary = moptim.solve(options, problem, X)
print(summary.brief_report())

# 4. Test Results
print("Frobenius norm error between estimated and closed-form solution:",
      torch.linalg.norm(X - projection_svd(A)).item())
