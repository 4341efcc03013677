from .options import (SolverOptions, LineSearchDirectionType, LineSearchType,
                      NonlinearConjugateGradientType, LoggingType)
from .problem import GradientProblem
from .directions import LineSearchDirection, SteepestDescent, NonlinearConjugateGradient, LBFGS
from .line_search import LineSearch, ArmijoLineSearch, WolfeLineSearch, LineSearchFunction
from .summary import Summary, IterationSummary, TerminationType
from .solver import LineSearchMinimizer, solve
