from gamsurface.solvers.solver import PenalizedFit, PenalizedSolver

__all__ = ["PenalizedFit", "PenalizedSolver"]
