"""
Error taxonomy.

Every error also derives from the builtin the rest of the package
would otherwise raise, so ``except ValueError`` keeps working.
"""

from typing import Optional


class ImplicitSGDError(Exception):
    """Base class for all pyimplicit errors."""

    def __init__(self, message: str, step: Optional[int] = None,
                 index: Optional[int] = None):
        self.step = step
        self.index = index
        context = []
        if step is not None:
            context.append(f"step {step}")
        if index is not None:
            context.append(f"row {index}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ConfigurationError(ImplicitSGDError, ValueError):
    """Unknown catalog name or invalid policy parameters."""


class DegenerateInputError(ImplicitSGDError, ValueError):
    """Zero-norm covariate vector: no displacement direction exists."""


class SolverNonConvergence(ImplicitSGDError, RuntimeError):
    """Root finder exhausted its iteration budget (strict mode only)."""

    def __init__(self, message: str, root: float = float('nan'),
                 iterations: int = 0, step: Optional[int] = None,
                 index: Optional[int] = None):
        self.root = root
        self.iterations = iterations
        super().__init__(message, step=step, index=index)


class NumericDomainError(ImplicitSGDError, ArithmeticError):
    """Non-finite value from a transfer function, the solver or the update."""


class EmptyTrajectoryError(ImplicitSGDError, LookupError):
    """No update has been applied yet."""


class ConvergenceWarning(UserWarning):
    """Root finder hit its iteration cap; the best estimate was used."""
