"""
Learning-rate policies.

Each policy maps (θ_old, data point, t, p) to a p×p step-size matrix.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..exceptions import ConfigurationError

# Diagonal entries at or below this magnitude are left uninverted
FISHER_EPS = 1e-8


class LearningRate(ABC):
    """Base class for learning-rate policies."""

    name = "base"

    def __init__(self, p: int):
        if int(p) != p or p < 1:
            raise ConfigurationError(f"Dimension p must be a positive integer, got {p}")
        self.p = int(p)

    @abstractmethod
    def __call__(self, theta_old: np.ndarray, data_point, t: int) -> np.ndarray:
        """Learning-rate matrix, shape (p, p)."""
        pass

    def reset(self):
        """Forget any accumulated state."""
        pass


class ScalarLearningRate(LearningRate):
    """
    Isotropic time-decaying rate.

        rate(t) = scale · γ · (1 + α·γ·t)^(-c)

    Returns rate(t)·I_p. Stateless.

    Parameters
    ----------
    p : int
        Dimension
    gamma, alpha, c, scale : float
        Schedule parameters (all non-negative, fixed at construction)
    """

    name = "scalar"

    def __init__(self, p: int, gamma: float = 1.0, alpha: float = 1.0,
                 c: float = 1.0, scale: float = 1.0):
        super().__init__(p)
        for label, value in (('gamma', gamma), ('alpha', alpha),
                             ('c', c), ('scale', scale)):
            if not np.isfinite(value) or value < 0:
                raise ConfigurationError(
                    f"Learning-rate parameter {label} must be finite and >= 0, got {value}"
                )
        self.gamma = float(gamma)
        self.alpha = float(alpha)
        self.c = float(c)
        self.scale = float(scale)

    def rate(self, t: int) -> float:
        """Scalar rate at step t."""
        return self.scale * self.gamma * (1.0 + self.alpha * self.gamma * t) ** (-self.c)

    def __call__(self, theta_old, data_point, t):
        return np.eye(self.p) * self.rate(t)

    def __repr__(self):
        return (f"ScalarLearningRate(p={self.p}, gamma={self.gamma}, "
                f"alpha={self.alpha}, c={self.c}, scale={self.scale})")


class AdaptiveLearningRate(LearningRate):
    """
    Per-coordinate rate from a diagonal Fisher-information estimate.

    The diagonal starts at I_p and each call adds diag(g g') with g the
    score at (θ_old, data point). The returned matrix is the
    element-wise inverse of that diagonal, skipping entries whose
    magnitude is at most ``FISHER_EPS``.

    The running sum is the default, so rates decay as information
    accumulates. The classic p-dimensional rate instead rebuilds
    I_p + diag(g g') on every call; ``accumulate=False`` selects it.

    Parameters
    ----------
    p : int
        Dimension
    score_function : callable
        score_function(theta, data_point) -> ndarray, shape (p,).
        Bound at configuration time since it depends on the transfer.
    accumulate : bool, default=True
        Keep the running sum across steps. False gives the per-step
        I_p + diag(g g') estimate.
    """

    name = "adaptive"

    def __init__(self, p: int, score_function: Optional[Callable] = None,
                 accumulate: bool = True):
        super().__init__(p)
        if score_function is None or not callable(score_function):
            raise ConfigurationError(
                "Adaptive learning rate requires a score function"
            )
        self.score_function = score_function
        self.accumulate = bool(accumulate)
        self.fisher_diag = np.ones(self.p)

    def __call__(self, theta_old, data_point, t):
        g = np.asarray(self.score_function(theta_old, data_point), dtype=np.float64).ravel()
        if g.shape[0] != self.p:
            raise ValueError(f"Score has length {g.shape[0]}, expected {self.p}")

        if self.accumulate:
            self.fisher_diag = self.fisher_diag + g**2
            idiag = self.fisher_diag.copy()
        else:
            idiag = 1.0 + g**2

        invert = np.abs(idiag) > FISHER_EPS
        idiag[invert] = 1.0 / idiag[invert]
        return np.diag(idiag)

    def reset(self):
        self.fisher_diag = np.ones(self.p)

    def __repr__(self):
        return f"AdaptiveLearningRate(p={self.p}, accumulate={self.accumulate})"


_LEARNING_RATES = {
    'scalar': ScalarLearningRate,
    'adaptive': AdaptiveLearningRate,
}


def get_learning_rate(name: str, p: int, score_function: Optional[Callable] = None,
                      **params) -> LearningRate:
    """
    Build a learning-rate policy by name.

    Parameters
    ----------
    name : str
        'scalar' (aliases 'unidim', 'one-dim') or 'adaptive'
        (aliases 'pxdim', 'p-dim')
    p : int
        Dimension
    score_function : callable, optional
        Required for 'adaptive'
    **params
        Policy parameters: gamma, alpha, c, scale for 'scalar';
        accumulate for 'adaptive'

    Returns
    -------
    LearningRate

    Raises
    ------
    ConfigurationError
        Unknown name or parameter
    """
    key = str(name).lower()
    if key in ('unidim', 'one-dim', 'uni-dim'):
        key = 'scalar'
    elif key in ('pxdim', 'p-dim', 'px-dim'):
        key = 'adaptive'

    if key == 'scalar':
        try:
            return ScalarLearningRate(p, **params)
        except TypeError as e:
            raise ConfigurationError(f"Invalid scalar learning-rate parameters: {e}") from e
    elif key == 'adaptive':
        try:
            return AdaptiveLearningRate(p, score_function=score_function, **params)
        except TypeError as e:
            raise ConfigurationError(f"Invalid adaptive learning-rate parameters: {e}") from e
    else:
        raise ConfigurationError(
            f"Unknown learning rate: '{name}'\n"
            f"Valid options: 'scalar', 'adaptive'"
        )


def list_available_learning_rates() -> list:
    """List names of available learning-rate policies."""
    return list(_LEARNING_RATES)


__all__ = [
    "FISHER_EPS",
    "LearningRate",
    "ScalarLearningRate",
    "AdaptiveLearningRate",
    "get_learning_rate",
    "list_available_learning_rates",
]
