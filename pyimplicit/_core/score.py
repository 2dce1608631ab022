"""
Per-step scalar equation for the implicit update.

Both objects are short-lived value objects built fresh for every data
point from copies of the current θ and observation.
"""

import numpy as np
from dataclasses import dataclass
from typing import Tuple

from .transfer import Transfer
from ..exceptions import DegenerateInputError


@dataclass(frozen=True)
class ScoreCoefficient:
    """
    Score coefficient along the covariate direction.

    With η = θ'x and N = ‖x‖:

        value(ξ)             = y - h(η + N·ξ)
        first_derivative(ξ)  = h'(η + N·ξ) · N
        second_derivative(ξ) = h''(η + N·ξ) · N²

    The derivatives are those of h(η + N·ξ), i.e. the negated
    derivatives of ``value``.
    """
    transfer: Transfer
    eta: float       # θ_old · x
    y: float
    normx: float     # ‖x‖

    def __post_init__(self):
        if not self.normx > 0:
            raise DegenerateInputError(
                f"Covariate norm must be positive, got {self.normx}"
            )

    @classmethod
    def from_data(cls, transfer: Transfer, theta_old: np.ndarray, x: np.ndarray,
                  y: float, normx: float = None) -> "ScoreCoefficient":
        """Bind to the current θ and data point."""
        x = np.asarray(x, dtype=np.float64).ravel()
        if normx is None:
            normx = np.linalg.norm(x)
        eta = float(np.dot(np.asarray(theta_old, dtype=np.float64).ravel(), x))
        return cls(transfer, eta, float(y), float(normx))

    def value(self, ksi: float) -> float:
        return float(self.y - self.transfer.transfer(self.eta + self.normx * ksi))

    def first_derivative(self, ksi: float) -> float:
        return float(self.transfer.first_derivative(self.eta + self.normx * ksi) * self.normx)

    def second_derivative(self, ksi: float) -> float:
        return float(
            self.transfer.second_derivative(self.eta + self.normx * ksi)
            * self.normx * self.normx
        )

    def __call__(self, ksi: float) -> float:
        return self.value(ksi)


@dataclass(frozen=True)
class ImplicitEquation:
    """
    f(u) = u - a·g(u), f'(u) = 1 + a·g'(u), f''(u) = a·g''(u)

    ``a`` is the scalar effective step size.
    """
    at: float
    score: ScoreCoefficient

    def __call__(self, u: float) -> Tuple[float, float, float]:
        value = u - self.at * self.score.value(u)
        first = 1.0 + self.at * self.score.first_derivative(u)
        second = self.at * self.score.second_derivative(u)
        return value, first, second

    def bracket(self) -> Tuple[float, float]:
        """
        Interval containing the root.

        For a >= 0 and an increasing transfer, f is increasing and its
        root lies between 0 and r = a·g(0), with f(lower) <= 0 <= f(upper).
        Only the end at 0 is known to be finite.
        """
        r = self.at * self.score.value(0.0)
        return min(0.0, r), max(0.0, r)


__all__ = ["ScoreCoefficient", "ImplicitEquation"]
