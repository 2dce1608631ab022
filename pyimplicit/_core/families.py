"""
GLM family definitions.

Variance and deviance functions used for post-hoc fit diagnostics.
"""

import numpy as np
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from scipy.special import xlogy

from ..exceptions import ConfigurationError
from .._utils import check_same_length


def _ylogy(y, mu):
    """y·log(y/μ), defined as 0 when y = 0."""
    return xlogy(y, y) - xlogy(y, mu)


class FamilyName(Enum):
    """Supported model families."""
    GAUSSIAN = "gaussian"
    POISSON = "poisson"
    BINOMIAL = "binomial"


class Family(ABC):
    """Base class for GLM families."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Family name."""
        pass

    @property
    @abstractmethod
    def canonical_transfer(self) -> str:
        """Name of the canonical transfer function (inverse link)."""
        pass

    @abstractmethod
    def variance(self, mu: np.ndarray) -> np.ndarray:
        """Variance function: V(μ)"""
        pass

    @abstractmethod
    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        """Per-observation deviance contributions."""
        pass

    def deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: Optional[np.ndarray] = None
    ) -> float:
        """
        Total deviance.

        Parameters
        ----------
        y : ndarray, shape (n,)
            Observed responses
        mu : ndarray, shape (n,)
            Fitted means
        wt : ndarray, shape (n,), optional
            Prior weights (default: ones)

        Returns
        -------
        float
            Sum of the deviance residuals
        """
        y = np.asarray(y, dtype=np.float64).ravel()
        mu = np.asarray(mu, dtype=np.float64).ravel()
        wt = np.ones_like(y) if wt is None else np.asarray(wt, dtype=np.float64).ravel()
        check_same_length(y, mu, wt, names=['y', 'mu', 'wt'])
        return float(np.sum(self.dev_resids(y, mu, wt)))

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class Gaussian(Family):
    """Gaussian family."""

    @property
    def name(self) -> str:
        return FamilyName.GAUSSIAN.value

    @property
    def canonical_transfer(self) -> str:
        return "identity"

    def variance(self, mu: np.ndarray) -> np.ndarray:
        return np.ones_like(mu, dtype=np.float64)

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        return wt * (y - mu) ** 2


class Poisson(Family):
    """
    Poisson family.

    The y·log(y/μ) term is taken as 0 when y = 0, leaving a
    contribution of 2·w·μ for zero counts.
    """

    @property
    def name(self) -> str:
        return FamilyName.POISSON.value

    @property
    def canonical_transfer(self) -> str:
        return "exp"

    def variance(self, mu: np.ndarray) -> np.ndarray:
        return np.asarray(mu, dtype=np.float64) * 1.0

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        with np.errstate(divide='ignore', invalid='ignore'):
            return 2.0 * wt * (_ylogy(y, mu) - (y - mu))


class Binomial(Family):
    """
    Binomial family (responses are proportions in [0, 1]).

    Uses the same 0·log(0) = 0 convention on both terms, so perfect
    predictions of 0 or 1 contribute nothing.
    """

    @property
    def name(self) -> str:
        return FamilyName.BINOMIAL.value

    @property
    def canonical_transfer(self) -> str:
        return "logistic"

    def variance(self, mu: np.ndarray) -> np.ndarray:
        mu = np.asarray(mu, dtype=np.float64)
        return mu * (1 - mu)

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        with np.errstate(divide='ignore', invalid='ignore'):
            return 2.0 * wt * (
                _ylogy(y, mu) + _ylogy(1 - y, 1 - mu)
            )


# Lookup table: one immutable instance per family
_FAMILIES = {
    FamilyName.GAUSSIAN: Gaussian(),
    FamilyName.POISSON: Poisson(),
    FamilyName.BINOMIAL: Binomial(),
}


def get_family(name) -> Family:
    """
    Get model family by name.

    Parameters
    ----------
    name : str, FamilyName or Family
        'gaussian', 'poisson' or 'binomial'

    Returns
    -------
    Family

    Raises
    ------
    ConfigurationError
        Unknown family name
    """
    if isinstance(name, Family):
        return name
    if isinstance(name, FamilyName):
        return _FAMILIES[name]
    try:
        key = FamilyName(str(name).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown family: '{name}'\n"
            f"Valid options: 'gaussian', 'poisson', 'binomial'"
        ) from None
    return _FAMILIES[key]


def list_available_families() -> list:
    """List names of available model families."""
    return [f.value for f in FamilyName]


__all__ = [
    "FamilyName",
    "Family",
    "Gaussian",
    "Poisson",
    "Binomial",
    "get_family",
    "list_available_families",
]
