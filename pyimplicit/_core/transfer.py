"""
Transfer (mean) function catalog.

A transfer function h maps the linear predictor η = x'θ to the
conditional mean μ = h(η). It is the inverse of the GLM link.
"""

import numpy as np
from abc import ABC, abstractmethod

from ..exceptions import ConfigurationError


class Transfer(ABC):
    """Base class for transfer functions.

    All methods accept a scalar or an ndarray and are applied
    element-wise. They are pure: no state is kept between calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transfer name."""
        pass

    @abstractmethod
    def transfer(self, u):
        """Mean function: μ = h(u)"""
        pass

    @abstractmethod
    def first_derivative(self, u):
        """Derivative: dh/du"""
        pass

    @abstractmethod
    def second_derivative(self, u):
        """Second derivative: d²h/du²"""
        pass

    def __call__(self, u):
        return self.transfer(u)

    def __eq__(self, other):
        return isinstance(other, self.__class__)

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class IdentityTransfer(Transfer):
    """Identity transfer, canonical for the Gaussian family."""

    @property
    def name(self) -> str:
        return "identity"

    def transfer(self, u):
        return np.asarray(u, dtype=np.float64) * 1.0

    def first_derivative(self, u):
        return np.ones_like(u, dtype=np.float64)

    def second_derivative(self, u):
        return np.zeros_like(u, dtype=np.float64)

    def link(self, mu):
        """Link function: η = g(μ) = μ"""
        return np.asarray(mu, dtype=np.float64) * 1.0


class ExpTransfer(Transfer):
    """Exponential transfer (log link), canonical for Poisson.

    Large arguments overflow to inf; callers that need a hard failure
    evaluate under ``np.errstate(over='raise')``.
    """

    @property
    def name(self) -> str:
        return "exp"

    def transfer(self, u):
        return np.exp(u)

    def first_derivative(self, u):
        return np.exp(u)

    def second_derivative(self, u):
        return np.exp(u)


def _sigmoid(u):
    """Sigmoid via exp(-|u|), which can underflow but never overflows."""
    u = np.asarray(u, dtype=np.float64)
    e = np.exp(-np.abs(u))
    return np.where(u >= 0, 1.0 / (1.0 + e), e / (1.0 + e))[()]


class LogisticTransfer(Transfer):
    """Logistic transfer σ(u) = 1/(1 + exp(-u)), canonical for binomial."""

    @property
    def name(self) -> str:
        return "logistic"

    def transfer(self, u):
        return _sigmoid(u)

    def first_derivative(self, u):
        sig = _sigmoid(u)
        return sig * (1.0 - sig)

    def second_derivative(self, u):
        sig = _sigmoid(u)
        return 2 * sig**3 - 3 * sig**2 + 2 * sig


# Aliases resolve to the same instance
_TRANSFERS = {
    'identity': IdentityTransfer(),
    'exp': ExpTransfer(),
    'logistic': LogisticTransfer(),
}
_ALIASES = {
    'exponential': 'exp',
    'log': 'exp',
    'logit': 'logistic',
}


def get_transfer(name) -> Transfer:
    """
    Get transfer function by name.

    Parameters
    ----------
    name : str or Transfer
        One of 'identity', 'exp', 'logistic' (aliases 'exponential',
        'log', 'logit'). A Transfer instance is returned unchanged.

    Returns
    -------
    Transfer
        Resolved transfer function

    Raises
    ------
    ConfigurationError
        Unknown name. There is no fallback.

    Examples
    --------
    >>> h = get_transfer('logistic')
    >>> h.transfer(0.0)
    0.5
    """
    if isinstance(name, Transfer):
        return name
    if not isinstance(name, str):
        raise ConfigurationError(
            f"Transfer must be a name or Transfer instance, got {type(name).__name__}"
        )

    key = _ALIASES.get(name.lower(), name.lower())
    if key not in _TRANSFERS:
        raise ConfigurationError(
            f"Unknown transfer function: '{name}'\n"
            f"Valid options: 'identity', 'exp', 'logistic'"
        )
    return _TRANSFERS[key]


def list_available_transfers() -> list:
    """List names of available transfer functions."""
    return list(_TRANSFERS)


__all__ = [
    "Transfer",
    "IdentityTransfer",
    "ExpTransfer",
    "LogisticTransfer",
    "get_transfer",
    "list_available_transfers",
]
