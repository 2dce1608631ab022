"""
Experiment configuration.

Binds the transfer function and learning-rate selection once, so the
update loop never dispatches on names.
"""

import numpy as np
from typing import Optional

from ._core.transfer import Transfer, get_transfer
from ._core.families import Family, get_family
from ._core.learning_rate import LearningRate, get_learning_rate
from .exceptions import ConfigurationError


class Experiment:
    """
    Configuration of one implicit-SGD run.

    Parameters
    ----------
    p : int
        Parameter dimension
    transfer : str or Transfer, default='identity'
        'identity', 'exp' or 'logistic'
    learning_rate : str, default='scalar'
        'scalar' or 'adaptive'
    n_iters : int, optional
        Rows processed by a fit (default: all rows)
    model_name : str, optional
        Model family used for diagnostics ('gaussian', 'poisson',
        'binomial')
    **lr_params
        Learning-rate parameters (gamma, alpha, c, scale for 'scalar';
        accumulate for 'adaptive')

    Raises
    ------
    ConfigurationError
        Unknown transfer, family or learning rate, or bad parameters

    Examples
    --------
    >>> exp = Experiment(2, transfer='logistic', learning_rate='adaptive')
    >>> exp.transfer_name
    'logistic'
    """

    def __init__(
        self,
        p: int,
        transfer='identity',
        learning_rate: str = 'scalar',
        n_iters: Optional[int] = None,
        model_name: Optional[str] = None,
        **lr_params
    ):
        if isinstance(p, bool) or int(p) != p or p < 1:
            raise ConfigurationError(f"Dimension p must be a positive integer, got {p}")
        if n_iters is not None and (int(n_iters) != n_iters or n_iters < 0):
            raise ConfigurationError(f"n_iters must be a non-negative integer, got {n_iters}")

        self.p = int(p)
        self.n_iters = None if n_iters is None else int(n_iters)
        self._transfer: Transfer = get_transfer(transfer)
        self._family: Optional[Family] = None if model_name is None else get_family(model_name)
        self.model_name = None if self._family is None else self._family.name

        self.lr_name = str(learning_rate).lower()
        self.lr_params = dict(lr_params)
        # Fail now rather than on the first update
        self.make_learning_rate()

    @property
    def transfer(self) -> Transfer:
        return self._transfer

    @property
    def transfer_name(self) -> str:
        return self._transfer.name

    @property
    def family(self) -> Optional[Family]:
        return self._family

    def make_learning_rate(self) -> LearningRate:
        """Fresh learning-rate policy bound to this experiment's score."""
        return get_learning_rate(
            self.lr_name, self.p, score_function=self.score_function, **self.lr_params
        )

    def h_transfer(self, u: float) -> float:
        return float(self._transfer.transfer(u))

    def h_first_derivative(self, u: float) -> float:
        return float(self._transfer.first_derivative(u))

    def h_second_derivative(self, u: float) -> float:
        return float(self._transfer.second_derivative(u))

    def score_function(self, theta_old: np.ndarray, data_point) -> np.ndarray:
        """
        Score of one observation: (y - h(θ'x))·x, shape (p,).
        """
        x = data_point.x
        eta = float(np.dot(x, np.asarray(theta_old, dtype=np.float64).ravel()))
        return (data_point.y - self.h_transfer(eta)) * x

    def __repr__(self):
        return (f"Experiment(p={self.p}, transfer='{self.transfer_name}', "
                f"learning_rate='{self.lr_name}', n_iters={self.n_iters})")
