"""
Generalized linear model API.

Online GLM fitting by implicit SGD with post-hoc deviance diagnostics.
"""

import numpy as np
import pandas as pd
from typing import Optional, Union, List
from dataclasses import dataclass, field

from ._core.families import Family, get_family
from ._core.transfer import get_transfer
from ._utils import check_array, check_vector
from .data import Dataset, OnlineOutput
from .experiment import Experiment
from .sgd import ImplicitSGD


@dataclass
class GLMResult:
    """Results from online GLM fitting."""
    coef: np.ndarray               # Last estimate
    trajectory: OnlineOutput       # All estimates
    fitted_values: np.ndarray      # Fitted values (μ) at the last estimate
    linear_predictors: np.ndarray  # Linear predictors (η)
    residuals: np.ndarray          # Residuals (response scale)

    deviance: float                # Deviance
    null_deviance: float           # Deviance of the weighted-mean model

    family: str                    # Family name
    transfer: str                  # Transfer name
    n_obs: int                     # Rows processed
    n_degenerate: int              # Zero-norm rows (identity updates)
    n_nonconverged: int            # Solves that hit the iteration cap
    converged: bool                # Every solve converged?

    var_names: List[str] = field(default_factory=list)

    @property
    def coef_series(self) -> pd.Series:
        """Named coefficients (pandas Series)."""
        names = self.var_names or [f'x{i}' for i in range(len(self.coef))]
        return pd.Series(self.coef, index=names)

    def summary(self):
        """Print a summary of the fit."""
        print()
        print("=" * 60)
        print("IMPLICIT SGD GLM RESULTS")
        print("=" * 60)
        print()
        print(f"Family:                 {self.family}")
        print(f"Transfer:               {self.transfer}")
        print(f"Number of observations: {self.n_obs}")
        print()

        print("Coefficients:")
        print("-" * 60)
        print(f"{'Variable':<20} {'Estimate':>12}")
        print("-" * 60)
        for name, value in self.coef_series.items():
            print(f"{name:<20} {value:>12.4f}")
        print("-" * 60)
        print()

        print(f"Null deviance:     {self.null_deviance:.4f}")
        print(f"Residual deviance: {self.deviance:.4f}")
        print(f"Degenerate rows:   {self.n_degenerate}")
        if not self.converged:
            print(f"Warning: {self.n_nonconverged} implicit solves did not converge")
        print("=" * 60)
        print()


class ImplicitGLM:
    """
    Generalized linear model fitted online by implicit SGD.

    Parameters
    ----------
    family : str or Family, default='gaussian'
        GLM family ('gaussian', 'poisson', 'binomial')
    transfer : str, optional
        Transfer function; defaults to the family's canonical one
    learning_rate : str, default='scalar'
        'scalar' or 'adaptive'
    strict : bool, default=False
        Raise on solver non-convergence
    **lr_params
        Learning-rate parameters

    Examples
    --------
    >>> model = ImplicitGLM('poisson', gamma=0.5)
    >>> result = model.fit(X, y)
    >>> result.summary()
    """

    def __init__(
        self,
        family: Union[str, Family] = 'gaussian',
        transfer: Optional[str] = None,
        learning_rate: str = 'scalar',
        strict: bool = False,
        **lr_params
    ):
        self.family = get_family(family)
        self.transfer = get_transfer(
            self.family.canonical_transfer if transfer is None else transfer
        ).name
        self.learning_rate = learning_rate
        self.strict = strict
        self.lr_params = lr_params
        self.engine: Optional[ImplicitSGD] = None
        self.result: Optional[GLMResult] = None

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        weights: Optional[np.ndarray] = None,
        theta0: Optional[np.ndarray] = None,
        var_names: Optional[List[str]] = None,
    ) -> GLMResult:
        """
        Fit by one pass of implicit SGD.

        Parameters
        ----------
        X : ndarray, shape (n, p)
            Design matrix (include a column of ones for an intercept)
        y : ndarray, shape (n,)
            Response vector
        weights : ndarray, shape (n,), optional
            Prior weights for the deviance diagnostics
        theta0 : ndarray, shape (p,), optional
            Starting values for coefficients
        var_names : list of str, optional
            Coefficient names

        Returns
        -------
        result : GLMResult
            Fitted model results
        """
        X = check_array(X, name='X')
        y = check_vector(y, name='y')
        n, p = X.shape
        if weights is None:
            weights = np.ones(n)
        else:
            weights = check_vector(weights, name='weights')
            if weights.shape[0] != n:
                raise ValueError(f"weights has length {weights.shape[0]}, expected {n}")

        experiment = Experiment(
            p, transfer=self.transfer, learning_rate=self.learning_rate,
            model_name=self.family.name, **self.lr_params
        )
        self.engine = ImplicitSGD(experiment, strict=self.strict)
        trajectory = self.engine.fit(Dataset(X, y), theta0=theta0)

        coef = trajectory.last_estimate()
        eta = X @ coef
        mu = experiment.transfer.transfer(eta)
        mu_null = np.full(n, np.average(y, weights=weights))

        self.result = GLMResult(
            coef=coef,
            trajectory=trajectory,
            fitted_values=mu,
            linear_predictors=eta,
            residuals=y - mu,
            deviance=self.family.deviance(y, mu, weights),
            null_deviance=self.family.deviance(y, mu_null, weights),
            family=self.family.name,
            transfer=experiment.transfer_name,
            n_obs=n,
            n_degenerate=self.engine.n_degenerate,
            n_nonconverged=self.engine.n_nonconverged,
            converged=self.engine.n_nonconverged == 0,
            var_names=list(var_names) if var_names is not None else [],
        )
        return self.result

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Predicted means at the last estimate.

        Parameters
        ----------
        X : ndarray, shape (m, p)
            New design matrix

        Returns
        -------
        ndarray, shape (m,)
        """
        if self.result is None:
            raise RuntimeError("Model is not fitted yet")
        X = check_array(X, name='X')
        return self.engine.experiment.transfer.transfer(X @ self.result.coef)

    def __repr__(self):
        return (f"ImplicitGLM(family='{self.family.name}', transfer='{self.transfer}', "
                f"learning_rate='{self.learning_rate}')")


def glm(y, X, data=None, family='gaussian', weights=None, **kwargs) -> GLMResult:
    """
    Fit an online GLM (convenience function).

    Parameters
    ----------
    y : str or array
        Response variable
        - If string: column name in data
        - If array: numeric values
    X : list of str or array
        Predictor variables
        - If list of strings: column names in data
        - If array: numeric matrix (n × p)
    data : DataFrame, optional
        Dataset containing y and X variables
    family : str
        'gaussian', 'poisson' or 'binomial'
    weights : str or array, optional
        Prior weights for the deviance
    **kwargs
        Passed to ImplicitGLM

    Returns
    -------
    GLMResult

    Examples
    --------
    >>> result = glm(y='claims', X=['age', 'exposure'], data=df, family='poisson')
    >>> result.summary()
    """
    if isinstance(y, str):
        if data is None:
            raise ValueError("Must provide data when y is a string")
        y_values = data[y].to_numpy(dtype=np.float64)
    else:
        y_values = np.asarray(y, dtype=np.float64)

    if isinstance(X, list) and all(isinstance(x, str) for x in X):
        if data is None:
            raise ValueError("Must provide data when X is list of strings")
        X_values = data[X].to_numpy(dtype=np.float64)
        var_names = list(X)
    else:
        X_values = np.asarray(X, dtype=np.float64)
        var_names = None

    if isinstance(weights, str):
        if data is None:
            raise ValueError("Must provide data when weights is a string")
        weights = data[weights].to_numpy(dtype=np.float64)

    theta0 = kwargs.pop('theta0', None)
    model = ImplicitGLM(family=family, **kwargs)
    return model.fit(X_values, y_values, weights=weights, theta0=theta0, var_names=var_names)
