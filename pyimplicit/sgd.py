"""
Implicit stochastic gradient descent engine.

Each update solves the scalar implicit equation along the covariate
direction instead of taking an explicit gradient step:

    θ_t = θ_{t-1} + R_t·x_t·(y_t - h(x_t'θ_t))

Main user-facing interface for online fitting.
"""

import warnings
import numpy as np
from dataclasses import dataclass
from typing import Optional

from ._core.score import ScoreCoefficient, ImplicitEquation
from ._core.solver import DEFAULT_MAX_ITER, DEFAULT_XTOL, solve_implicit
from .data import DataPoint, Dataset, OnlineOutput
from .experiment import Experiment
from .exceptions import (
    ConfigurationError,
    ConvergenceWarning,
    NumericDomainError,
    SolverNonConvergence,
)


@dataclass
class StepResult:
    """Outcome of one update."""
    t: int                    # Step index
    index: Optional[int]      # Dataset row (None if fed directly)
    theta: np.ndarray         # θ after the update
    xi: float                 # Solved displacement ξ*
    step_size: float          # Effective scalar step a
    iterations: int           # Solver iterations
    converged: bool           # Solver met tolerance?
    degenerate: bool          # Zero-norm covariates (identity update)?


class ImplicitSGD:
    """
    Online implicit-SGD engine for one experiment.

    States: 'configured' (no update yet) and 'running'. The caller
    decides when to stop feeding data.

    Parameters
    ----------
    experiment : Experiment
        Dimension, transfer function and learning-rate selection
    strict : bool, default=False
        Raise SolverNonConvergence instead of warning when the root
        finder hits its iteration cap
    max_iter : int, default=50
        Root finder iteration cap
    xtol : float
        Root finder relative tolerance
    method : str, default='halley'
        Root finder: 'halley' or 'brentq'
    theta0 : ndarray, optional
        Starting estimate (default: zeros)

    Examples
    --------
    >>> engine = ImplicitSGD(Experiment(2, transfer='identity'))
    >>> trajectory = engine.fit(Dataset(X, y))
    >>> engine.last_estimate()
    """

    def __init__(
        self,
        experiment: Experiment,
        strict: bool = False,
        max_iter: int = DEFAULT_MAX_ITER,
        xtol: float = DEFAULT_XTOL,
        method: str = 'halley',
        theta0: Optional[np.ndarray] = None,
    ):
        if not isinstance(experiment, Experiment):
            raise ConfigurationError(
                f"experiment must be an Experiment, got {type(experiment).__name__}"
            )
        if int(max_iter) != max_iter or max_iter < 1:
            raise ConfigurationError(f"max_iter must be a positive integer, got {max_iter}")
        if not xtol > 0:
            raise ConfigurationError(f"xtol must be positive, got {xtol}")
        if method not in ('halley', 'brentq'):
            raise ConfigurationError(
                f"Unknown solver method: '{method}'\n"
                f"Valid options: 'halley', 'brentq'"
            )

        self.experiment = experiment
        self.strict = bool(strict)
        self.max_iter = int(max_iter)
        self.xtol = float(xtol)
        self.method = method
        self.learning_rate = experiment.make_learning_rate()
        self._theta0 = self._check_theta(theta0)
        self.reset()

    @property
    def p(self) -> int:
        return self.experiment.p

    def _check_theta(self, theta) -> np.ndarray:
        if theta is None:
            return np.zeros(self.p)
        theta = np.asarray(theta, dtype=np.float64).ravel()
        if theta.shape[0] != self.p:
            raise ValueError(f"theta has length {theta.shape[0]}, expected {self.p}")
        if not np.all(np.isfinite(theta)):
            raise ValueError("theta contains NaN or Inf")
        return theta.copy()

    def reset(self, theta0: Optional[np.ndarray] = None):
        """Clear trajectory, counters and learning-rate state."""
        if theta0 is not None:
            self._theta0 = self._check_theta(theta0)
        self.trajectory = OnlineOutput(self.p)
        self.learning_rate.reset()
        self.n_degenerate = 0
        self.n_nonconverged = 0
        self.solver_iterations = 0

    @property
    def n_updates(self) -> int:
        return len(self.trajectory)

    @property
    def state(self) -> str:
        return 'running' if self.n_updates else 'configured'

    @property
    def theta(self) -> np.ndarray:
        """Current estimate (θ0 before the first update)."""
        if self.n_updates == 0:
            return self._theta0.copy()
        return self.trajectory.last_estimate()

    def last_estimate(self) -> np.ndarray:
        """Most recent estimate; raises EmptyTrajectoryError before any update."""
        return self.trajectory.last_estimate()

    def score_function(self, theta: np.ndarray, data_point: DataPoint) -> np.ndarray:
        """(y - h(θ'x))·x"""
        return self.experiment.score_function(theta, data_point)

    def update(
        self,
        t: int,
        data_point: DataPoint,
        theta_old: Optional[np.ndarray] = None,
        index: Optional[int] = None,
    ) -> StepResult:
        """
        Apply one implicit update and append the result to the trajectory.

        Parameters
        ----------
        t : int
            Step index passed to the learning-rate policy
        data_point : DataPoint
            Observation (x, y)
        theta_old : ndarray, optional
            Estimate to update from (default: current estimate)
        index : int, optional
            Dataset row, reported in warnings and errors

        Returns
        -------
        result : StepResult

        Raises
        ------
        NumericDomainError
            Non-finite learning rate, bracket or new estimate. Overflow
            at solver trial points past the root is not an error. The
            trajectory is left unchanged.
        SolverNonConvergence
            Iteration cap reached in strict mode. The trajectory is
            left unchanged.
        """
        theta_old = self.theta if theta_old is None else self._check_theta(theta_old)
        x = data_point.x
        if x.shape[0] != self.p:
            raise ValueError(f"x has length {x.shape[0]}, expected {self.p}")

        try:
            with np.errstate(over='raise', invalid='raise', divide='raise'):
                R = self.learning_rate(theta_old, data_point, t)
        except (FloatingPointError, OverflowError) as e:
            raise NumericDomainError(
                f"Learning rate overflow: {e}", step=t, index=index
            ) from e
        if not np.all(np.isfinite(R)):
            raise NumericDomainError("Non-finite learning rate", step=t, index=index)

        normx = float(np.linalg.norm(x))
        if normx == 0.0:
            # No direction to move along: θ stays put
            self.n_degenerate += 1
            self.trajectory.append(theta_old)
            return StepResult(t, index, theta_old.copy(), 0.0, 0.0, 0, True, True)

        Rx = R @ x
        # Effective step: x'Rx / ‖x‖, which is r·‖x‖ when R = r·I
        at = float(np.dot(x, Rx)) / normx
        if not np.isfinite(at):
            raise NumericDomainError("Non-finite effective step size", step=t, index=index)

        score = ScoreCoefficient.from_data(
            self.experiment.transfer, theta_old, x, data_point.y, normx
        )
        equation = ImplicitEquation(at, score)
        try:
            lower, upper = self._bracket(equation)
            result = solve_implicit(
                equation, lower, upper,
                max_iter=self.max_iter, xtol=self.xtol, method=self.method,
                increasing=True,
            )
        except NumericDomainError as e:
            raise NumericDomainError(str(e), step=t, index=index) from e

        self.solver_iterations += result.iterations
        if not result.converged:
            message = (f"Implicit update did not converge after "
                       f"{result.iterations} iterations")
            if self.strict:
                raise SolverNonConvergence(
                    message, root=result.root, iterations=result.iterations,
                    step=t, index=index,
                )
            self.n_nonconverged += 1
            where = f"step {t}" if index is None else f"step {t}, row {index}"
            warnings.warn(f"{message} ({where}); using best estimate",
                          ConvergenceWarning, stacklevel=2)

        ksi = result.root
        if at > 0:
            theta_new = theta_old + (ksi / at) * Rx
        else:
            theta_new = theta_old.copy()
        if not np.all(np.isfinite(theta_new)):
            raise NumericDomainError("Non-finite parameter estimate", step=t, index=index)

        self.trajectory.append(theta_new)
        return StepResult(
            t, index, theta_new.copy(), ksi, at,
            result.iterations, result.converged, False,
        )

    @staticmethod
    def _bracket(equation: ImplicitEquation):
        try:
            with np.errstate(over='raise', invalid='raise'):
                lower, upper = equation.bracket()
        except (FloatingPointError, OverflowError) as e:
            raise NumericDomainError(f"Overflow evaluating score at 0: {e}") from e
        if not (np.isfinite(lower) and np.isfinite(upper)):
            raise NumericDomainError(f"Non-finite bracket [{lower}, {upper}]")
        return lower, upper

    def fit(self, data: Dataset, theta0: Optional[np.ndarray] = None) -> OnlineOutput:
        """
        One pass over ``data`` in row order.

        Starts a fresh run: trajectory, counters and learning-rate state
        are reset. Row i is processed with step index t = i + 1.

        Parameters
        ----------
        data : Dataset
            Observations
        theta0 : ndarray, optional
            Starting estimate (default: the engine's θ0, zeros unless set)

        Returns
        -------
        trajectory : OnlineOutput
            p × n_iters estimates
        """
        size = data.size
        if size.p != self.p:
            raise ValueError(f"Dataset has {size.p} columns, expected {self.p}")
        n_iters = size.nsamples if self.experiment.n_iters is None else self.experiment.n_iters
        if n_iters > size.nsamples:
            raise ValueError(
                f"n_iters={n_iters} exceeds the number of rows ({size.nsamples})"
            )

        self.reset(theta0)
        self.trajectory = OnlineOutput(self.p, capacity=n_iters)
        theta = self.theta
        for i in range(n_iters):
            theta = self.update(i + 1, data[i], theta_old=theta, index=i).theta
        return self.trajectory

    def __repr__(self):
        return (f"ImplicitSGD({self.experiment!r}, state='{self.state}', "
                f"n_updates={self.n_updates})")


def implicit_sgd(
    X,
    y,
    transfer='identity',
    learning_rate: str = 'scalar',
    theta0: Optional[np.ndarray] = None,
    strict: bool = False,
    **lr_params
) -> OnlineOutput:
    """
    Fit by implicit SGD (convenience function).

    Parameters
    ----------
    X : array, shape (n, p)
        Design matrix (no intercept column is added)
    y : array, shape (n,)
        Responses
    transfer : str
        'identity', 'exp' or 'logistic'
    learning_rate : str
        'scalar' or 'adaptive'
    theta0 : array, optional
        Starting estimate
    strict : bool
        Escalate solver non-convergence to an error
    **lr_params
        Learning-rate parameters

    Returns
    -------
    OnlineOutput
        Trajectory of estimates

    Examples
    --------
    >>> out = implicit_sgd(X, y, transfer='exp', gamma=0.5)
    >>> out.last_estimate()
    """
    data = Dataset(X, y)
    experiment = Experiment(
        data.size.p, transfer=transfer, learning_rate=learning_rate, **lr_params
    )
    engine = ImplicitSGD(experiment, strict=strict)
    return engine.fit(data, theta0=theta0)
