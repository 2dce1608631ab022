"""
Data containers: observations, datasets and the online trajectory.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import List, Optional, Union

from ._utils import check_array, check_vector, readonly
from .exceptions import EmptyTrajectoryError


@dataclass(frozen=True, eq=False)
class DataPoint:
    """One observation: covariate row x (length p) and response y."""
    x: np.ndarray
    y: float

    def __post_init__(self):
        x = np.asarray(self.x, dtype=np.float64).ravel()
        object.__setattr__(self, 'x', readonly(x))
        object.__setattr__(self, 'y', float(self.y))

    @property
    def p(self) -> int:
        return self.x.shape[0]


@dataclass(frozen=True)
class DatasetSize:
    """Shape of a dataset."""
    nsamples: int
    p: int


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Design matrix X (n × p) paired with responses Y (n,).

    Arrays are copied and made read-only on construction.
    """
    X: np.ndarray
    Y: np.ndarray

    def __post_init__(self):
        X = check_array(self.X, name='X')
        Y = check_vector(np.asarray(self.Y, dtype=np.float64).ravel(), name='Y')
        if X.shape[0] != Y.shape[0]:
            raise ValueError(
                f"X has {X.shape[0]} rows but Y has {Y.shape[0]} elements"
            )
        object.__setattr__(self, 'X', readonly(X))
        object.__setattr__(self, 'Y', readonly(Y))

    @classmethod
    def from_frame(
        cls,
        data: pd.DataFrame,
        y: str,
        X: Union[str, List[str]],
    ) -> "Dataset":
        """
        Build a dataset from DataFrame columns.

        Parameters
        ----------
        data : DataFrame
            Source data
        y : str
            Response column
        X : str or list of str
            Covariate columns, in parameter order

        Examples
        --------
        >>> data = Dataset.from_frame(df, y='count', X=['x1', 'x2'])
        """
        if isinstance(X, str):
            X = [X]
        return cls(data[X].to_numpy(dtype=np.float64), data[y].to_numpy(dtype=np.float64))

    @property
    def size(self) -> DatasetSize:
        return DatasetSize(self.X.shape[0], self.X.shape[1])

    def covariance(self) -> np.ndarray:
        """Sample covariance of the covariates, shape (p, p)."""
        return np.atleast_2d(np.cov(self.X, rowvar=False))

    def __len__(self):
        return self.X.shape[0]

    def __getitem__(self, i: int) -> DataPoint:
        return DataPoint(self.X[i], self.Y[i])

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]


class OnlineOutput:
    """
    Trajectory of parameter estimates.

    Column t-1 of ``estimates`` is θ after the t-th update. Columns are
    only ever appended.

    Parameters
    ----------
    p : int
        Parameter dimension
    capacity : int, default=0
        Number of columns to preallocate
    """

    def __init__(self, p: int, capacity: int = 0):
        self.p = int(p)
        self._estimates = np.empty((self.p, int(capacity)), dtype=np.float64)
        self._n = 0

    @classmethod
    def for_dataset(cls, data: Dataset) -> "OnlineOutput":
        """Output sized for one pass over ``data``."""
        size = data.size
        return cls(size.p, capacity=size.nsamples)

    def append(self, theta: np.ndarray):
        theta = np.asarray(theta, dtype=np.float64).ravel()
        if theta.shape[0] != self.p:
            raise ValueError(f"theta has length {theta.shape[0]}, expected {self.p}")
        if self._n == self._estimates.shape[1]:
            grown = np.empty((self.p, max(1, 2 * self._n)), dtype=np.float64)
            grown[:, :self._n] = self._estimates[:, :self._n]
            self._estimates = grown
        self._estimates[:, self._n] = theta
        self._n += 1

    @property
    def estimates(self) -> np.ndarray:
        """All estimates so far, shape (p, n_updates)."""
        return self._estimates[:, :self._n].copy()

    def last_estimate(self) -> np.ndarray:
        """Most recent estimate, shape (p,)."""
        if self._n == 0:
            raise EmptyTrajectoryError("No update has been applied yet")
        return self._estimates[:, self._n - 1].copy()

    def to_frame(self, names: Optional[List[str]] = None) -> pd.DataFrame:
        """Trajectory as a DataFrame, one row per step (index t = 1..n)."""
        if names is None:
            names = [f'theta{i}' for i in range(self.p)]
        if len(names) != self.p:
            raise ValueError(f"Expected {self.p} names, got {len(names)}")
        return pd.DataFrame(
            self.estimates.T,
            columns=names,
            index=pd.RangeIndex(1, self._n + 1, name='t'),
        )

    def __len__(self):
        return self._n

    def __repr__(self):
        return f"OnlineOutput(p={self.p}, n_updates={self._n})"
