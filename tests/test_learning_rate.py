"""
Test learning-rate policies.
"""

import pytest
import numpy as np

from pyimplicit import DataPoint, Experiment, ConfigurationError, get_learning_rate
from pyimplicit._core.learning_rate import (
    ScalarLearningRate,
    AdaptiveLearningRate,
    list_available_learning_rates,
)


def linear_score(theta, data_point):
    """Identity-transfer score (y - x'θ)·x."""
    return (data_point.y - data_point.x @ theta) * data_point.x


class TestScalarLearningRate:
    """Isotropic decaying schedule."""

    def test_rate_at_zero(self):
        """rate(0) = scale·γ"""
        lr = ScalarLearningRate(3, gamma=0.4, alpha=2.0, c=0.7, scale=5.0)
        assert lr.rate(0) == pytest.approx(2.0)

    def test_formula(self):
        """rate(t) = scale·γ·(1 + α·γ·t)^(-c)"""
        lr = ScalarLearningRate(1, gamma=0.5, alpha=2.0, c=0.6, scale=3.0)
        assert lr.rate(10) == pytest.approx(3.0 * 0.5 * (1 + 2.0 * 0.5 * 10) ** -0.6)

    def test_strictly_decreasing(self):
        """rate is strictly decreasing in t for γ, α, c > 0."""
        lr = ScalarLearningRate(2, gamma=1.0, alpha=0.5, c=0.6, scale=1.0)
        rates = np.array([lr.rate(t) for t in range(200)])
        assert np.all(np.diff(rates) < 0)

    def test_matrix(self):
        """Returns rate·I_p."""
        lr = ScalarLearningRate(3)
        point = DataPoint([1.0, 2.0, 3.0], 1.0)
        R = lr(np.zeros(3), point, 4)
        np.testing.assert_allclose(R, np.eye(3) * lr.rate(4))
        assert R.shape == (3, 3)

    def test_stateless(self):
        """Same t gives the same matrix."""
        lr = ScalarLearningRate(2)
        point = DataPoint([1.0, 1.0], 0.0)
        np.testing.assert_array_equal(lr(np.zeros(2), point, 3), lr(np.ones(2), point, 3))

    @pytest.mark.parametrize("param", ['gamma', 'alpha', 'c', 'scale'])
    def test_negative_parameter(self, param):
        """Negative parameters are rejected at construction."""
        with pytest.raises(ConfigurationError):
            ScalarLearningRate(2, **{param: -1.0})

    def test_bad_dimension(self):
        """p must be a positive integer."""
        with pytest.raises(ConfigurationError):
            ScalarLearningRate(0)


class TestAdaptiveLearningRate:
    """Diagonal Fisher-information schedule."""

    def test_diagonal_non_negative(self):
        """Matrix is diagonal with non-negative entries."""
        lr = AdaptiveLearningRate(3, score_function=linear_score)
        point = DataPoint([1.0, -2.0, 0.5], 3.0)
        R = lr(np.zeros(3), point, 1)
        assert R.shape == (3, 3)
        np.testing.assert_array_equal(R, np.diag(np.diag(R)))
        assert np.all(np.diag(R) >= 0)

    def test_single_step_values(self):
        """First step: 1 / (1 + g²) per coordinate."""
        lr = AdaptiveLearningRate(2, score_function=linear_score)
        point = DataPoint([1.0, 2.0], 1.0)
        R = lr(np.zeros(2), point, 1)
        # g = [1, 2]
        np.testing.assert_allclose(np.diag(R), [1 / 2, 1 / 5])

    def test_accumulates(self):
        """The Fisher diagonal grows monotonically across steps."""
        lr = AdaptiveLearningRate(2, score_function=linear_score)
        point = DataPoint([1.0, 2.0], 1.0)
        R1 = lr(np.zeros(2), point, 1)
        R2 = lr(np.zeros(2), point, 2)
        np.testing.assert_allclose(np.diag(R2), [1 / 3, 1 / 9])
        assert np.all(np.diag(R2) <= np.diag(R1))
        np.testing.assert_allclose(lr.fisher_diag, [3.0, 9.0])

    def test_no_accumulation(self):
        """accumulate=False rebuilds the estimate from I_p each call."""
        lr = AdaptiveLearningRate(2, score_function=linear_score, accumulate=False)
        point = DataPoint([1.0, 2.0], 1.0)
        lr(np.zeros(2), point, 1)
        R = lr(np.zeros(2), point, 2)
        np.testing.assert_allclose(np.diag(R), [1 / 2, 1 / 5])
        np.testing.assert_array_equal(lr.fisher_diag, np.ones(2))

    def test_per_step_through_experiment(self):
        """Experiments forward accumulate=False to the p-dim alias."""
        exp = Experiment(2, learning_rate='pxdim', accumulate=False)
        lr = exp.make_learning_rate()
        assert isinstance(lr, AdaptiveLearningRate)
        assert not lr.accumulate
        assert AdaptiveLearningRate(2, score_function=linear_score).accumulate

    def test_bounded(self):
        """Entries stay in (0, 1] for bounded scores."""
        np.random.seed(7)
        lr = AdaptiveLearningRate(4, score_function=linear_score)
        theta = np.zeros(4)
        for t in range(1, 101):
            point = DataPoint(np.random.uniform(-1, 1, 4), np.random.uniform(-1, 1))
            d = np.diag(lr(theta, point, t))
            assert np.all(d > 0)
            assert np.all(d <= 1)
            assert np.all(np.isfinite(d))

    def test_reset(self):
        """reset() restores I_p."""
        lr = AdaptiveLearningRate(2, score_function=linear_score)
        lr(np.zeros(2), DataPoint([3.0, 4.0], 1.0), 1)
        lr.reset()
        np.testing.assert_array_equal(lr.fisher_diag, np.ones(2))

    def test_requires_score_function(self):
        """The adaptive policy cannot be built without a score."""
        with pytest.raises(ConfigurationError, match="score function"):
            AdaptiveLearningRate(2)


class TestFactory:
    """Name-based construction."""

    def test_list(self):
        """Both policies are listed."""
        assert list_available_learning_rates() == ['scalar', 'adaptive']

    def test_scalar(self):
        """'scalar' builds a ScalarLearningRate with parameters."""
        lr = get_learning_rate('scalar', 2, gamma=0.3)
        assert isinstance(lr, ScalarLearningRate)
        assert lr.gamma == 0.3

    def test_adaptive(self):
        """'adaptive' binds the score function."""
        lr = get_learning_rate('adaptive', 2, score_function=linear_score)
        assert isinstance(lr, AdaptiveLearningRate)
        assert lr.score_function is linear_score

    def test_aliases(self):
        """Original one-dim / p-dim names are accepted."""
        assert isinstance(get_learning_rate('unidim', 2), ScalarLearningRate)
        assert isinstance(
            get_learning_rate('pxdim', 2, score_function=linear_score), AdaptiveLearningRate
        )

    def test_unknown(self):
        """Unknown policies fail fast."""
        with pytest.raises(ConfigurationError, match="Unknown learning rate"):
            get_learning_rate('adagrad', 2)

    def test_unknown_parameter(self):
        """Unexpected keywords are configuration errors."""
        with pytest.raises(ConfigurationError):
            get_learning_rate('scalar', 2, momentum=0.9)
