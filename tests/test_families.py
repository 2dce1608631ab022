"""
Test model family variance and deviance functions.
"""

import pytest
import numpy as np

from pyimplicit import get_family, ConfigurationError
from pyimplicit._core.families import (
    FamilyName,
    Gaussian,
    Poisson,
    Binomial,
    list_available_families,
)


DEV_TOL = 1e-12


class TestCatalog:
    """Test family lookup."""

    def test_list_families(self):
        """All three families are listed."""
        assert list_available_families() == ['gaussian', 'poisson', 'binomial']

    @pytest.mark.parametrize("name,cls", [
        ('gaussian', Gaussian),
        ('poisson', Poisson),
        ('binomial', Binomial),
        (FamilyName.POISSON, Poisson),
        ('Binomial', Binomial),
    ])
    def test_get_family(self, name, cls):
        """Lookup by name or enum."""
        family = get_family(name)
        assert isinstance(family, cls)

    def test_lookup_returns_shared_instance(self):
        """The table holds one instance per family."""
        assert get_family('poisson') is get_family(FamilyName.POISSON)

    def test_unknown_family(self):
        """Unknown names raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Unknown family"):
            get_family('gamma')

    @pytest.mark.parametrize("name,transfer", [
        ('gaussian', 'identity'),
        ('poisson', 'exp'),
        ('binomial', 'logistic'),
    ])
    def test_canonical_transfer(self, name, transfer):
        """Each family names its canonical transfer."""
        assert get_family(name).canonical_transfer == transfer
        assert get_family(name).name == name


class TestVariance:
    """Variance functions."""

    def test_gaussian_variance(self):
        """V(μ) = 1"""
        mu = np.array([-1.0, 0.0, 3.0])
        np.testing.assert_array_equal(get_family('gaussian').variance(mu), np.ones(3))

    def test_poisson_variance(self):
        """V(μ) = μ"""
        mu = np.array([0.5, 1.0, 4.0])
        np.testing.assert_array_equal(get_family('poisson').variance(mu), mu)

    def test_binomial_variance(self):
        """V(μ) = μ(1 - μ)"""
        mu = np.array([0.0, 0.25, 0.5, 1.0])
        np.testing.assert_allclose(
            get_family('binomial').variance(mu), [0.0, 0.1875, 0.25, 0.0]
        )


class TestDeviance:
    """Deviance functions."""

    @pytest.mark.parametrize("name,y", [
        ('gaussian', np.array([-2.0, 0.0, 1.5, 7.0])),
        ('poisson', np.array([0.0, 1.0, 3.0, 10.0])),
        ('binomial', np.array([0.0, 0.2, 0.5, 1.0])),
    ])
    def test_perfect_fit_is_zero(self, name, y):
        """deviance(y, y, w) = 0 for any positive weights."""
        family = get_family(name)
        for wt in (np.ones(4), np.array([0.5, 2.0, 3.0, 10.0])):
            assert family.deviance(y, y, wt) == pytest.approx(0.0, abs=DEV_TOL)

    def test_gaussian_deviance(self):
        """Σ w(y - μ)²"""
        dev = get_family('gaussian').deviance([1.0, 2.0], [0.0, 0.0], [1.0, 2.0])
        assert dev == pytest.approx(9.0)

    def test_poisson_deviance(self):
        """Σ 2w[y·log(y/μ) - (y - μ)]"""
        dev = get_family('poisson').deviance([0.0, 2.0], [1.0, 1.0])
        assert dev == pytest.approx(4 * np.log(2))

    def test_poisson_zero_count(self):
        """Zero counts contribute 2·w·μ."""
        dev = get_family('poisson').deviance([0.0], [3.0], [2.0])
        assert dev == pytest.approx(12.0)

    def test_binomial_deviance(self):
        """Σ 2w[y·log(y/μ) + (1-y)·log((1-y)/(1-μ))]"""
        dev = get_family('binomial').deviance([1.0, 0.0], [0.5, 0.5])
        assert dev == pytest.approx(4 * np.log(2))

    def test_binomial_boundary_responses(self):
        """0·log(0) terms vanish on both sides."""
        family = get_family('binomial')
        dev = family.deviance([0.0, 1.0], [0.1, 0.9])
        assert dev == pytest.approx(4 * -np.log(0.9))

    def test_dev_resids_sum_to_deviance(self):
        """Deviance is the sum of the per-observation contributions."""
        np.random.seed(42)
        y = np.random.poisson(3.0, 20).astype(float)
        mu = np.random.uniform(1.0, 5.0, 20)
        wt = np.random.uniform(0.5, 1.5, 20)
        family = get_family('poisson')
        assert family.deviance(y, mu, wt) == pytest.approx(
            np.sum(family.dev_resids(y, mu, wt))
        )

    def test_deviance_non_negative(self):
        """Deviance contributions are non-negative."""
        np.random.seed(0)
        y = np.random.binomial(1, 0.3, 50).astype(float)
        mu = np.random.uniform(0.05, 0.95, 50)
        resids = get_family('binomial').dev_resids(y, mu, np.ones(50))
        assert np.all(resids >= 0)

    def test_length_mismatch(self):
        """Mismatched lengths are a caller error."""
        with pytest.raises(ValueError, match="Length mismatch"):
            get_family('gaussian').deviance([1.0, 2.0], [1.0])
        with pytest.raises(ValueError, match="Length mismatch"):
            get_family('poisson').deviance([1.0, 2.0], [1.0, 2.0], [1.0])
