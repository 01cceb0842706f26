"""
Tests for Davies' method.

Validates against exact distributions (scipy.stats):
    - Single chi-square term
    - Equal weights (scaled chi-square with pooled df)
    - Differences of chi-squares through the F distribution
Plus the degenerate branches and parameter validation.
"""

import numpy as np
import pytest
from scipy import stats

from pymlm.core.exceptions import ValidationError
from pymlm.mlm import davies


class TestAgainstExact:

    @pytest.mark.parametrize("q, df", [(1.0, 1), (5.0, 3), (12.0, 6)])
    def test_single_chi2(self, q, df):
        result = davies(q, [1.0], h=[df], acc=1e-6, lim=50000)
        assert result.ifault == 0
        assert result.qq == pytest.approx(stats.chi2.sf(q, df), abs=1e-5)

    def test_equal_weights_pool(self):
        # 2 chi2(1) + 2 chi2(1) = 2 chi2(2)
        result = davies(3.0, [2.0, 2.0], acc=1e-6, lim=50000)
        assert result.ifault == 0
        assert result.qq == pytest.approx(stats.chi2.sf(1.5, 2), abs=1e-5)

    def test_scaled_multiplicity(self):
        result = davies(4.0, [0.5], h=[4], acc=1e-6, lim=50000)
        assert result.qq == pytest.approx(stats.chi2.sf(8.0, 4), abs=1e-5)

    def test_ratio_through_f(self):
        # P(chi2(3) - f chi2(10) > 0) = P(F(3, 10) > f * 10 / 3)
        f = 0.6
        result = davies(0.0, [1.0, -f], h=[3, 10], acc=1e-6, lim=50000)
        expected = stats.f.sf(f * 10 / 3, 3, 10)
        assert result.ifault == 0
        assert result.qq == pytest.approx(expected, abs=1e-5)

    def test_noncentral(self):
        result = davies(6.0, [1.0], h=[2], delta=[1.5], acc=1e-6, lim=50000)
        assert result.qq == pytest.approx(stats.ncx2.sf(6.0, 2, 1.5), abs=1e-5)


class TestBranches:

    def test_below_support(self):
        """All weights positive and q < 0: P(Q > q) = 1."""
        result = davies(-1.0, [1.0, 2.0], acc=1e-6)
        assert result.ifault == 0
        assert result.qq == pytest.approx(1.0)

    def test_degenerate_zero_variance(self):
        """Q == 0 identically: P(Q > 1) = 0."""
        result = davies(1.0, [0.0], sigma=0.0)
        assert result.qq == pytest.approx(0.0)

    def test_trace_diagnostics(self):
        result = davies(5.0, [1.0], h=[3], acc=1e-6, lim=50000)
        assert result.trace.shape == (7,)
        assert result.trace[1] > 0     # integration terms
        assert result.trace[6] > 0     # evaluation cycles

    def test_limit_exceeded(self):
        result = davies(5.0, [1.0, 0.5], lim=1, acc=1e-6)
        assert result.ifault == 4

    def test_accuracy_not_reachable(self):
        result = davies(0.0, [1.0, -0.6], h=[3, 10], lim=50, acc=1e-14)
        assert result.ifault in (1, 4)


class TestValidation:

    def test_h_length(self):
        with pytest.raises(ValidationError, match="h: expected length 2"):
            davies(1.0, [1.0, 2.0], h=[1])

    def test_delta_length(self):
        with pytest.raises(ValidationError, match="delta"):
            davies(1.0, [1.0], delta=[0.0, 0.0])

    def test_negative_delta(self):
        with pytest.raises(ValidationError, match="non-negative"):
            davies(1.0, [1.0], delta=[-1.0])
