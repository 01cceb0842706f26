"""
Tests for MLMSolution accessors and the printed report.
"""

import numpy as np
import pytest

from pymlm import mlm
from pymlm.mlm.solution import _significance_stars, format_pvalue


@pytest.fixture
def result(two_groups):
    Y, group = two_groups
    return mlm(Y, {'group': group})


class TestAccessors:

    def test_dicts_by_term(self, result):
        assert set(result.p_values) == {'group'}
        assert set(result.r2) == {'group'}
        assert set(result.precision) == {'group'}
        assert result.failed_terms == ()

    def test_residual_fields(self, result):
        residual = result.table[-1]
        assert residual.term == 'Residuals'
        assert residual.f_value is None
        assert residual.p_value is None
        assert result.residual_ss == pytest.approx(residual.sum_sq)
        assert result.residual_ms == pytest.approx(residual.sum_sq / 8)

    def test_repr(self, result):
        assert repr(result) == "MLMSolution(type=II, n=10, terms=['group'])"


class TestSummary:

    def test_layout(self, result):
        text = result.summary()
        assert "Type II Sum of Squares" in text
        assert "Residuals" in text
        assert "Pr(>F)" in text
        assert "R2" in text
        assert "Signif. codes" in text
        assert "deleted due to missingness" not in text

    def test_stars(self, result):
        line = next(l for l in result.summary().splitlines() if l.startswith('group'))
        assert line.rstrip().endswith('*')


class TestFormatting:

    def test_at_floor(self):
        assert format_pvalue(1e-14, 1e-14) == '< 1e-14'

    def test_above_floor(self):
        assert format_pvalue(0.0312, 1e-8) == '0.0312'

    def test_missing(self):
        assert format_pvalue(float('nan'), 1e-6) == 'NA'
        assert format_pvalue(None, None) == 'NA'

    @pytest.mark.parametrize("p, stars", [
        (0.0001, '***'), (0.005, '**'), (0.03, '*'), (0.07, '.'), (0.5, ''), (np.nan, ''),
    ])
    def test_significance_stars(self, p, stars):
        assert _significance_stars(p) == stars
