"""
End-to-end tests for mlm().

Validates:
    - Two-group scenario: Df, residual df, significance, permutation
      invariance
    - Distance input and raw input give the same model
    - Missing-value exclusion
    - SS types, codings and interactions through the public API
    - Failure isolation when a p-value cannot be computed
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pymlm import Distance, mlm, mlmdist
from pymlm.core.exceptions import DecompositionWarning, InputError, ProjectionError


def _row(result, term):
    return next(row for row in result.table if row.term == term)


class TestTwoGroups:

    def test_table(self, two_groups):
        Y, group = two_groups
        result = mlm(Y, {'group': group})
        terms = [row.term for row in result.table]
        assert terms == ['group', 'Residuals']
        assert _row(result, 'group').df == 1
        assert result.residual_df == 8
        assert result.n_obs == 10
        assert result.ss_type == 'II'

    def test_significant(self, two_groups):
        Y, group = two_groups
        result = mlm(Y, {'group': group})
        p = _row(result, 'group').p_value
        assert p < 0.05
        assert p >= result.precision['group']

    def test_f_value_scaling(self, two_groups):
        Y, group = two_groups
        result = mlm(Y, {'group': group})
        row = _row(result, 'group')
        assert row.f_value == pytest.approx(result.f_tilde['group'] * 8 / 1)
        assert row.mean_sq == pytest.approx(row.sum_sq / row.df)

    def test_matches_classical_ss(self, two_groups):
        """Euclidean distances: SS is the between-group sum of squares."""
        Y, group = two_groups
        result = mlm(Y, {'group': group})
        Yc = Y - Y.mean(axis=0)
        between = sum(
            np.sum(group == g) * np.sum((Y[group == g].mean(axis=0) - Y.mean(axis=0)) ** 2)
            for g in ('a', 'b')
        )
        assert _row(result, 'group').sum_sq == pytest.approx(between)
        assert _row(result, 'group').r2 == pytest.approx(between / np.sum(Yc ** 2))

    def test_row_permutation_invariant(self, two_groups, rng):
        Y, group = two_groups
        perm = rng.permutation(10)
        r1 = mlm(Y, {'group': group})
        r2 = mlm(Y[perm], {'group': group[perm]})
        a, b = _row(r1, 'group'), _row(r2, 'group')
        assert b.f_value == pytest.approx(a.f_value, rel=1e-8)
        assert b.r2 == pytest.approx(a.r2, rel=1e-8)
        assert b.p_value == pytest.approx(a.p_value, rel=1e-6, abs=1e-12)


class TestResponseForms:

    def test_distance_equals_raw(self, two_factor):
        Y, a, b, x = two_factor
        predictors = {'A': a, 'B': b, 'x': x}
        raw = mlm(Y, predictors)
        dist = mlm(Distance(mlmdist(Y)), predictors)
        for term in ('A', 'B', 'x'):
            assert _row(dist, term).f_value == pytest.approx(_row(raw, term).f_value, rel=1e-6)
            assert _row(dist, term).r2 == pytest.approx(_row(raw, term).r2, rel=1e-6)
            assert _row(dist, term).p_value == pytest.approx(
                _row(raw, term).p_value, abs=10 * max(dist.precision[term], raw.precision[term])
            )

    def test_untagged_distance(self, two_groups):
        Y, group = two_groups
        result = mlm(mlmdist(Y), {'group': group})
        assert result.info['response'] == 'distance'

    def test_hellinger(self, rng):
        Y = rng.uniform(0.0, 10.0, (12, 3))
        group = np.array(['a', 'b', 'c'] * 4)
        result = mlm(Y, {'group': group}, distance='hellinger')
        reference = mlm(np.sqrt(Y), {'group': group})
        assert result.distance == 'hellinger'
        assert _row(result, 'group').f_value == pytest.approx(
            _row(reference, 'group').f_value, rel=1e-8
        )

    def test_hellinger_negative(self, two_groups):
        Y, group = two_groups
        with pytest.raises(InputError):
            mlm(Y - 10.0, {'group': group}, distance='hellinger')

    def test_single_column_response(self, two_groups):
        Y, group = two_groups
        with pytest.raises(ProjectionError) as exc_info:
            mlm(Y[:, :1], {'group': group})
        assert exc_info.value.reason == 'degenerate_rank'


class TestMissing:

    def test_raw_rows_dropped(self, two_factor):
        Y, a, b, x = two_factor
        Y = Y.copy()
        Y[[4, 20], 2] = np.nan
        result = mlm(Y, {'A': a, 'x': x})
        keep = np.setdiff1d(np.arange(45), [4, 20])
        reference = mlm(Y[keep], {'A': a[keep], 'x': x[keep]})
        assert result.n_omitted == 2
        assert result.omitted == (4, 20)
        assert result.n_obs == 43
        assert _row(result, 'A').f_value == pytest.approx(_row(reference, 'A').f_value)
        assert "2 observations deleted due to missingness" in result.summary()


class TestModelOptions:

    def test_ss_type_1_partition(self, two_factor):
        Y, a, b, x = two_factor
        result = mlm(Y, {'A': a, 'B': b, 'x': x}, ss_type=1)
        total = sum(row.sum_sq for row in result.table)
        Yc = Y - Y.mean(axis=0)
        assert total == pytest.approx(np.sum(Yc ** 2))
        assert sum(result.r2.values()) == pytest.approx(result.r2_model)

    def test_type3_with_treatment_warns(self, two_factor):
        Y, a, b, x = two_factor
        with pytest.warns(DecompositionWarning):
            result = mlm(Y, {'A': a, 'x': x}, ss_type=3, contrasts={'A': 'treatment'})
        assert result.table[0].term == '(Intercept)'
        assert len(result.warnings) == 1

    def test_interactions(self, two_factor):
        Y, a, b, x = two_factor
        result = mlm(Y, {'A': a, 'B': b}, interactions=[('A', 'B')])
        assert _row(result, 'A:B').df == 2
        assert result.residual_df == 45 - 6

    def test_effect_detected(self, two_factor):
        Y, a, b, x = two_factor
        result = mlm(Y, {'A': a, 'B': b, 'x': x})
        assert _row(result, 'A').p_value < 0.01
        assert _row(result, 'x').p_value < 0.01

    def test_null_not_significant(self, null_data):
        Y, group = null_data
        result = mlm(Y, {'group': group})
        assert _row(result, 'group').p_value > 0.001

    def test_metadata(self, two_factor):
        Y, a, b, x = two_factor
        result = mlm(Y, {'A': a, 'x': x}, ordered={'A': ['lo', 'hi']})
        assert result.info['codings'] == {'A': 'poly'}
        assert result.backend_name == 'cpu_davies'
        assert set(result.timing) >= {'total_seconds', 'projection', 'fit', 'decomposition', 'pvalues'}
        assert result.fit.df_residual == result.residual_df
        assert result.model_matrix.terms == ['A', 'x']
        assert result.n_dimensions == 4
        assert result.eigenvalues.shape == (4,)


class TestFailureIsolation:

    def test_failed_term_reported(self, two_groups):
        Y, group = two_groups
        with pytest.warns(RuntimeWarning, match="not computed"):
            result = mlm(Y, {'group': group}, lim=1, max_steps=1)
        row = _row(result, 'group')
        assert np.isnan(row.p_value)
        assert result.failed_terms == ('group',)
        assert row.f_value > 0
        assert "p-values not computed for: group" in result.summary()
