"""
Unit tests for the LMDI decomposition engine.
"""

import math

import numpy as np
import pytest

from lmdi_explainer.lmdi_calculator import (
    lmdi_decompose, lmdi_decompose_entity, lmdi_decompose_detailed, lmdi_simple,
    EntitySnapshot, SimpleDecomposition
)


def _delta(entities):
    after = sum(np.prod(e.after) for e in entities)
    before = sum(np.prod(e.before) for e in entities)
    return after - before


class TestLmdiSimple:
    """Test two-factor, single-entity decomposition."""

    def test_zero_residual(self):
        result = lmdi_simple(1000, 50, 1200, 60)

        assert isinstance(result, SimpleDecomposition)
        assert result.total == 22000
        assert result.d_x + result.d_y == pytest.approx(22000, abs=1e-6)

    def test_equal_growth_splits_evenly(self):
        # Both factors grow 20%, so contributions are equal
        result = lmdi_simple(1000, 50, 1200, 60)
        assert result.d_x == pytest.approx(result.d_y)

    def test_matches_general_engine(self):
        result = lmdi_simple(3.0, 7.0, 2.0, 11.0)
        general = lmdi_decompose([EntitySnapshot([3.0, 7.0], [2.0, 11.0])])

        assert [result.d_x, result.d_y] == pytest.approx(general)

    def test_opposite_directions(self):
        result = lmdi_simple(100, 10, 50, 30)

        assert result.d_x < 0
        assert result.d_y > 0
        assert result.d_x + result.d_y == pytest.approx(result.total)

    def test_non_positive_factor_zeroes_contribution(self):
        result = lmdi_simple(0, 10, 5, 12)

        assert result.d_x == 0
        assert result.d_y == 0
        assert result.total == 60


class TestLmdiDecompose:
    """Test multi-entity, multi-factor decomposition."""

    @pytest.fixture
    def batch(self):
        return [
            EntitySnapshot(before=[1, 2, 3, 4], after=[2, 2, 3, 4]),
            EntitySnapshot(before=[5, 1, 1, 1], after=[5, 1, 1, 2]),
        ]

    def test_zero_residual_multi_entity(self, batch):
        result = lmdi_decompose(batch)

        assert len(result) == 4
        assert sum(result) == pytest.approx(_delta(batch), abs=1e-6)

    def test_known_contributions(self, batch):
        # Each entity doubles through a single factor: all of its change goes there
        assert lmdi_decompose(batch) == pytest.approx([24.0, 0.0, 0.0, 5.0])

    def test_unchanged_factor_contributes_exactly_zero(self, batch):
        result = lmdi_decompose(batch)

        assert result[1] == 0.0
        assert result[2] == 0.0

    def test_empty_batch(self):
        assert lmdi_decompose([]) == []

    def test_accepts_pairs_and_mappings(self, batch):
        as_pairs = [(e.before, e.after) for e in batch]
        as_dicts = [{'before': e.before, 'after': e.after} for e in batch]

        assert lmdi_decompose(as_pairs) == lmdi_decompose(batch)
        assert lmdi_decompose(as_dicts) == lmdi_decompose(batch)

    def test_does_not_mutate_inputs(self):
        before, after = [1.0, 2.0, 3.0], [2.0, 2.0, 1.0]
        lmdi_decompose([EntitySnapshot(before, after)])

        assert before == [1.0, 2.0, 3.0]
        assert after == [2.0, 2.0, 1.0]

    def test_factor_count_mismatch_across_entities(self):
        batch = [
            EntitySnapshot([1, 2, 3], [2, 3, 4]),
            EntitySnapshot([1, 2], [2, 3], name='short'),
        ]
        with pytest.raises(ValueError, match="Factor count mismatch.*short"):
            lmdi_decompose(batch)

    def test_factor_count_mismatch_within_entity(self):
        with pytest.raises(ValueError, match="Factor count mismatch within entity 0"):
            lmdi_decompose([EntitySnapshot([1, 2, 3], [2, 3])])

    def test_malformed_entity(self):
        with pytest.raises(ValueError, match="Entity 0"):
            lmdi_decompose([5])
        with pytest.raises(ValueError, match="missing key"):
            lmdi_decompose([{'before': [1, 2]}])

    def test_zero_factor_zeroes_only_its_entity(self):
        batch = [
            EntitySnapshot([0, 2], [3, 4]),
            EntitySnapshot([1, 2], [2, 2]),
        ]
        result = lmdi_decompose(batch)

        # Second entity: 4 - 2 = 2, all from factor 0
        assert result == pytest.approx([2.0, 0.0])

    def test_negative_factors_zero_their_own_contribution(self):
        # Product stays positive (6 -> 12) so the remaining factor carries the change
        result = lmdi_decompose([EntitySnapshot([-2, -3, 1], [-2, -3, 2])])

        assert result[0] == 0
        assert result[1] == 0
        assert result[2] == pytest.approx(6.0)

    @pytest.mark.parametrize('scale', [1.0, 1e5])
    def test_exact_regardless_of_scale(self, scale):
        batch = [
            EntitySnapshot([10 * scale, 12.0, 8.0], [11 * scale, 9.0, 13.0]),
            EntitySnapshot([7 * scale, 3.0, 5.0], [6 * scale, 4.5, 5.0]),
            EntitySnapshot([15 * scale, 1.5, 2.0], [15 * scale, 1.5, 2.0]),
        ]
        result = lmdi_decompose(batch)

        assert sum(result) == pytest.approx(_delta(batch), rel=1e-9, abs=1e-6)

    def test_million_scale_factors(self):
        batch = [
            EntitySnapshot([2e6, 1.5e6], [2.4e6, 1.2e6]),
            EntitySnapshot([8e5, 3e6], [9e5, 3.3e6]),
        ]
        result = lmdi_decompose(batch)

        assert sum(result) == pytest.approx(_delta(batch), rel=1e-9)

    @pytest.mark.parametrize('before,after', [
        ([1e7, 0.1], [2e7, 0.05000000000000001]),
        ([1e7, 0.1], [1e7, 0.10000000000000002]),
        ([2e6, 0.5], [1e6, 1.0]),
    ])
    def test_offsetting_factors_at_large_scale(self, before, after):
        batch = [EntitySnapshot(before, after)]
        result = lmdi_decompose(batch)

        assert all(math.isfinite(c) for c in result)
        assert sum(result) == pytest.approx(_delta(batch), abs=1e-6)

    def test_offsetting_factors_sweep(self):
        rng = np.random.default_rng(7)
        for x0, x1, y0 in rng.uniform(0.5, 5.0, size=(200, 3)):
            batch = [EntitySnapshot([1e8 * x0, y0], [1e8 * x1, x0 * y0 / x1])]
            result = lmdi_decompose(batch)

            assert all(math.isfinite(c) for c in result)
            assert sum(result) == pytest.approx(_delta(batch), abs=1e-4)

    def test_order_of_entities_irrelevant(self, batch):
        assert lmdi_decompose(batch[::-1]) == pytest.approx(lmdi_decompose(batch))


class TestLmdiDecomposeDetailed:
    """Test per-entity detail and invalid-input reporting."""

    def test_entity_contributions_sum_to_totals(self):
        batch = [
            EntitySnapshot([1, 2, 3, 4], [2, 2, 3, 4]),
            EntitySnapshot([5, 1, 1, 1], [5, 1, 1, 2]),
        ]
        detail = lmdi_decompose_detailed(batch)

        for k in range(4):
            column = sum(row[k] for row in detail.entity_contributions)
            assert column == pytest.approx(detail.contributions[k])
        assert detail.before_totals == [24.0, 5.0]
        assert detail.after_totals == [48.0, 10.0]
        assert detail.delta == 29.0
        assert detail.residual == pytest.approx(0.0, abs=1e-9)
        assert detail.weights[0] == pytest.approx(24 / math.log(2))
        assert not detail.has_invalid

    def test_invalid_flags_distinguish_unchanged_from_invalid(self):
        detail = lmdi_decompose_detailed([
            EntitySnapshot([0, 2], [3, 2]),
            EntitySnapshot([1, 2], [2, 2]),
        ])

        assert detail.invalid == [[True, False], [False, False]]
        assert detail.has_invalid
        assert detail.entity_contributions[1][1] == 0.0

    def test_empty(self):
        detail = lmdi_decompose_detailed([])

        assert detail.contributions == []
        assert detail.delta == 0

    def test_single_entity(self):
        contributions = lmdi_decompose_entity(([1.0, 4.0], [2.0, 4.0]))
        assert contributions == pytest.approx([4.0, 0.0])
