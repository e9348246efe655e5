"""
Unit tests for formatting and validation utilities.
"""

import pandas as pd
import pytest

from lmdi_explainer.utils import (
    format_currency, format_signed_currency, format_number, format_percentage,
    calculate_revenue, validate_dataframe
)
from lmdi_explainer.factor_config import (
    apply_segment_order, get_factor_labels, get_factor_columns
)


class TestFormatting:
    """Test display formatting."""

    @pytest.mark.parametrize('value,expected', [
        (1.5e9, '$1.50B'),
        (12_345_678, '$12.3M'),
        (12_345, '$12k'),
        (999, '$999'),
        (-2.5e6, '$-2.5M'),
        (0, '$0'),
    ])
    def test_format_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_format_signed_currency(self):
        assert format_signed_currency(2.5e6) == '+$2.5M'
        assert format_signed_currency(-2.5e6) == '-$2.5M'

    def test_format_number(self):
        assert format_number(1234567) == '1,234,567'
        assert format_number(1234.567, 2) == '1,234.57'

    def test_format_percentage(self):
        assert format_percentage(0.15) == '15.0%'


class TestRevenueHelpers:
    """Test revenue calculation and input validation."""

    def test_calculate_revenue(self, demo_df):
        result = calculate_revenue(demo_df)

        first = result.iloc[0]
        assert first['revenue'] == pytest.approx(50_000 * 1.2 * 2.0 * 120)
        assert 'revenue' not in demo_df.columns

    def test_validate_dataframe_requires_factors(self, demo_df):
        with pytest.raises(ValueError, match="At least one factor"):
            validate_dataframe(demo_df, factor_columns=[])

    def test_validate_dataframe_ok(self, demo_df):
        validate_dataframe(demo_df)


class TestFactorConfig:
    """Test factor and segment configuration helpers."""

    def test_labels(self):
        assert get_factor_labels() == ['MAU', 'OPC', 'IPO', 'AIV']
        assert get_factor_labels(['x']) == ['X']

    def test_columns_are_copies(self):
        cols = get_factor_columns()
        cols.append('extra')
        assert 'extra' not in get_factor_columns()

    def test_segment_order_with_unknown(self):
        assert apply_segment_order(['Zeta', 'Whales', 'Core', 'Alpha']) == ['Core', 'Whales', 'Alpha', 'Zeta']
