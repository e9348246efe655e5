"""
Utility functions for revenue decomposition analysis.
"""

import pandas as pd
import numpy as np
from typing import List, Optional

try:
    from .factor_config import (
        get_factor_columns, SEGMENT_COLUMN, PERIOD_COLUMN
    )
except ImportError:
    from factor_config import (
        get_factor_columns, SEGMENT_COLUMN, PERIOD_COLUMN
    )


def validate_dataframe(df: pd.DataFrame, factor_columns: Optional[List[str]] = None) -> None:
    """Validate input DataFrame has segment, period and numeric factor columns."""
    if factor_columns is None:
        factor_columns = get_factor_columns()
    if not factor_columns:
        raise ValueError("At least one factor column is required")

    required_cols = [SEGMENT_COLUMN, PERIOD_COLUMN, *factor_columns]
    missing = [col for col in required_cols if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    non_numeric = [col for col in factor_columns if not pd.api.types.is_numeric_dtype(df[col])]
    if non_numeric:
        raise ValueError(f"Factor columns must be numeric: {non_numeric}")


def validate_period_data(
    df_1: pd.DataFrame,
    df_2: pd.DataFrame,
    period_a: str,
    period_b: str
) -> None:
    """Validate period data: one row per segment, same segments in both periods."""
    for period_df, period in ((df_1, period_a), (df_2, period_b)):
        dupes = period_df[SEGMENT_COLUMN][period_df[SEGMENT_COLUMN].duplicated()].unique().tolist()
        if dupes:
            raise ValueError(f"Duplicate segments in period '{period}': {dupes}")

    segs_1 = set(df_1[SEGMENT_COLUMN])
    segs_2 = set(df_2[SEGMENT_COLUMN])
    only_1 = sorted(segs_1 - segs_2)
    only_2 = sorted(segs_2 - segs_1)
    if only_1 or only_2:
        raise ValueError(
            f"Segments must match across periods: only in '{period_a}': {only_1}, "
            f"only in '{period_b}': {only_2}"
        )


def calculate_revenue(df: pd.DataFrame, factor_columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Calculate segment revenue as the product of its factor columns."""
    if factor_columns is None:
        factor_columns = get_factor_columns()
    df = df.copy()
    df['revenue'] = np.prod(df[factor_columns].astype(float).to_numpy(), axis=1)
    return df


def format_currency(value: float) -> str:
    """Format currency with magnitude suffix (1.5e6 -> '$1.5M')."""
    if abs(value) >= 1e9:
        return f"${value / 1e9:.2f}B"
    if abs(value) >= 1e6:
        return f"${value / 1e6:.1f}M"
    if abs(value) >= 1e3:
        return f"${value / 1e3:.0f}k"
    return f"${value:.0f}"


def format_signed_currency(value: float) -> str:
    """Format currency with explicit sign ('+$1.5M' / '-$200k')."""
    sign = '+' if value >= 0 else '-'
    return f"{sign}{format_currency(abs(value))}"


def format_number(value: float, decimals: int = 0) -> str:
    """Format number with commas."""
    return f"{value:,.{decimals}f}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Format as percentage (0.15 -> '15.0%')."""
    return f"{value * 100:.{decimals}f}%"
