"""
Synthetic demo data for Revenue = MAU x OPC x IPO x AIV across 6 user segments.

Factor ratios range from 0.7x to 1.6x so LMDI contributions are visible on
the waterfall chart. Total scenario ~ $310M, forecast ~ $378M.

Factor values are synthetic (DEMO DATA).
"""

import pandas as pd

try:
    from .factor_config import SEGMENT_COLUMN, PERIOD_COLUMN, get_factor_columns
except ImportError:
    from factor_config import SEGMENT_COLUMN, PERIOD_COLUMN, get_factor_columns


DEMO_SEGMENTS = [
    {
        # 50k x 1.2 x 2.0 x 120 = $14.4M -> 80k x 1.1 x 2.3 x 105 = $21.3M
        # MAU surge (+60%), basket value shrinks (AIV -12%)
        'segment': 'Newcomers',
        'scenario': {'mau': 50_000, 'opc': 1.2, 'ipo': 2.0, 'aiv': 120},
        'forecast': {'mau': 80_000, 'opc': 1.1, 'ipo': 2.3, 'aiv': 105},
    },
    {
        # 100k x 1.8 x 2.0 x 95 = $34.2M -> 115k x 1.65 x 2.3 x 100 = $43.6M
        'segment': 'Spontaneous',
        'scenario': {'mau': 100_000, 'opc': 1.8, 'ipo': 2.0, 'aiv': 95},
        'forecast': {'mau': 115_000, 'opc': 1.65, 'ipo': 2.3, 'aiv': 100},
    },
    {
        # 200k x 2.5 x 2.8 x 80 = $112M -> 210k x 2.7 x 3.0 x 78 = $132.7M
        'segment': 'Core',
        'scenario': {'mau': 200_000, 'opc': 2.5, 'ipo': 2.8, 'aiv': 80},
        'forecast': {'mau': 210_000, 'opc': 2.7, 'ipo': 3.0, 'aiv': 78},
    },
    {
        # 60k x 4.0 x 3.5 x 100 = $84M -> 55k x 4.5 x 3.8 x 115 = $108.2M
        # Fewer users spending more
        'segment': 'Super_Core',
        'scenario': {'mau': 60_000, 'opc': 4.0, 'ipo': 3.5, 'aiv': 100},
        'forecast': {'mau': 55_000, 'opc': 4.5, 'ipo': 3.8, 'aiv': 115},
    },
    {
        # 8k x 6.0 x 4.0 x 220 = $42.2M -> 9k x 5.5 x 4.5 x 250 = $55.7M
        'segment': 'Whales',
        'scenario': {'mau': 8_000, 'opc': 6.0, 'ipo': 4.0, 'aiv': 220},
        'forecast': {'mau': 9_000, 'opc': 5.5, 'ipo': 4.5, 'aiv': 250},
    },
    {
        # 300k x 0.8 x 1.5 x 65 = $23.4M -> 250k x 0.7 x 1.4 x 70 = $17.2M
        # Shrinking segment
        'segment': 'Anonymous',
        'scenario': {'mau': 300_000, 'opc': 0.8, 'ipo': 1.5, 'aiv': 65},
        'forecast': {'mau': 250_000, 'opc': 0.7, 'ipo': 1.4, 'aiv': 70},
    },
]


def get_revenue(factors: dict) -> float:
    """Revenue for one segment-period: product of the configured factors."""
    revenue = 1.0
    for f in get_factor_columns():
        revenue *= factors[f]
    return revenue


def get_demo_segments() -> pd.DataFrame:
    """Return demo segments in long form: one row per (segment, period)."""
    rows = []
    for seg in DEMO_SEGMENTS:
        for period in ('scenario', 'forecast'):
            rows.append({SEGMENT_COLUMN: seg['segment'], PERIOD_COLUMN: period, **seg[period]})
    return pd.DataFrame(rows)
