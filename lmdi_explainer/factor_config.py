"""
Factor configuration for revenue decomposition.

Defines factor ordering and column names for:
- mau: Monthly active users
- opc: Orders per customer
- ipo: Items per order
- aiv: Average item value

Revenue = MAU x OPC x IPO x AIV, so the factor order here is the
order of the contribution vector returned by the LMDI engine.
"""

# Factor columns in decomposition order
FACTOR_COLUMNS = ['mau', 'opc', 'ipo', 'aiv']

FACTOR_LABELS = {
    'mau': 'MAU',
    'opc': 'OPC',
    'ipo': 'IPO',
    'aiv': 'AIV'
}

FACTOR_DESCRIPTIONS = {
    'mau': 'Monthly active users',
    'opc': 'Orders per customer',
    'ipo': 'Items per order',
    'aiv': 'Average item value'
}

# Period labels (before -> after)
PERIOD_COLUMN = 'period'
SEGMENT_COLUMN = 'segment'
PERIOD_VALUES = ['scenario', 'forecast']

# Segment ordering (smallest engagement to largest, then non-authorized)
SEGMENT_ORDER = ['Newcomers', 'Spontaneous', 'Core', 'Super_Core', 'Whales', 'Anonymous']


def get_factor_columns() -> list:
    """Get list of factor column names."""
    return FACTOR_COLUMNS.copy()


def get_factor_label(factor: str) -> str:
    """Return display label for a factor (falls back to upper-cased name)."""
    return FACTOR_LABELS.get(factor, factor.upper())


def get_factor_labels(factors: list = None) -> list:
    """Return display labels for the given factors (default: all configured)."""
    if factors is None:
        factors = FACTOR_COLUMNS
    return [get_factor_label(f) for f in factors]


def get_period_values() -> list:
    """Get list of valid period labels."""
    return PERIOD_VALUES.copy()


def apply_segment_order(values: list) -> list:
    """Sort segment names according to configured ordering."""
    values_set = set(values)
    ordered = [v for v in SEGMENT_ORDER if v in values_set]
    extra = sorted(values_set - set(SEGMENT_ORDER))
    return ordered + extra
