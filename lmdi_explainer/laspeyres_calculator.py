"""
Laspeyres decomposition for comparison with LMDI.

For V = x * y the naive split
    dV = (x1 - x0) * y0 + x0 * (y1 - y0) + (x1 - x0) * (y1 - y0)
leaves an interaction term (the residual) that belongs to neither factor.
LMDI absorbs it through the logarithmic-mean weight.
"""

import pandas as pd
from typing import NamedTuple

try:
    from .lmdi_calculator import lmdi_simple
except ImportError:
    from lmdi_calculator import lmdi_simple


class LaspeyresDecomposition(NamedTuple):
    """Two-factor Laspeyres result (V = x * y)."""
    d_x: float
    d_y: float
    residual: float
    total: float


def laspeyres_simple(x0: float, y0: float, x1: float, y1: float) -> LaspeyresDecomposition:
    """Laspeyres decomposition with base-period weights."""
    return LaspeyresDecomposition(
        d_x=(x1 - x0) * y0,
        d_y=x0 * (y1 - y0),
        residual=(x1 - x0) * (y1 - y0),
        total=x1 * y1 - x0 * y0
    )


def residual_share(result: LaspeyresDecomposition) -> float:
    """Residual as a share of the total change (|residual / total|, 0 if no change)."""
    if result.total == 0:
        return 0.0
    return abs(result.residual / result.total)


def compare_methods(x0: float, y0: float, x1: float, y1: float) -> pd.DataFrame:
    """
    Compare LMDI and Laspeyres effects side by side.

    Returns DataFrame with effect_type (x_effect, y_effect, residual,
    total_change), lmdi_impact and laspeyres_impact.
    """
    lmdi = lmdi_simple(x0, y0, x1, y1)
    lasp = laspeyres_simple(x0, y0, x1, y1)
    return pd.DataFrame({
        'effect_type': ['x_effect', 'y_effect', 'residual', 'total_change'],
        'lmdi_impact': [lmdi.d_x, lmdi.d_y, 0.0, lmdi.total],
        'laspeyres_impact': [lasp.d_x, lasp.d_y, lasp.residual, lasp.total]
    })
