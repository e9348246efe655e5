"""
Shared fixtures for LMDI explainer tests.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from lmdi_explainer.revenue_data import get_demo_segments
from lmdi_explainer.lmdi_calculator import calculate_revenue_decomposition


@pytest.fixture
def demo_df():
    """Demo segments in long form."""
    return get_demo_segments()


@pytest.fixture
def demo_results(demo_df):
    """Scenario -> forecast decomposition of the demo segments."""
    return calculate_revenue_decomposition(demo_df)


@pytest.fixture
def two_factor_df():
    """Two segments, two factors (x, y), three periods."""
    return pd.DataFrame([
        {'segment': 'A', 'period': 'p1', 'x': 10.0, 'y': 2.0},
        {'segment': 'A', 'period': 'p2', 'x': 12.0, 'y': 2.5},
        {'segment': 'A', 'period': 'p3', 'x': 15.0, 'y': 2.0},
        {'segment': 'B', 'period': 'p1', 'x': 4.0, 'y': 8.0},
        {'segment': 'B', 'period': 'p2', 'x': 3.0, 'y': 9.0},
        {'segment': 'B', 'period': 'p3', 'x': 3.5, 'y': 9.5},
    ])


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')
