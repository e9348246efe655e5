"""
LMDI Explainer Package

Logarithmic Mean Divisia Index decomposition of multiplicative aggregates
(e.g. Revenue = MAU x OPC x IPO x AIV) into exact additive factor effects.
"""

__version__ = "1.0.0"

from .lmdi_calculator import (
    log_mean, log_mean_result, geometric_mean, arithmetic_mean, bridge_identity,
    lmdi_decompose, lmdi_decompose_entity, lmdi_decompose_detailed, lmdi_simple,
    calculate_revenue_decomposition, calculate_period_chain_decomposition,
    EntitySnapshot, LogMeanResult, SimpleDecomposition, FactorDecomposition,
    DecompositionResults, PeriodChainResults
)
from .laspeyres_calculator import (
    laspeyres_simple, residual_share, compare_methods, LaspeyresDecomposition
)
from .revenue_data import get_demo_segments, get_revenue
from .utils import format_currency
from .visualization_engine import (
    create_revenue_waterfall, create_method_comparison, create_segment_drilldown,
    create_log_mean_chart, print_waterfall_breakdown
)

__all__ = [
    'log_mean', 'log_mean_result', 'geometric_mean', 'arithmetic_mean', 'bridge_identity',
    'lmdi_decompose', 'lmdi_decompose_entity', 'lmdi_decompose_detailed', 'lmdi_simple',
    'calculate_revenue_decomposition', 'calculate_period_chain_decomposition',
    'EntitySnapshot', 'LogMeanResult', 'SimpleDecomposition', 'FactorDecomposition',
    'DecompositionResults', 'PeriodChainResults',
    'laspeyres_simple', 'residual_share', 'compare_methods', 'LaspeyresDecomposition',
    'get_demo_segments', 'get_revenue', 'format_currency',
    'create_revenue_waterfall', 'create_method_comparison', 'create_segment_drilldown',
    'create_log_mean_chart', 'print_waterfall_breakdown'
]
