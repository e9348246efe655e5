"""
Visualization engine for LMDI decomposition analysis.
"""

try:
    # Re-export from visualization_utils
    from .visualization_utils import (
        COLOR_POSITIVE, COLOR_NEGATIVE, COLOR_TOTAL, COLOR_CONNECTOR, COLOR_RESIDUAL,
        FACTOR_COLORS, MEAN_COLORS,
        format_effect_labels, effect_color, compute_waterfall_bars,
        build_waterfall_entries, save_figure,
    )
    # Re-export from visualization_summary
    from .visualization_summary import (
        create_revenue_waterfall, create_method_comparison, create_segment_drilldown,
        create_log_mean_chart, print_waterfall_breakdown,
    )
except ImportError:
    from visualization_utils import (
        COLOR_POSITIVE, COLOR_NEGATIVE, COLOR_TOTAL, COLOR_CONNECTOR, COLOR_RESIDUAL,
        FACTOR_COLORS, MEAN_COLORS,
        format_effect_labels, effect_color, compute_waterfall_bars,
        build_waterfall_entries, save_figure,
    )
    from visualization_summary import (
        create_revenue_waterfall, create_method_comparison, create_segment_drilldown,
        create_log_mean_chart, print_waterfall_breakdown,
    )


__all__ = [
    'COLOR_POSITIVE', 'COLOR_NEGATIVE', 'COLOR_TOTAL', 'COLOR_CONNECTOR', 'COLOR_RESIDUAL',
    'FACTOR_COLORS', 'MEAN_COLORS',
    'create_revenue_waterfall', 'create_method_comparison', 'create_segment_drilldown',
    'create_log_mean_chart', 'print_waterfall_breakdown',
    'format_effect_labels', 'effect_color', 'compute_waterfall_bars',
    'build_waterfall_entries', 'save_figure',
]
