"""
Summary decomposition visualizations: waterfalls, method comparison, segment drilldown.
"""

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.patches import Rectangle
from matplotlib.ticker import FuncFormatter
from pathlib import Path
from typing import Union, Optional, Callable

try:
    from .visualization_utils import (
        COLOR_TOTAL, COLOR_CONNECTOR, COLOR_POSITIVE, COLOR_NEGATIVE, COLOR_RESIDUAL,
        FACTOR_COLORS, MEAN_COLORS,
        format_effect_labels, effect_color, compute_waterfall_bars,
        build_waterfall_entries, save_figure
    )
    from .lmdi_calculator import (
        DecompositionResults, log_mean, geometric_mean, arithmetic_mean
    )
    from .laspeyres_calculator import compare_methods, laspeyres_simple, residual_share
    from .utils import format_currency, format_signed_currency, format_percentage
    from .factor_config import get_factor_label
except ImportError:
    from visualization_utils import (
        COLOR_TOTAL, COLOR_CONNECTOR, COLOR_POSITIVE, COLOR_NEGATIVE, COLOR_RESIDUAL,
        FACTOR_COLORS, MEAN_COLORS,
        format_effect_labels, effect_color, compute_waterfall_bars,
        build_waterfall_entries, save_figure
    )
    from lmdi_calculator import (
        DecompositionResults, log_mean, geometric_mean, arithmetic_mean
    )
    from laspeyres_calculator import compare_methods, laspeyres_simple, residual_share
    from utils import format_currency, format_signed_currency, format_percentage
    from factor_config import get_factor_label


def _draw_waterfall(
    ax: plt.Axes,
    entries: list,
    title: str,
    value_formatter: Callable[[float], str] = format_currency,
    ylabel: str = 'Revenue'
) -> pd.DataFrame:
    """Draw a waterfall chart on ax and return the computed bars."""
    bars = compute_waterfall_bars(entries)

    levels = list(bars['base']) + list(bars['base'] + bars['height'])
    data_min, data_max = min(levels + [0.0]), max(levels)
    data_range = (data_max - data_min) or 1.0
    label_offset = data_range * 0.02

    for i, bar in bars.iterrows():
        if bar['is_total']:
            color = COLOR_TOTAL
        else:
            color = effect_color(bar['name'], bar['display_value'])

        rect = Rectangle((i - 0.35, bar['base']), 0.7, bar['height'],
                         facecolor=color, edgecolor='black', linewidth=1.2)
        ax.add_patch(rect)

        text = value_formatter(bar['display_value'])
        if not bar['is_total'] and bar['display_value'] >= 0:
            text = '+' + text
        ax.text(i, bar['base'] + bar['height'] + label_offset, text,
                ha='center', va='bottom', fontsize=9, fontweight='bold')

        # Connector to next bar
        if i < len(bars) - 1:
            ax.plot([i + 0.35, i + 1 - 0.35], [bar['end'], bar['end']],
                    color=COLOR_CONNECTOR, linestyle='--', linewidth=1, alpha=0.6)

    ax.set_xlim(-0.6, len(bars) - 0.4)
    ax.set_ylim(data_min, data_max + data_range * 0.12)
    ax.set_xticks(np.arange(len(bars)))
    ax.set_xticklabels(format_effect_labels(bars['name'].tolist()), rotation=45, ha='right')
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _: value_formatter(v)))
    ax.set_ylabel(ylabel, fontsize=11, fontweight='bold')
    ax.set_title(title, fontsize=12, fontweight='bold', pad=10)
    ax.grid(axis='y', alpha=0.3, linestyle='--')
    ax.axhline(y=0, color='black', linewidth=0.8)
    return bars


def create_revenue_waterfall(
    results: DecompositionResults,
    output_path: Optional[Union[str, Path]] = None,
    title: Optional[str] = None
) -> plt.Figure:
    """Create waterfall chart from start revenue through each factor effect to end revenue."""
    meta = results.metadata
    start = meta['period_1_total_revenue']
    end = meta['period_2_total_revenue']

    fig, ax = plt.subplots(figsize=(10, 6))
    entries = build_waterfall_entries(
        results.summary, start, end,
        start_label=meta['period_a'].title(), end_label=meta['period_b'].title()
    )
    bars = _draw_waterfall(ax, entries, title or
                           f"Revenue Decomposition: {meta['period_a']} -> {meta['period_b']} "
                           f"({format_signed_currency(meta['delta_total_revenue'])})")
    fig.waterfall_bars = bars

    plt.tight_layout()

    if output_path:
        save_figure(fig, output_path, "Waterfall chart")

    return fig


def create_method_comparison(
    x0: float, y0: float, x1: float, y1: float,
    output_path: Optional[Union[str, Path]] = None,
    x_label: str = 'Users',
    y_label: str = 'Price'
) -> plt.Figure:
    """Create side-by-side waterfalls: Laspeyres (with residual) vs LMDI (exact)."""
    comparison = compare_methods(x0, y0, x1, y1)
    lasp = laspeyres_simple(x0, y0, x1, y1)
    v0, v1 = x0 * y0, x1 * y1

    fig, (ax_lasp, ax_lmdi) = plt.subplots(1, 2, figsize=(14, 6), sharey=True)

    lasp_entries = [
        ('Start', v0, True),
        (x_label, lasp.d_x, False),
        (y_label, lasp.d_y, False),
        ('residual', lasp.residual, False),
        ('End', v1, True)
    ]
    _draw_waterfall(ax_lasp, lasp_entries,
                    f"Laspeyres (residual {format_percentage(residual_share(lasp))})")

    lmdi = comparison.set_index('effect_type')['lmdi_impact']
    lmdi_entries = [
        ('Start', v0, True),
        (x_label, lmdi['x_effect'], False),
        (y_label, lmdi['y_effect'], False),
        ('End', v1, True)
    ]
    _draw_waterfall(ax_lmdi, lmdi_entries, "LMDI (no residual)")

    legend_elements = [
        mpatches.Patch(facecolor=COLOR_POSITIVE, edgecolor='black', label='Positive Impact'),
        mpatches.Patch(facecolor=COLOR_NEGATIVE, edgecolor='black', label='Negative Impact'),
        mpatches.Patch(facecolor=COLOR_RESIDUAL, edgecolor='black', label='Residual')
    ]
    ax_lasp.legend(handles=legend_elements, loc='upper left', fontsize=9,
                   framealpha=0.95, edgecolor='black')

    fig.suptitle(f"{x_label} x {y_label}: {format_currency(v0)} -> {format_currency(v1)}",
                 fontsize=14, fontweight='bold')
    fig.comparison = comparison

    plt.tight_layout()

    if output_path:
        save_figure(fig, output_path, "Method comparison")

    return fig


def create_segment_drilldown(
    results: DecompositionResults,
    output_path: Optional[Union[str, Path]] = None
) -> plt.Figure:
    """Create stacked horizontal bars of factor effects per segment."""
    detail = results.segment_detail
    factors = results.metadata['factors']
    segments = detail['segment'].tolist()
    y_pos = np.arange(len(segments))

    fig, ax = plt.subplots(figsize=(12, max(4, 0.8 * len(segments) + 2)))

    pos_left = np.zeros(len(segments))
    neg_left = np.zeros(len(segments))
    for f in factors:
        vals = detail[f'{f}_effect'].to_numpy(dtype=float)
        left = np.where(vals >= 0, pos_left, neg_left)
        ax.barh(y_pos, vals, left=left, color=FACTOR_COLORS.get(f, COLOR_TOTAL),
                edgecolor='black', linewidth=0.8, label=get_factor_label(f))
        pos_left += np.where(vals >= 0, vals, 0)
        neg_left += np.where(vals < 0, vals, 0)

    totals = detail['total_effect'].to_numpy(dtype=float)
    ax.scatter(totals, y_pos, color='black', zorder=3, marker='D', label='Net change')
    for y, total in zip(y_pos, totals):
        ax.annotate(format_signed_currency(total), (total, y), xytext=(6, 6),
                    textcoords='offset points', fontsize=9, fontweight='bold')

    ax.set_yticks(y_pos)
    ax.set_yticklabels([s.replace('_', ' ') for s in segments])
    ax.invert_yaxis()
    ax.xaxis.set_major_formatter(FuncFormatter(lambda v, _: format_currency(v)))
    ax.axvline(x=0, color='black', linewidth=0.8)
    ax.grid(axis='x', alpha=0.3, linestyle='--')
    ax.set_title('Factor Effects by Segment', fontsize=12, fontweight='bold', pad=10)
    ax.legend(loc='lower right', fontsize=9, framealpha=0.95, edgecolor='black')

    plt.tight_layout()

    if output_path:
        save_figure(fig, output_path, "Segment drilldown")

    return fig


def create_log_mean_chart(
    a: float, b: float,
    output_path: Optional[Union[str, Path]] = None
) -> plt.Figure:
    """Create bar chart placing L(a, b) between the geometric and arithmetic means."""
    means = {
        'geometric': geometric_mean(a, b),
        'logarithmic': log_mean(a, b),
        'arithmetic': arithmetic_mean(a, b)
    }

    fig, ax = plt.subplots(figsize=(8, 5))
    names = list(means.keys())
    vals = [means[n] for n in names]
    ax.bar(names, vals, color=[MEAN_COLORS[n] for n in names], edgecolor='black', linewidth=1.2)
    for i, v in enumerate(vals):
        ax.text(i, v, f'{v:,.4f}', ha='center', va='bottom', fontsize=10, fontweight='bold')

    ax.axhline(y=min(a, b), color=COLOR_CONNECTOR, linestyle='--', linewidth=1, label=f'min = {min(a, b):g}')
    ax.axhline(y=max(a, b), color=COLOR_CONNECTOR, linestyle=':', linewidth=1, label=f'max = {max(a, b):g}')
    ax.set_title(f'Means of a={a:g}, b={b:g}', fontsize=12, fontweight='bold', pad=10)
    ax.legend(fontsize=9, framealpha=0.95, edgecolor='black')
    ax.grid(axis='y', alpha=0.3, linestyle='--')
    fig.means = means

    plt.tight_layout()

    if output_path:
        save_figure(fig, output_path, "Log mean chart")

    return fig


def print_waterfall_breakdown(results: DecompositionResults) -> None:
    """Print factor effects overall and by segment."""
    meta = results.metadata

    print("\n" + "="*80)
    print(f"REVENUE DECOMPOSITION: {meta['period_a'].upper()} -> {meta['period_b'].upper()}")
    print("="*80 + "\n")

    summary = results.summary.copy()
    delta = meta['delta_total_revenue']
    summary['share'] = summary['impact'].apply(
        lambda x: format_percentage(x / delta) if delta else "-"
    )
    summary['impact'] = summary['impact'].apply(format_signed_currency)
    summary['effect_type'] = format_effect_labels(summary['effect_type'].tolist())
    print(summary.to_string(index=False))
    print(f"\nStart: {format_currency(meta['period_1_total_revenue'])}  "
          f"End: {format_currency(meta['period_2_total_revenue'])}  "
          f"Reconciliation: {meta['reconciliation_status']}")

    print("\n" + "="*80)
    print("BREAKDOWN BY SEGMENT")
    print("="*80 + "\n")

    effect_cols = [f'{f}_effect' for f in meta['factors']] + ['total_effect']
    display_df = results.segment_detail[['segment'] + effect_cols].copy()
    for col in effect_cols:
        display_df[col] = display_df[col].apply(lambda x: f"{x:,.0f}" if pd.notna(x) else "-")
    display_df.columns = ['segment'] + format_effect_labels(effect_cols[:-1]) + ['Total']

    print(display_df.to_string(index=False))
    print()
