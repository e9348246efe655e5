"""
Shared utilities and constants for visualization modules.
"""

import pandas as pd
import matplotlib.pyplot as plt
from pathlib import Path
from typing import Union, List, Sequence, Tuple

try:
    from .factor_config import get_factor_label
except ImportError:
    from factor_config import get_factor_label


# Color palette
COLOR_POSITIVE = '#2ecc71'  # Green
COLOR_NEGATIVE = '#e74c3c'  # Red
COLOR_TOTAL = '#95a5a6'     # Gray
COLOR_CONNECTOR = '#34495e'  # Dark gray
COLOR_RESIDUAL = '#ef4444'  # Red (Laspeyres residual)

# Factor colors
FACTOR_COLORS = {
    'mau': '#2563eb',  # Blue
    'opc': '#f59e0b',  # Amber
    'ipo': '#22c55e',  # Green
    'aiv': '#a855f7'   # Purple
}

# Mean comparison colors
MEAN_COLORS = {
    'geometric': '#7dd3fc',
    'logarithmic': '#2563eb',
    'arithmetic': '#003366'
}


def format_effect_labels(labels: List[str]) -> List[str]:
    """Format effect labels for display ('mau_effect' -> 'MAU')."""
    label_map = {
        'Start': 'Start', 'End': 'End',
        'x_effect': 'X', 'y_effect': 'Y',
        'residual': 'Residual', 'total_change': 'Total'
    }
    formatted = []
    for l in labels:
        if l in label_map:
            formatted.append(label_map[l])
        elif l.endswith('_effect'):
            formatted.append(get_factor_label(l[:-len('_effect')]))
        else:
            formatted.append(l)
    return formatted


def effect_color(effect_type: str, value: float) -> str:
    """Bar color for an effect: factor color when configured, else sign color."""
    factor = effect_type[:-len('_effect')] if effect_type.endswith('_effect') else effect_type
    if factor in FACTOR_COLORS:
        return FACTOR_COLORS[factor]
    if effect_type == 'residual':
        return COLOR_RESIDUAL
    return COLOR_POSITIVE if value >= 0 else COLOR_NEGATIVE


def compute_waterfall_bars(entries: Sequence[Tuple[str, float, bool]]) -> pd.DataFrame:
    """
    Compute waterfall bar positions from (name, value, is_total) entries.

    Total bars start at 0 and reset the running value. Effect bars stack on
    the running value; negative effects use base = min(start, end) and the
    absolute value as height.

    Returns DataFrame with name, base, height, display_value, is_total, end.
    """
    bars = []
    running = 0.0
    for name, value, is_total in entries:
        if is_total:
            bars.append({
                'name': name, 'base': 0.0, 'height': abs(value),
                'display_value': value, 'is_total': True, 'end': value
            })
            running = value
        else:
            start = running
            end = running + value
            bars.append({
                'name': name, 'base': min(start, end), 'height': abs(value),
                'display_value': value, 'is_total': False, 'end': end
            })
            running = end
    return pd.DataFrame(bars, columns=['name', 'base', 'height', 'display_value', 'is_total', 'end'])


def build_waterfall_entries(summary: pd.DataFrame, start: float, end: float,
                            start_label: str = 'Start', end_label: str = 'End') -> list:
    """Build waterfall entries from a summary DataFrame (effect_type, impact)."""
    effects = summary[summary['effect_type'] != 'total_change']
    entries = [(start_label, start, True)]
    entries += [(e, v, False) for e, v in zip(effects['effect_type'], effects['impact'])]
    entries.append((end_label, end, True))
    return entries


def save_figure(fig: plt.Figure, output_path: Union[str, Path], description: str = "Figure") -> None:
    """Save figure to file with directory creation."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches='tight')
    print(f"{description} saved to: {output_path}")
