"""
LMDI decomposition calculator.

Implements LMDI (Logarithmic Mean Divisia Index) additive decomposition:
- Logarithmic mean L(a, b), the weight that bridges additive and log space
- Per-entity factor contributions: L(V_T, V_0) x ln(x_T / x_0)
- Batch aggregation: per-factor contributions summed across entities

For V = x_1 x x_2 x ... x x_n the contributions sum exactly to V_T - V_0,
with no residual. Non-positive factor values are not an error: their
contribution is zeroed (see log_mean_result / lmdi_decompose_detailed for
the tagged variants that report which inputs were invalid).
"""

import numpy as np
import pandas as pd
import warnings
from collections.abc import Mapping
from typing import NamedTuple, List, Optional, Sequence

try:
    from .utils import (
        validate_dataframe, validate_period_data, calculate_revenue
    )
    from .factor_config import (
        get_factor_columns, get_period_values, apply_segment_order,
        SEGMENT_COLUMN, PERIOD_COLUMN
    )
except ImportError:
    from utils import (
        validate_dataframe, validate_period_data, calculate_revenue
    )
    from factor_config import (
        get_factor_columns, get_period_values, apply_segment_order,
        SEGMENT_COLUMN, PERIOD_COLUMN
    )

# Absolute tolerance below which L(a, b) collapses to its limit a
LOG_MEAN_EPS = 1e-10

# Relative gap below which L(a, b) is taken as (a + b) / 2
LOG_MEAN_RTOL = 1e-8

# Reconciliation tolerances (sum of effects vs actual delta)
RECONCILIATION_RTOL = 1e-9
RECONCILIATION_ATOL = 1e-6

LOG_MEAN_OK = 'ok'
LOG_MEAN_LIMIT = 'limit'
LOG_MEAN_INVALID = 'invalid_domain'


class LogMeanResult(NamedTuple):
    """Tagged logarithmic mean: value plus how it was obtained."""
    value: float
    status: str  # 'ok', 'limit', 'invalid_domain'

    @property
    def is_valid(self) -> bool:
        return self.status != LOG_MEAN_INVALID


class EntitySnapshot(NamedTuple):
    """Factor values for a single entity (segment) in both periods."""
    before: Sequence[float]
    after: Sequence[float]
    name: Optional[str] = None


class SimpleDecomposition(NamedTuple):
    """Two-factor, single-entity LMDI result (V = x * y)."""
    d_x: float
    d_y: float
    total: float


class FactorDecomposition(NamedTuple):
    """Container for a batch decomposition with per-entity detail."""
    contributions: List[float]              # Per-factor totals across entities
    entity_contributions: List[List[float]]  # [entity][factor]
    invalid: List[List[bool]]               # True where a factor input was non-positive
    weights: List[float]                    # L(V_T, V_0) per entity
    before_totals: List[float]              # V_0 per entity
    after_totals: List[float]               # V_T per entity

    @property
    def delta(self) -> float:
        return sum(self.after_totals) - sum(self.before_totals)

    @property
    def residual(self) -> float:
        return self.delta - sum(self.contributions)

    @property
    def has_invalid(self) -> bool:
        return any(any(row) for row in self.invalid)


class DecompositionResults(NamedTuple):
    """Container for a two-period revenue decomposition."""
    summary: pd.DataFrame
    segment_detail: pd.DataFrame
    metadata: dict


class PeriodChainResults(NamedTuple):
    """Container for decompositions over consecutive period pairs."""
    aggregate_summary: pd.DataFrame   # Effects summed over all steps
    step_summaries: pd.DataFrame      # Effects per (period_a, period_b) step
    details: dict                     # {(period_a, period_b): DecompositionResults}
    metadata: dict


def log_mean_result(a: float, b: float, eps: float = LOG_MEAN_EPS) -> LogMeanResult:
    """Calculate logarithmic mean L(a, b) = (a - b) / (ln a - ln b), tagged with its status."""
    if a <= 0 or b <= 0:
        return LogMeanResult(0.0, LOG_MEAN_INVALID)
    if abs(a - b) < eps:
        return LogMeanResult(float(a), LOG_MEAN_LIMIT)

    hi, lo = max(a, b), min(a, b)
    # Below this relative gap L and the arithmetic mean agree to double precision
    if hi - lo <= LOG_MEAN_RTOL * hi:
        return LogMeanResult(float((a + b) / 2), LOG_MEAN_LIMIT)

    if hi - lo < lo:
        log_diff = np.log1p((hi - lo) / lo)
    else:
        log_diff = np.log(hi) - np.log(lo)
    return LogMeanResult(float((hi - lo) / log_diff), LOG_MEAN_OK)


def log_mean(a: float, b: float, eps: float = LOG_MEAN_EPS) -> float:
    """
    Calculate logarithmic mean L(a, b).

    Returns 0 when either input is non-positive and a when a and b are
    within eps of each other (the limit of L as b -> a). Inputs closer than
    LOG_MEAN_RTOL relative to each other return (a + b) / 2, so large
    near-equal aggregates never divide by a log difference that rounds to 0.
    """
    return log_mean_result(a, b, eps).value


def geometric_mean(a: float, b: float) -> float:
    """Geometric mean sqrt(a * b) for positive inputs (0 otherwise)."""
    if a <= 0 or b <= 0:
        return 0.0
    return float(np.sqrt(a * b))


def arithmetic_mean(a: float, b: float) -> float:
    """Arithmetic mean (a + b) / 2."""
    return (a + b) / 2


def bridge_identity(a: float, b: float) -> dict:
    """
    Evaluate both sides of the bridge identity a - b = L(a, b) x (ln a - ln b).

    Returns dict with 'difference', 'log_difference', 'log_mean' and
    'reconstructed'. For non-positive inputs the log terms are 0.
    """
    result = log_mean_result(a, b)
    log_diff = float(np.log1p((a - b) / b)) if result.is_valid else 0.0
    return {
        'difference': a - b,
        'log_difference': log_diff,
        'log_mean': result.value,
        'reconstructed': result.value * log_diff
    }


def _to_snapshot(entity, index: int) -> EntitySnapshot:
    """Normalize an entity given as EntitySnapshot, mapping or (before, after) pair."""
    if isinstance(entity, EntitySnapshot):
        return entity
    if isinstance(entity, Mapping):
        try:
            return EntitySnapshot(entity['before'], entity['after'], entity.get('name'))
        except KeyError as e:
            raise ValueError(f"Entity {index} is missing key {e}") from None
    try:
        before, after = entity
    except (TypeError, ValueError):
        raise ValueError(
            f"Entity {index} must be an EntitySnapshot, a mapping or a (before, after) pair"
        ) from None
    return EntitySnapshot(before, after)


def _describe(entity: EntitySnapshot, index: int) -> str:
    return f"entity {index}" + (f" ({entity.name})" if entity.name is not None else "")


def _validate_entities(entities) -> List[EntitySnapshot]:
    """Normalize entities and check all factor vectors share one length."""
    snapshots = [_to_snapshot(e, i) for i, e in enumerate(entities)]
    if not snapshots:
        return snapshots

    num_factors = len(snapshots[0].before)
    for i, snap in enumerate(snapshots):
        if len(snap.before) != len(snap.after):
            raise ValueError(
                f"Factor count mismatch within {_describe(snap, i)}: "
                f"before has {len(snap.before)}, after has {len(snap.after)}"
            )
        if len(snap.before) != num_factors:
            raise ValueError(
                f"Factor count mismatch: {_describe(snap, i)} has {len(snap.before)} factors, "
                f"expected {num_factors} (from entity 0)"
            )
    return snapshots


def _entity_detail(entity: EntitySnapshot):
    """Compute (contributions, invalid flags, weight, V_0, V_T) for one entity."""
    before = np.asarray(entity.before, dtype=float)
    after = np.asarray(entity.after, dtype=float)
    v_before = float(np.prod(before))
    v_after = float(np.prod(after))
    weight = log_mean(v_after, v_before)

    contributions = []
    invalid = []
    for x0, xt in zip(before, after):
        if x0 > 0 and xt > 0:
            contributions.append(float(weight * np.log(xt / x0)))
            invalid.append(False)
        else:
            contributions.append(0.0)
            invalid.append(True)
    return contributions, invalid, weight, v_before, v_after


def lmdi_decompose_entity(entity) -> List[float]:
    """Calculate per-factor LMDI contributions for a single entity."""
    snap = _validate_entities([entity])[0]
    return _entity_detail(snap)[0]


def lmdi_decompose_detailed(entities) -> FactorDecomposition:
    """
    LMDI additive decomposition with per-entity detail.

    Each entity's contribution vector is computed independently and the
    batch total is their element-wise sum.

    Raises:
        ValueError: if entities disagree on factor count.
    """
    snapshots = _validate_entities(entities)
    num_factors = len(snapshots[0].before) if snapshots else 0

    details = [_entity_detail(s) for s in snapshots]
    entity_contributions = [d[0] for d in details]

    totals = [0.0] * num_factors
    for row in entity_contributions:
        totals = [t + c for t, c in zip(totals, row)]

    return FactorDecomposition(
        contributions=totals,
        entity_contributions=entity_contributions,
        invalid=[d[1] for d in details],
        weights=[d[2] for d in details],
        before_totals=[d[3] for d in details],
        after_totals=[d[4] for d in details]
    )


def lmdi_decompose(entities) -> List[float]:
    """
    LMDI additive decomposition across entities.

    Given entities where V_i = product of factors x_{k,i}, compute the
    contribution of each factor k to the total change in sum(V_i).

    Args:
        entities: EntitySnapshot objects (or (before, after) pairs, or
            mappings with 'before'/'after' keys) where before[k] and
            after[k] are factor k values in period 0 and T.

    Returns:
        contributions[k] = total contribution of factor k across all
        entities. Empty list for an empty batch.

    Raises:
        ValueError: if entities disagree on factor count.
    """
    return lmdi_decompose_detailed(entities).contributions


def lmdi_simple(x0: float, y0: float, x1: float, y1: float) -> SimpleDecomposition:
    """Two-factor LMDI for a single entity, V = x * y."""
    d_x, d_y = lmdi_decompose_entity(EntitySnapshot([x0, y0], [x1, y1]))
    return SimpleDecomposition(d_x=d_x, d_y=d_y, total=x1 * y1 - x0 * y0)


class ReconciliationResult:
    """Container for reconciliation validation results."""
    def __init__(self, status: str, message: str, details: dict = None):
        self.status = status  # 'ok', 'info', 'warning'
        self.message = message
        self.details = details or {}


def _validate_reconciliation(decomposition: FactorDecomposition, context: str) -> ReconciliationResult:
    """
    Validate effects reconcile to the actual aggregate change.

    Returns ReconciliationResult with status:
    - 'ok': Exact reconciliation (within floating-point tolerance)
    - 'info': Gap explained by non-positive factor values (zeroed contributions)
    - 'warning': Unexplained gap
    """
    actual = decomposition.delta
    calculated = sum(decomposition.contributions)
    diff = calculated - actual
    details = {'actual': actual, 'calculated': calculated, 'diff': diff}

    if np.isclose(calculated, actual, rtol=RECONCILIATION_RTOL, atol=RECONCILIATION_ATOL):
        return ReconciliationResult('ok', f"{context}: Exact reconciliation", details)

    if decomposition.has_invalid:
        invalid_entities = [i for i, row in enumerate(decomposition.invalid) if any(row)]
        details.update({'invalid_entities': invalid_entities, 'is_expected': True})
        return ReconciliationResult('info',
            f"{context}: Non-positive factor values zeroed in entities {invalid_entities}. "
            f"Diff={diff:+.2f}",
            details
        )

    return ReconciliationResult('warning',
        f"{context}: Reconciliation discrepancy. "
        f"Calculated={calculated:.2f}, Actual={actual:.2f}, Diff={diff:+.2f}",
        details
    )


def _emit_reconciliation_warning(result: ReconciliationResult) -> None:
    """Emit appropriate warning based on reconciliation result."""
    if result.status == 'ok':
        return
    elif result.status == 'info':
        if result.details.get('is_expected'):
            warnings.warn(f"[INFO] {result.message}", stacklevel=3)
    elif result.status == 'warning':
        warnings.warn(f"[WARNING] {result.message}", stacklevel=3)


def calculate_revenue_decomposition(
    df: pd.DataFrame,
    period_a: str = 'scenario',
    period_b: str = 'forecast',
    factor_columns: Optional[List[str]] = None
) -> DecompositionResults:
    """
    Calculate LMDI decomposition of revenue between two periods, by segment.

    Args:
        df: Long DataFrame with segment, period and one column per factor
        period_a: Period 1 label
        period_b: Period 2 label
        factor_columns: Factor columns in decomposition order (default: configured factors)

    Returns:
        DecompositionResults with one effect per factor plus total_change.
    """
    if factor_columns is None:
        factor_columns = get_factor_columns()
    validate_dataframe(df, factor_columns=factor_columns)

    df_1 = df[df[PERIOD_COLUMN] == period_a].copy()
    df_2 = df[df[PERIOD_COLUMN] == period_b].copy()

    if len(df_1) == 0:
        raise ValueError(f"No data for period '{period_a}'")
    if len(df_2) == 0:
        raise ValueError(f"No data for period '{period_b}'")

    validate_period_data(df_1, df_2, period_a, period_b)

    df_1 = calculate_revenue(df_1, factor_columns)
    df_2 = calculate_revenue(df_2, factor_columns)

    cols = [SEGMENT_COLUMN] + factor_columns + ['revenue']
    m = df_1[cols].merge(df_2[cols], on=SEGMENT_COLUMN, suffixes=('_1', '_2'))
    order = apply_segment_order(m[SEGMENT_COLUMN].tolist())
    m = m.set_index(SEGMENT_COLUMN).loc[order].reset_index()

    entities = [
        EntitySnapshot(
            before=[row[f'{f}_1'] for f in factor_columns],
            after=[row[f'{f}_2'] for f in factor_columns],
            name=row[SEGMENT_COLUMN]
        )
        for _, row in m.iterrows()
    ]
    decomposition = lmdi_decompose_detailed(entities)

    effects = [f'{f}_effect' for f in factor_columns]
    for k, effect in enumerate(effects):
        m[effect] = [row[k] for row in decomposition.entity_contributions]
    m['total_effect'] = m[effects].sum(axis=1)
    m['lmdi_weight'] = decomposition.weights

    rename_map = {f'{c}_1': f'period_1_{c}' for c in factor_columns + ['revenue']}
    rename_map.update({f'{c}_2': f'period_2_{c}' for c in factor_columns + ['revenue']})
    m = m.rename(columns=rename_map)
    m['period_1'] = period_a
    m['period_2'] = period_b

    context = f"{period_a} -> {period_b}"
    reconciliation = _validate_reconciliation(decomposition, context)
    _emit_reconciliation_warning(reconciliation)

    vals = list(decomposition.contributions)
    summary = pd.DataFrame({
        'effect_type': effects + ['total_change'],
        'impact': vals + [sum(vals)]
    })

    period_1_revenue = float(sum(decomposition.before_totals))
    period_2_revenue = float(sum(decomposition.after_totals))
    metadata = {
        'period_a': period_a,
        'period_b': period_b,
        'factors': list(factor_columns),
        'period_1_total_revenue': period_1_revenue,
        'period_2_total_revenue': period_2_revenue,
        'delta_total_revenue': period_2_revenue - period_1_revenue,
        'num_segments': len(m),
        'method': 'lmdi_additive',
        'reconciliation_status': reconciliation.status,
        'reconciliation_diff': reconciliation.details.get('diff', 0)
    }

    return DecompositionResults(summary=summary, segment_detail=m, metadata=metadata)


def calculate_period_chain_decomposition(
    df: pd.DataFrame,
    periods: Optional[List[str]] = None,
    factor_columns: Optional[List[str]] = None
) -> PeriodChainResults:
    """
    Calculate decomposition for each consecutive pair of periods, then aggregate.

    Each step (p_i -> p_{i+1}) is decomposed independently; effects are summed
    across steps. Steps that fail validation are skipped with a warning.

    Args:
        df: Long DataFrame with segment, period and factor columns
        periods: Ordered period labels (default: configured periods)
        factor_columns: Factor columns in decomposition order

    Returns:
        PeriodChainResults with aggregate and per-step breakdowns
    """
    if periods is None:
        periods = get_period_values()
    if len(periods) < 2:
        raise ValueError(f"Need at least two periods, got {periods}")

    details = {}
    skipped_steps = []
    for period_a, period_b in zip(periods[:-1], periods[1:]):
        print(f"Processing {period_a} -> {period_b}...")
        try:
            details[(period_a, period_b)] = calculate_revenue_decomposition(
                df, period_a, period_b, factor_columns
            )
        except ValueError as e:
            skipped_steps.append((period_a, period_b))
            warnings.warn(f"Failed {period_a} -> {period_b}: {e}")

    if not details:
        raise ValueError("No successful decompositions")

    # A gap between steps means end - start is no longer explained by the effects
    steps = list(details.keys())
    is_contiguous = all(prev[1] == nxt[0] for prev, nxt in zip(steps[:-1], steps[1:]))
    if not is_contiguous:
        warnings.warn(
            f"Period chain has gaps (skipped {skipped_steps}): effects explain "
            f"only the successful steps, not {steps[0][0]} -> {steps[-1][1]}"
        )

    summaries = []
    for (period_a, period_b), result in details.items():
        s = result.summary.copy()
        s['period_a'] = period_a
        s['period_b'] = period_b
        summaries.append(s)
    step_summaries = pd.concat(summaries, ignore_index=True)[
        ['period_a', 'period_b', 'effect_type', 'impact']
    ]

    effect_order = list(dict.fromkeys(step_summaries['effect_type']))
    agg = step_summaries.groupby('effect_type', sort=False)['impact'].sum()
    aggregate_summary = pd.DataFrame({
        'effect_type': effect_order,
        'impact': [float(agg[e]) for e in effect_order]
    })

    first, last = list(details.values())[0], list(details.values())[-1]
    metadata = {
        'periods': list(periods),
        'steps': steps,
        'skipped_steps': skipped_steps,
        'is_contiguous': is_contiguous,
        'period_1_total_revenue': first.metadata['period_1_total_revenue'],
        'period_2_total_revenue': last.metadata['period_2_total_revenue'],
        'delta_total_revenue': float(sum(r.metadata['delta_total_revenue'] for r in details.values())),
        'method': 'lmdi_additive_chain'
    }

    return PeriodChainResults(
        aggregate_summary=aggregate_summary,
        step_summaries=step_summaries,
        details=details,
        metadata=metadata
    )
