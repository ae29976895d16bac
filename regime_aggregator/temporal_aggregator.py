# regime_aggregator/temporal_aggregator.py

import logging

import numpy as np
import pandas as pd

from regime_aggregator.config import (
    PERIOD_FORMATS, YEAR_FORMAT, BOUNDARY_WEEKS, MERGED_BOUNDARY_WEEK,
    STATISTICS, QUANTILE_PROBS, SUPPORTED_STATS
)
from regime_aggregator.exceptions import ConfigError

logger = logging.getLogger(__name__)


def upsample_weekly_to_daily(data):
    """
    Inflates weekly values to daily time steps.

    Weekly values are printed on the last day of the week (HYPE convention), so
    each value is assigned to the 6 preceding days as well. A missing weekly value
    leaves its whole week missing.

    Args:
        data (pd.DataFrame): Weekly values with a DatetimeIndex.

    Returns:
        pd.DataFrame: Daily values from the first to the last weekly time step.
    """
    days = pd.date_range(data.index[0], data.index[-1], freq='D', name=data.index.name)
    daily = data.reindex(days)
    daily = daily.bfill(limit=6)
    logger.debug(f"Inflated {len(data)} weekly time steps to {len(daily)} daily time steps.")
    return daily


def build_period_keys(index, ts_out):
    """
    Formats period labels used as aggregation groups, e.g. '03-15' for daily output.
    """
    keys = pd.DatetimeIndex(index).strftime(PERIOD_FORMATS[ts_out.kind])
    if ts_out.kind == 'week':
        # merge boundary half-weeks, those which go across new year, to one group
        keys = keys.where(~keys.isin(BOUNDARY_WEEKS), MERGED_BOUNDARY_WEEK)
    return pd.Index(keys, name='period')


def build_year_keys(index):
    return pd.Index(pd.DatetimeIndex(index).strftime(YEAR_FORMAT), name='year')


def period_sort_key(label):
    """Calendar position of a period label: '10-01 06' -> (10, 1, 6)."""
    return tuple(int(part) for part in label.replace(' ', '-').split('-'))


def summarise(values, na_rm=True):
    """
    Computes the six regime statistics of a sample.

    Quantiles use linear interpolation between order statistics. With `na_rm`
    missing values are dropped, otherwise a single missing value makes all
    statistics missing.

    Args:
        values (array-like): Sample values.
        na_rm (bool): Strip missing values before computing statistics.

    Returns:
        dict: Statistic name -> value.
    """
    values = np.asarray(values, dtype=float)
    if na_rm:
        values = values[~np.isnan(values)]
    if values.size == 0 or np.isnan(values).any():
        return dict.fromkeys(STATISTICS, np.nan)

    minimum, p25, median, p75, maximum = np.quantile(values, QUANTILE_PROBS)
    return {
        'mean': values.mean(),
        'median': median,
        'minimum': minimum,
        'maximum': maximum,
        'p25': p25,
        'p75': p75,
    }


def _sum_within_year(data, period_keys, year_keys, na_rm):
    """Sums values per (period, year) group, one total per period and year."""
    def _period_sum(series):
        return series.sum(skipna=na_rm)

    grouped = data.groupby([period_keys, year_keys], sort=False)
    yearly = grouped.agg(_period_sum)
    logger.debug(f"Summed values into {len(yearly)} period/year groups.")
    return yearly.reset_index(level='year', drop=True)


def aggregate_periods(data, period_keys, stat='mean', na_rm=True, year_keys=None):
    """
    Aggregates time series rows into long-term statistics per period.

    For stat='mean', all rows sharing a period label are pooled across years.
    For stat='sum', values are first summed within each period and year, and the
    statistics are computed over the yearly sums.

    Args:
        data (pd.DataFrame): Time series values, one column per variable.
        period_keys (pd.Index): Period label per row of `data`.
        stat (str): 'mean' or 'sum'.
        na_rm (bool): Strip missing values before computing statistics.
        year_keys (pd.Index, optional): Calendar year label per row, required for stat='sum'.

    Returns:
        dict: Statistic name -> pd.DataFrame indexed by period label in calendar
            order, with one column per variable.

    Raises:
        ConfigError: If `stat` is not supported or year keys are missing for stat='sum'.
    """
    normalized_stat = stat.strip().lower() if isinstance(stat, str) else stat
    if normalized_stat not in SUPPORTED_STATS:
        raise ConfigError(f"Function argument stat: keyword '{stat}' not known.")

    period_keys = pd.Index(period_keys, name='period')
    # positional columns, names may repeat
    values = data.set_axis(period_keys, axis=0).set_axis(range(data.shape[1]), axis=1)

    if normalized_stat == 'sum':
        if year_keys is None:
            raise ConfigError("Year keys are required for stat='sum'.")
        values = _sum_within_year(values, period_keys, pd.Index(year_keys, name='year'), na_rm)

    labels = sorted(values.index.unique(), key=period_sort_key)
    columns = list(data.columns)

    records = {name: {} for name in STATISTICS}
    for label, group in values.groupby(level='period', sort=False):
        summaries = [summarise(group.iloc[:, position].to_numpy(), na_rm) for position in range(len(columns))]
        for name in STATISTICS:
            records[name][label] = [summary[name] for summary in summaries]

    tables = {}
    for name in STATISTICS:
        table = pd.DataFrame.from_dict(records[name], orient='index', columns=columns, dtype=float)
        table = table.reindex(labels)
        table.index.name = 'period'
        tables[name] = table

    logger.debug(f"Aggregated {len(data)} rows into {len(labels)} periods for {len(columns)} variable(s).")
    return tables
