# regime_aggregator/annual_regime.py

import logging
from dataclasses import dataclass
from datetime import datetime

import numpy as np
import pandas as pd
import xarray as xr

from regime_aggregator.config import (
    LEAP_DAY, WEEK_OF_START_MONTH, STATISTICS, SUPPORTED_STATS,
    REFERENCE_YEAR, REFERENCE_YEAR_WEEK, REFERENCE_YEARS_ROTATED, REFERENCE_YEARS_ROTATED_FEB,
    REFERENCE_WEEKDAY, REFERENCE_MONTHDAY, REFDATE_COLUMN, PERIOD_COLUMN
)
from regime_aggregator.data_loader import TimeSeries, to_dataframe, timeseries_from_xarray
from regime_aggregator.exceptions import ConfigError, PeriodLookupError
from regime_aggregator.temporal_aggregator import (
    upsample_weekly_to_daily, build_period_keys, build_year_keys, aggregate_periods
)
from regime_aggregator.timestep import resolve_timesteps

logger = logging.getLogger(__name__)


@dataclass
class RegimeResult:
    """
    Annual regime statistics, one table per statistic.

    Each table holds, column-wise: reference dates, period labels and one column
    per source variable, ordered by the hydrological year. `period` is the
    (first, last) time stamp of the source data and `timestep` the output
    timestep keyword.
    """
    mean: pd.DataFrame
    median: pd.DataFrame
    minimum: pd.DataFrame
    maximum: pd.DataFrame
    p25: pd.DataFrame
    p75: pd.DataFrame
    period: tuple
    timestep: str

    def tables(self):
        return {name: getattr(self, name) for name in STATISTICS}

    def __getitem__(self, name):
        if name not in STATISTICS:
            raise KeyError(f"Unknown statistic '{name}'. Available: {STATISTICS}")
        return getattr(self, name)

    @property
    def variables(self):
        return list(self.mean.columns[2:])


def drop_leap_day(stats, ts_out):
    """Removes Feb 29 periods from daily and sub-daily statistics, if present."""
    if ts_out.kind not in ('day', 'hour'):
        return stats

    labels = stats[STATISTICS[0]].index
    leap_labels = labels[labels.str.slice(0, 5) == LEAP_DAY]
    if len(leap_labels) == 0:
        return stats

    logger.debug(f"Removing {len(leap_labels)} leap day period(s).")
    return {name: table.drop(index=leap_labels) for name, table in stats.items()}


def start_period_label(start_mon, ts_out):
    """
    Label of the first period of a hydrological year starting in `start_mon`.

    Weeks are looked up from a fixed month-to-week table, rounding up to the
    first full week of the month.
    """
    if ts_out.kind == 'hour':
        return f"{start_mon:02d}-01 00"
    if ts_out.kind == 'day':
        return f"{start_mon:02d}-01"
    if ts_out.kind == 'week':
        return f"{WEEK_OF_START_MONTH[start_mon]:02d}"
    return f"{start_mon:02d}"


def rotate_to_start_month(labels, start_mon, ts_out):
    """
    Reorders calendar-ordered period labels to start at the hydrological year start.

    Args:
        labels (list): Period labels in calendar order.
        start_mon (int): First month of the hydrological year.
        ts_out (Timestep): Output timestep.

    Returns:
        tuple: (rotated labels, number of labels before the wrap-around).

    Raises:
        PeriodLookupError: If the first period of the hydrological year is not in `labels`.
    """
    labels = list(labels)
    if start_mon == 1:
        return labels, len(labels)

    start_label = start_period_label(start_mon, ts_out)
    try:
        position = labels.index(start_label)
    except ValueError:
        raise PeriodLookupError(
            f"Period '{start_label}' for start month {start_mon} not found in aggregated results."
        ) from None

    return labels[position:] + labels[:position], len(labels) - position


def _parse_reference_date(year, label, ts_out):
    if ts_out.kind == 'hour':
        return datetime.strptime(f"{year}-{label}", '%Y-%m-%d %H')
    if ts_out.kind == 'day':
        return datetime.strptime(f"{year}-{label}", '%Y-%m-%d')
    if ts_out.kind == 'week':
        return datetime.strptime(f"{year}{label}{REFERENCE_WEEKDAY}", '%Y%W%w')
    return datetime(year, int(label), REFERENCE_MONTHDAY)


def reference_dates(labels, ts_out, start_mon, n_head):
    """
    Builds placeholder dates for plotting a hydrological year on a continuous axis.

    Years are arbitrary: 1912 (leap year) without reordering, 1913 for weeks, and
    1911/1912 (or 1912/1913 when starting in February) before/after the wrap-around
    of a reordered year, so that a leap day always has a valid date. Weeks are dated
    on Wednesdays and months on the 15th.
    """
    n_labels = len(labels)
    if start_mon == 1:
        base_year = REFERENCE_YEAR_WEEK if ts_out.kind == 'week' else REFERENCE_YEAR
        years = [base_year] * n_labels
    else:
        head_year, tail_year = REFERENCE_YEARS_ROTATED_FEB if start_mon == 2 else REFERENCE_YEARS_ROTATED
        years = [head_year] * n_head + [tail_year] * (n_labels - n_head)

    dates = [_parse_reference_date(year, label, ts_out) for year, label in zip(years, labels)]
    return pd.DatetimeIndex(dates, name=REFDATE_COLUMN)


def _assemble_table(table, labels, refdates):
    out = table.reindex(labels).reset_index(drop=True)
    out.insert(0, PERIOD_COLUMN, list(labels))
    out.insert(0, REFDATE_COLUMN, refdates)
    return out


def _as_timeseries(x):
    if isinstance(x, TimeSeries):
        return TimeSeries(data=to_dataframe(x.data), timestep=x.timestep)
    if isinstance(x, (xr.Dataset, xr.DataArray)):
        return timeseries_from_xarray(x)
    return TimeSeries(data=to_dataframe(x))


def _check_start_month(start_mon):
    is_int = isinstance(start_mon, (int, np.integer)) and not isinstance(start_mon, bool)
    if not is_int or start_mon < 1 or start_mon > 12:
        raise ConfigError(f"'start_mon' not valid: {start_mon!r}. Expected an integer between 1 and 12.")


def annual_regime(x, stat='mean', ts_in=None, ts_out=None, start_mon=1, incl_leap=False, na_rm=True):
    """
    Calculates annual regimes from long-term, equally spaced time series.

    Computes long-term arithmetic means, medians, minima, maxima and 25%/75%
    percentiles for every variable in `x`, per day, hour, week or month of the
    year, ordered by a hydrological year starting in `start_mon`. The function
    does not check that time steps are equidistant or that full years are covered.

    Weekly input is inflated to daily time steps first, assigning each weekly value
    to the preceding week days. Values within output periods are pooled
    (stat='mean') or summed per year (stat='sum'), long-term statistics are then
    computed over all values or yearly sums of each period.

    Args:
        x (TimeSeries, pd.DataFrame, pd.Series, xr.Dataset or xr.DataArray): Time series
            with date-times as index (or first column).
        stat (str): 'mean' or 'sum', aggregation within output periods.
        ts_in (str, optional): Input timestep, 'month', 'week', 'day' or 'nhour'.
            Defaults to the timestep carried by `x`.
        ts_out (str, optional): Output timestep, equal to or longer than `ts_in`.
        start_mon (int): First month of the hydrological year, 1-12.
        incl_leap (bool): Keep Feb 29 periods in daily and sub-daily results.
        na_rm (bool): Strip missing values before statistics are computed.

    Returns:
        RegimeResult: The six statistic tables with `period` and `timestep`.

    Raises:
        ConfigError: For invalid arguments, raised before any aggregation.
        PeriodLookupError: If the first period of the hydrological year is missing.
    """
    _check_start_month(start_mon)
    requested_stat = stat
    stat = stat.strip().lower() if isinstance(stat, str) else stat
    if stat not in SUPPORTED_STATS:
        raise ConfigError(f"Function argument stat: keyword '{requested_stat}' not known.")

    series = _as_timeseries(x)
    resolved_in, resolved_out = resolve_timesteps(ts_in, ts_out, metadata=series.timestep)

    data = series.data
    if data.empty or data.shape[1] == 0:
        raise ConfigError("Time series table has no rows or no value columns.")

    # weekly data are expanded to daily data, HYPE writes weekly values to the last day of the week
    if resolved_in.kind == 'week':
        data = upsample_weekly_to_daily(data)

    period_keys = build_period_keys(data.index, resolved_out)
    year_keys = build_year_keys(data.index) if stat == 'sum' else None
    stats = aggregate_periods(data, period_keys, stat=stat, na_rm=na_rm, year_keys=year_keys)

    if not incl_leap:
        stats = drop_leap_day(stats, resolved_out)

    labels, n_head = rotate_to_start_month(stats[STATISTICS[0]].index, start_mon, resolved_out)
    refdates = reference_dates(labels, resolved_out, start_mon, n_head)

    tables = {name: _assemble_table(stats[name], labels, refdates) for name in STATISTICS}
    logger.info(
        f"Computed '{stat}' annual regime for {data.shape[1]} variable(s): "
        f"{len(labels)} '{resolved_out.keyword}' periods, hydrological year starting in month {start_mon}."
    )
    return RegimeResult(
        **tables,
        period=(data.index[0], data.index[-1]),
        timestep=resolved_out.keyword,
    )
