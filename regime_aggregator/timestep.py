# regime_aggregator/timestep.py

import re
import logging
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from regime_aggregator.config import TIMESTEP_RANK
from regime_aggregator.exceptions import ConfigError

logger = logging.getLogger(__name__)

_HOUR_PATTERN = re.compile(r'^(\d*)\s*hours?$')


class Timestep(NamedTuple):
    kind: str
    hours: Optional[int] = None

    @property
    def keyword(self):
        if self.kind == 'hour':
            return f"{self.hours}hour"
        return self.kind

    @property
    def rank(self):
        return TIMESTEP_RANK[self.kind]

    @property
    def is_subdaily(self):
        return self.kind == 'hour'


def parse_timestep(keyword):
    """
    Parses a timestep keyword into a Timestep.

    Accepted keywords are 'day', 'week', 'month' and hour multiples such as
    'hour', '3hour', '3 hour' or '6hours'.

    Args:
        keyword (str or Timestep): The timestep keyword.

    Returns:
        Timestep: The parsed timestep.

    Raises:
        ConfigError: If the keyword is not a recognised timestep.
    """
    if isinstance(keyword, Timestep):
        return keyword
    if not isinstance(keyword, str):
        raise ConfigError(f"Timestep '{keyword}' not accepted.")

    normalized = keyword.strip().lower()
    if normalized in ('day', 'week', 'month'):
        return Timestep(normalized)

    match = _HOUR_PATTERN.match(normalized)
    if match:
        hours = int(match.group(1)) if match.group(1) else 1
        if hours < 1:
            raise ConfigError(f"Timestep '{keyword}' not accepted, hour multiple must be at least 1.")
        return Timestep('hour', hours)

    raise ConfigError(f"Timestep '{keyword}' not accepted.")


def resolve_timesteps(ts_in=None, ts_out=None, metadata=None):
    """
    Determines the effective input and output timesteps.

    Args:
        ts_in (str, optional): Explicit input timestep. Falls back to `metadata`.
        ts_out (str, optional): Explicit output timestep. Defaults to the input timestep.
        metadata (str, optional): Timestep keyword carried by the source table.

    Returns:
        tuple: (Timestep, Timestep) for input and output.

    Raises:
        ConfigError: If no input timestep is available, a keyword is not recognised,
            or the output timestep is shorter than the input timestep.
    """
    if ts_in is None:
        ts_in = metadata
        if ts_in is None:
            raise ConfigError("No timestep metadata found for the input table, and no argument 'ts_in' provided.")

    resolved_in = parse_timestep(ts_in)
    resolved_out = resolved_in if ts_out is None else parse_timestep(ts_out)

    if resolved_out.rank < resolved_in.rank:
        raise ConfigError(
            f"Output timestep '{resolved_out.keyword}' cannot be shorter than input timestep '{resolved_in.keyword}'."
        )
    if resolved_in.is_subdaily and resolved_out.is_subdaily and resolved_out.hours < resolved_in.hours:
        raise ConfigError(
            f"Output timestep '{resolved_out.keyword}' cannot be shorter than input timestep '{resolved_in.keyword}'."
        )

    logger.debug(f"Resolved timesteps: input '{resolved_in.keyword}', output '{resolved_out.keyword}'.")
    return resolved_in, resolved_out


def infer_timestep(index):
    """
    Infers the timestep of an equally spaced datetime index.

    Args:
        index (pd.DatetimeIndex): Timestamps of the time series.

    Returns:
        Timestep: The inferred timestep.

    Raises:
        ConfigError: If the index is too short, irregular or has an unsupported step.
    """
    index = pd.DatetimeIndex(index)
    if len(index) < 3:
        raise ConfigError(f"At least 3 time steps are needed to infer the timestep, got {len(index)}.")

    freq_str = pd.infer_freq(index)
    if freq_str is None:
        # Monthly values stamped on a fixed day of the month, e.g. the 15th
        months = index.year * 12 + index.month
        if len(np.unique(index.day)) == 1 and (np.diff(months) == 1).all():
            return Timestep('month')
        raise ConfigError("Could not infer the timestep, time steps are not equidistant.")

    offset = to_offset(freq_str)
    logger.debug(f"Inferred frequency '{freq_str}' from {len(index)} time steps.")

    if isinstance(offset, (pd.offsets.MonthEnd, pd.offsets.MonthBegin)) and offset.n == 1:
        return Timestep('month')
    if isinstance(offset, pd.offsets.Week) and offset.n == 1:
        return Timestep('week')
    if isinstance(offset, pd.offsets.Day):
        if offset.n == 1:
            return Timestep('day')
        if offset.n == 7:
            return Timestep('week')
    if isinstance(offset, pd.offsets.Hour):
        return parse_timestep(f"{offset.n}hour")

    raise ConfigError(f"Unsupported timestep with frequency '{freq_str}'.")
