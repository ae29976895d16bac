# regime_aggregator/__init__.py

"""
Annual Regime Aggregator
A Python package computing long-term annual regime statistics from
hydrological time series, ordered by a hydrological year.
"""

from regime_aggregator.annual_regime import annual_regime, RegimeResult
from regime_aggregator.data_loader import TimeSeries, load_timeseries
from regime_aggregator.exceptions import ConfigError, PeriodLookupError

__version__ = "0.1.0"

__all__ = [
    "annual_regime",
    "RegimeResult",
    "TimeSeries",
    "load_timeseries",
    "ConfigError",
    "PeriodLookupError",
]
