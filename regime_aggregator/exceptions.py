# regime_aggregator/exceptions.py


class ConfigError(ValueError):
    """Invalid or inconsistent regime configuration (timesteps, stat, start month)."""


class PeriodLookupError(LookupError):
    """The first period of the hydrological year is missing from the aggregated results."""
