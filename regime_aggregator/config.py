# regime_aggregator/config.py

import os

# --- Default Paths (relative to the package) ---
# POSTPROCESS_SETTINGS_YAML: Path to the YAML file defining the default regime settings.
POSTPROCESS_SETTINGS_YAML = os.path.join(os.path.dirname(__file__), 'settings', 'settings.yaml')


# --- General NetCDF/Xarray Loading Configuration ---
# Variables often found in NetCDF files that are not actual data variables
# (e.g., coordinate bounds, CRS information) to be removed *after* loading a file.
VAR_TO_REMOVE = ['time_bnds', 'crs']

# Common names for the time dimension / date column
TIME_DIM_NAMES = ["time", "date", "DATE", "Date"]

# HYPE files write missing values as -9999
MISSING_VALUE_CODES = [-9999]


# --- Regime Configuration (DEFAULT settings if YAML is not found or incomplete) ---
# Merged with or overridden by the actual settings.yaml content, then by CLI arguments.
DEFAULT_REGIME_SETTINGS = {
    'regime': {
        'stat': 'mean',
        'ts_in': None,
        'ts_out': None,
        'start_mon': 1,
        'incl_leap': False,
        'na_rm': True,
    },
    'output': {
        'save_csv': True,
        'save_nc': False,
    }
}


# --- Timesteps ---
# Ordering of timestep kinds, output must be equal or coarser than input
TIMESTEP_RANK = {
    'hour': 0,
    'day': 1,
    'week': 2,
    'month': 3,
}

# strftime patterns for period labels, per output timestep kind.
# Weeks use Monday as first day, days before the first Monday are week 00.
PERIOD_FORMATS = {
    'hour': '%m-%d %H',
    'day': '%m-%d',
    'week': '%W',
    'month': '%m',
}
YEAR_FORMAT = '%Y'

# Partial weeks across the new year are merged into one group
BOUNDARY_WEEKS = ('00', '52', '53')
MERGED_BOUNDARY_WEEK = '52'

LEAP_DAY = '02-29'

# First week of the hydrological year for each possible start month (weeks rounded up)
WEEK_OF_START_MONTH = {
    2: 4, 3: 9, 4: 13, 5: 18, 6: 22, 7: 26,
    8: 31, 9: 35, 10: 40, 11: 44, 12: 49,
}


# --- Reference dates ---
# Placeholder years for the plotting axis. 1912 is a leap year, 1913 starts with
# a partial week 00.
REFERENCE_YEAR = 1912
REFERENCE_YEAR_WEEK = 1913
# (before wrap, after wrap) years for rotated results
REFERENCE_YEARS_ROTATED = (1911, 1912)
REFERENCE_YEARS_ROTATED_FEB = (1912, 1913)
REFERENCE_WEEKDAY = 3  # Wednesday
REFERENCE_MONTHDAY = 15


# --- Statistics ---
# Order of the result tables
STATISTICS = ('mean', 'median', 'minimum', 'maximum', 'p25', 'p75')
QUANTILE_PROBS = (0.0, 0.25, 0.5, 0.75, 1.0)
SUPPORTED_STATS = ('mean', 'sum')

REFDATE_COLUMN = 'reference_date'
PERIOD_COLUMN = 'period_label'
