# regime_aggregator/output_writer.py

import os
import logging

import pandas as pd
import xarray as xr

from regime_aggregator.config import STATISTICS, REFDATE_COLUMN, PERIOD_COLUMN

logger = logging.getLogger(__name__)


def regime_to_xarray(result):
    """
    Converts a RegimeResult into an xarray Dataset.

    Each source variable becomes a data variable with dimensions
    ('statistic', 'period'). Reference dates and period labels are stored as
    coordinates along 'period'. A repeated variable name is suffixed with its
    column number, e.g. 'q_2'.

    Args:
        result (RegimeResult): The annual regime.

    Returns:
        xarray.Dataset: The regime dataset.
    """
    tables = result.tables()
    first = tables[STATISTICS[0]]
    coords = {
        'statistic': list(STATISTICS),
        PERIOD_COLUMN: ('period', first[PERIOD_COLUMN].to_numpy()),
        REFDATE_COLUMN: ('period', pd.DatetimeIndex(first[REFDATE_COLUMN]).to_numpy()),
    }

    data_vars = {}
    for position, var in enumerate(result.variables, start=2):
        values = [tables[name].iloc[:, position].to_numpy(dtype=float) for name in STATISTICS]
        var_name = str(var)
        if var_name in data_vars:
            # repeated column names get a positional suffix
            var_name = f"{var_name}_{position - 1}"
        data_vars[var_name] = (('statistic', 'period'), values)

    ds = xr.Dataset(data_vars, coords=coords)
    ds.attrs['timestep'] = result.timestep
    ds.attrs['period_start'] = str(result.period[0])
    ds.attrs['period_end'] = str(result.period[1])
    return ds


def save_regime_to_csv(result, output_dir, name):
    """
    Saves each statistic table of a RegimeResult to '<name>_<statistic>.csv'.

    Returns:
        list: Paths of the written files.
    """
    os.makedirs(output_dir, exist_ok=True)
    written = []
    for statistic, table in result.tables().items():
        file_path = os.path.join(output_dir, f"{name}_{statistic}.csv")
        table.to_csv(file_path, index=False)
        written.append(file_path)
    logger.info(f"Saved {len(written)} regime tables for '{name}' to {output_dir}")
    return written


def save_regime_netcdf(result, output_dir, name):
    """Saves a RegimeResult as a NetCDF dataset '<name>_regime.nc'."""
    os.makedirs(output_dir, exist_ok=True)
    file_path = os.path.join(output_dir, f"{name}_regime.nc")
    ds = regime_to_xarray(result)
    ds.to_netcdf(file_path)
    logger.info(f"Saved regime dataset for '{name}' to {file_path}")
    return file_path
