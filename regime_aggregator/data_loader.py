# regime_aggregator/data_loader.py

import os
import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import xarray as xr

from regime_aggregator.config import VAR_TO_REMOVE, TIME_DIM_NAMES, MISSING_VALUE_CODES
from regime_aggregator.exceptions import ConfigError
from regime_aggregator.timestep import infer_timestep

# Setup logger for this module
logger = logging.getLogger(__name__)


@dataclass
class TimeSeries:
    """An equally spaced time series table together with its timestep keyword."""
    data: pd.DataFrame
    timestep: Optional[str] = None


def to_dataframe(x):
    """
    Normalises a time series table to a float DataFrame with a DatetimeIndex.

    Accepts a DataFrame indexed by date-times, a DataFrame with date-times in its
    first column (HYPE table layout), a Series, or an xarray object with a time
    dimension. The input is never modified.

    Args:
        x: The time series table.

    Returns:
        pd.DataFrame: Values with a DatetimeIndex named 'date', one column per variable.

    Raises:
        ConfigError: If no date-time axis is found or values are not numeric.
    """
    if isinstance(x, (xr.Dataset, xr.DataArray)):
        return timeseries_from_xarray(x).data
    if isinstance(x, pd.Series):
        x = x.to_frame(name=x.name if x.name is not None else 'value')
    if not isinstance(x, pd.DataFrame):
        raise ConfigError(f"Unsupported time series type: {type(x).__name__}.")

    if isinstance(x.index, pd.DatetimeIndex):
        df = x.copy()
    elif x.shape[1] > 1 and pd.api.types.is_datetime64_any_dtype(x.iloc[:, 0]):
        df = x.set_index(x.columns[0])
    else:
        raise ConfigError("No date-times found in the index or first column of the time series table.")

    if df.index.tz is not None:
        df.index = df.index.tz_convert(None)
    df.index.name = 'date'

    try:
        df = df.astype(float)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Time series values must be numeric: {e}") from e
    return df


def timeseries_from_xarray(obj):
    """
    Converts an xarray Dataset or DataArray with a time dimension into a TimeSeries.

    One-dimensional variables become one column each. Variables with a second
    dimension (e.g. stations or subbasins) are split into '<var>_<id>' columns.
    The 'timestep' attribute, when present, is kept as metadata.
    """
    if isinstance(obj, xr.DataArray):
        ds = obj.to_dataset(name=obj.name if obj.name else 'value')
    else:
        ds = obj

    ds = ds.drop_vars([var for var in VAR_TO_REMOVE if var in ds.variables])

    time_dim = next((dim for dim in TIME_DIM_NAMES if dim in ds.dims), None)
    if time_dim is None:
        raise ConfigError(f"No time dimension found. Expected one of {TIME_DIM_NAMES}, found: {list(ds.dims)}")
    if time_dim != 'time':
        ds = ds.rename({time_dim: 'time'})

    columns = []
    for var in ds.data_vars:
        da = ds[var]
        if 'time' not in da.dims:
            logger.debug(f"Skipping variable '{var}' without time dimension.")
            continue
        if da.ndim == 1:
            columns.append(da.to_series().rename(var))
        elif da.ndim == 2:
            other_dim = next(dim for dim in da.dims if dim != 'time')
            frame = da.transpose('time', other_dim).to_pandas()
            frame.columns = [f"{var}_{label}" for label in frame.columns]
            columns.extend(frame[col] for col in frame.columns)
        else:
            raise ConfigError(f"Variable '{var}' has {da.ndim} dimensions, only time series are supported: {da.dims}")

    if not columns:
        raise ConfigError("No data variable with a time dimension found.")

    data = to_dataframe(pd.concat(columns, axis=1))
    return TimeSeries(data=data, timestep=obj.attrs.get('timestep'))


def load_timeseries(file_path, timestep=None):
    """
    Loads a time series file (CSV/text or NetCDF) into a TimeSeries.

    The timestep is taken from the argument, then from a stored 'timestep'
    attribute (NetCDF), and is otherwise inferred from the time stamps.

    Args:
        file_path (str): Path to the file.
        timestep (str, optional): Timestep keyword of the file.

    Returns:
        TimeSeries or None: The loaded time series, or None if it fails.
    """
    file_path = str(file_path)
    try:
        if file_path.endswith('.nc'):
            with xr.open_dataset(file_path) as ds:
                series = timeseries_from_xarray(ds.load())
        else:
            df = pd.read_csv(
                file_path, sep=r'[,\t]', engine='python', index_col=0,
                na_values=MISSING_VALUE_CODES
            )
            df.index = pd.to_datetime(df.index)
            series = TimeSeries(data=to_dataframe(df))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading time series from {file_path}: {e}")
        return None

    if timestep is not None:
        series.timestep = timestep
    elif series.timestep is None:
        try:
            series.timestep = infer_timestep(series.data.index).keyword
            logger.info(f"Inferred timestep '{series.timestep}' for {os.path.basename(file_path)}")
        except ConfigError as e:
            logger.warning(f"Could not infer timestep for {file_path}: {e}")

    return series
