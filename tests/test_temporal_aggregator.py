# tests/test_temporal_aggregator.py

import pytest
import numpy as np
import pandas as pd

from regime_aggregator.exceptions import ConfigError
from regime_aggregator.timestep import Timestep
from regime_aggregator.temporal_aggregator import (
    upsample_weekly_to_daily,
    build_period_keys,
    build_year_keys,
    period_sort_key,
    summarise,
    aggregate_periods
)

### --- Fixtures for Sample Data --- ###

@pytest.fixture(scope="module")
def sample_weekly_data():
    """
    Ten weekly values printed on Sundays, 2021-01-03 to 2021-03-07.
    Column 'a' = 1..10 with the 5th week (ending 2021-01-31) missing,
    column 'b' = 10..100.
    """
    dates = pd.date_range("2021-01-03", periods=10, freq="7D", name="date")
    a = np.arange(1, 11, dtype=float)
    a[4] = np.nan
    return pd.DataFrame({"a": a, "b": np.arange(10, 110, 10, dtype=float)}, index=dates)

@pytest.fixture(scope="module")
def sample_two_year_data():
    """
    Jan 1-3 of 2020 and 2021.
    'a': 2020 -> 1, 2, 3 ; 2021 -> 4, 5, 6
    'b': constant 1
    """
    dates = pd.DatetimeIndex(["2020-01-01", "2020-01-02", "2020-01-03",
                              "2021-01-01", "2021-01-02", "2021-01-03"], name="date")
    return pd.DataFrame({"a": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0], "b": 1.0}, index=dates)

### --- Tests for upsample_weekly_to_daily --- ###

def test_upsample_covers_full_daily_range(sample_weekly_data):
    daily = upsample_weekly_to_daily(sample_weekly_data)
    assert len(daily) == 64
    assert daily.index[0] == pd.Timestamp("2021-01-03")
    assert daily.index[-1] == pd.Timestamp("2021-03-07")
    assert list(daily.columns) == ["a", "b"]

def test_upsample_assigns_value_to_preceding_days(sample_weekly_data):
    """Each weekly value fills the week ending on its date."""
    daily = upsample_weekly_to_daily(sample_weekly_data)
    assert daily.loc["2021-01-03", "a"] == 1.0
    assert (daily.loc["2021-01-04":"2021-01-10", "a"] == 2.0).all()
    assert (daily.loc["2021-03-01":"2021-03-07", "b"] == 100.0).all()

def test_upsample_missing_week_stays_missing(sample_weekly_data):
    """A missing weekly value leaves all 7 days of its week missing, other columns unaffected."""
    daily = upsample_weekly_to_daily(sample_weekly_data)
    assert daily.loc["2021-01-25":"2021-01-31", "a"].isna().all()
    assert (daily.loc["2021-01-25":"2021-01-31", "b"] == 50.0).all()
    assert (daily.loc["2021-02-01":"2021-02-07", "a"] == 6.0).all()

def test_upsample_does_not_modify_input(sample_weekly_data):
    before = sample_weekly_data.copy()
    upsample_weekly_to_daily(sample_weekly_data)
    pd.testing.assert_frame_equal(sample_weekly_data, before)

### --- Tests for period keys --- ###

def test_period_keys_formats():
    index = pd.DatetimeIndex(["2020-02-29 06:00", "2021-10-01 18:00"])
    assert list(build_period_keys(index, Timestep('hour', 6))) == ["02-29 06", "10-01 18"]
    assert list(build_period_keys(index, Timestep('day'))) == ["02-29", "10-01"]
    assert list(build_period_keys(index, Timestep('month'))) == ["02", "10"]

def test_period_keys_merge_boundary_weeks():
    """Week 00 (before the first Monday), 52 and 53 are merged into week 52."""
    index = pd.DatetimeIndex(["2021-01-01", "2021-01-04", "2021-03-01", "2020-12-31", "2018-12-31"])
    assert list(build_period_keys(index, Timestep('week'))) == ["52", "01", "09", "52", "52"]

def test_year_keys():
    index = pd.DatetimeIndex(["1999-12-31", "2000-01-01"])
    assert list(build_year_keys(index)) == ["1999", "2000"]

def test_period_sort_key_calendar_order():
    labels = ["12-31", "01-02 06", "10-01", "52", "09"]
    assert period_sort_key("01-02 06") == (1, 2, 6)
    assert sorted(["52", "09", "10", "01"], key=period_sort_key) == ["01", "09", "10", "52"]
    assert sorted(labels[:3], key=period_sort_key) == ["01-02 06", "10-01", "12-31"]

### --- Tests for summarise --- ###

def test_summarise_values():
    stats = summarise([4.0, 1.0, 3.0, 2.0])
    assert np.isclose(stats["mean"], 2.5)
    assert np.isclose(stats["median"], 2.5)
    assert np.isclose(stats["minimum"], 1.0)
    assert np.isclose(stats["maximum"], 4.0)
    # linear interpolation between order statistics
    assert np.isclose(stats["p25"], 1.75)
    assert np.isclose(stats["p75"], 3.25)

def test_summarise_missing_values_removed():
    stats = summarise([1.0, np.nan, 3.0], na_rm=True)
    assert np.isclose(stats["mean"], 2.0)
    assert np.isclose(stats["maximum"], 3.0)

def test_summarise_missing_values_propagate():
    stats = summarise([1.0, np.nan, 3.0], na_rm=False)
    assert all(np.isnan(value) for value in stats.values())

def test_summarise_all_missing():
    stats = summarise([np.nan, np.nan], na_rm=True)
    assert all(np.isnan(value) for value in stats.values())

### --- Tests for aggregate_periods --- ###

def test_aggregate_mean_pools_years(sample_two_year_data):
    keys = build_period_keys(sample_two_year_data.index, Timestep('day'))
    tables = aggregate_periods(sample_two_year_data, keys, stat='mean')

    assert set(tables) == {"mean", "median", "minimum", "maximum", "p25", "p75"}
    assert list(tables["mean"].index) == ["01-01", "01-02", "01-03"]
    # '01-01': values 1 and 4
    assert np.isclose(tables["mean"].loc["01-01", "a"], 2.5)
    assert np.isclose(tables["minimum"].loc["01-01", "a"], 1.0)
    assert np.isclose(tables["maximum"].loc["01-01", "a"], 4.0)
    assert np.isclose(tables["p25"].loc["01-01", "a"], 1.75)
    assert np.isclose(tables["p75"].loc["01-01", "a"], 3.25)
    assert np.isclose(tables["median"].loc["01-03", "a"], 4.5)

def test_aggregate_sum_uses_yearly_sums(sample_two_year_data):
    """Monthly sums: 2020 -> 1+2+3 = 6, 2021 -> 4+5+6 = 15."""
    keys = build_period_keys(sample_two_year_data.index, Timestep('month'))
    years = build_year_keys(sample_two_year_data.index)
    tables = aggregate_periods(sample_two_year_data, keys, stat='sum', year_keys=years)

    assert list(tables["mean"].index) == ["01"]
    assert np.isclose(tables["mean"].loc["01", "a"], 10.5)
    assert np.isclose(tables["minimum"].loc["01", "a"], 6.0)
    assert np.isclose(tables["maximum"].loc["01", "a"], 15.0)
    assert np.isclose(tables["mean"].loc["01", "b"], 3.0)

def test_aggregate_sum_missing_values(sample_two_year_data):
    data = sample_two_year_data.copy()
    data.loc["2021-01-02", "a"] = np.nan
    keys = build_period_keys(data.index, Timestep('month'))
    years = build_year_keys(data.index)

    kept = aggregate_periods(data, keys, stat='sum', na_rm=True, year_keys=years)
    # 2021 sum without the missing value: 4 + 6 = 10
    assert np.isclose(kept["maximum"].loc["01", "a"], 10.0)
    assert np.isclose(kept["mean"].loc["01", "a"], 8.0)

    propagated = aggregate_periods(data, keys, stat='sum', na_rm=False, year_keys=years)
    assert np.isnan(propagated["mean"].loc["01", "a"])
    assert np.isclose(propagated["mean"].loc["01", "b"], 3.0)

def test_aggregate_calendar_order_not_input_order():
    dates = pd.DatetimeIndex(["2020-12-30", "2020-12-31", "2021-01-01", "2021-01-02"])
    data = pd.DataFrame({"q": [1.0, 2.0, 3.0, 4.0]}, index=dates)
    tables = aggregate_periods(data, build_period_keys(dates, Timestep('day')))
    assert list(tables["mean"].index) == ["01-01", "01-02", "12-30", "12-31"]

def test_aggregate_single_variable_is_flat(sample_two_year_data):
    keys = build_period_keys(sample_two_year_data.index, Timestep('day'))
    single = aggregate_periods(sample_two_year_data[["a"]], keys)
    multi = aggregate_periods(sample_two_year_data, keys)
    for name in single:
        assert list(single[name].columns) == ["a"]
        pd.testing.assert_series_equal(single[name]["a"], multi[name]["a"])

def test_aggregate_repeated_column_names(sample_two_year_data):
    """Columns sharing a name keep their own statistics."""
    data = sample_two_year_data.copy()
    data.columns = ["q", "q"]
    keys = build_period_keys(data.index, Timestep('day'))
    tables = aggregate_periods(data, keys)
    expected = aggregate_periods(sample_two_year_data, keys)
    for name in tables:
        assert list(tables[name].columns) == ["q", "q"]
        assert np.allclose(tables[name].iloc[:, 0], expected[name]["a"])
        assert np.allclose(tables[name].iloc[:, 1], expected[name]["b"])

def test_aggregate_invalid_stat(sample_two_year_data):
    keys = build_period_keys(sample_two_year_data.index, Timestep('day'))
    with pytest.raises(ConfigError, match="keyword 'median' not known"):
        aggregate_periods(sample_two_year_data, keys, stat='median')

def test_aggregate_sum_requires_year_keys(sample_two_year_data):
    keys = build_period_keys(sample_two_year_data.index, Timestep('day'))
    with pytest.raises(ConfigError, match="Year keys"):
        aggregate_periods(sample_two_year_data, keys, stat='sum')
