# regime_aggregator/__main__.py

import os
import sys
import argparse
import logging
import multiprocessing

# --- Setup Logger ---
logger = logging.getLogger(__name__)

from regime_aggregator.config import POSTPROCESS_SETTINGS_YAML
from regime_aggregator.utils import load_settings, create_output_dirs
from regime_aggregator.data_loader import load_timeseries
from regime_aggregator.annual_regime import annual_regime
from regime_aggregator.output_writer import save_regime_to_csv, save_regime_netcdf


def process_input(task_args):
    """
    Worker function computing the annual regime of a single input file.
    It is executed for each file, potentially in parallel.

    Args:
        task_args (tuple): A tuple containing all necessary arguments:
            (file_path, config)

    Returns:
        bool: True if the regime was computed and saved.
    """
    file_path, config = task_args
    name = os.path.splitext(os.path.basename(file_path))[0]
    worker_logger = logging.getLogger(f"worker.{name}")

    worker_logger.info(f"--- Starting annual regime for: {file_path} ---")

    regime_settings = config['regime']
    series = load_timeseries(file_path, timestep=regime_settings['ts_in'])
    if series is None:
        worker_logger.warning(f"Could not load data from {file_path}. Skipping file.")
        return False

    try:
        result = annual_regime(
            series,
            stat=regime_settings['stat'],
            ts_out=regime_settings['ts_out'],
            start_mon=regime_settings['start_mon'],
            incl_leap=regime_settings['incl_leap'],
            na_rm=regime_settings['na_rm'],
        )
    except (ValueError, LookupError) as e:
        worker_logger.error(f"Failed annual regime for '{file_path}': {e}", exc_info=True)
        return False

    output_dir = config['output_dir']
    if config['output']['save_csv']:
        save_regime_to_csv(result, os.path.join(output_dir, 'csv'), name)
    if config['output']['save_nc']:
        save_regime_netcdf(result, os.path.join(output_dir, 'nc'), name)

    worker_logger.info(f"Finished annual regime for: {file_path}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute long-term annual regimes from hydrological time series.")
    parser.add_argument('--inputs', nargs='+', required=True, help="Time series files (CSV/text or NetCDF).")
    parser.add_argument('--output_dir', type=str, required=True, help="Directory for the regime tables.")
    parser.add_argument('--settings_yaml', type=str, default=POSTPROCESS_SETTINGS_YAML, help="Path to regime settings YAML.")
    parser.add_argument('--stat', type=str, choices=['mean', 'sum'], default=None, help="Aggregation within output periods.")
    parser.add_argument('--ts_in', type=str, default=None, help="Input timestep, inferred from the data if omitted.")
    parser.add_argument('--ts_out', type=str, default=None, help="Output timestep, defaults to the input timestep.")
    parser.add_argument('--start_mon', type=int, default=None, help="First month of the hydrological year (1-12).")
    parser.add_argument('--incl_leap', action='store_true', default=None, help="Keep Feb 29 in daily and sub-daily results.")
    parser.add_argument('--keep_na', action='store_true', help="Do not strip missing values before computing statistics.")
    parser.add_argument('--save_nc', action='store_true', help="Also save the regime as a NetCDF dataset.")
    parser.add_argument('--num_workers', type=int, default=1, help="Number of parallel workers. Use -1 for all CPUs.")
    parser.add_argument('--loglevel', type=str, default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], help="Set the logging level.")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.loglevel.upper()), format='%(asctime)s - %(processName)s - %(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    logger.info("--- Starting Annual Regime Tool ---")

    settings = load_settings(args.settings_yaml)
    regime_settings = settings['regime']
    # command line arguments take precedence over the YAML settings
    for key in ('stat', 'ts_in', 'ts_out', 'start_mon', 'incl_leap'):
        value = getattr(args, key)
        if value is not None:
            regime_settings[key] = value
    if args.keep_na:
        regime_settings['na_rm'] = False
    if args.save_nc:
        settings['output']['save_nc'] = True

    create_output_dirs(args.output_dir, [sub for sub, enabled in (('csv', settings['output']['save_csv']), ('nc', settings['output']['save_nc'])) if enabled])

    config_for_workers = {
        'regime': regime_settings,
        'output': settings['output'],
        'output_dir': args.output_dir,
    }
    tasks = [(file_path, config_for_workers) for file_path in args.inputs]

    num_workers = args.num_workers
    if num_workers == -1: num_workers = os.cpu_count() or 1
    logger.info(f"Using {num_workers} parallel worker(s) for {len(tasks)} tasks.")

    if num_workers > 1 and len(tasks) > 1:
        with multiprocessing.Pool(processes=num_workers) as pool:
            outcomes = pool.map(process_input, tasks)
    else:
        logger.info("Starting annual regimes sequentially...")
        outcomes = [process_input(task) for task in tasks]

    n_done = sum(outcomes)
    logger.info(f"--- Annual Regime Processing Complete! {n_done}/{len(tasks)} input(s) processed ---")
    return 0 if n_done > 0 else 1


if __name__ == '__main__':
    sys.exit(main())
