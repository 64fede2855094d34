#!/usr/bin/env python
"""
Cross-Validated Hyperparameter Selector - Main Entry Point
Loads a dataset, cross-validates a candidate grid for one model family and
reports the configuration chosen by the minimum-error and one-SE rules.
"""
import sys
import logging
import argparse
import traceback
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.data_manager import DataManager
from modules.selection_engine import SelectionEngine
from utils.exceptions import SelectorException


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Cross-validated hyperparameter selection (minimum error and one-SE rule)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier (defaults to timestamp if not provided)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration without running the selection"
    )

    return parser.parse_args(argv)


def setup_run_directory(config: dict, run_id: str, logger: logging.Logger) -> Path:
    """
    Create the run directory ``<base_results_dir>/<run_id>``.
    """
    run_dir = (Path(config.get('outputs', {}).get('base_results_dir', 'results')) / run_id).absolute()
    run_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created run directory: {run_dir}")
    return run_dir


def main(argv=None):
    """
    Selection orchestration.

    Returns:
        int: Exit code (0 for success, 1 for errors, 130 on interrupt)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        # 1. Load and validate configuration
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config = config_manager.load_and_validate()

        if args.verbose:
            config.setdefault('logging', {})['level'] = 'DEBUG'

        # 2. Setup logging
        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('selector')
        logger.info(f"Configuration loaded from: {args.config}")

        if args.dry_run:
            logger.info("Dry run mode: validation complete. Exiting without running selection.")
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        # 3. Run directory and configuration artifacts
        config_manager.run_id = args.run_id
        run_id = config_manager.generate_run_id()
        run_dir = setup_run_directory(config, run_id, logger)
        config.setdefault('outputs', {})['base_results_dir'] = str(run_dir)
        config_manager.save_artifacts(str(run_dir))

        # 4. Data
        dataset = DataManager(config, logger).execute()

        # 5. Selection
        report = SelectionEngine(config, logger).execute(dataset, run_id)
        chosen = report.chosen

        logger.info("-" * 60)
        logger.info(f"SELECTION COMPLETED ({report.policy.value})")
        logger.info(f"Chosen configuration: {chosen.configuration!r}")
        logger.info(f"Mean CV error: {chosen.mean_error:.6g} (SE {chosen.std_error:.6g})")
        logger.info("-" * 60)

        print(f"\n[SUCCESS] {report.policy.value}: {chosen.configuration!r} "
              f"(CV error {chosen.mean_error:.6g} +/- {chosen.std_error:.6g}). Results saved to: {run_dir}")
        return 0

    except SelectorException as e:
        msg = f"Selection Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Selection interrupted by user.")
        if logger:
            logger.warning("Selection interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
