import pytest
import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd

import main
from utils import constants

SCHEMA_PATH = Path(__file__).parents[1] / "config" / "schema.json"


@pytest.fixture(autouse=True)
def reset_root_logger():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def config_file(tmp_path):
    rng = np.random.default_rng(11)
    X = rng.normal(size=(80, 4))
    df = pd.DataFrame(X, columns=['AtBat', 'Hits', 'Walks', 'Years'])
    df['League'] = np.where(rng.random(80) > 0.5, 'A', 'N')
    df['Salary'] = 3.0 * df['Hits'] - 2.0 * df['Years'] + rng.normal(scale=0.5, size=80)
    data_path = tmp_path / "hitters.csv"
    df.to_csv(data_path, index=False)

    config = {
        "data": {"file_path": str(data_path), "outcome_column": "Salary"},
        "model": {"family": "lasso"},
        "selection": {"policy": "one_se", "cv_folds": 5, "seed": 3,
                      "candidates": {"n_values": 8, "min_ratio": 0.01}},
        "execution": {"n_jobs": 1},
        "logging": {"log_dir": str(tmp_path / "logs"), "log_to_console": False},
        "outputs": {"base_results_dir": str(tmp_path / "results")}
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    return path, config


def _run(path, *extra):
    return main.main(["--config", str(path), "--schema", str(SCHEMA_PATH), *extra])


def test_full_run(config_file, tmp_path, capsys):
    path, _ = config_file
    assert _run(path, "--run-id", "cli_run") == 0

    run_dir = tmp_path / "results" / "cli_run"
    assert (run_dir / constants.CONFIG_DIR / constants.CONFIG_USED_FILE).exists()
    assert (run_dir / constants.DATA_DIR / constants.COLUMN_SUMMARY_FILE).exists()
    assert (run_dir / constants.SELECTION_DIR / constants.SELECTION_TABLE_FILE).exists()

    with open(run_dir / constants.SELECTION_DIR / constants.SELECTION_SUMMARY_FILE) as f:
        summary = json.load(f)
    assert summary['policy'] == 'one_se'
    assert summary['n_candidates'] == 8
    assert "[SUCCESS] one_se" in capsys.readouterr().out
    assert (tmp_path / "logs" / constants.LOG_FILE).exists()


def test_dry_run_writes_no_results(config_file, tmp_path, capsys):
    path, _ = config_file
    assert _run(path, "--dry-run") == 0
    assert not (tmp_path / "results").exists()
    assert "Configuration validated" in capsys.readouterr().out


def test_invalid_config_exits_with_error(config_file, capsys):
    path, config = config_file
    config['selection']['cv_folds'] = 1
    path.write_text(json.dumps(config))

    assert _run(path) == 1
    assert "[ERROR]" in capsys.readouterr().out


def test_missing_data_file_exits_with_error(config_file, tmp_path, capsys):
    path, config = config_file
    config['data']['file_path'] = str(tmp_path / "nope.csv")
    path.write_text(json.dumps(config))

    assert _run(path, "--run-id", "missing") == 1
    assert "Data file not found" in capsys.readouterr().out


def test_parse_arguments_defaults():
    args = main.parse_arguments([])
    assert args.config == "config/config.json"
    assert args.schema == "config/schema.json"
    assert args.run_id is None
    assert not args.verbose and not args.dry_run
