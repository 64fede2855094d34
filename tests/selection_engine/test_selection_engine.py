import json
import logging
from unittest.mock import MagicMock

import pytest
import numpy as np
import pandas as pd
from sklearn.datasets import make_classification, make_regression

from modules.data_manager import Dataset
from modules.model_adapters import ModelAdapter
from modules.selection_engine import SelectionEngine
from modules.selector import SelectionPolicy
from utils import constants
from utils.exceptions import ConfigurationError, FoldFitError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def regression_dataset():
    X, y = make_regression(n_samples=90, n_features=8, n_informative=3, noise=20.0, random_state=3)
    return Dataset(pd.DataFrame(X, columns=[f"x{i}" for i in range(8)]), pd.Series(y), 'continuous')


@pytest.fixture
def classification_dataset():
    X, y = make_classification(n_samples=120, n_features=5, n_informative=3, n_redundant=0,
                               weights=[0.7, 0.3], random_state=4)
    labels = pd.Series(np.where(y == 1, 'Yes', 'No'))
    return Dataset(pd.DataFrame(X, columns=[f"x{i}" for i in range(5)]), labels, 'categorical')


@pytest.fixture
def base_config(tmp_path):
    return {
        'model': {'family': 'lasso', 'params': {'max_iter': 5000}},
        'selection': {
            'policy': 'one_se',
            'cv_folds': 5,
            'seed': 7,
            'candidates': {'n_values': 12, 'min_ratio': 0.01},
        },
        'execution': {'n_jobs': 1},
        'outputs': {'base_results_dir': str(tmp_path), 'save_outputs': True},
        '_internal_seeds': {'folds': 7, 'model': 2007},
    }


def test_lasso_selection_reports_both_policies(base_config, mock_logger, regression_dataset):
    report = SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'run_1')

    assert report.policy is SelectionPolicy.ONE_SE
    assert set(report.selections) == {SelectionPolicy.MIN_ERROR, SelectionPolicy.ONE_SE}
    assert len(report.table) == 12
    assert report.assignment.n_folds == 5

    one_se = report.selections[SelectionPolicy.ONE_SE]
    min_error = report.selections[SelectionPolicy.MIN_ERROR]
    # One-SE never picks a less penalized model than the minimum
    assert one_se.configuration >= min_error.configuration
    assert one_se.threshold == pytest.approx(min_error.mean_error + min_error.std_error)
    assert report.chosen is one_se


def test_outputs_are_written(base_config, mock_logger, regression_dataset, tmp_path):
    SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'run_2')

    output_dir = tmp_path / constants.SELECTION_DIR
    table = pd.read_parquet(output_dir / constants.SELECTION_TABLE_FILE)
    assert len(table) == 12
    assert {'configuration', 'mean_error', 'std_error', 'fold_0_error', 'fold_4_error'} <= set(table.columns)

    with open(output_dir / constants.SELECTION_SUMMARY_FILE) as f:
        summary = json.load(f)
    assert summary['run_id'] == 'run_2'
    assert summary['policy'] == 'one_se'
    assert summary['n_folds'] == 5
    assert sum(summary['fold_sizes']) == len(regression_dataset)


def test_compute_only_run_writes_nothing(base_config, mock_logger, regression_dataset, tmp_path):
    base_config['outputs']['save_outputs'] = False
    SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'run_3')
    assert not (tmp_path / constants.SELECTION_DIR).exists()


def test_categorical_tree_uses_stratified_folds(base_config, mock_logger, classification_dataset):
    base_config['model'] = {'family': 'decision_tree', 'params': {'min_samples_leaf': 3}}
    base_config['selection']['policy'] = 'min_error'
    base_config['selection']['candidates'] = {'n_values': 6}

    report = SelectionEngine(base_config, mock_logger).execute(classification_dataset, 'run_4')

    assert report.assignment.stratified
    assert report.policy is SelectionPolicy.MIN_ERROR
    assert 0.0 <= report.chosen.mean_error <= 1.0

    # Class shares per fold stay within one record of an even split
    labels = classification_dataset.outcome.to_numpy()
    for fold_id in range(5):
        held_out = labels[report.assignment.test_indices(fold_id)]
        for cls in ('Yes', 'No'):
            total = (labels == cls).sum()
            assert total // 5 <= (held_out == cls).sum() <= -(-total // 5)


def test_same_seed_gives_same_report(base_config, mock_logger, regression_dataset):
    base_config['outputs']['save_outputs'] = False
    first = SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'a')
    second = SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'b')

    np.testing.assert_array_equal(first.assignment.folds, second.assignment.folds)
    pd.testing.assert_frame_equal(first.table.to_frame(), second.table.to_frame())


def test_missing_policy_is_rejected(base_config, mock_logger, regression_dataset):
    del base_config['selection']['policy']
    with pytest.raises(ConfigurationError, match="policy"):
        SelectionEngine(base_config, mock_logger).execute(regression_dataset, 'run_5')


def test_explicit_candidates_override_config(base_config, mock_logger, regression_dataset):
    report = SelectionEngine(base_config, mock_logger).execute(
        regression_dataset, 'run_6', candidates=[10.0, 1.0, 0.1]
    )
    assert report.table.configurations == [10.0, 1.0, 0.1]


class ConstantAdapter(ModelAdapter):
    """Predicts a configured constant; error depends only on the configuration."""

    def fit(self, train, configuration):
        return configuration

    def evaluate(self, model, held_out):
        return float(np.mean((held_out.outcome.to_numpy() - model) ** 2))


def test_adapter_without_ordering_uses_candidate_order(base_config, mock_logger):
    rng = np.random.default_rng(0)
    dataset = Dataset(pd.DataFrame({'x': rng.normal(size=60)}), pd.Series(rng.normal(size=60)), 'continuous')
    base_config['model'] = {'family': 'custom'}
    base_config['outputs']['save_outputs'] = False

    # Two predictions symmetric about the outcome mean are within one SE of each other
    center = float(dataset.outcome.mean())
    candidates = [center + 0.01, center - 0.01]
    report = SelectionEngine(base_config, mock_logger, adapter=ConstantAdapter()).execute(
        dataset, 'run_7', candidates=candidates
    )
    assert report.chosen.configuration == candidates[0]


class BrokenAdapter(ConstantAdapter):
    def fit(self, train, configuration):
        if configuration == 'bad':
            raise RuntimeError("cannot fit")
        return 0.0


def test_fold_fit_error_propagates_unwrapped(base_config, mock_logger, regression_dataset):
    base_config['outputs']['save_outputs'] = False
    engine = SelectionEngine(base_config, mock_logger, adapter=BrokenAdapter())

    with pytest.raises(FoldFitError) as exc_info:
        engine.execute(regression_dataset, 'run_8', candidates=['ok', 'bad'])

    assert exc_info.value.configuration == 'bad'
    assert exc_info.value.config_index == 1
    assert isinstance(exc_info.value.__cause__, RuntimeError)
