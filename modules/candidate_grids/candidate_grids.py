"""
Candidate grids for the tuned complexity parameter.

Every grid is returned simplest-first, the order of a tree's cp table and of
a penalized-regression lambda path:

- pruning thresholds come from the cost-complexity pruning path of a fully
  grown tree (largest threshold = root only);
- penalty paths start at the smallest penalty that shrinks every coefficient
  to zero and decrease log-linearly to ``min_ratio`` times that value.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from modules.data_manager.dataset import Dataset
from modules.model_factory import ModelFactory
from utils.exceptions import ConfigurationError
from utils import constants

logger = logging.getLogger(__name__)

# Ridge has no zeroing penalty; an almost-pure L2 mix stands in for it
RIDGE_L1_SURROGATE = 1e-3


def pruning_grid(dataset: Dataset, max_values: Optional[int] = None,
                 random_state: Optional[int] = None,
                 tree_params: Optional[Dict[str, Any]] = None) -> List[float]:
    """
    Effective ccp_alpha values of a full tree grown on the whole dataset.

    Args:
        dataset: Records to grow the reference tree on.
        max_values: Keep at most this many thresholds, spread evenly along the path.
        random_state: Seed for the reference tree.
        tree_params: Extra tree parameters (e.g. min_samples_leaf).

    Returns:
        Descending list of pruning thresholds.
    """
    model_name = 'DecisionTreeClassifier' if dataset.is_categorical else 'DecisionTreeRegressor'
    params = dict(tree_params or {})
    params.pop('ccp_alpha', None)
    if random_state is not None:
        params.setdefault('random_state', random_state)

    tree = ModelFactory.create(model_name, params)
    path = tree.cost_complexity_pruning_path(dataset.features, dataset.outcome)
    # Pruning path alphas can dip a hair below zero from float round-off
    alphas = np.unique(np.clip(path.ccp_alphas, 0.0, None))

    if max_values is not None and len(alphas) > max_values:
        keep = np.unique(np.round(np.linspace(0, len(alphas) - 1, max_values)).astype(int))
        alphas = alphas[keep]

    logger.debug(f"Pruning grid: {len(alphas)} thresholds in [{alphas.min():.4g}, {alphas.max():.4g}]")
    return [float(a) for a in alphas[::-1]]


def max_penalty(dataset: Dataset, l1_ratio: float) -> float:
    """
    Smallest penalty at which every coefficient is zero, for standardized
    features and a centered outcome (elastic-net objective scaling).
    """
    X = dataset.features.to_numpy(dtype=float)
    y = dataset.outcome.to_numpy(dtype=float)
    n = len(y)

    std = X.std(axis=0)
    std[std == 0] = 1.0
    X_std = (X - X.mean(axis=0)) / std
    y_centered = y - y.mean()

    value = np.max(np.abs(X_std.T @ y_centered)) / (n * max(l1_ratio, RIDGE_L1_SURROGATE))
    if not np.isfinite(value) or value <= 0:
        raise ConfigurationError(
            "Cannot derive a penalty path: the outcome is constant or uncorrelated with every feature."
        )
    return float(value)


def penalty_grid(dataset: Dataset, l1_ratio: float = 1.0, n_values: int = 100,
                 min_ratio: float = 1e-3, ridge: bool = False) -> List[float]:
    """
    Log-spaced, decreasing penalty path.

    Args:
        dataset: Continuous-outcome records.
        l1_ratio: Elastic-net mixing (1.0 = lasso).
        n_values: Number of penalties.
        min_ratio: Smallest penalty as a fraction of the largest.
        ridge: Rescale for scikit-learn's Ridge objective (RSS + alpha * ||w||^2).

    Returns:
        Descending list of penalties.
    """
    if dataset.is_categorical:
        raise ConfigurationError("Penalty paths are only defined for continuous outcomes.")
    if n_values < 1:
        raise ConfigurationError(f"n_values must be >= 1, got {n_values}.")
    if not 0.0 < min_ratio < 1.0:
        raise ConfigurationError(f"min_ratio must be in (0, 1), got {min_ratio}.")

    ratio = RIDGE_L1_SURROGATE if ridge else l1_ratio
    top = max_penalty(dataset, ratio)
    path = top * np.logspace(0.0, np.log10(min_ratio), n_values)
    if ridge:
        path = path * len(dataset)
    return [float(p) for p in path]


def elastic_net_grid(dataset: Dataset, l1_ratios: Sequence[float], n_values: int = 100,
                     min_ratio: float = 1e-3) -> List[Tuple[float, float]]:
    """(l1_ratio, alpha) pairs: one penalty path per mixing value."""
    if not l1_ratios:
        raise ConfigurationError("Elastic-net grid needs at least one l1_ratio.")
    grid = []
    for l1_ratio in l1_ratios:
        if not 0.0 < l1_ratio <= 1.0:
            raise ConfigurationError(f"l1_ratio must be in (0, 1], got {l1_ratio}.")
        grid.extend((float(l1_ratio), alpha) for alpha in penalty_grid(dataset, l1_ratio, n_values, min_ratio))
    return grid


def candidates_from_config(candidates_config: Dict[str, Any], family: str, dataset: Dataset,
                           random_state: Optional[int] = None,
                           fixed_params: Optional[Dict[str, Any]] = None) -> List[Any]:
    """
    Resolve the ``candidates`` config section into a concrete candidate list.

    Explicit ``values`` are used as given (pairs become tuples); otherwise the
    family's automatic grid is built from the data.
    """
    values = candidates_config.get('values')
    if values is not None:
        return [tuple(v) if isinstance(v, list) else v for v in values]

    n_values = candidates_config.get('n_values', 50)
    min_ratio = candidates_config.get('min_ratio', 1e-3)

    if family == constants.FAMILY_DECISION_TREE:
        return pruning_grid(dataset, max_values=n_values, random_state=random_state, tree_params=fixed_params)
    if family == constants.FAMILY_LASSO:
        return penalty_grid(dataset, 1.0, n_values, min_ratio)
    if family == constants.FAMILY_RIDGE:
        return penalty_grid(dataset, n_values=n_values, min_ratio=min_ratio, ridge=True)
    if family == constants.FAMILY_ELASTIC_NET:
        return elastic_net_grid(dataset, candidates_config.get('l1_ratios', [0.5]), n_values, min_ratio)

    raise ConfigurationError(f"No automatic candidate grid for model family '{family}'.")
