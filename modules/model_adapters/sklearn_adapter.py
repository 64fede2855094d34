import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
from sklearn.metrics import mean_squared_error, zero_one_loss

from modules.data_manager.dataset import Dataset
from modules.model_adapters.base_adapter import ModelAdapter
from modules.model_factory import ModelFactory
from utils.exceptions import ConfigurationError
from utils import constants


# family -> (estimator per outcome type, tuned parameter names)
FAMILY_SPECS = {
    constants.FAMILY_DECISION_TREE: (
        {constants.CONTINUOUS: 'DecisionTreeRegressor', constants.CATEGORICAL: 'DecisionTreeClassifier'},
        ('ccp_alpha',),
    ),
    constants.FAMILY_RIDGE: ({constants.CONTINUOUS: 'Ridge'}, ('alpha',)),
    constants.FAMILY_LASSO: ({constants.CONTINUOUS: 'Lasso'}, ('alpha',)),
    constants.FAMILY_ELASTIC_NET: ({constants.CONTINUOUS: 'ElasticNet'}, ('l1_ratio', 'alpha')),
}


class SklearnModelAdapter(ModelAdapter):
    """
    Model adapter for the scikit-learn families used in the tutorials.

    - ``decision_tree``: configuration is the cost-complexity pruning threshold.
    - ``ridge`` / ``lasso``: configuration is the penalty weight.
    - ``elastic_net``: configuration is a ``(l1_ratio, alpha)`` pair.

    Errors are mean squared error for continuous outcomes and the
    misclassification rate for categorical ones.
    """

    def __init__(self, family: str, outcome_type: str,
                 fixed_params: Optional[Dict[str, Any]] = None,
                 random_state: Optional[int] = None,
                 standardize: Optional[bool] = None):
        if family not in FAMILY_SPECS:
            raise ConfigurationError(f"Unknown model family '{family}'. Available: {list(FAMILY_SPECS)}")
        estimators, param_names = FAMILY_SPECS[family]
        if outcome_type not in estimators:
            raise ConfigurationError(
                f"Model family '{family}' does not support {outcome_type} outcomes."
            )

        self.family = family
        self.outcome_type = outcome_type
        self.model_name = estimators[outcome_type]
        self.param_names = param_names
        self.fixed_params = dict(fixed_params or {})
        self.random_state = random_state
        # Penalized fits are scale-sensitive; trees are not
        self.standardize = (family in constants.PENALIZED_FAMILIES) if standardize is None else standardize
        self.logger = logging.getLogger(__name__)

    def configuration_params(self, configuration: Any) -> Dict[str, Any]:
        """Map an opaque configuration onto estimator keyword arguments."""
        values = self._as_tuple(configuration)
        if len(values) != len(self.param_names):
            raise ConfigurationError(
                f"Configuration {configuration!r} for '{self.family}' must provide "
                f"{len(self.param_names)} value(s): {self.param_names}"
            )
        return {name: float(value) for name, value in zip(self.param_names, values)}

    def build(self, configuration: Any):
        params = {**self.fixed_params, **self.configuration_params(configuration)}
        if self.random_state is not None:
            params.setdefault('random_state', self.random_state)
        return ModelFactory.create(self.model_name, params, standardize=self.standardize)

    def fit(self, train: Dataset, configuration: Any) -> Any:
        model = self.build(configuration)
        model.fit(train.features, train.outcome)
        return model

    def evaluate(self, model: Any, held_out: Dataset) -> float:
        predictions = model.predict(held_out.features)
        if self.outcome_type == constants.CATEGORICAL:
            return float(zero_one_loss(held_out.outcome, predictions))
        return float(mean_squared_error(held_out.outcome, predictions))

    def complexity_key(self, configuration: Any) -> Tuple[float, ...]:
        """
        Larger pruning threshold or penalty means a simpler model, so the key
        negates it.

        Elastic-net paths for different mixing values are scaled by
        1/l1_ratio, so raw alpha is not comparable across them. They are
        ranked by the L1 weight alpha * l1_ratio instead, which is the same
        for every path at its all-zero penalty. Equal L1 weights prefer the
        larger alpha (more ridge shrinkage).
        """
        params = self.configuration_params(configuration)
        if self.family == constants.FAMILY_DECISION_TREE:
            return (-params['ccp_alpha'],)
        if self.family == constants.FAMILY_ELASTIC_NET:
            return (-params['alpha'] * params['l1_ratio'], -params['alpha'])
        return (-params['alpha'],)

    @staticmethod
    def _as_tuple(configuration: Any) -> Tuple:
        if isinstance(configuration, (list, tuple, np.ndarray)):
            return tuple(configuration)
        return (configuration,)
