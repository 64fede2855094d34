import inspect
from typing import Dict, Any, List
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor
from sklearn.linear_model import Ridge, Lasso, ElasticNet
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

class ModelFactory:
    """
    Factory for creating scikit-learn estimators by name with a unified interface.
    Penalized linear models can be wrapped in a standardizing pipeline so the
    penalty treats every feature on the same scale.
    """

    MODELS = {
        # Recursive partitioning (pruned via cost-complexity ccp_alpha)
        'DecisionTreeRegressor': DecisionTreeRegressor,
        'DecisionTreeClassifier': DecisionTreeClassifier,

        # Penalized regression
        'Ridge': Ridge,
        'Lasso': Lasso,
        'ElasticNet': ElasticNet,
    }

    @classmethod
    def create(cls, model_name: str, params: Dict[str, Any] = None, standardize: bool = False) -> Any:
        """
        Create and return an instantiated (unfitted) model.
        """
        if params is None:
            params = {}

        if model_name not in cls.MODELS:
            raise ValueError(f"Unknown model name: {model_name}. Available: {cls.get_available_models()}")

        model_class = cls.MODELS[model_name]
        model = model_class(**cls._filter_params(model_class, params))

        if standardize:
            return make_pipeline(StandardScaler(), model)
        return model

    @classmethod
    def get_available_models(cls) -> List[str]:
        """Return list of all supported model names."""
        return list(cls.MODELS.keys())

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        # Always allow **kwargs if the model supports it
        has_kwargs = any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values())

        if has_kwargs:
            return params

        return {k: v for k, v in params.items() if k in valid_keys}
