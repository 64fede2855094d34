import abc
from typing import Any

from modules.data_manager.dataset import Dataset


class ModelAdapter(abc.ABC):
    """
    Capability interface injected into the cross-validation driver.

    Implementations wrap one model family. The driver only ever calls
    ``fit`` on training records and ``evaluate`` on held-out records; it
    never inspects the model object.
    """

    @abc.abstractmethod
    def fit(self, train: Dataset, configuration: Any) -> Any:
        """Fit a model for one candidate configuration on the training records."""
        raise NotImplementedError

    @abc.abstractmethod
    def evaluate(self, model: Any, held_out: Dataset) -> float:
        """Scalar error of a fitted model on held-out records (lower is better)."""
        raise NotImplementedError

    def complexity_key(self, configuration: Any) -> Any:
        """
        Sort key ordering configurations from simplest to most complex.

        The default returns None, meaning "no ordering": selection then falls
        back to the caller-supplied candidate order.
        """
        return None
