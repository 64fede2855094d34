from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from utils import constants
from utils.exceptions import DataValidationError


def infer_outcome_type(outcome: pd.Series) -> str:
    """
    Categorical for object, category, bool and string dtypes; continuous otherwise.
    """
    if (isinstance(outcome.dtype, pd.CategoricalDtype)
            or pd.api.types.is_bool_dtype(outcome)
            or pd.api.types.is_object_dtype(outcome)
            or pd.api.types.is_string_dtype(outcome)):
        return constants.CATEGORICAL
    return constants.CONTINUOUS


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Ordered records with named features and one designated outcome.

    Records are addressed by position (0..N-1); the original index labels
    are kept only for traceability.
    """
    features: pd.DataFrame
    outcome: pd.Series
    outcome_type: str

    def __post_init__(self):
        if len(self.features) != len(self.outcome):
            raise DataValidationError(
                f"Features ({len(self.features)} rows) and outcome ({len(self.outcome)} rows) differ in length."
            )
        if self.outcome_type not in constants.OUTCOME_TYPES:
            raise DataValidationError(
                f"Unknown outcome type '{self.outcome_type}'. Expected one of {constants.OUTCOME_TYPES}."
            )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, outcome_column: str,
                   outcome_type: Optional[str] = None) -> "Dataset":
        """Split a frame into features and outcome."""
        if outcome_column not in df.columns:
            raise DataValidationError(f"Outcome column '{outcome_column}' not found in data.")
        outcome = df[outcome_column]
        return cls(
            features=df.drop(columns=[outcome_column]),
            outcome=outcome,
            outcome_type=outcome_type or infer_outcome_type(outcome),
        )

    def __len__(self) -> int:
        return len(self.outcome)

    @property
    def is_categorical(self) -> bool:
        return self.outcome_type == constants.CATEGORICAL

    def subset(self, indices: Sequence[int]) -> "Dataset":
        """Positional subset; the result shares no mutable state with this dataset."""
        positions = np.asarray(indices, dtype=int)
        return Dataset(
            features=self.features.iloc[positions],
            outcome=self.outcome.iloc[positions],
            outcome_type=self.outcome_type,
        )

    def stratification_labels(self) -> Optional[np.ndarray]:
        """Outcome labels for categorical outcomes, None for continuous ones."""
        if not self.is_categorical:
            return None
        return self.outcome.to_numpy()
