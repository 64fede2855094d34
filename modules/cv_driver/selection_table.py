from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from utils.exceptions import SelectorException


@dataclass(frozen=True, eq=False)
class SelectionRow:
    """Cross-validated summary for one candidate configuration."""
    position: int
    configuration: Any
    mean_error: float
    std_error: float
    fold_errors: Tuple[float, ...] = ()


class SelectionTable:
    """
    Immutable, ordered table of (configuration, mean error, standard error).

    Row order is the caller-supplied candidate order. The table is built once
    per run and only read afterwards (by the selector and by reporting).
    """

    def __init__(self, rows: Sequence[SelectionRow], n_folds: Optional[int] = None):
        self._rows = tuple(rows)
        self.n_folds = n_folds

    @classmethod
    def from_fold_errors(cls, configurations: Sequence[Any], errors: np.ndarray) -> "SelectionTable":
        """
        Aggregate a (n_configurations, k) matrix of per-fold errors.

        The standard error is the sample standard deviation (ddof=1) of the k
        fold errors divided by sqrt(k).
        """
        errors = np.asarray(errors, dtype=float)
        if errors.ndim != 2 or errors.shape[0] != len(configurations):
            raise SelectorException(
                f"Error matrix shape {errors.shape} does not match {len(configurations)} configurations."
            )
        n_folds = errors.shape[1]
        if n_folds < 2 or not np.isfinite(errors).all():
            raise SelectorException("Every configuration needs a finite error for each of at least 2 folds.")

        means = errors.mean(axis=1)
        std_errors = errors.std(axis=1, ddof=1) / np.sqrt(n_folds)
        rows = [
            SelectionRow(
                position=i,
                configuration=configuration,
                mean_error=float(means[i]),
                std_error=float(std_errors[i]),
                fold_errors=tuple(float(e) for e in errors[i]),
            )
            for i, configuration in enumerate(configurations)
        ]
        return cls(rows, n_folds=n_folds)

    @classmethod
    def from_summary(cls, configurations: Sequence[Any], means: Sequence[float],
                     std_errors: Sequence[float]) -> "SelectionTable":
        """Build a table from already-aggregated mean/standard-error pairs."""
        if not (len(configurations) == len(means) == len(std_errors)):
            raise SelectorException("Configurations, means and standard errors must have equal length.")
        rows = [
            SelectionRow(position=i, configuration=c, mean_error=float(m), std_error=float(s))
            for i, (c, m, s) in enumerate(zip(configurations, means, std_errors))
        ]
        return cls(rows)

    @property
    def rows(self) -> Tuple[SelectionRow, ...]:
        return self._rows

    @property
    def configurations(self) -> List[Any]:
        return [row.configuration for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[SelectionRow]:
        return iter(self._rows)

    def __getitem__(self, position: int) -> SelectionRow:
        return self._rows[position]

    def to_frame(self) -> pd.DataFrame:
        """Tabular copy for reporting: one row per configuration, one column per fold."""
        records = []
        for row in self._rows:
            record = {
                'position': row.position,
                'configuration': repr(row.configuration),
                'mean_error': row.mean_error,
                'std_error': row.std_error,
            }
            for fold_id, error in enumerate(row.fold_errors):
                record[f'fold_{fold_id}_error'] = error
            records.append(record)
        return pd.DataFrame(records)
