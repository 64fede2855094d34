"""
Fold partitioning for k-fold cross-validation.

The assignment is computed once per selection run and shared read-only by
every fold fit. Fold ids are laid out round-robin so that fold sizes differ
by at most one record; with outcome labels the round-robin runs over the
records grouped by class, which also bounds every class's count per fold to
floor(count/k) or ceil(count/k).
"""
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np
from sklearn.model_selection import PredefinedSplit

from utils.exceptions import ConfigurationError
from utils import constants


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """Read-only mapping from record position to fold id in [0, n_folds)."""
    folds: np.ndarray
    n_folds: int
    seed: int
    stratified: bool

    def __post_init__(self):
        folds = np.array(self.folds, dtype=int, copy=True)
        folds.setflags(write=False)
        object.__setattr__(self, 'folds', folds)

    def __len__(self) -> int:
        return len(self.folds)

    def fold_of(self, index: int) -> int:
        return int(self.folds[index])

    def test_indices(self, fold_id: int) -> np.ndarray:
        return np.flatnonzero(self.folds == fold_id)

    def train_indices(self, fold_id: int) -> np.ndarray:
        return np.flatnonzero(self.folds != fold_id)

    def fold_sizes(self) -> np.ndarray:
        return np.bincount(self.folds, minlength=self.n_folds)

    def iter_splits(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """Yield (train_idx, test_idx) per fold, in fold-id order."""
        for fold_id in range(self.n_folds):
            yield self.train_indices(fold_id), self.test_indices(fold_id)

    def to_cv(self) -> PredefinedSplit:
        """The same folds as a scikit-learn splitter (e.g. for GridSearchCV)."""
        return PredefinedSplit(test_fold=self.folds)


class FoldPartitioner:
    """
    Splits N records into k folds, stratified by class when labels are given.

    Args:
        n_folds: Number of folds k (2 <= k <= N).
        seed: Seed for the partitioner's own random generator. No global
            random state is read or written.
        logger: Optional logger.
    """

    def __init__(self, n_folds: int, seed: int, logger: Optional[logging.Logger] = None):
        if n_folds < constants.MIN_FOLDS:
            raise ConfigurationError(f"Fold count must be >= {constants.MIN_FOLDS}, got {n_folds}.")
        self.n_folds = int(n_folds)
        self.seed = int(seed)
        self.logger = logger or logging.getLogger(__name__)

    def partition(self, n_records: int, labels: Optional[Sequence] = None) -> FoldAssignment:
        """
        Assign every record position to exactly one fold.

        Args:
            n_records: Dataset size N.
            labels: Optional outcome labels (length N) to stratify on.

        Returns:
            FoldAssignment

        Raises:
            ConfigurationError: If N < 1, k > N, or labels have the wrong length.
        """
        if n_records < 1:
            raise ConfigurationError(f"Cannot partition an empty dataset (N={n_records}).")
        if self.n_folds > n_records:
            raise ConfigurationError(
                f"Fold count ({self.n_folds}) cannot exceed the number of records ({n_records})."
            )

        rng = np.random.default_rng(self.seed)

        if labels is None:
            order = rng.permutation(n_records)
            stratified = False
        else:
            labels = np.asarray(labels)
            if len(labels) != n_records:
                raise ConfigurationError(
                    f"Stratification labels have length {len(labels)}, expected {n_records}."
                )
            order = self._class_grouped_order(labels, rng)
            stratified = True

        folds = np.empty(n_records, dtype=int)
        folds[order] = np.arange(n_records) % self.n_folds

        assignment = FoldAssignment(folds=folds, n_folds=self.n_folds, seed=self.seed, stratified=stratified)
        self.logger.debug(
            f"Partitioned {n_records} records into {self.n_folds} folds "
            f"(stratified={stratified}, sizes={assignment.fold_sizes().tolist()})"
        )
        return assignment

    @staticmethod
    def _class_grouped_order(labels: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """Record positions grouped by class (sorted), shuffled within each class."""
        _, codes = np.unique(labels, return_inverse=True)
        codes = codes.ravel()
        groups = []
        for code in range(codes.max() + 1):
            members = np.flatnonzero(codes == code)
            groups.append(rng.permutation(members))
        return np.concatenate(groups)
