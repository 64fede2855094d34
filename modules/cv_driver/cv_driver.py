"""
Cross-validation driver.

Runs every (configuration, fold) cell through the injected model adapter
and aggregates the per-fold errors into a SelectionTable. Cells are
independent and fanned out with joblib; the table is assembled by
(configuration position, fold id), so its content does not depend on
execution order or on the number of workers.
"""
import concurrent.futures
import logging
import math
import multiprocessing
import time
import traceback
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed
from joblib.externals.loky import get_reusable_executor

from modules.cv_driver.selection_table import SelectionTable
from modules.data_manager.dataset import Dataset
from modules.fold_partitioner import FoldAssignment
from modules.model_adapters.base_adapter import ModelAdapter
from utils.exceptions import ConfigurationError, FoldFitError, SelectionTimeoutError, SelectorException


@dataclass
class CellOutcome:
    """Result of one (configuration, fold) fit/evaluate."""
    config_index: int
    fold_id: int
    error: float = math.nan
    failure: Optional[BaseException] = None
    traceback_text: str = ""


def evaluate_cell(adapter: ModelAdapter, dataset: Dataset, train_idx: np.ndarray, test_idx: np.ndarray,
                  config_index: int, configuration: Any, fold_id: int) -> CellOutcome:
    """Fit on the training positions and score on the held-out fold."""
    try:
        model = adapter.fit(dataset.subset(train_idx), configuration)
        error = adapter.evaluate(model, dataset.subset(test_idx))
        try:
            error = float(error)
        except (TypeError, ValueError):
            raise ValueError(f"evaluate() returned a non-numeric error: {error!r}")
        if not math.isfinite(error):
            raise ValueError(f"evaluate() returned a non-finite error: {error!r}")
        return CellOutcome(config_index=config_index, fold_id=fold_id, error=error)
    except Exception as exc:
        # Re-raised as FoldFitError by the driver, with this cell's context
        return CellOutcome(
            config_index=config_index,
            fold_id=fold_id,
            failure=exc,
            traceback_text=traceback.format_exc(),
        )


class CrossValidationDriver:
    """
    Collects k held-out errors for every candidate configuration.

    Args:
        adapter: Fit/evaluate capability for the model family in use.
        n_jobs: joblib worker count (1 = sequential, -1 = all cores).
        backend: joblib backend ('loky' processes or 'threading').
        timeout: Wall-clock budget in seconds for the whole run, or None. With
            n_jobs=1 a budget moves the fits into one worker process, so the
            adapter and dataset must be picklable.
        logger: Logger instance.
    """

    def __init__(self, adapter: ModelAdapter, n_jobs: int = 1, backend: Optional[str] = None,
                 timeout: Optional[float] = None, logger: Optional[logging.Logger] = None,
                 progress_every: int = 50):
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"Timeout must be > 0 seconds when provided, got {timeout}.")
        self.adapter = adapter
        self.n_jobs = n_jobs
        self.backend = backend
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.progress_every = max(1, progress_every)

    def run(self, dataset: Dataset, assignment: FoldAssignment, candidates: Sequence[Any]) -> SelectionTable:
        """
        Cross-validate every candidate configuration.

        Returns:
            SelectionTable: One row per candidate, in candidate order.

        Raises:
            ConfigurationError: Empty candidate set or assignment/dataset mismatch.
            FoldFitError: A cell failed; carries configuration and fold id.
            SelectionTimeoutError: The run exceeded its budget.
        """
        candidates = list(candidates)
        if not candidates:
            raise ConfigurationError("Candidate configuration set is empty.")
        if len(assignment) != len(dataset):
            raise ConfigurationError(
                f"Fold assignment covers {len(assignment)} records but dataset has {len(dataset)}."
            )

        n_folds = assignment.n_folds
        splits = list(assignment.iter_splits())
        total_cells = len(candidates) * n_folds
        errors = np.full((len(candidates), n_folds), np.nan)

        self.logger.info(
            f"Cross-validating {len(candidates)} configurations x {n_folds} folds "
            f"({total_cells} fits, n_jobs={self.n_jobs})"
        )

        cells = [
            (self.adapter, dataset, splits[fold_id][0], splits[fold_id][1], config_index, configuration, fold_id)
            for config_index, configuration in enumerate(candidates)
            for fold_id in range(n_folds)
        ]

        start = time.monotonic()
        if self.timeout is not None and self.n_jobs == 1:
            # joblib runs n_jobs=1 inline and ignores its timeout
            outcomes = self._run_in_single_worker(cells, start)
        else:
            parallel = Parallel(n_jobs=self.n_jobs, backend=self.backend, timeout=self.timeout,
                                return_as="generator")
            outcomes = parallel(delayed(evaluate_cell)(*cell) for cell in cells)

        completed = 0
        try:
            for outcome in outcomes:
                if outcome.failure is not None:
                    configuration = candidates[outcome.config_index]
                    self.logger.error(
                        f"Fold fit failed: configuration #{outcome.config_index} ({configuration!r}), "
                        f"fold {outcome.fold_id}\n{outcome.traceback_text}"
                    )
                    raise FoldFitError(configuration, outcome.config_index, outcome.fold_id,
                                       outcome.failure) from outcome.failure

                errors[outcome.config_index, outcome.fold_id] = outcome.error
                completed += 1

                if self.timeout is not None and time.monotonic() - start > self.timeout:
                    raise SelectionTimeoutError(self.timeout, completed, total_cells)
                if completed % self.progress_every == 0:
                    self.logger.info(f"Processed {completed}/{total_cells} fold fits...")
        except (TimeoutError, concurrent.futures.TimeoutError, multiprocessing.TimeoutError) as e:
            self.logger.error(f"Selection run timed out after {completed}/{total_cells} fold fits.")
            raise SelectionTimeoutError(self.timeout, completed, total_cells) from e
        finally:
            outcomes.close()

        if completed != total_cells or np.isnan(errors).any():
            raise SelectorException(
                f"Incomplete selection table: {completed} of {total_cells} fold errors collected."
            )

        table = SelectionTable.from_fold_errors(candidates, errors)
        self.logger.info(f"Cross-validation finished in {time.monotonic() - start:.2f}s.")
        return table

    def _run_in_single_worker(self, cells, start: float):
        """
        Evaluate cells one at a time in a single worker process.

        Waiting on each result with the remaining budget lets the timeout
        interrupt a fit that is still running. On timeout or early exit the
        worker is killed along with every queued cell.
        """
        executor = get_reusable_executor(max_workers=1)
        futures = [executor.submit(evaluate_cell, *cell) for cell in cells]
        finished = False
        try:
            for future in futures:
                remaining = self.timeout - (time.monotonic() - start)
                yield future.result(timeout=max(remaining, 0.0))
            finished = True
        finally:
            if not finished:
                for future in futures:
                    future.cancel()
                executor.shutdown(wait=False, kill_workers=True)
