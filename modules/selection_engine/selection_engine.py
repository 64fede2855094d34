import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from modules.base.base_engine import BaseEngine
from modules.candidate_grids import candidates_from_config
from modules.cv_driver import CrossValidationDriver, SelectionTable
from modules.data_manager.dataset import Dataset
from modules.fold_partitioner import FoldAssignment, FoldPartitioner
from modules.model_adapters import ModelAdapter, SklearnModelAdapter
from modules.selector import Selection, SelectionPolicy, Selector
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError
from utils.file_io import save_dataframe, save_json
from utils import constants


@dataclass(frozen=True, eq=False)
class SelectionReport:
    """Everything a reporting collaborator needs from one selection run."""
    run_id: str
    family: str
    policy: SelectionPolicy
    table: SelectionTable
    assignment: FoldAssignment
    selections: Dict[SelectionPolicy, Selection]
    elapsed_seconds: float

    @property
    def chosen(self) -> Selection:
        return self.selections[self.policy]

    def summary(self) -> Dict[str, Any]:
        return {
            'run_id': self.run_id,
            'model_family': self.family,
            'policy': self.policy.value,
            'chosen': self.chosen.as_dict(),
            'selections': {p.value: s.as_dict() for p, s in self.selections.items()},
            'n_candidates': len(self.table),
            'n_folds': self.assignment.n_folds,
            'fold_sizes': self.assignment.fold_sizes().tolist(),
            'stratified': self.assignment.stratified,
            'fold_seed': self.assignment.seed,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
        }


class SelectionEngine(BaseEngine):
    """
    Runs one cross-validated hyperparameter selection.

    Workflow:
    1. Fold assignment (seeded, stratified for categorical outcomes).
    2. Candidate configurations (explicit list or automatic grid).
    3. Cross-validation of every (configuration, fold) cell.
    4. Minimum-error and one-standard-error selections.
    5. Selection table and summary written to the engine directory.
    """

    def __init__(self, config: dict, logger: logging.Logger, adapter: Optional[ModelAdapter] = None):
        super().__init__(config, logger)
        self.selection_config = config.get('selection', {})
        self.model_config = config.get('model', {})
        self.execution_config = config.get('execution', {})
        self.seeds = config.get('_internal_seeds', {})
        self.adapter = adapter

    def _get_engine_directory_name(self) -> str:
        return constants.SELECTION_DIR

    @handle_engine_errors("Hyperparameter Selection")
    def execute(self, dataset: Dataset, run_id: str, candidates: Optional[List[Any]] = None) -> SelectionReport:
        """
        Execute the selection workflow.

        Args:
            dataset: Records to cross-validate on.
            run_id: Unique identifier for this execution.
            candidates: Optional explicit candidates, overriding the config.

        Returns:
            SelectionReport
        """
        self.logger.info("Starting Selection Engine execution...")
        start = time.monotonic()

        policy = self._resolve_policy()
        family = self.model_config.get('family', 'custom')
        adapter = self.adapter or self._build_adapter(dataset)

        # 1. Folds
        assignment = self.partition(dataset)

        # 2. Candidates
        if candidates is None:
            candidates = candidates_from_config(
                self.selection_config.get('candidates', {}),
                family,
                dataset,
                random_state=self.seeds.get('model'),
                fixed_params=self.model_config.get('params', {}),
            )
        self.logger.info(f"{len(candidates)} candidate configurations for '{family}'.")

        # 3. Cross-validation
        driver = CrossValidationDriver(
            adapter,
            n_jobs=self.execution_config.get('n_jobs', 1),
            backend=self.execution_config.get('backend'),
            timeout=self.execution_config.get('timeout_seconds'),
            logger=self.logger,
        )
        table = driver.run(dataset, assignment, candidates)

        # 4. Selection
        selector = Selector(complexity_key=self._complexity_key(adapter), logger=self.logger)
        selections = selector.select_all(table)

        report = SelectionReport(
            run_id=run_id,
            family=family,
            policy=policy,
            table=table,
            assignment=assignment,
            selections=selections,
            elapsed_seconds=time.monotonic() - start,
        )
        self._log_summary(report)

        # 5. Outputs
        if self.save_outputs:
            self._save_outputs(report)

        return report

    def partition(self, dataset: Dataset) -> FoldAssignment:
        """Seeded fold assignment, stratified when the outcome is categorical."""
        n_folds = self.selection_config.get('cv_folds', 10)
        seed = self.seeds.get('folds', self.selection_config.get('seed', 42))
        labels = None
        if self.selection_config.get('stratify', True):
            labels = dataset.stratification_labels()
        partitioner = FoldPartitioner(n_folds, seed, logger=self.logger)
        return partitioner.partition(len(dataset), labels=labels)

    def _resolve_policy(self) -> SelectionPolicy:
        policy = self.selection_config.get('policy')
        if policy is None:
            raise ConfigurationError(
                f"selection.policy must be set explicitly to one of {constants.SELECTION_POLICIES}."
            )
        try:
            return SelectionPolicy(policy)
        except ValueError:
            raise ConfigurationError(
                f"Unknown selection policy '{policy}'. Expected one of {constants.SELECTION_POLICIES}."
            )

    def _build_adapter(self, dataset: Dataset) -> SklearnModelAdapter:
        return SklearnModelAdapter(
            family=self.model_config.get('family', constants.FAMILY_DECISION_TREE),
            outcome_type=dataset.outcome_type,
            fixed_params=self.model_config.get('params', {}),
            random_state=self.seeds.get('model'),
            standardize=self.model_config.get('standardize'),
        )

    def _complexity_key(self, adapter: ModelAdapter):
        if self.selection_config.get('use_candidate_order', False):
            return None
        if type(adapter).complexity_key is ModelAdapter.complexity_key:
            # Adapter defines no ordering: candidate order decides
            return None
        return adapter.complexity_key

    def _log_summary(self, report: SelectionReport) -> None:
        for policy, selection in report.selections.items():
            marker = " (chosen)" if policy is report.policy else ""
            self.logger.info(
                f"{policy.value}{marker}: {selection.configuration!r} "
                f"mean error {selection.mean_error:.6g} +/- {selection.std_error:.6g} "
                f"(threshold {selection.threshold:.6g})"
            )

    def _save_outputs(self, report: SelectionReport) -> None:
        excel_copy = self.outputs_config.get('save_excel_copy', False)
        table_path = save_dataframe(report.table.to_frame(), self.output_dir / constants.SELECTION_TABLE_FILE,
                                    excel_copy=excel_copy, index=False)
        summary_path = save_json(report.summary(), self.output_dir / constants.SELECTION_SUMMARY_FILE)
        self.logger.info(f"Selection table saved to {table_path}; summary saved to {summary_path}")
