import pandas as pd
import logging
from pathlib import Path
from typing import Optional

from modules.data_manager.dataset import Dataset
from utils.exceptions import DataValidationError
from utils.error_handling import handle_engine_errors
from utils.file_io import read_dataframe, save_dataframe
from utils import constants

class DataManager:
    """
    Loads the tabular input file and turns it into a Dataset.

    The loader is deliberately thin: it reads the file, drops unwanted
    columns and incomplete rows, one-hot encodes categorical features so
    scikit-learn estimators can consume them, and decides the outcome type.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data_config = config.get('data', {})
        self.data: Optional[pd.DataFrame] = None
        self.base_dir = Path(self.config.get('outputs', {}).get('base_results_dir', 'results'))

    @handle_engine_errors("Data Loading")
    def execute(self) -> Dataset:
        """
        Load, clean and encode the configured data file.

        Returns:
            Dataset: Features, outcome and outcome type.

        Raises:
            DataValidationError: If the file is missing, empty or lacks the outcome column.
        """
        self.logger.info("Starting Data Manager execution...")

        self.load_data()
        self.validate_columns()
        self.drop_incomplete_rows()

        outcome_column = self.data_config['outcome_column']
        dataset = Dataset.from_frame(
            self.data,
            outcome_column,
            outcome_type=self.data_config.get('outcome_type'),
        )
        dataset = self._encode_features(dataset)

        self.logger.info(
            f"Dataset ready: {len(dataset)} records, {dataset.features.shape[1]} features, "
            f"{dataset.outcome_type} outcome '{outcome_column}'"
        )

        if self.config.get('outputs', {}).get('save_outputs', True):
            self._save_column_summary(dataset)

        return dataset

    def load_data(self) -> pd.DataFrame:
        """Read the data file named in config."""
        file_path = Path(self.data_config.get('file_path', ''))
        if not self.data_config.get('file_path') or not file_path.exists():
            raise DataValidationError(f"Data file not found: {file_path}")

        self.logger.info(f"Loading data from {file_path}")
        try:
            self.data = read_dataframe(file_path)
        except ValueError as e:
            raise DataValidationError(str(e)) from e

        if self.data.empty:
            raise DataValidationError("Loaded dataframe is empty.")
        return self.data

    def validate_columns(self) -> None:
        """Check the outcome column exists and drop configured columns."""
        outcome_column = self.data_config.get('outcome_column')
        if not outcome_column or outcome_column not in self.data.columns:
            raise DataValidationError(f"Outcome column '{outcome_column}' not found in data.")

        drop_cols = [c for c in self.data_config.get('drop_columns', []) if c != outcome_column]
        missing = [c for c in drop_cols if c not in self.data.columns]
        if missing:
            self.logger.warning(f"Configured drop columns not present in data: {missing}")
        self.data = self.data.drop(columns=drop_cols, errors='ignore')

    def drop_incomplete_rows(self) -> None:
        """Remove records with any missing value."""
        before = len(self.data)
        self.data = self.data.dropna().reset_index(drop=True)
        dropped = before - len(self.data)
        if dropped:
            self.logger.warning(f"Dropped {dropped} rows with missing values ({before} -> {len(self.data)}).")
        if self.data.empty:
            raise DataValidationError("No complete rows left after dropping missing values.")

    def _encode_features(self, dataset: Dataset) -> Dataset:
        categorical = dataset.features.select_dtypes(exclude='number').columns.tolist()
        if not categorical:
            return dataset
        self.logger.info(f"One-hot encoding categorical features: {categorical}")
        encoded = pd.get_dummies(dataset.features, columns=categorical, drop_first=True, dtype=float)
        return Dataset(features=encoded, outcome=dataset.outcome, outcome_type=dataset.outcome_type)

    def _save_column_summary(self, dataset: Dataset) -> None:
        summary = pd.DataFrame({
            'column': dataset.features.columns,
            'dtype': [str(t) for t in dataset.features.dtypes],
            'mean': dataset.features.mean().to_numpy(),
            'std': dataset.features.std().to_numpy(),
        })
        excel_copy = self.config.get('outputs', {}).get('save_excel_copy', False)
        save_dataframe(summary, self.base_dir / constants.DATA_DIR / constants.COLUMN_SUMMARY_FILE,
                       excel_copy=excel_copy, index=False)
