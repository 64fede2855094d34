import json
import os
import hashlib
import sys
import logging
import jsonschema
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from utils.exceptions import ConfigurationError
from utils import constants

class ConfigurationManager:
    """
    Manages configuration loading, validation, and access.
    Acts as the single source of truth for a selection run.

    Validation happens in three passes: JSON schema (structure), logical
    rules (bounds and cross-field consistency), and resource guardrails
    (candidate count).
    """

    DEFAULT_MAX_CANDIDATES = constants.MAX_CANDIDATES

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config and schema, validates, and propagates seeds.

        Returns:
            Dict[str, Any]: The fully validated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)
        return self.validate(config)

    def validate(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate an in-memory configuration and return it with internal seeds."""
        self.config = config

        # 1. Structural Validation (Schema)
        self._validate_schema()

        # 2. Logical Validation (Business Rules & Bounds)
        self._validate_logic()

        # 3. Resource Validation (Candidate count)
        self._validate_resources()

        # 4. Seed Propagation (Reproducibility)
        self._propagate_seeds()

        return self.config

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        """
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> Path:
        """
        Save configuration artifacts to the run directory for reproducibility.

        Saves:
        1. config_used.json: The exact config object in memory.
        2. config_hash.txt: SHA256 hash for versioning.
        3. run_metadata.json: Environment details.
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_dir / constants.CONFIG_USED_FILE, 'w') as f:
            json.dump(self.config, f, indent=2)

        config_hash = self.config_hash()
        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'config_hash': config_hash,
            'working_directory': os.getcwd()
        }
        with open(config_dir / constants.RUN_METADATA_FILE, 'w') as f:
            json.dump(metadata, f, indent=2)

        return config_dir

    def config_hash(self) -> str:
        config_str = json.dumps(self.config, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        if not self.schema:
            self.schema = self._load_json(self.schema_path)
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        """Comprehensive logical validation."""
        # --- Data Section ---
        data = self.config.get('data', {})
        for key in ['file_path', 'outcome_column']:
            if not data.get(key):
                raise ConfigurationError(f"Data '{key}' must be specified and non-empty.")
        outcome_type = data.get('outcome_type')
        if outcome_type is not None and outcome_type not in constants.OUTCOME_TYPES:
            raise ConfigurationError(f"data.outcome_type must be one of {constants.OUTCOME_TYPES}, got {outcome_type}")

        # --- Model Section ---
        model = self.config.get('model', {})
        family = model.get('family')
        if family not in constants.MODEL_FAMILIES:
            raise ConfigurationError(f"model.family must be one of {constants.MODEL_FAMILIES}, got {family}")
        if family in constants.PENALIZED_FAMILIES and outcome_type == constants.CATEGORICAL:
            raise ConfigurationError(f"Model family '{family}' requires a continuous outcome.")

        # --- Selection Section ---
        selection = self.config.get('selection', {})
        policy = selection.get('policy')
        if policy not in constants.SELECTION_POLICIES:
            raise ConfigurationError(
                f"selection.policy must be set explicitly to one of {constants.SELECTION_POLICIES}, got {policy}"
            )
        cv_folds = selection.get('cv_folds', 10)
        if cv_folds < constants.MIN_FOLDS:
            raise ConfigurationError(f"cv_folds must be >= {constants.MIN_FOLDS}, got {cv_folds}.")
        if selection.get('seed', 42) < 0:
            raise ConfigurationError("Selection seed must be non-negative.")

        candidates = selection.get('candidates', {})
        values = candidates.get('values')
        if values is not None:
            if len(values) == 0:
                raise ConfigurationError("selection.candidates.values cannot be empty.")
            if family == constants.FAMILY_ELASTIC_NET:
                for value in values:
                    if not isinstance(value, list) or len(value) != 2:
                        raise ConfigurationError(
                            f"Elastic-net candidates must be [l1_ratio, alpha] pairs, got {value}"
                        )
        else:
            if candidates.get('n_values', 50) < 1:
                raise ConfigurationError("selection.candidates.n_values must be >= 1.")
            min_ratio = candidates.get('min_ratio', 1e-3)
            if not (0 < min_ratio < 1):
                raise ConfigurationError(f"selection.candidates.min_ratio must be in (0, 1), got {min_ratio}")
            for l1_ratio in candidates.get('l1_ratios', []):
                if not (0 < l1_ratio <= 1):
                    raise ConfigurationError(f"l1_ratios entries must be in (0, 1], got {l1_ratio}")

        # --- Execution Section ---
        execution = self.config.get('execution', {})
        n_jobs = execution.get('n_jobs', 1)
        if n_jobs == 0 or n_jobs < -1:
            raise ConfigurationError(f"execution.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")
        timeout = execution.get('timeout_seconds')
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"execution.timeout_seconds must be > 0, got {timeout}")

    def _validate_resources(self) -> None:
        """
        Reject candidate sets large enough to make k-fold selection impractical.
        """
        resources = self.config.get('resources', {})
        max_candidates = resources.get('max_candidates', self.DEFAULT_MAX_CANDIDATES)

        candidates = self.config.get('selection', {}).get('candidates', {})
        if candidates.get('values') is not None:
            total = len(candidates['values'])
        else:
            total = candidates.get('n_values', 50)
            if self.config['model']['family'] == constants.FAMILY_ELASTIC_NET:
                total *= len(candidates.get('l1_ratios', [0.5]))

        if total > max_candidates:
            raise ConfigurationError(
                f"Candidate count ({total}) exceeds safety limit ({max_candidates}). "
                "Reduce the candidate grid or increase 'resources.max_candidates'."
            )

        cv_folds = self.config.get('selection', {}).get('cv_folds', 10)
        logging.info(f"Candidate grid validated: {total} candidates x {cv_folds} folds (Limit: {max_candidates})")

    def _propagate_seeds(self) -> None:
        """
        Derive component seeds from the master seed. The fold seed is handed
        to the partitioner explicitly; nothing seeds global random state.
        """
        master_seed = self.config.get('selection', {}).get('seed', 42)

        self.config['_internal_seeds'] = {
            'folds': master_seed,
            'model': master_seed + 2000,
        }
        logging.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")
