# utils/constants.py

# --- Top-Level Result Directories ---
# Sequentially numbered for proper sorting

CONFIG_DIR = "01_RunConfiguration"          # Run config, metadata, seeds
DATA_DIR = "02_LoadedData"                  # Column summary of the loaded dataset
SELECTION_DIR = "03_HyperparameterSelection"  # Selection table and chosen configuration

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
COLUMN_SUMMARY_FILE = "column_summary.parquet"
SELECTION_TABLE_FILE = "selection_table.parquet"
SELECTION_SUMMARY_FILE = "selection_summary.json"
LOG_FILE = "selector.log"

# --- Outcome Types ---
CONTINUOUS = "continuous"
CATEGORICAL = "categorical"
OUTCOME_TYPES = [CONTINUOUS, CATEGORICAL]

# --- Selection Policies ---
POLICY_MIN_ERROR = "min_error"
POLICY_ONE_SE = "one_se"
SELECTION_POLICIES = [POLICY_MIN_ERROR, POLICY_ONE_SE]

# --- Model Families ---
FAMILY_DECISION_TREE = "decision_tree"
FAMILY_RIDGE = "ridge"
FAMILY_LASSO = "lasso"
FAMILY_ELASTIC_NET = "elastic_net"
MODEL_FAMILIES = [FAMILY_DECISION_TREE, FAMILY_RIDGE, FAMILY_LASSO, FAMILY_ELASTIC_NET]
PENALIZED_FAMILIES = [FAMILY_RIDGE, FAMILY_LASSO, FAMILY_ELASTIC_NET]

# --- Limits ---
MAX_CANDIDATES = 1000
MIN_FOLDS = 2
