"""
Custom exception hierarchy for the Cross-Validated Hyperparameter Selector.
"""

class SelectorException(Exception):
    """Base exception for all system errors."""
    pass

class ConfigurationError(SelectorException):
    """Configuration validation failed (fold count, candidates, config file)."""
    pass

class DataValidationError(SelectorException):
    """Data validation failed."""
    pass

class FoldFitError(SelectorException):
    """
    Fitting or evaluating one (configuration, fold) cell failed.

    The underlying exception is chained as ``__cause__`` by the driver.
    """

    def __init__(self, configuration, config_index: int, fold_id: int, cause: BaseException):
        self.configuration = configuration
        self.config_index = config_index
        self.fold_id = fold_id
        self.cause = cause
        super().__init__(
            f"Fold fit failed for configuration #{config_index} ({configuration!r}) "
            f"on fold {fold_id}: {type(cause).__name__}: {cause}"
        )

class SelectionTimeoutError(SelectorException):
    """Selection run exceeded its time budget; no partial table is returned."""

    def __init__(self, budget_seconds: float, completed_cells: int, total_cells: int):
        self.budget_seconds = budget_seconds
        self.completed_cells = completed_cells
        self.total_cells = total_cells
        super().__init__(
            f"Selection run exceeded {budget_seconds:g}s budget "
            f"({completed_cells}/{total_cells} cells completed); run is incomplete."
        )
