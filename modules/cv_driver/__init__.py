"""
Cross-Validation Driver Module
==============================

Responsibility:
- Fit/evaluate fan-out over every (configuration, fold) cell via joblib.
- Order-independent assembly of the immutable selection table.
- Fold-fit failures and whole-run timeouts surfaced with full context.
"""

from .selection_table import SelectionTable, SelectionRow
from .cv_driver import CrossValidationDriver, CellOutcome, evaluate_cell

__all__ = ['CrossValidationDriver', 'SelectionTable', 'SelectionRow', 'CellOutcome', 'evaluate_cell']
