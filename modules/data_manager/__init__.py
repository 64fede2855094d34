"""
Data Manager Module
===================

Responsibility:
- Loading of tabular data files (CSV, Excel, Parquet).
- Outcome column checks and removal of incomplete records.
- One-hot encoding of categorical features.
- The immutable Dataset consumed by the selection core.
"""

from .dataset import Dataset, infer_outcome_type
from .data_manager import DataManager

__all__ = ['Dataset', 'DataManager', 'infer_outcome_type']
