"""
Fold Partitioner Module
=======================

Responsibility:
- Seeded, reproducible k-fold assignment of record positions.
- Class-stratified assignment for categorical outcomes.
- Exposing the folds as index splits or a scikit-learn PredefinedSplit.
"""

from .fold_partitioner import FoldPartitioner, FoldAssignment

__all__ = ['FoldPartitioner', 'FoldAssignment']
