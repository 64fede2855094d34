"""
Model Adapters Module
=====================

Responsibility:
- The fit/evaluate capability interface used by the cross-validation driver.
- scikit-learn adapters for pruned decision trees and ridge, lasso and
  elastic-net regression, including their simplicity ordering.
"""

from .base_adapter import ModelAdapter
from .sklearn_adapter import SklearnModelAdapter, FAMILY_SPECS

__all__ = ['ModelAdapter', 'SklearnModelAdapter', 'FAMILY_SPECS']
