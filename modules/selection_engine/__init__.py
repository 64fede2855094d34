"""
Selection Engine
================

Responsibility:
- End-to-end cross-validated hyperparameter selection for one model family.
- Wiring of fold partitioner, candidate grid, driver and selector from config.
- Persistence of the selection table and chosen configuration (no models).
"""

from .selection_engine import SelectionEngine, SelectionReport

__all__ = ['SelectionEngine', 'SelectionReport']
