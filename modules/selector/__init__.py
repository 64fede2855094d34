"""
Selector Module
===============

Responsibility:
- Minimum cross-validated error selection.
- Breiman's one-standard-error rule over a caller-defined simplicity order.
"""

from .selector import Selector, Selection, SelectionPolicy

__all__ = ['Selector', 'Selection', 'SelectionPolicy']
