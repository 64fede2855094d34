"""
Utility package setup.

Turns on pandas Copy-on-Write so that the per-fold record subsets handed to
model adapters never alias the caller's dataset.
"""

import pandas as pd

pd.options.mode.copy_on_write = True
