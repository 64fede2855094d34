"""
Candidate Grids Module
======================

Responsibility:
- Pruning-threshold grids from a tree's cost-complexity path.
- Lasso, ridge and elastic-net penalty paths.
- Resolving the candidates config section into a candidate list.
"""

from .candidate_grids import (
    pruning_grid,
    penalty_grid,
    elastic_net_grid,
    max_penalty,
    candidates_from_config,
)

__all__ = ['pruning_grid', 'penalty_grid', 'elastic_net_grid', 'max_penalty', 'candidates_from_config']
