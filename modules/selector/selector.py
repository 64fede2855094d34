import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from modules.cv_driver.selection_table import SelectionRow, SelectionTable
from utils.exceptions import ConfigurationError
from utils import constants

# Absolute/relative slack when comparing cross-validated errors, so that
# boundaries exact in decimal (0.09 + 0.01 vs 0.10) are not lost to rounding.
REL_TOLERANCE = 1e-9
ABS_TOLERANCE = 1e-12


class SelectionPolicy(str, Enum):
    MIN_ERROR = constants.POLICY_MIN_ERROR
    ONE_SE = constants.POLICY_ONE_SE


@dataclass(frozen=True, eq=False)
class Selection:
    """Chosen configuration together with its cross-validated performance."""
    policy: SelectionPolicy
    configuration: Any
    position: int
    mean_error: float
    std_error: float
    threshold: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            'policy': self.policy.value,
            'configuration': self.configuration,
            'position': self.position,
            'mean_error': self.mean_error,
            'std_error': self.std_error,
            'threshold': self.threshold,
        }


def _at_most(value: float, bound: float) -> bool:
    return value <= bound or math.isclose(value, bound, rel_tol=REL_TOLERANCE, abs_tol=ABS_TOLERANCE)


class Selector:
    """
    Chooses a configuration from a SelectionTable.

    Simplicity is defined by the caller through ``complexity_key`` (ascending
    key = simpler; equal keys keep table order). When no key is given, the
    table order itself is the simplicity order, i.e. the first qualifying
    candidate in caller-supplied order wins.

    Policies:
        MIN_ERROR: lowest mean error; ties go to the simpler configuration.
        ONE_SE: simplest configuration whose mean error is within one
            standard error (taken at the minimum) of the minimum mean error.
    """

    def __init__(self, complexity_key: Optional[Callable[[Any], Any]] = None,
                 logger: Optional[logging.Logger] = None):
        self.complexity_key = complexity_key
        self.logger = logger or logging.getLogger(__name__)

    def order_by_simplicity(self, table: SelectionTable) -> List[SelectionRow]:
        rows = list(table)
        if self.complexity_key is None:
            return rows
        # sorted() is stable, so equal keys keep caller order
        return sorted(rows, key=lambda row: self.complexity_key(row.configuration))

    def select(self, table: SelectionTable, policy: SelectionPolicy) -> Selection:
        """
        Apply one policy to the table.

        Raises:
            ConfigurationError: If the table is empty or the policy is unknown.
        """
        if len(table) == 0:
            raise ConfigurationError("Cannot select from an empty selection table.")
        try:
            policy = SelectionPolicy(policy)
        except ValueError:
            raise ConfigurationError(
                f"Unknown selection policy '{policy}'. Expected one of {constants.SELECTION_POLICIES}."
            )

        ordered = self.order_by_simplicity(table)
        # First minimum in simplicity order, so ties resolve to the simpler row
        best = min(ordered, key=lambda row: row.mean_error)

        if policy is SelectionPolicy.MIN_ERROR:
            threshold = best.mean_error
            chosen = best
        else:
            threshold = best.mean_error + best.std_error
            chosen = next(row for row in ordered if _at_most(row.mean_error, threshold))

        self.logger.debug(
            f"{policy.value}: min mean {best.mean_error:.6g} (se {best.std_error:.6g}) at #{best.position}, "
            f"threshold {threshold:.6g}, chose #{chosen.position} ({chosen.configuration!r})"
        )
        return Selection(
            policy=policy,
            configuration=chosen.configuration,
            position=chosen.position,
            mean_error=chosen.mean_error,
            std_error=chosen.std_error,
            threshold=threshold,
        )

    def select_all(self, table: SelectionTable) -> Dict[SelectionPolicy, Selection]:
        """Both policies, so the caller can report either per run."""
        return {policy: self.select(table, policy) for policy in SelectionPolicy}
