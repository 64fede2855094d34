import pytest

from modules.cv_driver import SelectionTable
from modules.selector import Selector, Selection, SelectionPolicy
from utils.exceptions import ConfigurationError

SIMPLICITY = {'A': 0, 'B': 1, 'C': 2}


@pytest.fixture
def abc_table():
    # A: 0.10 +/- 0.02, B: 0.09 +/- 0.01, C: 0.15 +/- 0.01
    return SelectionTable.from_summary(['A', 'B', 'C'], [0.10, 0.09, 0.15], [0.02, 0.01, 0.01])


def test_one_se_rule_prefers_simplest_within_one_se(abc_table):
    """Minimum is B (0.09); A's 0.10 <= 0.09 + 0.01, and A is simpler, so A is chosen."""
    selector = Selector(complexity_key=SIMPLICITY.get)
    selection = selector.select(abc_table, SelectionPolicy.ONE_SE)

    assert selection.configuration == 'A'
    assert selection.position == 0
    assert selection.mean_error == 0.10
    assert selection.std_error == 0.02
    assert selection.threshold == pytest.approx(0.10)


def test_min_error_rule_picks_raw_minimum(abc_table):
    selector = Selector(complexity_key=SIMPLICITY.get)
    selection = selector.select(abc_table, SelectionPolicy.MIN_ERROR)

    assert selection.configuration == 'B'
    assert selection.mean_error == 0.09
    assert selection.threshold == 0.09


def test_policy_accepts_plain_strings(abc_table):
    selector = Selector(complexity_key=SIMPLICITY.get)
    assert selector.select(abc_table, "one_se").configuration == 'A'
    assert selector.select(abc_table, "min_error").configuration == 'B'


def test_complexity_order_comes_from_caller_not_table_order(abc_table):
    # C simplest, then B, then A: C (0.15) misses the 0.10 threshold, B qualifies first
    reversed_order = {'C': 0, 'B': 1, 'A': 2}
    selection = Selector(complexity_key=reversed_order.get).select(abc_table, SelectionPolicy.ONE_SE)
    assert selection.configuration == 'B'


def test_without_ordering_first_qualifying_candidate_in_caller_order_wins():
    table = SelectionTable.from_summary(['x', 'y', 'z'], [0.30, 0.20, 0.21], [0.05, 0.02, 0.01])
    # threshold 0.22: y and z qualify, x does not; y comes first in caller order
    selection = Selector().select(table, SelectionPolicy.ONE_SE)
    assert selection.configuration == 'y'

    table = SelectionTable.from_summary(['z', 'y', 'x'], [0.21, 0.20, 0.30], [0.01, 0.02, 0.05])
    assert Selector().select(table, SelectionPolicy.ONE_SE).configuration == 'z'


def test_min_error_tie_goes_to_simpler_configuration():
    table = SelectionTable.from_summary([1.0, 2.0, 3.0], [0.5, 0.2, 0.2], [0.1, 0.1, 0.1])
    # Larger value is simpler here
    selection = Selector(complexity_key=lambda c: -c).select(table, SelectionPolicy.MIN_ERROR)
    assert selection.configuration == 3.0


def test_equal_complexity_keys_keep_caller_order():
    table = SelectionTable.from_summary(['p', 'q'], [0.2, 0.2], [0.0, 0.0])
    selection = Selector(complexity_key=lambda c: 0).select(table, SelectionPolicy.MIN_ERROR)
    assert selection.configuration == 'p'


def test_one_se_threshold_uses_standard_error_at_minimum():
    # Large SE elsewhere must not widen the threshold
    table = SelectionTable.from_summary(['s', 'm', 'l'], [0.40, 0.30, 0.10], [1.00, 0.50, 0.01])
    selection = Selector(complexity_key={'s': 0, 'm': 1, 'l': 2}.get).select(table, SelectionPolicy.ONE_SE)
    assert selection.configuration == 'l'
    assert selection.threshold == pytest.approx(0.11)


def test_select_all_returns_both_policies(abc_table):
    selections = Selector(complexity_key=SIMPLICITY.get).select_all(abc_table)

    assert set(selections) == {SelectionPolicy.MIN_ERROR, SelectionPolicy.ONE_SE}
    assert all(isinstance(s, Selection) for s in selections.values())
    assert selections[SelectionPolicy.ONE_SE].configuration == 'A'
    assert selections[SelectionPolicy.MIN_ERROR].configuration == 'B'


def test_selection_as_dict(abc_table):
    payload = Selector(complexity_key=SIMPLICITY.get).select(abc_table, SelectionPolicy.ONE_SE).as_dict()
    assert payload['policy'] == 'one_se'
    assert payload['configuration'] == 'A'
    assert set(payload) == {'policy', 'configuration', 'position', 'mean_error', 'std_error', 'threshold'}


def test_empty_table_is_rejected():
    with pytest.raises(ConfigurationError):
        Selector().select(SelectionTable([]), SelectionPolicy.MIN_ERROR)


def test_unknown_policy_is_rejected(abc_table):
    with pytest.raises(ConfigurationError, match="policy"):
        Selector().select(abc_table, "lambda_1se")


def test_min_error_takes_the_exact_minimum():
    # The simpler row sits a hair above the minimum; only one-SE may tolerate it
    table = SelectionTable.from_summary(['simple', 'complex'], [1.0 + 5e-10, 1.0], [0.0, 0.0])
    selector = Selector()

    assert selector.select(table, SelectionPolicy.MIN_ERROR).configuration == 'complex'
    assert selector.select(table, SelectionPolicy.ONE_SE).configuration == 'simple'
