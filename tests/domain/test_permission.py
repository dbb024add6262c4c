import pytest

from locus.shared.domain.location import PermissionKind, PermissionStatus, evaluate, is_granted
from locus.shared.domain.location.permission import normalize_result, rationale_required

FINE = PermissionKind.FINE_LOCATION
COARSE = PermissionKind.COARSE_LOCATION

INCOMPLETE_SETS = [set(), {FINE}, {COARSE}]


def _always(value: bool):
    return lambda _kind: value


@pytest.mark.parametrize("granted", INCOMPLETE_SETS)
@pytest.mark.parametrize("rationale", [True, False])
def test_evaluate_never_grants_incomplete_sets(granted, rationale):
    assert evaluate(granted, _always(rationale)) is not PermissionStatus.GRANTED


@pytest.mark.parametrize("rationale", [True, False])
def test_evaluate_grants_fine_and_coarse(rationale):
    assert evaluate({FINE, COARSE}, _always(rationale)) is PermissionStatus.GRANTED


def test_evaluate_with_rationale_for_either_kind():
    assert evaluate(set(), lambda kind: kind is FINE) is PermissionStatus.DENIED_WITH_RATIONALE
    assert evaluate({FINE}, lambda kind: kind is COARSE) is PermissionStatus.DENIED_WITH_RATIONALE


def test_evaluate_hard_denial_without_rationale():
    assert evaluate({COARSE}, _always(False)) is PermissionStatus.DENIED_HARD


def test_evaluate_does_not_query_rationale_when_granted():
    def _unexpected(_kind):
        raise AssertionError("rationale queried for granted permissions")

    assert evaluate({FINE, COARSE}, _unexpected) is PermissionStatus.GRANTED


def test_rationale_required_checks_both_kinds():
    seen = []

    def _query(kind):
        seen.append(kind)
        return False

    assert rationale_required(_query) is False
    assert seen == [FINE, COARSE]


def test_is_granted_requires_both_true():
    assert is_granted({FINE: True, COARSE: True}) is True
    assert is_granted({"fine_location": True, "coarse_location": True}) is True
    assert is_granted({FINE: True}) is False
    assert is_granted({COARSE: True}) is False
    assert is_granted({FINE: True, COARSE: False}) is False
    assert is_granted({}) is False


def test_normalize_result_drops_unknown_keys():
    assert normalize_result({"fine_location": True, "camera": True}) == {FINE: True}


@pytest.mark.parametrize("value", ["false", "true", 1, 0, None])
def test_normalize_result_drops_non_boolean_values(value):
    assert normalize_result({"fine_location": value, "coarse_location": True}) == {COARSE: True}


def test_is_granted_rejects_truthy_strings():
    assert is_granted({"fine_location": "false", "coarse_location": "false"}) is False
    assert is_granted({"fine_location": "true", "coarse_location": "true"}) is False
