"""
Tests for plan entitlement rules and access decisions.
"""
import pytest

from projectintel.core.errors import AuthorizationDenied, ValidationError
from projectintel.features.entitlements.service import (
    can_access_sector,
    can_access_state,
    filter_data_by_subscription,
    get_allowed_sectors,
    get_allowed_states,
    require_access,
    validate_subscription_rules,
)
from projectintel.models.plan import PlanType
from projectintel.models.subscription import Entitlement


def _records():
    return [
        {"project_code": "P1", "state": "Karnataka", "sector": "Industrial"},
        {"project_code": "P2", "state": "Kerala", "sector": "Government"},
        {"project_code": "P3", "state": "Goa", "sector": "Industrial"},
        {"project_code": "P4", "state": "Karnataka", "sector": "Residential & Commercial"},
    ]


def test_plan_1_accepts_exactly_one_state():
    validate_subscription_rules("PLAN_1", ["Karnataka"], False)


def test_plan_1_rejects_two_states():
    with pytest.raises(ValidationError):
        validate_subscription_rules("PLAN_1", ["Karnataka", "Kerala"], False)


def test_plan_1_rejects_no_state():
    with pytest.raises(ValidationError):
        validate_subscription_rules(PlanType.PLAN_1, [], False)


def test_plan_1_rejects_pan_india():
    with pytest.raises(ValidationError):
        validate_subscription_rules("PLAN_1", ["Karnataka"], True)


def test_plan_2_requires_a_state():
    with pytest.raises(ValidationError):
        validate_subscription_rules("PLAN_2", [], False)
    validate_subscription_rules("PLAN_2", ["Karnataka"], False)
    validate_subscription_rules("PLAN_2", ["Karnataka", "Kerala", "Goa"], False)


def test_plan_3_requires_pan_india():
    with pytest.raises(ValidationError):
        validate_subscription_rules("PLAN_3", [], False)
    validate_subscription_rules("PLAN_3", [], True)


def test_unknown_plan_type_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_subscription_rules("PLAN_9", ["Karnataka"], False)
    assert exc.value.message == "Invalid plan type"


@pytest.mark.parametrize("state", ["Karnataka", "Atlantis", "", None, "kerala "])
def test_pan_india_can_access_any_state(state):
    sub = Entitlement(is_pan_india=True, allowed_states=(), allowed_sectors=("Industrial",))
    assert can_access_state(sub, state) is True


def test_state_access_matches_grants():
    sub = Entitlement(allowed_states=("Karnataka",), allowed_sectors=("Industrial",))
    assert can_access_state(sub, "Karnataka")
    assert not can_access_state(sub, "Kerala")
    assert not can_access_state(sub, None)


def test_grant_matching_ignores_case_and_whitespace():
    sub = Entitlement(allowed_states=("Tamil Nadu",), allowed_sectors=("Residential & Commercial",))
    assert can_access_state(sub, "  tamil   nadu ")
    assert can_access_sector(sub, "residential & commercial")


def test_empty_sector_grants_deny_every_sector_even_pan_india():
    sub = Entitlement(is_pan_india=True, allowed_sectors=())
    assert not can_access_sector(sub, "Industrial")
    assert filter_data_by_subscription(_records(), sub) == []


def test_filter_keeps_order_and_requires_both_dimensions():
    sub = Entitlement(allowed_states=("Karnataka", "Kerala"), allowed_sectors=("Industrial", "Government"))
    result = filter_data_by_subscription(_records(), sub)
    assert [r["project_code"] for r in result] == ["P1", "P2"]


def test_filter_pan_india_ignores_state():
    sub = Entitlement(is_pan_india=True, allowed_sectors=("Industrial",))
    result = filter_data_by_subscription(_records(), sub)
    assert [r["project_code"] for r in result] == ["P1", "P3"]


def test_filter_is_pure():
    records = _records()
    sub = Entitlement(allowed_states=("Karnataka",), allowed_sectors=("Industrial",))
    first = filter_data_by_subscription(records, sub)
    second = filter_data_by_subscription(records, sub)
    assert first == second
    assert len(records) == 4


def test_allowed_states_none_for_pan_india():
    assert get_allowed_states(Entitlement(is_pan_india=True, allowed_states=("Goa",))) is None
    assert get_allowed_states(Entitlement(allowed_states=("Goa",))) == ["Goa"]
    assert get_allowed_sectors(Entitlement(allowed_sectors=("Industrial",))) == ["Industrial"]


def test_require_access_without_requirements_allows():
    require_access(Entitlement())


def test_require_access_state_denied():
    sub = Entitlement(allowed_states=("Goa",), allowed_sectors=("Industrial",))
    with pytest.raises(AuthorizationDenied) as exc:
        require_access(sub, required_states=["Goa", "Kerala"])
    assert exc.value.code == "insufficient_state_access"


def test_require_access_sector_denied():
    sub = Entitlement(allowed_states=("Goa",), allowed_sectors=("Industrial",))
    with pytest.raises(AuthorizationDenied) as exc:
        require_access(sub, required_states=["Goa"], required_sectors=["Government"])
    assert exc.value.code == "insufficient_sector_access"
