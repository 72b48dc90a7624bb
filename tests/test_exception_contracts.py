"""Tests for the exception taxonomy defined in inidict.exceptions."""
import pytest

from inidict import (AllocationFailureError, InvalidArgumentError, IniDict,
                     PolicyViolationError)


def test_invalid_argument_error_has_argument_field():
    exc = InvalidArgumentError("key")
    assert exc.argument == "key"
    assert "key" in str(exc)
    assert isinstance(exc, ValueError)


def test_allocation_failure_error_has_capacity_field():
    exc = AllocationFailureError(256)
    assert exc.capacity == 256
    assert isinstance(exc, MemoryError)


@pytest.mark.parametrize("policy", ["string", "dict"])
def test_policy_violation_error_has_policy_field(policy):
    exc = PolicyViolationError(policy, "nope")
    assert exc.policy == policy
    assert str(exc) == f"{policy}: nope"
    assert isinstance(exc, TypeError)


def test_missing_key_error_argument_is_the_raw_key():
    d = IniDict()
    with pytest.raises(KeyError) as exc_info:
        d["sec:missing"]
    assert exc_info.value.args[0] == "sec:missing"
    with pytest.raises(KeyError) as exc_info:
        del d["sec:missing"]
    assert exc_info.value.args[0] == "sec:missing"
