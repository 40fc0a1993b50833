import pytest

from qa_component_check.constraints import normalize_version, parse_constraint, satisfies
from qa_component_check.errors import InvalidConstraint, MalformedConstraint


def test_comparison_operators():
    assert satisfies("3.4", ">=3.0")
    assert not satisfies("2.9", ">=3.0")
    assert satisfies("1.5", ">=1.0 <2.0")
    assert satisfies("1.5", ">=1.0, <2.0")
    assert not satisfies("2.0", ">=1.0 <2.0")
    assert satisfies("1.0", "1.0")
    assert satisfies("1.0.0", "==1.0")
    assert not satisfies("1.1", "!=1.1")


def test_caret_and_tilde_ranges():
    assert satisfies("1.5.2", "^1.2")
    assert not satisfies("2.0.0", "^1.2")
    assert satisfies("0.3.5", "^0.3")
    assert not satisfies("0.4.0", "^0.3")
    assert satisfies("1.9", "~1.2")
    assert not satisfies("2.0", "~1.2")
    assert satisfies("1.2.9", "~1.2.3")
    assert not satisfies("1.3.0", "~1.2.3")


def test_wildcards_and_core_prefix():
    assert satisfies("1.4", "1.*")
    assert satisfies("1.4", "1.x")
    assert not satisfies("2.0", "1.*")
    assert satisfies("8.x-1.3", "8.x-1.x")
    assert satisfies("5.0", "*")


def test_or_groups_and_hyphen_ranges():
    assert satisfies("0.5", "<1.0 || >=2.0")
    assert not satisfies("1.5", "<1.0 || >=2.0")
    assert satisfies("2.1", "<1.0 | >=2.0")
    assert satisfies("2.0.5", "1.0 - 2.0")
    assert not satisfies("2.1", "1.0 - 2.0")
    assert satisfies("2.0.0", "1.0 - 2.0.0")
    assert not satisfies("2.0.1", "1.0 - 2.0.0")


def test_dev_versions_never_satisfy_ranges():
    assert not satisfies("dev-1.x", ">=1.0")
    assert not satisfies("dev-1.x", "*")
    assert not satisfies("1.x-dev", "<99")


@pytest.mark.parametrize("constraint", ["", "   ", ">=banana", ">>1", "^dev", ">=1.0 ||"])
def test_malformed_constraints_raise(constraint):
    with pytest.raises(MalformedConstraint):
        satisfies("1.0", constraint)


def test_invalid_constraint_alias():
    assert InvalidConstraint is MalformedConstraint
    with pytest.raises(ValueError):
        parse_constraint("~")


def test_range_and_its_complement_never_both_hold():
    for version in ["0.1", "2.9.9", "3.0", "3.0.1", "10.2", "dev-3.x"]:
        inside = satisfies(version, ">=3.0")
        outside = satisfies(version, "<3.0")
        assert not (inside and outside)


def test_normalize_version_strips_prefixes():
    assert normalize_version("v1.2.3") == "1.2.3"
    assert normalize_version("8.x-3.4") == "3.4"
    assert normalize_version("1.0@dev") == "1.0"
    assert normalize_version(None) == ""
