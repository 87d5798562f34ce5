from datetime import date
from itertools import product

import pytest

from core.conversation.orchestration import ProfileReconciler
from models.schemas import ChildProfile, Gender

NAMES = (None, "Lily", "Tom")
DATES = (None, date(2021, 3, 5))
GENDERS = (None, Gender.FEMALE, Gender.MALE)


@pytest.fixture
def reconciler():
    return ProfileReconciler()


def _profiles():
    for name, dob, gender in product(NAMES, DATES, GENDERS):
        yield ChildProfile(name=name, date_of_birth=dob, gender=gender)


def test_every_field_is_coalesced(reconciler):
    persisted = ChildProfile(name="Tom", date_of_birth=date(2020, 1, 1), gender=Gender.MALE, free_text_notes="asthma")
    for candidate in _profiles():
        merged = reconciler.reconcile(candidate, persisted).merged
        for field in ChildProfile.FIELDS:
            expected = getattr(candidate, field)
            if expected is None:
                expected = getattr(persisted, field)
            assert getattr(merged, field) == expected


def test_empty_candidate_never_erases(reconciler):
    persisted = ChildProfile(name="Tom", date_of_birth=date(2020, 1, 1), gender=Gender.MALE)
    result = reconciler.reconcile(ChildProfile(), persisted)
    assert result.merged == persisted
    assert result.changed is False


def test_candidate_value_takes_precedence(reconciler):
    persisted = ChildProfile(name="Tom", gender=Gender.MALE)
    result = reconciler.reconcile(ChildProfile(name="Jack"), persisted)
    assert result.merged.name == "Jack"
    assert result.merged.gender == Gender.MALE
    assert result.changed is True


def test_reconcile_is_idempotent(reconciler):
    persisted = ChildProfile(name="Tom")
    for candidate in _profiles():
        first = reconciler.reconcile(candidate, persisted).merged
        second = reconciler.reconcile(candidate, first)
        assert second.merged == first
        assert second.changed is False


def test_no_persisted_profile(reconciler):
    assert reconciler.reconcile(ChildProfile(), None).changed is False

    result = reconciler.reconcile(ChildProfile(gender=Gender.FEMALE), None)
    assert result.changed is True
    assert result.merged == ChildProfile(gender=Gender.FEMALE)


def test_blank_strings_count_as_empty(reconciler):
    persisted = ChildProfile(name="Tom")
    result = reconciler.reconcile(ChildProfile(name="   "), persisted)
    assert result.merged.name == "Tom"
    assert result.changed is False
