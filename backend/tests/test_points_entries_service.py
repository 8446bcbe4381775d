from datetime import date

import pytest

from app.core.errors import (
    ErrorCode,
    ForbiddenError,
    InvalidChoreError,
    InvalidInputError,
    InvalidKidError,
    NotFoundError,
)
from app.modules.points.models import PointEntry
from app.modules.points.schemas import LastViewedUpdate, PointEntryCreate, PointEntryUpdate
from app.modules.points.services.point_entries_service import (
    CreatePointEntry,
    DeletePointEntry,
    GetLastViewedPoints,
    ListPointEntries,
    ResolveTargetKid,
    SetLastViewedPoints,
    UpdatePointEntry,
)
from conftest import AddEntry, AsContext


def test_parent_records_chore_entry_without_note(db, seed):
    payload = PointEntryCreate(KidUserId=seed.kid.Id, Points=10, ChoreId=seed.chore.Id)
    entry = CreatePointEntry(db, AsContext(seed.parent), payload)
    assert entry.Id is not None
    assert entry.Points == 10
    assert entry.Note is None
    assert entry.RedemptionId is None
    assert entry.EntryDate == date.today()
    assert entry.CreatedByUserId == seed.parent.Id
    assert entry.UpdatedByUserId == seed.parent.Id


def test_custom_award_requires_note(db, seed):
    payload = PointEntryCreate(KidUserId=seed.kid.Id, Points=5, Note="   ")
    with pytest.raises(InvalidInputError) as excinfo:
        CreatePointEntry(db, AsContext(seed.parent), payload)
    assert excinfo.value.Code == ErrorCode.InvalidInput
    assert db.query(PointEntry).count() == 0


def test_manual_deduction_with_note_is_allowed(db, seed):
    payload = PointEntryCreate(KidUserId=seed.kid.Id, Points=-3, Note="Left bike out")
    entry = CreatePointEntry(db, AsContext(seed.parent), payload)
    assert entry.Points == -3
    assert entry.Note == "Left bike out"


def test_zero_point_photo_log_needs_no_note(db, seed):
    payload = PointEntryCreate(
        KidUserId=seed.kid.Id,
        Points=0,
        PhotoUrl="https://example.test/garden.jpg",
        EntryDate=date(2024, 5, 4),
    )
    entry = CreatePointEntry(db, AsContext(seed.parent), payload)
    assert entry.Points == 0
    assert entry.EntryDate == date(2024, 5, 4)


def test_kid_from_other_family_is_invalid_kid(db, seed):
    payload = PointEntryCreate(KidUserId=seed.other_kid.Id, Points=5, ChoreId=seed.chore.Id)
    with pytest.raises(InvalidKidError) as excinfo:
        CreatePointEntry(db, AsContext(seed.parent), payload)
    assert excinfo.value.Code == ErrorCode.InvalidKid
    assert excinfo.value.StatusCode == 400


def test_parent_user_is_not_a_valid_kid(db, seed):
    payload = PointEntryCreate(KidUserId=seed.parent.Id, Points=5, Note="Bonus")
    with pytest.raises(InvalidKidError):
        CreatePointEntry(db, AsContext(seed.parent), payload)


def test_chore_from_other_family_is_invalid_chore(db, seed):
    payload = PointEntryCreate(KidUserId=seed.kid.Id, Points=5, ChoreId=seed.other_chore.Id)
    with pytest.raises(InvalidChoreError) as excinfo:
        CreatePointEntry(db, AsContext(seed.parent), payload)
    assert excinfo.value.Code == ErrorCode.InvalidChore


def test_kid_cannot_create_entries(db, seed):
    payload = PointEntryCreate(KidUserId=seed.kid.Id, Points=100, Note="Self award")
    with pytest.raises(ForbiddenError):
        CreatePointEntry(db, AsContext(seed.kid), payload)
    assert db.query(PointEntry).count() == 0


def test_list_entries_for_kid_returns_own_ledger(db, seed):
    older = AddEntry(db, seed.kid, 4, seed.parent, EntryDate=date(2024, 3, 1))
    newer = AddEntry(db, seed.kid, 6, seed.parent, EntryDate=date(2024, 3, 2))
    AddEntry(db, seed.sibling, 50, seed.parent)
    ledger = ListPointEntries(db, AsContext(seed.kid), None)
    assert ledger.Kid.Id == seed.kid.Id
    assert ledger.Balance == 10
    assert [entry.Id for entry in ledger.Entries] == [newer.Id, older.Id]


def test_kid_cannot_read_sibling(db, seed):
    with pytest.raises(ForbiddenError):
        ListPointEntries(db, AsContext(seed.kid), seed.sibling.Id)


def test_kid_naming_other_family_kid_is_not_found(db, seed):
    with pytest.raises(NotFoundError):
        ListPointEntries(db, AsContext(seed.kid), seed.other_kid.Id)
    with pytest.raises(NotFoundError):
        GetLastViewedPoints(db, AsContext(seed.kid), seed.other_kid.Id)


def test_kid_naming_self_is_allowed(db, seed):
    assert ResolveTargetKid(db, AsContext(seed.kid), seed.kid.Id).Id == seed.kid.Id


def test_parent_must_name_kid(db, seed):
    with pytest.raises(InvalidInputError) as excinfo:
        ListPointEntries(db, AsContext(seed.parent), None)
    assert excinfo.value.Message == "kidId required for parents"


def test_parent_cannot_read_other_family_kid(db, seed):
    with pytest.raises(NotFoundError):
        ListPointEntries(db, AsContext(seed.parent), seed.other_kid.Id)


def test_user_without_family_is_forbidden(db, seed):
    with pytest.raises(ForbiddenError):
        ListPointEntries(db, AsContext(seed.orphan), seed.kid.Id)


def test_update_entry_changes_only_given_fields(db, seed):
    entry = AddEntry(db, seed.kid, 5, seed.parent, Note="Helped cook", PhotoUrl="https://example.test/a.jpg")
    updated = UpdatePointEntry(db, AsContext(seed.parent), entry.Id, PointEntryUpdate(Points=8))
    assert updated.Points == 8
    assert updated.Note == "Helped cook"
    assert updated.PhotoUrl == "https://example.test/a.jpg"
    assert updated.UpdatedByUserId == seed.parent.Id


def test_update_rejects_clearing_note_on_custom_award(db, seed):
    entry = AddEntry(db, seed.kid, 5, seed.parent, Note="Helped cook")
    with pytest.raises(InvalidInputError):
        UpdatePointEntry(db, AsContext(seed.parent), entry.Id, PointEntryUpdate(Note=None))
    db.refresh(entry)
    assert entry.Note == "Helped cook"


def test_update_rejects_chore_from_other_family(db, seed):
    entry = AddEntry(db, seed.kid, 5, seed.parent, ChoreId=seed.chore.Id)
    with pytest.raises(InvalidChoreError):
        UpdatePointEntry(db, AsContext(seed.parent), entry.Id, PointEntryUpdate(ChoreId=seed.other_chore.Id))


def test_update_other_family_entry_is_not_found(db, seed):
    entry = AddEntry(db, seed.other_kid, 5, seed.other_parent)
    with pytest.raises(NotFoundError):
        UpdatePointEntry(db, AsContext(seed.parent), entry.Id, PointEntryUpdate(Points=1))


def test_redemption_deductions_are_immutable(db, seed):
    entry = AddEntry(db, seed.kid, -50, seed.parent, Note="Redeemed: Movie night", RedemptionId=99)
    with pytest.raises(ForbiddenError):
        UpdatePointEntry(db, AsContext(seed.parent), entry.Id, PointEntryUpdate(Points=-1))
    with pytest.raises(ForbiddenError):
        DeletePointEntry(db, AsContext(seed.parent), entry.Id)
    assert db.query(PointEntry).filter(PointEntry.Id == entry.Id).count() == 1


def test_delete_entry(db, seed):
    entry = AddEntry(db, seed.kid, 5, seed.parent)
    entry_id = entry.Id
    DeletePointEntry(db, AsContext(seed.parent), entry_id)
    assert db.query(PointEntry).filter(PointEntry.Id == entry_id).count() == 0


def test_kid_cannot_delete_entries(db, seed):
    entry = AddEntry(db, seed.kid, -5, seed.parent)
    with pytest.raises(ForbiddenError):
        DeletePointEntry(db, AsContext(seed.kid), entry.Id)


def test_last_viewed_points_round_trip(db, seed):
    kid_context = AsContext(seed.kid)
    assert GetLastViewedPoints(db, kid_context, None).LastViewedPoints == 0
    SetLastViewedPoints(db, kid_context, LastViewedUpdate(Points=42))
    assert GetLastViewedPoints(db, AsContext(seed.parent), seed.kid.Id).LastViewedPoints == 42


def test_kid_cannot_set_sibling_last_viewed(db, seed):
    with pytest.raises(ForbiddenError):
        SetLastViewedPoints(db, AsContext(seed.kid), LastViewedUpdate(Points=1, KidUserId=seed.sibling.Id))


def test_failed_update_commit_rolls_back_pending_changes(db, seed, monkeypatch):
    entry = AddEntry(db, seed.kid, 5, seed.parent, Note="Helped cook")
    entry_id = entry.Id

    def _Boom():
        raise RuntimeError("database went away")

    monkeypatch.setattr(db, "commit", _Boom)
    with pytest.raises(RuntimeError):
        UpdatePointEntry(db, AsContext(seed.parent), entry_id, PointEntryUpdate(Points=8))
    monkeypatch.undo()

    assert db.query(PointEntry).filter(PointEntry.Id == entry_id).one().Points == 5


def test_failed_create_commit_leaves_nothing_pending(db, seed, monkeypatch):
    def _Boom():
        raise RuntimeError("database went away")

    monkeypatch.setattr(db, "commit", _Boom)
    with pytest.raises(RuntimeError):
        CreatePointEntry(
            db,
            AsContext(seed.parent),
            PointEntryCreate(KidUserId=seed.kid.Id, Points=5, ChoreId=seed.chore.Id),
        )
    monkeypatch.undo()

    assert not db.new
    assert db.query(PointEntry).count() == 0
