from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from tests.support.doubles import FIXED_TODAY, FailingPersistence
from tracker.errors import ErrorType, NotFoundError, PersistenceError, ValidationError
from tracker.schemas.domains import (
    CollectibleCollection,
    CollectibleItem,
    Heirloom,
    MoodEntry,
    Tool,
)
from tracker.schemas.enums import MoodType, ToolCondition
from tracker.schemas.registry import COLLECTIBLES, COLLECTIONS, HEIRLOOMS, MOODS, TOOLS
from tracker.services.store import StoreChange

CREATED = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def tools(make_store):
    return make_store(TOOLS)


@pytest.fixture
def collection_stores(make_store):
    containers = make_store(COLLECTIONS)
    items = make_store(COLLECTIBLES)
    containers.link_children(items)
    return containers, items


def test_add_then_get_returns_equal_snapshot(tools) -> None:
    hammer = Tool(name="Hammer", created_at=CREATED)

    stored = tools.add(hammer)

    assert stored == hammer
    assert tools.get(hammer.id) == hammer
    assert hammer.id in tools
    assert len(tools) == 1
    assert tools.count() == 1


def test_add_persists_before_returning(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    records = tools._persistence.load()

    assert [record["id"] for record in records] == [hammer.id]
    assert records[0]["name"] == "Hammer"


def test_snapshots_are_immutable(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    with pytest.raises(PydanticValidationError):
        hammer.name = "Mallet"  # type: ignore[misc]
    assert isinstance(tools.get_all(), tuple)


def test_add_rejects_duplicate_id(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    with pytest.raises(ValidationError) as excinfo:
        tools.add(Tool(id=hammer.id, name="Other", created_at=CREATED))

    assert excinfo.value.error_type is ErrorType.VALIDATION_ERROR
    assert excinfo.value.details[0].field == "id"


def test_deleted_ids_are_never_reused(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    tools.delete(hammer.id)

    with pytest.raises(ValidationError):
        tools.add(Tool(id=hammer.id, name="Hammer again", created_at=CREATED))


def test_tombstones_outlive_reload(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    tools.delete(hammer.id)

    tools.reload()

    with pytest.raises(ValidationError):
        tools.add(Tool(id=hammer.id, name="Hammer again", created_at=CREATED))


def test_add_rejects_blank_name_even_when_model_validation_was_skipped(tools) -> None:
    unchecked = Tool.model_construct(
        id="abc",
        name="",
        created_at=CREATED,
        updated_at=CREATED,
        category="",
        condition=ToolCondition.GOOD,
        description="",
        photo_ids=(),
        is_favorite=False,
    )

    with pytest.raises(ValidationError) as excinfo:
        tools.add(unchecked)

    assert [detail.field for detail in excinfo.value.details] == ["name"]
    assert len(tools) == 0


def test_add_rejects_wrong_model_type(tools) -> None:
    with pytest.raises(ValidationError):
        tools.add(Heirloom(name="Watch", created_at=CREATED))


def test_mood_entries_are_unique_per_calendar_date(make_store) -> None:
    moods = make_store(MOODS)
    moods.add(MoodEntry(entry_date=FIXED_TODAY, mood=MoodType.GOOD))

    with pytest.raises(ValidationError) as excinfo:
        moods.add(MoodEntry(entry_date=FIXED_TODAY, mood=MoodType.BAD))

    assert excinfo.value.details[0].field == "entry_date"
    assert moods.count() == 1


def test_future_dates_are_rejected(make_store) -> None:
    moods = make_store(MOODS)

    with pytest.raises(ValidationError, match="future"):
        moods.add(MoodEntry(entry_date=FIXED_TODAY + timedelta(days=1), mood=MoodType.GOOD))


def test_future_origin_year_is_rejected(make_store) -> None:
    heirlooms = make_store(HEIRLOOMS)

    with pytest.raises(ValidationError, match="future") as excinfo:
        heirlooms.add(Heirloom(name="Clock", origin_year=FIXED_TODAY.year + 1, created_at=CREATED))

    assert excinfo.value.details[0].field == "origin_year"
    assert heirlooms.count() == 0
    clock = heirlooms.add(Heirloom(name="Clock", origin_year=FIXED_TODAY.year, created_at=CREATED))
    assert clock.origin_year == 2024


def test_update_stamps_strictly_newer_updated_at(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    updated = tools.update(hammer.model_copy(update={"condition": ToolCondition.WORN}))

    assert updated.updated_at > hammer.updated_at
    assert updated.created_at == hammer.created_at
    assert updated.name == "Hammer"
    assert tools.get(hammer.id).condition is ToolCondition.WORN


def test_update_without_changes_is_a_no_op(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    saves_before = tools._persistence.save_count

    result = tools.update(hammer.model_copy())

    assert result == hammer
    assert result.updated_at == hammer.updated_at
    assert tools._persistence.save_count == saves_before


def test_update_cannot_rewrite_created_at(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    updated = tools.update(
        hammer.model_copy(update={"name": "Claw hammer", "created_at": CREATED - timedelta(days=9)})
    )

    assert updated.created_at == CREATED


def test_update_unknown_id_raises_not_found(tools) -> None:
    with pytest.raises(NotFoundError):
        tools.update(Tool(name="Ghost", created_at=CREATED))


def test_patch_changes_only_named_fields(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", category="Carpentry", description="Steel", created_at=CREATED))

    patched = tools.patch(hammer.id, description="Fibreglass handle")

    assert patched.description == "Fibreglass handle"
    assert patched.name == "Hammer"
    assert patched.category == "Carpentry"


def test_patch_rejects_identity_fields(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    with pytest.raises(ValidationError):
        tools.patch(hammer.id, id="other")


def test_patch_translates_field_errors(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    with pytest.raises(ValidationError) as excinfo:
        tools.patch(hammer.id, name="x" * 500)

    assert excinfo.value.details[0].field == "name"
    assert tools.get(hammer.id).name == "Hammer"


def test_delete_removes_entity_and_unknown_ids_are_ignored(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    tools.delete(hammer.id)
    tools.delete(hammer.id)
    tools.delete("never-existed")

    assert tools.get(hammer.id) is None
    assert tools.count() == 0


def test_failed_save_leaves_state_untouched(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    tools._persistence.fail_next()

    with pytest.raises(PersistenceError):
        tools.add(Tool(name="Saw", created_at=CREATED))

    assert tools.get_all() == (hammer,)
    assert tools._persistence.load() == [hammer.to_record()]


def test_failed_update_keeps_previous_value(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    tools._persistence.fail_next()

    with pytest.raises(PersistenceError):
        tools.patch(hammer.id, name="Mallet")

    assert tools.get(hammer.id) == hammer


def test_deleting_a_container_cascades_to_its_items(collection_stores) -> None:
    containers, items = collection_stores
    stamps = containers.add(CollectibleCollection(name="Stamps", created_at=CREATED))
    coins = containers.add(CollectibleCollection(name="Coins", created_at=CREATED))
    for name in ("Penny Black", "Inverted Jenny"):
        items.add(CollectibleItem(collection_id=stamps.id, name=name, created_at=CREATED))
    kept = items.add(CollectibleItem(collection_id=coins.id, name="Sovereign", created_at=CREATED))
    assert containers.child_counts()[stamps.id] == 2

    containers.delete(stamps.id)

    assert containers.get(stamps.id) is None
    assert containers.child_counts() == {coins.id: 1}
    assert containers.children_of(stamps.id) == ()
    assert items.get_all() == (kept,)
    assert [record["name"] for record in items._persistence.load()] == ["Sovereign"]


def test_cascade_restores_children_when_container_save_fails(collection_stores) -> None:
    containers, items = collection_stores
    stamps = containers.add(CollectibleCollection(name="Stamps", created_at=CREATED))
    penny = items.add(CollectibleItem(collection_id=stamps.id, name="Penny Black", created_at=CREATED))
    containers._persistence.fail_next()

    with pytest.raises(PersistenceError):
        containers.delete(stamps.id)

    assert containers.get(stamps.id) == stamps
    assert items.get_all() == (penny,)
    assert items._persistence.load() == [penny.to_record()]


def test_child_requires_existing_owner(collection_stores) -> None:
    _, items = collection_stores

    with pytest.raises(ValidationError) as excinfo:
        items.add(CollectibleItem(collection_id="missing", name="Orphan", created_at=CREATED))

    assert excinfo.value.details[0].field == "collection_id"


def test_link_children_rejects_unrelated_store(make_store, tools) -> None:
    containers = make_store(COLLECTIONS)

    with pytest.raises(ValueError):
        containers.link_children(tools)


def test_move_children_rehomes_items(collection_stores) -> None:
    containers, items = collection_stores
    old = containers.add(CollectibleCollection(name="Old", created_at=CREATED))
    new = containers.add(CollectibleCollection(name="New", created_at=CREATED))
    item = items.add(CollectibleItem(collection_id=old.id, name="Medal", created_at=CREATED))

    moved = containers.move_children(old.id, new.id)
    containers.delete(old.id)

    assert moved == 1
    assert items.get(item.id).collection_id == new.id
    assert containers.child_counts() == {new.id: 1}


def test_subscribers_receive_change_after_commit(tools) -> None:
    received: list[StoreChange] = []
    tools.subscribe(received.append)

    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))
    tools.patch(hammer.id, name="Mallet")
    tools.delete(hammer.id)

    assert [change.kind for change in received] == ["added", "updated", "deleted"]
    assert all(change.entity_ids == (hammer.id,) for change in received)
    assert received[0].collection == "tools"


def test_failing_subscriber_does_not_roll_back(tools, caplog: pytest.LogCaptureFixture) -> None:
    def explode(change: StoreChange) -> None:
        raise RuntimeError("boom")

    tools.subscribe(explode)

    with caplog.at_level(logging.ERROR, logger="tracker.services.store"):
        hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    assert tools.get(hammer.id) == hammer
    assert "Subscriber failed" in caplog.text


def test_unsubscribe_stops_notifications(tools) -> None:
    received: list[StoreChange] = []
    subscription = tools.subscribe(received.append)

    subscription.unsubscribe()
    tools.add(Tool(name="Hammer", created_at=CREATED))

    assert received == []
    assert subscription.active is False


def test_reload_recovers_from_corrupt_snapshot(make_store, caplog: pytest.LogCaptureFixture) -> None:
    persistence = FailingPersistence("tools", [{"id": "x", "name": ""}])

    with caplog.at_level(logging.WARNING):
        store = make_store(TOOLS, persistence)

    assert store.count() == 0
    assert "unreadable" in caplog.text


def test_reload_reads_saved_snapshot(make_store) -> None:
    persistence = FailingPersistence("tools")
    first = make_store(TOOLS, persistence)
    hammer = first.add(Tool(name="Hammer", created_at=CREATED))

    second = make_store(TOOLS, persistence)

    assert second.get(hammer.id) == hammer


def test_delete_cleans_up_photos(tools, photos) -> None:
    photo_id = photos.save(b"jpeg")
    hammer = tools.add(Tool(name="Hammer", photo_ids=(photo_id,), created_at=CREATED))

    tools.delete(hammer.id)

    assert photos.deleted == [photo_id]


def test_photo_cleanup_failure_does_not_block_delete(tools, photos, caplog) -> None:
    photo_id = photos.save(b"jpeg")
    hammer = tools.add(Tool(name="Hammer", photo_ids=(photo_id,), created_at=CREATED))
    photos.fail_deletes = True

    with caplog.at_level(logging.WARNING):
        tools.delete(hammer.id)

    assert tools.get(hammer.id) is None
    assert "was not removed" in caplog.text


def test_archive_and_unarchive(make_store) -> None:
    heirlooms = make_store(HEIRLOOMS)
    watch = heirlooms.add(Heirloom(name="Pocket watch", created_at=CREATED))

    archived = heirlooms.archive(watch.id)
    restored = heirlooms.unarchive(watch.id)

    assert archived.is_archived is True
    assert archived.archived_at is not None
    assert restored.is_archived is False
    assert restored.archived_at is None


def test_archive_requires_archivable_domain(tools) -> None:
    hammer = tools.add(Tool(name="Hammer", created_at=CREATED))

    with pytest.raises(ValidationError):
        tools.archive(hammer.id)


def test_archive_many_and_delete_many(make_store) -> None:
    heirlooms = make_store(HEIRLOOMS)
    ids = [heirlooms.add(Heirloom(name=name, created_at=CREATED)).id for name in ("Ring", "Quilt", "Bible")]

    archived = heirlooms.archive_many(ids[:2])
    heirlooms.delete_many([ids[0], ids[2], "unknown"])

    assert all(entity.is_archived for entity in archived)
    assert [entity.id for entity in heirlooms.get_all()] == [ids[1]]


def test_archive_many_unknown_id_raises(make_store) -> None:
    heirlooms = make_store(HEIRLOOMS)

    with pytest.raises(NotFoundError):
        heirlooms.archive_many(["missing"])


def test_name_exists_is_case_and_accent_insensitive(tools) -> None:
    hammer = tools.add(Tool(name="Rabot Électrique", created_at=CREATED))

    assert tools.name_exists("rabot electrique")
    assert not tools.name_exists("rabot electrique", exclude_id=hammer.id)
    assert not tools.name_exists("Chisel")

