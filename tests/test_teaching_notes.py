from __future__ import annotations

from conftest import FakeRegistry, FakeStorage

from xeenaps.events import NOTE_DELETED, TEACHING_UPDATED, Event, EventBus
from xeenaps.registry import INDEPENDENT_COLLECTION
from xeenaps.services.library import LibraryService
from xeenaps.services.notes import NoteService
from xeenaps.services.teaching import TeachingService
from xeenaps.types import NoteItem, TeachingItem

NOTES = [
    {"id": "n1", "collectionId": "c1", "label": "Reading list", "createdAt": "2024-01-01"},
    {"id": "n2", "collectionId": None, "label": "Loose idea", "createdAt": "2024-02-01"},
    {"id": "n3", "collectionId": "", "label": "Scratch", "createdAt": "2024-03-01"},
    {
        "id": "n4",
        "collectionId": "c1",
        "label": "Pinned",
        "isFavorite": True,
        "createdAt": "2023-12-01",
    },
]


def test_teaching_fetch_filters_by_teaching_date() -> None:
    registry = FakeRegistry(
        {
            "teaching": [
                {"id": "t1", "teachingDate": "2024-02-10", "courseTitle": "Stats I"},
                {"id": "t2", "teachingDate": "2024-05-02", "courseTitle": "Stats II"},
            ]
        }
    )
    service = TeachingService(registry, FakeStorage())

    page = service.fetch_paginated(1, 25, start_date="2024-03-01")

    assert [item.course_title for item in page.items] == ["Stats II"]
    gte = [args for _t, op, args, _kw in registry.calls if op == "gte"]
    assert gte == [("teachingDate", "2024-03-01")]


def test_teaching_save_publishes_and_stamps_updated_at() -> None:
    registry = FakeRegistry()
    events = EventBus()
    seen: list[Event] = []
    events.subscribe(TEACHING_UPDATED, seen.append)

    ok = TeachingService(registry, FakeStorage(), events).save(
        TeachingItem(id="t1", course_title="Research Methods")
    )

    assert ok is True
    assert seen[0].detail.course_title == "Research Methods"
    assert registry.tables["teaching"][0]["updatedAt"]


def test_teaching_delete_removes_vault_files() -> None:
    registry = FakeRegistry(
        {
            "teaching": [
                {
                    "id": "t1",
                    "vault_items": [{"type": "FILE", "fileId": "f1", "nodeUrl": "https://n"}],
                }
            ]
        }
    )
    storage = FakeStorage()

    assert TeachingService(registry, storage).delete("t1") is True
    assert storage.deleted == [("f1", "https://n")]
    assert registry.tables["teaching"] == []


def test_notes_independent_collection_matches_null_and_empty() -> None:
    registry = FakeRegistry({"notes": NOTES})

    page = NoteService(registry).fetch_paginated(collection_id=INDEPENDENT_COLLECTION)

    assert sorted(item.id for item in page.items) == ["n2", "n3"]
    assert [args for _t, op, args, _kw in registry.calls if op == "or_"] == [
        ('collectionId.is.null,collectionId.eq.""',)
    ]


def test_notes_collection_filter_and_favourite_sort() -> None:
    registry = FakeRegistry({"notes": NOTES})

    page = NoteService(registry).fetch_paginated(collection_id="c1", sort_key="isFavorite")

    assert [item.id for item in page.items] == ["n4", "n1"]


def test_notes_save_and_delete() -> None:
    registry = FakeRegistry()
    events = EventBus()
    deleted: list[Event] = []
    events.subscribe(NOTE_DELETED, deleted.append)
    service = NoteService(registry, events)

    assert service.save(NoteItem(id="n9", label="Draft")) is True
    assert registry.tables["notes"][0]["label"] == "Draft"
    assert service.delete("n9") is True
    assert registry.tables["notes"] == []
    assert deleted[0].detail == "n9"


def test_library_fetch_by_ids_preserves_requested_order() -> None:
    registry = FakeRegistry(
        {
            "library_items": [
                {"id": "l1", "title": "Alpha"},
                {"id": "l2", "title": "Beta"},
                {"id": "l3", "title": "Gamma"},
            ]
        }
    )
    items = LibraryService(registry).fetch_by_ids(["l3", "missing", "l1"])
    assert [item.title for item in items] == ["Gamma", "Alpha"]


def test_library_type_filter() -> None:
    registry = FakeRegistry(
        {
            "library_items": [
                {"id": "l1", "title": "Alpha", "type": "Literature"},
                {"id": "l2", "title": "Beta", "type": "Dataset"},
            ]
        }
    )
    page = LibraryService(registry).fetch_paginated(type="Literature")
    assert [item.id for item in page.items] == ["l1"]
