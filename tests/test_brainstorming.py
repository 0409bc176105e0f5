from __future__ import annotations

from conftest import FakeAi, FakeRegistry, FakeStorage

from xeenaps.events import BRAINSTORMING_UPDATED, Event, EventBus
from xeenaps.services.brainstorming import BrainstormingService, apply_synthesis
from xeenaps.types import BrainstormingItem, TracerStatus

LIBRARY = [
    {
        "id": "l1",
        "title": "Spaced repetition at scale",
        "type": "Literature",
        "search_all": "l1 spaced repetition memory",
    },
    {"id": "l2", "title": "Untitled", "type": "Literature", "search_all": "l2 memory"},
    {"id": "l3", "title": "  ", "type": "Literature", "search_all": "l3 memory"},
    {"id": "l4", "title": "Memory datasets", "type": "Dataset", "search_all": "l4 memory"},
    {"id": "b1", "title": "Self match", "type": "Literature", "search_all": "b1 memory"},
]


def _service(
    registry: FakeRegistry | None = None,
    storage: FakeStorage | None = None,
    ai: FakeAi | None = None,
    events: EventBus | None = None,
) -> BrainstormingService:
    return BrainstormingService(
        registry or FakeRegistry(),
        storage or FakeStorage(),
        ai or FakeAi(),  # type: ignore[arg-type]
        events=events,
    )


def test_synthesize_rough_idea_extracts_json_from_chatter() -> None:
    ai = FakeAi(['Sure! {"proposedTitle": "Memory decay", "keywords": ["memory"]} hope it helps'])
    result = _service(ai=ai).synthesize_rough_idea("why do I forget papers")

    assert result == {"proposedTitle": "Memory decay", "keywords": ["memory"]}
    assert "why do I forget papers" in ai.prompts[0]


def test_synthesize_rough_idea_without_json_is_none() -> None:
    assert _service(ai=FakeAi(["no json here"])).synthesize_rough_idea("idea") is None
    assert _service(ai=FakeAi([None])).synthesize_rough_idea("idea") is None


def test_apply_synthesis_copies_known_fields_only() -> None:
    item = BrainstormingItem(id="b1", rough_idea="forgetting", methodology="old")
    merged = apply_synthesis(
        item,
        {
            "proposedTitle": "Memory decay in PKM",
            "methodology": "Diary study",
            "pillars": ["capture", "review"],
            "id": "hijack",
            "roughIdea": "overwritten",
        },
    )

    assert merged.id == "b1"
    assert merged.rough_idea == "forgetting"
    assert merged.proposed_title == "Memory decay in PKM"
    assert merged.methodology == "Diary study"
    assert merged.pillars == ["capture", "review"]
    assert merged.updated_at


def test_generate_abstract_strips_response() -> None:
    service = _service(ai=FakeAi(["  An abstract.  \n"]))
    assert service.generate_abstract(BrainstormingItem(proposed_title="T")) == "An abstract."


def test_refine_field_passes_context_and_mode() -> None:
    ai = FakeAi(["Sharper gap"])
    item = BrainstormingItem(proposed_title="Memory decay", research_gap="nobody checked")

    result = _service(ai=ai).refine_field("research_gap", item.research_gap, item, "EXPAND")

    assert result == "Sharper gap"
    assert "Memory decay" in ai.prompts[0]
    assert "nobody checked" in ai.prompts[0]


def test_translate_field_empty_text_skips_ai() -> None:
    ai = FakeAi(["unused"])
    assert _service(ai=ai).translate_field("", "id") is None
    assert ai.prompts == []


def test_internal_recommendations_filters_untitled_and_self() -> None:
    registry = FakeRegistry({"library_items": LIBRARY})
    item = BrainstormingItem(id="b1", keywords=["memory", "retention"])

    recs = _service(registry=registry).internal_recommendations(item)

    assert [lib.id for lib in recs] == ["l1"]
    ilike = [args for t, op, args, _kw in registry.calls if op == "ilike"]
    assert ilike == [("search_all", "%memory%")]


def test_internal_recommendations_falls_back_to_title() -> None:
    registry = FakeRegistry({"library_items": LIBRARY})
    item = BrainstormingItem(id="x", proposed_title="Spaced repetition")

    recs = _service(registry=registry).internal_recommendations(item)

    assert [lib.id for lib in recs] == ["l1"]


def test_internal_recommendations_without_query_is_empty() -> None:
    registry = FakeRegistry({"library_items": LIBRARY})
    assert _service(registry=registry).internal_recommendations(BrainstormingItem()) == []
    assert registry.calls == []


def test_external_recommendations() -> None:
    storage = FakeStorage()
    storage.action_results["getBrainstormingRecommendations"] = {
        "status": "success",
        "external": ["Doe 2020", "Roe 2021"],
    }
    item = BrainstormingItem(proposed_title="Memory decay", keywords=["memory"])

    assert _service(storage=storage).external_recommendations(item) == ["Doe 2020", "Roe 2021"]
    action, fields = storage.actions[0]
    assert action == "getBrainstormingRecommendations"
    assert fields == {"keywords": ["memory"], "title": "Memory decay"}


def test_external_recommendations_failure_is_empty() -> None:
    storage = FakeStorage()
    storage.action_results["getBrainstormingRecommendations"] = {"status": "error"}
    assert _service(storage=storage).external_recommendations(BrainstormingItem()) == []


def test_translate_all_fields_returns_translated_row() -> None:
    storage = FakeStorage()
    storage.action_results["translateBrainstorming"] = {
        "status": "success",
        "data": {"proposedTitle": "Peluruhan memori"},
    }
    item = BrainstormingItem(id="b1", proposed_title="Memory decay")

    assert _service(storage=storage).translate_all_fields(item, "id") == {
        "proposedTitle": "Peluruhan memori"
    }
    _action, fields = storage.actions[0]
    assert fields["targetLang"] == "id"
    assert fields["data"]["proposedTitle"] == "Memory decay"


def test_save_publishes_event_and_upserts() -> None:
    registry = FakeRegistry()
    events = EventBus()
    seen: list[Event] = []
    events.subscribe(BRAINSTORMING_UPDATED, seen.append)

    ok = _service(registry=registry, events=events).save(BrainstormingItem(id="b1", label="L"))

    assert ok is True
    assert seen[0].detail.id == "b1"
    assert registry.tables["brainstorming"][0]["label"] == "L"


def test_fetch_paginated_search_newest_first() -> None:
    registry = FakeRegistry(
        {
            "brainstorming": [
                {"id": "b1", "createdAt": "2024-01-01", "search_all": "b1 memory"},
                {"id": "b2", "createdAt": "2024-02-01", "search_all": "b2 memory"},
                {"id": "b3", "createdAt": "2024-03-01", "search_all": "b3 other"},
            ]
        }
    )
    page = _service(registry=registry).fetch_paginated(search="Memory")
    assert [item.id for item in page.items] == ["b2", "b1"]
    assert page.total_count == 2


def test_promote_to_tracer_copies_framework() -> None:
    item = BrainstormingItem(
        id="b1",
        label="Memory",
        proposed_title="Memory decay in PKM",
        problem_statement="Notes rot",
        research_gap="No longitudinal data",
        research_question="How fast?",
        methodology="Diary study",
        population="Graduate students",
        keywords=["memory"],
    )

    project = _service().promote_to_tracer(item, authors=["Dr. Rina"])

    assert project.id and project.id != item.id
    assert project.title == "Memory decay in PKM"
    assert project.label == "Memory"
    assert project.research_gap == "No longitudinal data"
    assert project.keywords == ["memory"]
    assert project.authors == ["Dr. Rina"]
    assert project.status == TracerStatus.IDEA.value
    assert project.progress == 0
