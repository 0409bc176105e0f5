from __future__ import annotations

from xeenaps.types import (
    ActivityItem,
    ActivityVaultItem,
    Page,
    ResearchSource,
    TracerFinanceItem,
    TracerProject,
    TracerStatus,
    record_from_row,
    record_to_row,
)


def test_record_from_row_maps_camel_case_columns() -> None:
    project = record_from_row(
        TracerProject,
        {
            "id": "p1",
            "problemStatement": "Why do notes rot?",
            "researchGap": "No longitudinal study",
            "keywords": ["pkm", "notes"],
            "progress": "40",
            "status": "In Progress",
        },
    )

    assert project.id == "p1"
    assert project.problem_statement == "Why do notes rot?"
    assert project.research_gap == "No longitudinal study"
    assert project.keywords == ["pkm", "notes"]
    assert project.progress == 40
    assert project.status == TracerStatus.IN_PROGRESS.value


def test_record_from_row_keeps_unknown_columns_and_drops_search_column() -> None:
    project = record_from_row(
        TracerProject,
        {"id": "p1", "legacyField": 3, "search_all": "p1 whatever"},
    )

    assert project.extra == {"legacyField": 3}
    row = record_to_row(project)
    assert row["legacyField"] == 3
    assert "search_all" not in row


def test_record_from_row_defaults_for_missing_and_bad_values() -> None:
    project = record_from_row(
        TracerProject, {"id": "p1", "keywords": "not-a-list", "authors": None}
    )

    assert project.keywords == []
    assert project.authors == []
    assert project.title == ""


def test_finance_amounts_are_floats() -> None:
    item = record_from_row(TracerFinanceItem, {"id": "f1", "credit": "1500", "debit": None})
    assert item.credit == 1500.0
    assert item.debit == 0.0


def test_activity_vault_items_roundtrip_as_nested_records() -> None:
    activity = record_from_row(
        ActivityItem,
        {
            "id": "a1",
            "eventName": "ICON 2024",
            "vault_items": [
                {"type": "FILE", "label": "Slides", "fileId": "f1", "nodeUrl": "https://n1"},
                {"type": "LINK", "label": "Site", "url": "https://icon.example"},
            ],
        },
    )

    assert activity.event_name == "ICON 2024"
    assert activity.vault_items[0] == ActivityVaultItem(
        type="FILE", label="Slides", file_id="f1", node_url="https://n1"
    )
    assert activity.vault_items[1].url == "https://icon.example"

    row = record_to_row(activity)
    assert row["vault_items"][0]["fileId"] == "f1"
    assert row["vault_items"][1]["type"] == "LINK"
    assert row["eventName"] == "ICON 2024"


def test_research_source_flags_are_booleans() -> None:
    source = record_from_row(ResearchSource, {"id": "s1", "isAnalyzing": 1, "isFavorite": 0})
    assert source.is_analyzing is True
    assert source.is_favorite is False


def test_page_defaults_empty() -> None:
    page: Page[TracerProject] = Page()
    assert page.items == []
    assert page.total_count == 0
