from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

GENERATED_COLUMNS = frozenset({"search_all"})


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def column(default: Any = "", *, name: str | None = None, item: type | None = None) -> Any:
    metadata: dict[str, Any] = {}
    if name:
        metadata["column"] = name
    if item is not None:
        metadata["item"] = item
    if isinstance(default, list):
        return field(default_factory=list, metadata=metadata)
    return field(default=default, metadata=metadata)


def _column_name(f: Any) -> str:
    return f.metadata.get("column") or _camel(f.name)


def _coerce(f: Any, value: Any) -> Any:
    default = f.default_factory() if f.default_factory is not MISSING else f.default
    if value is None:
        return default
    item_type = f.metadata.get("item")
    if isinstance(default, list):
        if not isinstance(value, list):
            return []
        if item_type is not None:
            return [
                record_from_row(item_type, v) if isinstance(v, dict) else v for v in value
            ]
        return list(value)
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, int) and not isinstance(value, bool):
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
    if isinstance(default, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
    if isinstance(default, str) and not isinstance(value, str):
        return str(value)
    return value


def record_from_row(cls: type[T], row: dict[str, Any] | None) -> T:
    """Build a record from a backend row; unknown columns land in ``extra``."""
    row = dict(row or {})
    kwargs: dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        if f.name == "extra":
            continue
        key = _column_name(f)
        if key in row:
            kwargs[f.name] = _coerce(f, row.pop(key))
        elif f.name in row:
            kwargs[f.name] = _coerce(f, row.pop(f.name))
    for key in GENERATED_COLUMNS:
        row.pop(key, None)
    if any(f.name == "extra" for f in fields(cls)):  # type: ignore[arg-type]
        kwargs["extra"] = row
    return cls(**kwargs)


def record_to_row(record: Any) -> dict[str, Any]:
    row: dict[str, Any] = {}
    extra = getattr(record, "extra", None) or {}
    row.update({k: v for k, v in extra.items() if k not in GENERATED_COLUMNS})
    for f in fields(record):
        if f.name == "extra":
            continue
        value = getattr(record, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, list):
            value = [record_to_row(v) if hasattr(v, "__dataclass_fields__") else v for v in value]
        row[_column_name(f)] = value
    return row


class TracerStatus(str, Enum):
    IDEA = "Idea"
    IN_PROGRESS = "In Progress"
    UNDER_REVIEW = "Under Review"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


@dataclass
class TracerProject:
    id: str = column()
    label: str = column()
    title: str = column()
    topic: str = column()
    problem_statement: str = column()
    research_gap: str = column()
    research_question: str = column()
    methodology: str = column()
    population: str = column()
    keywords: list[str] = column([])
    authors: list[str] = column([])
    status: str = column(TracerStatus.IDEA.value)
    progress: int = column(0)
    start_date: str = column()
    est_end_date: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TracerLog:
    id: str = column()
    project_id: str = column()
    title: str = column()
    log_json_id: str = column()
    storage_node_url: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TracerLogContent:
    description: str = column()
    attachments: list[dict[str, Any]] = column([])
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TracerReference:
    id: str = column()
    project_id: str = column()
    collection_id: str = column()
    content_json_id: str = column()
    storage_node_url: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TracerTodo:
    id: str = column()
    project_id: str = column()
    title: str = column()
    description: str = column()
    start_date: str = column()
    deadline: str = column()
    is_done: bool = column(False)
    completed_date: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TracerFinanceItem:
    id: str = column()
    project_id: str = column()
    date: str = column()
    credit: float = column(0.0)
    debit: float = column(0.0)
    balance: float = column(0.0)
    description: str = column()
    attachments_json_id: str = column()
    storage_node_url: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ResearchSource:
    id: str = column()
    project_id: str = column()
    source_id: str = column()
    title: str = column()
    findings: str = column()
    methodology: str = column()
    limitations: str = column()
    is_favorite: bool = column(False)
    is_used: bool = column(False)
    is_analyzing: bool = column(False)
    created_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class BrainstormingItem:
    id: str = column()
    label: str = column()
    rough_idea: str = column()
    proposed_title: str = column()
    problem_statement: str = column()
    research_gap: str = column()
    research_question: str = column()
    methodology: str = column()
    population: str = column()
    keywords: list[str] = column([])
    pillars: list[str] = column([])
    proposed_abstract: str = column()
    external_refs: list[str] = column([])
    internal_refs: list[str] = column([])
    is_favorite: bool = column(False)
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActivityVaultItem:
    type: str = column("FILE")
    label: str = column()
    file_id: str = column()
    node_url: str = column()
    url: str = column()
    mime_type: str = column()


@dataclass
class ActivityItem:
    id: str = column()
    type: str = column()
    event_name: str = column()
    organizer: str = column()
    location: str = column()
    level: str = column()
    role: str = column()
    start_date: str = column()
    end_date: str = column()
    description: str = column()
    notes: str = column()
    certificate_number: str = column()
    certificate_file_id: str = column()
    certificate_node_url: str = column()
    vault_json_id: str = column()
    storage_node_url: str = column()
    vault_items: list[ActivityVaultItem] = column([], name="vault_items", item=ActivityVaultItem)
    is_favorite: bool = column(False)
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TeachingItem:
    id: str = column()
    label: str = column()
    course_title: str = column()
    institution: str = column()
    location: str = column()
    academic_year: str = column()
    semester: str = column()
    teaching_date: str = column()
    start_time: str = column()
    end_time: str = column()
    role: str = column()
    notes: str = column()
    vault_items: list[ActivityVaultItem] = column([], name="vault_items", item=ActivityVaultItem)
    is_favorite: bool = column(False)
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class NoteItem:
    id: str = column()
    collection_id: str = column()
    label: str = column()
    note_json_id: str = column()
    storage_node_url: str = column()
    is_favorite: bool = column(False)
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class LibraryItem:
    id: str = column()
    title: str = column()
    type: str = column()
    authors: list[str] = column([])
    year: str = column()
    topic: str = column()
    abstract: str = column()
    extracted_json_id: str = column()
    storage_node_url: str = column()
    created_at: str = column()
    updated_at: str = column()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VipAdItem:
    image_url: str
    cta_link: str = ""


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total_count: int = 0
