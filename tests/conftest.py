from __future__ import annotations

import copy
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from postgrest.exceptions import APIError

from xeenaps.storage import StoredFile


def _sortable(value: Any) -> tuple[int, Any]:
    if value is None:
        return (0, "")
    return (1, value)


def _parse_or_clause(expr: str) -> list[tuple[str, str, Any]]:
    clauses = []
    for part in expr.split(","):
        column, op, raw = part.split(".", 2)
        if op == "is" and raw == "null":
            value: Any = None
        else:
            value = raw.strip('"')
        clauses.append((column, op, value))
    return clauses


class FakeQuery:
    """Just enough of the PostgREST request builder for the services."""

    def __init__(self, registry: FakeRegistry, table: str) -> None:
        self.registry = registry
        self.table = table
        self.mode = "select"
        self.count_requested = False
        self.filters: list[Any] = []
        self.orders: list[tuple[str, bool]] = []
        self.window: tuple[int, int] | None = None
        self.want_single = False
        self.payload: Any = None
        self.on_conflict: str | None = None

    def _log(self, op: str, *args: Any, **kwargs: Any) -> FakeQuery:
        self.registry.calls.append((self.table, op, args, kwargs))
        return self

    def select(self, *_columns: str, count: str | None = None) -> FakeQuery:
        self.count_requested = count == "exact"
        return self._log("select", *_columns, count=count)

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: row.get(column) == value)
        return self._log("eq", column, value)

    def ilike(self, column: str, pattern: str) -> FakeQuery:
        needle = pattern.strip("%").lower()
        self.filters.append(lambda row: needle in str(row.get(column) or "").lower())
        return self._log("ilike", column, pattern)

    def gte(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: (row.get(column) or "") >= value)
        return self._log("gte", column, value)

    def lte(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: (row.get(column) or "") <= value)
        return self._log("lte", column, value)

    def in_(self, column: str, values: list[Any]) -> FakeQuery:
        allowed = set(values)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self._log("in_", column, list(values))

    def or_(self, expr: str) -> FakeQuery:
        clauses = _parse_or_clause(expr)

        def match(row: dict[str, Any]) -> bool:
            for column, op, value in clauses:
                if op == "is" and row.get(column) is value:
                    return True
                if op == "eq" and row.get(column) == value:
                    return True
            return False

        self.filters.append(match)
        return self._log("or_", expr)

    def order(self, column: str, *, desc: bool = False) -> FakeQuery:
        self.orders.append((column, desc))
        return self._log("order", column, desc=desc)

    def range(self, start: int, end: int) -> FakeQuery:
        self.window = (start, end)
        return self._log("range", start, end)

    def single(self) -> FakeQuery:
        self.want_single = True
        return self._log("single")

    def upsert(self, payload: Any, *, on_conflict: str | None = None) -> FakeQuery:
        self.mode = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self._log("upsert", payload, on_conflict=on_conflict)

    def delete(self) -> FakeQuery:
        self.mode = "delete"
        return self._log("delete")

    def _matching(self) -> list[dict[str, Any]]:
        rows = self.registry.tables.setdefault(self.table, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def execute(self) -> SimpleNamespace:
        self.registry.executed.append((self.table, self.mode))
        if (self.table, self.mode) in self.registry.failures:
            raise RuntimeError(f"{self.mode} on {self.table} failed")
        if self.mode == "upsert":
            return self._execute_upsert()
        if self.mode == "delete":
            rows = self.registry.tables.setdefault(self.table, [])
            removed = self._matching()
            self.registry.tables[self.table] = [row for row in rows if row not in removed]
            return SimpleNamespace(data=removed, count=None)
        matched = self._matching()
        for column, desc in reversed(self.orders):
            matched.sort(key=lambda row, c=column: _sortable(row.get(c)), reverse=desc)
        total = len(matched)
        if self.window is not None:
            start, end = self.window
            matched = matched[start : end + 1]
        if self.want_single:
            if len(matched) != 1:
                raise APIError(
                    {
                        "message": "JSON object requested, multiple (or no) rows returned",
                        "code": "PGRST116",
                        "hint": None,
                        "details": f"The result contains {len(matched)} rows",
                    }
                )
            return SimpleNamespace(data=copy.deepcopy(matched[0]), count=None)
        return SimpleNamespace(
            data=copy.deepcopy(matched), count=total if self.count_requested else None
        )

    def _execute_upsert(self) -> SimpleNamespace:
        rows = self.registry.tables.setdefault(self.table, [])
        payloads = self.payload if isinstance(self.payload, list) else [self.payload]
        for payload in payloads:
            stored = copy.deepcopy(payload)
            for idx, row in enumerate(rows):
                if row.get("id") == stored.get("id"):
                    rows[idx] = stored
                    break
            else:
                rows.append(stored)
        return SimpleNamespace(data=copy.deepcopy(payloads), count=None)


class FakeRegistry:
    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = copy.deepcopy(tables or {})
        self.calls: list[tuple[str, str, tuple[Any, ...], dict[str, Any]]] = []
        self.executed: list[tuple[str, str]] = []
        self.failures: set[tuple[str, str]] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def ops(self, table: str) -> list[str]:
        return [op for t, op, _args, _kwargs in self.calls if t == table]


class FakeStorage:
    """Records storage calls; answers from ``files`` keyed by file id."""

    def __init__(self, *, configured: bool = True) -> None:
        self.configured = configured
        self.deleted: list[tuple[str, str]] = []
        self.saved: list[dict[str, Any]] = []
        self.actions: list[tuple[str, dict[str, Any]]] = []
        self.files: dict[str, dict[str, Any]] = {}
        self.action_results: dict[str, dict[str, Any] | None] = {}
        self.save_result: StoredFile | None = StoredFile("file-new", "https://node.example/exec")
        self.upload_result: StoredFile | None = StoredFile("vault-1", "https://node.example/exec")

    def delete_remote_file(self, file_id: str, node_url: str) -> bool:
        self.deleted.append((file_id, node_url))
        return True

    def save_json_file(
        self,
        content: dict[str, Any],
        *,
        file_id: str | None = None,
        node_url: str | None = None,
    ) -> StoredFile | None:
        self.saved.append({"content": content, "file_id": file_id, "node_url": node_url})
        if self.save_result is None:
            return None
        if file_id and node_url:
            return StoredFile(file_id, node_url)
        return self.save_result

    def fetch_file_content(
        self, file_id: str, node_url: str | None = None
    ) -> dict[str, Any] | None:
        return copy.deepcopy(self.files.get(file_id))

    def post_action(self, action: str, **fields: Any) -> dict[str, Any] | None:
        self.actions.append((action, fields))
        return self.action_results.get(action)

    def upload_vault_file(self, source: Any, **_kwargs: Any) -> StoredFile | None:
        return self.upload_result


class FakeAi:
    def __init__(self, responses: list[str | None] | None = None) -> None:
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        if not self.responses:
            return None
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, level: str, message: str) -> None:
        self.messages.append((level, message))

    def levels(self) -> list[str]:
        return [level for level, _ in self.messages]


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XEENAPS_CONFIG", str(tmp_path / "xeenaps" / "config.json"))
    for name in (
        "XEENAPS_SUPABASE_URL",
        "XEENAPS_SUPABASE_KEY",
        "XEENAPS_GAS_WEB_APP_URL",
        "XEENAPS_VIP_ADS_CSV_URL",
        "XEENAPS_AI_PROVIDER",
        "XEENAPS_AI_MODEL",
        "XEENAPS_AI_API_KEY",
        "XEENAPS_LOG_LEVEL",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
