from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx

from xeenaps.storage import StorageClient, StoredFile, is_success

BASE_URL = "https://script.example/exec"
NODE_URL = "https://node-2.example/exec"


def _client(handler) -> tuple[StorageClient, list[tuple[str, dict]]]:
    seen: list[tuple[str, dict]] = []

    def record(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append((str(request.url), body))
        return handler(request, body)

    http = httpx.Client(transport=httpx.MockTransport(record))
    return StorageClient(BASE_URL, http=http), seen


def test_is_success() -> None:
    assert is_success({"status": "success"})
    assert not is_success({"status": "error"})
    assert not is_success(None)
    assert not is_success({})


def test_post_action_sends_action_discriminator() -> None:
    client, seen = _client(lambda req, body: httpx.Response(200, json={"status": "success"}))

    result = client.post_action("getBrainstormingRecommendations", title="x")

    assert result == {"status": "success"}
    assert seen == [(BASE_URL, {"action": "getBrainstormingRecommendations", "title": "x"})]


def test_post_returns_none_on_http_error_and_non_json() -> None:
    client, _ = _client(lambda req, body: httpx.Response(500, json={"status": "error"}))
    assert client.post_action("aiProxy") is None

    client, _ = _client(lambda req, body: httpx.Response(200, text="<html>login</html>"))
    assert client.post_action("aiProxy") is None

    client, _ = _client(lambda req, body: httpx.Response(200, json=["not", "a", "dict"]))
    assert client.post_action("aiProxy") is None


def test_unconfigured_client_makes_no_requests() -> None:
    client = StorageClient("  ")
    assert client.configured is False
    assert client.post_action("aiProxy") is None
    assert client.upload_vault_file(b"data", file_name="a.txt") is None


def test_delete_remote_file_targets_owning_node() -> None:
    client, seen = _client(lambda req, body: httpx.Response(200, json={"status": "success"}))

    assert client.delete_remote_file("file-1", NODE_URL) is True
    assert client.delete_remote_file("", NODE_URL) is False

    assert seen == [(NODE_URL, {"action": "deleteRemoteFiles", "fileIds": ["file-1"]})]


def test_upload_vault_file_encodes_content(tmp_path: Path) -> None:
    path = tmp_path / "certificate.pdf"
    path.write_bytes(b"%PDF-1.4 fake")
    client, seen = _client(
        lambda req, body: httpx.Response(
            200, json={"status": "success", "fileId": "f-9", "nodeUrl": NODE_URL}
        )
    )

    stored = client.upload_vault_file(path)

    assert stored == StoredFile(file_id="f-9", node_url=NODE_URL)
    _url, body = seen[0]
    assert body["action"] == "vaultFileUpload"
    assert body["fileName"] == "certificate.pdf"
    assert body["mimeType"] == "application/pdf"
    assert base64.b64decode(body["fileData"]) == b"%PDF-1.4 fake"


def test_save_json_file_overwrites_on_existing_node() -> None:
    client, seen = _client(lambda req, body: httpx.Response(200, json={"status": "success"}))

    stored = client.save_json_file({"description": "hi"}, file_id="log-1", node_url=NODE_URL)

    assert stored == StoredFile(file_id="log-1", node_url=NODE_URL)
    assert seen == [
        (NODE_URL, {"action": "saveJsonFile", "content": {"description": "hi"}, "fileId": "log-1"})
    ]


def test_save_json_file_new_file_goes_to_base_url() -> None:
    client, seen = _client(
        lambda req, body: httpx.Response(
            200, json={"status": "success", "fileId": "new-1", "nodeUrl": NODE_URL}
        )
    )

    stored = client.save_json_file({"description": "hi"})

    assert stored == StoredFile(file_id="new-1", node_url=NODE_URL)
    assert seen[0][0] == BASE_URL
    assert "fileId" not in seen[0][1]


def test_fetch_file_content_returns_content_object() -> None:
    client, seen = _client(
        lambda req, body: httpx.Response(
            200, json={"status": "success", "content": {"fullText": "body"}}
        )
    )

    assert client.fetch_file_content("x-1", NODE_URL) == {"fullText": "body"}
    assert seen[0] == (NODE_URL, {"action": "getFileContent", "fileId": "x-1"})


def test_fetch_file_content_failure_is_none() -> None:
    client, _ = _client(lambda req, body: httpx.Response(200, json={"status": "error"}))
    assert client.fetch_file_content("x-1") is None
