from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from .config import XeenapsConfig

logger = logging.getLogger(__name__)

OPTIMISTIC_PREFIX = "optimistic_"


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    node_url: str


def is_success(payload: dict[str, Any] | None) -> bool:
    return bool(payload) and payload.get("status") == "success"  # type: ignore[union-attr]


class StorageClient:
    """JSON POST client for the script-based file storage nodes.

    Every request body carries an ``action`` discriminator; responses are
    ``{"status": "success" | ..., ...}``. Files can live on any node, so
    follow-up calls go to the ``nodeUrl`` returned at upload time.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout_s: float = 30.0,
        http: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or "").strip() or None
        self.timeout_s = timeout_s
        self._http = http

    @classmethod
    def from_config(cls, config: XeenapsConfig) -> StorageClient:
        return cls(config.gas_web_app_url, timeout_s=config.http_timeout_s)

    @property
    def configured(self) -> bool:
        return self.base_url is not None

    def post(self, url: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        action = payload.get("action")
        try:
            if self._http is not None:
                response = self._http.post(url, json=payload, timeout=self.timeout_s)
            else:
                # Apps Script answers with a redirect to the content host.
                with httpx.Client(timeout=self.timeout_s, follow_redirects=True) as client:
                    response = client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except ValueError:
            logger.warning("storage: non-json response", extra={"action": action, "url": url})
            return None
        except httpx.HTTPError as exc:
            logger.warning(
                "storage: request failed", extra={"action": action, "url": url, "error": str(exc)}
            )
            return None
        if not isinstance(data, dict):
            logger.warning("storage: unexpected json type", extra={"action": action})
            return None
        return data

    def post_action(self, action: str, **fields: Any) -> dict[str, Any] | None:
        if not self.base_url:
            return None
        return self.post(self.base_url, {"action": action, **fields})

    def delete_remote_file(self, file_id: str, node_url: str) -> bool:
        if not file_id or not node_url:
            return False
        result = self.post(node_url, {"action": "deleteRemoteFiles", "fileIds": [file_id]})
        return is_success(result)

    def upload_vault_file(
        self,
        source: Path | str | bytes,
        *,
        file_name: str | None = None,
        mime_type: str | None = None,
    ) -> StoredFile | None:
        if not self.base_url:
            return None
        if isinstance(source, bytes):
            data = source
            name = file_name or "upload.bin"
        else:
            path = Path(source)
            data = path.read_bytes()
            name = file_name or path.name
        mime = mime_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
        result = self.post_action(
            "vaultFileUpload",
            fileData=base64.b64encode(data).decode("ascii"),
            fileName=name,
            mimeType=mime,
        )
        if result is None or not is_success(result):
            return None
        return StoredFile(
            file_id=str(result.get("fileId") or ""),
            node_url=str(result.get("nodeUrl") or ""),
        )

    def save_json_file(
        self,
        content: dict[str, Any],
        *,
        file_id: str | None = None,
        node_url: str | None = None,
    ) -> StoredFile | None:
        """Store a JSON document, overwriting ``file_id`` on its node when given."""
        target = node_url if file_id and node_url else self.base_url
        if not target:
            return None
        payload: dict[str, Any] = {"action": "saveJsonFile", "content": content}
        if file_id:
            payload["fileId"] = file_id
        result = self.post(target, payload)
        if result is None or not is_success(result):
            return None
        return StoredFile(
            file_id=str(result.get("fileId") or file_id or ""),
            node_url=str(result.get("nodeUrl") or target),
        )

    def fetch_file_content(
        self, file_id: str, node_url: str | None = None
    ) -> dict[str, Any] | None:
        target = node_url or self.base_url
        if not file_id or not target:
            return None
        result = self.post(target, {"action": "getFileContent", "fileId": file_id})
        if result is None or not is_success(result):
            return None
        content = result.get("content")
        return content if isinstance(content, dict) else None
