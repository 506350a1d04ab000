"""YouTrack action provider over the YouTrack REST API."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

import httpx

from ...core.exceptions import ActionProviderError
from .actions import ActionProvider

if TYPE_CHECKING:
    from ...core.config import Settings

logger = logging.getLogger(__name__)


class YouTrackActionProvider(ActionProvider):
    """
    Supported actions:

    - ``get_attachment(issueId, attachmentId)`` -> ``{blobRef, mimeType, filename}``
    - ``add_comment(issueId, text)`` -> ``{ok, id}``

    Pass ``client`` to share a connection pool (or a mock transport in tests);
    otherwise a short-lived client is opened per call.
    """

    provider_id = "youtrack"

    def __init__(
        self,
        base_url: str | None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self.client = client
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> YouTrackActionProvider:
        return cls(
            base_url=settings.youtrack_base_url,
            token=settings.youtrack_token,
            client=client,
            timeout=settings.http_timeout_seconds,
        )

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def run(self, action_id: str, action_input: dict[str, Any]) -> Any:
        if not self.base_url:
            raise ActionProviderError(
                "YouTrack base URL is not configured", self.provider_id, action_id
            )

        if action_id == "get_attachment":
            handler = self._get_attachment
        elif action_id == "add_comment":
            handler = self._add_comment
        else:
            raise ActionProviderError(
                f"Unknown actionId: {action_id}", self.provider_id, action_id
            )

        if self.client is not None:
            return await handler(self.client, action_input)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await handler(client, action_input)

    async def _get_attachment(
        self, client: httpx.AsyncClient, action_input: dict[str, Any]
    ) -> dict[str, Any]:
        issue_id = self._require(action_input, "issueId", "get_attachment")
        attachment_id = self._require(action_input, "attachmentId", "get_attachment")

        info = await self._request(
            client,
            "GET",
            f"{self.base_url}/api/issues/{issue_id}/attachments/{attachment_id}",
            "get_attachment",
            params={"fields": "id,name,mimeType,url"},
        )
        attachment = info.json()
        file_url = attachment.get("url")
        if not file_url:
            raise ActionProviderError(
                f"Attachment {attachment_id} has no download url",
                self.provider_id,
                "get_attachment",
            )

        content = await self._request(
            client,
            "GET",
            str(httpx.URL(self.base_url).join(file_url)),
            "get_attachment",
        )
        logger.debug(
            "Downloaded attachment %s of issue %s (%d bytes)",
            attachment_id,
            issue_id,
            len(content.content),
        )
        return {
            "blobRef": base64.b64encode(content.content).decode("ascii"),
            "mimeType": attachment.get("mimeType") or "application/octet-stream",
            "filename": attachment.get("name") or f"attachment-{attachment_id}",
        }

    async def _add_comment(
        self, client: httpx.AsyncClient, action_input: dict[str, Any]
    ) -> dict[str, Any]:
        issue_id = self._require(action_input, "issueId", "add_comment")
        text = self._require(action_input, "text", "add_comment")

        response = await self._request(
            client,
            "POST",
            f"{self.base_url}/api/issues/{issue_id}/comments",
            "add_comment",
            params={"fields": "id"},
            json={"text": text},
        )
        return {"ok": True, "id": response.json().get("id")}

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        action_id: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await client.request(method, url, headers=self.headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ActionProviderError(
                f"YouTrack returned HTTP {e.response.status_code} for {method} {url}",
                self.provider_id,
                action_id,
                e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ActionProviderError(
                f"YouTrack request failed: {e}", self.provider_id, action_id
            ) from e
        return response

    def _require(self, action_input: dict[str, Any], key: str, action_id: str) -> str:
        value = action_input.get(key)
        if value is None or str(value).strip() == "":
            raise ActionProviderError(
                f"{action_id}: missing '{key}'", self.provider_id, action_id
            )
        return str(value)
