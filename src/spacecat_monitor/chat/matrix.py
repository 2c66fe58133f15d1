"""Matrix room channel over the client-server API (v3)."""

from __future__ import annotations

import html
import logging
import uuid
from typing import Any
from urllib.parse import quote

import httpx

from ..exceptions import ChannelConstructionError, ChatError
from ..redaction import sanitize_text
from .base import ChatChannel, NotificationCard

DEVICE_DISPLAY_NAME = "SpaceCat"


def card_to_plain(card: NotificationCard) -> str:
    """Markdown-flavoured plain body used as the message fallback."""
    lines = [f"**{card.title}**", ""]
    lines.extend(f"**{item.name}**: {item.value}" for item in card.fields)
    body = "\n".join(lines) + "\n"
    if card.footer:
        body += f"_{card.footer}_"
    return body


def card_to_html(card: NotificationCard) -> str:
    def esc(value: str) -> str:
        return html.escape(value).replace("\n", "<br/>")

    parts = [f"<strong>{esc(card.title)}</strong><br/><br/>"]
    parts.extend(f"<strong>{esc(item.name)}</strong>: {esc(item.value)}<br/>" for item in card.fields)
    if card.footer:
        parts.append(f"<em>{esc(card.footer)}</em>")
    return "".join(parts)


def guess_image_mimetype(filename: str) -> str:
    lowered = filename.lower()
    if lowered.endswith(".png"):
        return "image/png"
    return "image/jpeg"


class MatrixChannel(ChatChannel):
    """Logs in with a password at construction and posts into one room."""

    name = "matrix"

    def __init__(
        self,
        homeserver_url: str,
        username: str,
        password: str,
        room_id: str,
        logger: logging.Logger,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.room_id = room_id
        self.logger = logger
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._base_url = homeserver_url.rstrip("/")
        self._access_token = self._login(username, password)
        self._join_room()

    def send_notification(self, card: NotificationCard) -> None:
        self._send_message(
            {
                "msgtype": "m.text",
                "body": card_to_plain(card),
                "format": "org.matrix.custom.html",
                "formatted_body": card_to_html(card),
            }
        )

    def send_notification_with_attachment(
        self,
        card: NotificationCard,
        data: bytes,
        filename: str,
    ) -> None:
        self.send_notification(card)
        mimetype = guess_image_mimetype(filename)
        content_uri = self._upload(data, filename, mimetype)
        self._send_message(
            {
                "msgtype": "m.image",
                "body": filename,
                "url": content_uri,
                "info": {"mimetype": mimetype, "size": len(data)},
            }
        )

    def close(self) -> None:
        self._client.close()

    def _login(self, username: str, password: str) -> str:
        body = {
            "type": "m.login.password",
            "identifier": {"type": "m.id.user", "user": username},
            "password": password,
            "initial_device_display_name": DEVICE_DISPLAY_NAME,
        }
        try:
            payload = self._call("POST", "/_matrix/client/v3/login", json_body=body, auth=False)
        except ChatError as exc:
            raise ChannelConstructionError(f"Matrix login failed: {exc}", channel=self.name) from exc
        token = payload.get("access_token")
        if not isinstance(token, str) or not token:
            raise ChannelConstructionError(
                "Matrix login response did not include an access token.", channel=self.name
            )
        self.logger.info("Logged in to Matrix homeserver as %s", username)
        return token

    def _join_room(self) -> None:
        try:
            self._call("POST", f"/_matrix/client/v3/join/{quote(self.room_id, safe='')}", json_body={})
        except ChatError as exc:
            raise ChannelConstructionError(
                f"Matrix room join failed for {self.room_id}: {exc}", channel=self.name
            ) from exc

    def _send_message(self, content: dict[str, Any]) -> None:
        path = (
            f"/_matrix/client/v3/rooms/{quote(self.room_id, safe='')}"
            f"/send/m.room.message/{uuid.uuid4().hex}"
        )
        self._call("PUT", path, json_body=content)

    def _upload(self, data: bytes, filename: str, mimetype: str) -> str:
        payload = self._call(
            "POST",
            "/_matrix/media/v3/upload",
            params={"filename": filename},
            content=data,
            headers={"Content-Type": mimetype},
        )
        content_uri = payload.get("content_uri")
        if not isinstance(content_uri, str):
            raise ChatError("Matrix media upload returned no content_uri.", channel=self.name)
        return content_uri

    def _call(
        self,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        auth: bool = True,
    ) -> dict[str, Any]:
        request_headers = dict(headers or {})
        if auth:
            request_headers["Authorization"] = f"Bearer {self._access_token}"
        try:
            response = self._client.request(
                method,
                self._base_url + path,
                json=json_body,
                params=params,
                content=content,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            raise ChatError(
                f"Matrix request failed: {sanitize_text(str(exc))}", channel=self.name
            ) from exc
        if response.status_code >= 400:
            raise ChatError(
                f"Matrix {method} {path.split('?')[0]} returned {response.status_code}: "
                f"{sanitize_text(response.text[:300])}",
                channel=self.name,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ChatError("Matrix returned a non-JSON response.", channel=self.name) from exc
        if not isinstance(payload, dict):
            raise ChatError("Matrix returned an unexpected payload shape.", channel=self.name)
        return payload
