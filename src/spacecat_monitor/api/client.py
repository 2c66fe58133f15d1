"""Imaging API (Advanced API, /v2/api) client."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import Settings
from ..exceptions import SpaceCatAPIError, SpaceCatRequestError
from ..redaction import sanitize_text
from .models import ApiEnvelope, AutofocusResult, Event, ImageMetadata, MountInfo

_EVENTS_ADAPTER = TypeAdapter(list[Event])
_IMAGES_ADAPTER = TypeAdapter(list[ImageMetadata])

API_PREFIX = "/v2/api"


class SpaceCatClient:
    """Fetches and validates snapshots from the imaging control endpoint."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        retry_delay_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.max_retries = settings.api_retry_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self._client = httpx.Client(
            base_url=settings.api_base_url.rstrip("/") + API_PREFIX,
            timeout=settings.api_timeout_seconds,
            headers={"User-Agent": "spacecat-monitor/0.1"},
            transport=transport,
        )

    def __enter__(self) -> SpaceCatClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close underlying HTTP client."""
        self._client.close()

    def fetch_version(self) -> str:
        """Return the API version string; doubles as a connectivity check."""
        return str(self._request_response("/version", context="version"))

    def fetch_event_history(self) -> list[Event]:
        raw = self._request_response("/event-history", context="event history")
        return self._validate_list(_EVENTS_ADAPTER, raw, context="event history")

    def fetch_all_image_history(self) -> list[ImageMetadata]:
        raw = self._request_response(
            "/image-history", context="image history", params={"all": "true"}
        )
        return self._validate_list(_IMAGES_ADAPTER, raw, context="image history")

    def fetch_sequence(self) -> list[Any]:
        """Return the raw sequence tree; node shapes vary, so it stays untyped."""
        raw = self._request_response("/sequence/json", context="sequence")
        if not isinstance(raw, list):
            raise SpaceCatAPIError(
                f"Sequence response was {type(raw).__name__}, expected a list of nodes."
            )
        return raw

    def fetch_mount_info(self) -> MountInfo:
        raw = self._request_response("/equipment/mount/info", context="mount info")
        try:
            return MountInfo.model_validate(raw)
        except ValidationError as exc:
            raise SpaceCatAPIError(f"Mount info payload failed validation: {exc}") from exc

    def fetch_last_autofocus(self) -> AutofocusResult:
        raw = self._request_response("/equipment/focuser/last-af", context="last autofocus")
        try:
            return AutofocusResult.model_validate(raw)
        except ValidationError as exc:
            raise SpaceCatAPIError(f"Autofocus payload failed validation: {exc}") from exc

    def fetch_thumbnail(self, index: int, image_type: str | None = None) -> bytes:
        """Download the JPEG thumbnail for the image at ``index`` in image history.

        ``image_type`` (LIGHT, FLAT, DARK, BIAS, SNAPSHOT) indexes within that type only.
        """
        params = {"imageType": image_type} if image_type else None
        response = self._request(f"/image/thumbnail/{index}", context="thumbnail", params=params)
        if not response.content:
            raise SpaceCatAPIError(f"Thumbnail {index} was empty.")
        return response.content

    def _validate_list(self, adapter: TypeAdapter[Any], raw: Any, context: str) -> Any:
        # One bad record fails the whole batch.
        try:
            return adapter.validate_python(raw)
        except ValidationError as exc:
            raise SpaceCatAPIError(
                f"{context.capitalize()} payload failed validation: "
                f"{exc.error_count()} error(s); first: {exc.errors()[0]['msg']}"
            ) from exc

    def _request_response(
        self,
        path: str,
        context: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        payload = self._request_json(path, context=context, params=params)
        try:
            envelope = ApiEnvelope.model_validate(payload)
        except ValidationError as exc:
            raise SpaceCatAPIError(f"{context} returned a malformed envelope.") from exc
        if not envelope.success:
            raise SpaceCatRequestError(
                f"{context} reported failure: {sanitize_text(envelope.error or 'no error text')}",
                category="api_failure",
                status_code=envelope.status_code,
            )
        return envelope.response

    def _request_json(
        self,
        path: str,
        context: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        response = self._request(path, context=context, params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SpaceCatAPIError(f"{context} returned non-JSON response at {path}.") from exc
        if not isinstance(payload, dict):
            raise SpaceCatAPIError(
                f"{context} returned unexpected payload type {type(payload).__name__} at {path}."
            )
        return payload

    def _request(
        self,
        path: str,
        context: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        last_error: Exception | None = None
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                time.sleep(self.retry_delay_seconds * attempt)
            try:
                response = self._client.get(path, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                # Don't retry 4xx client errors except 429 rate-limit.
                if 400 <= status < 500 and status != 429:
                    raise SpaceCatRequestError(
                        f"{context} failed with status {status} at {path}: "
                        f"{sanitize_text(exc.response.text[:300])}",
                        category="http_status",
                        status_code=status,
                    ) from exc
                last_error = exc
                if attempt < self.max_retries:
                    self.logger.warning(
                        "%s failed (HTTP %d); retrying (attempt %d of %d)",
                        context, status, attempt + 2, self.max_retries + 1,
                    )
                    continue
                raise SpaceCatRequestError(
                    f"{context} failed with status {status} at {path}: "
                    f"{sanitize_text(exc.response.text[:300])}",
                    category="http_status",
                    status_code=status,
                ) from exc
            except httpx.HTTPError as exc:
                last_error = exc
                if attempt < self.max_retries:
                    self.logger.warning(
                        "%s request failed (%s); retrying (attempt %d of %d)",
                        context, type(exc).__name__, attempt + 2, self.max_retries + 1,
                    )
                    continue
                category = "timeout" if isinstance(exc, httpx.TimeoutException) else "transport"
                raise SpaceCatRequestError(
                    f"{context} request failed at {path}: {sanitize_text(str(exc))}",
                    category=category,
                ) from exc
            return response

        raise SpaceCatAPIError(f"{context} failed after retries: {last_error}")
