"""CLI smoke tests with the imaging API stubbed out."""

from __future__ import annotations

from typing import Any

import pytest

from spacecat_monitor import cli
from spacecat_monitor.api.client import SpaceCatClient
from spacecat_monitor.api.models import Event, ImageMetadata
from spacecat_monitor.exceptions import SpaceCatAPIError


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> pytest.MonkeyPatch:
    monkeypatch.chdir(tmp_path)
    for name in (
        "DISCORD_WEBHOOK_URL",
        "MATRIX_HOMESERVER_URL",
        "MATRIX_USERNAME",
        "MATRIX_PASSWORD",
        "MATRIX_ROOM_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPACECAT_API_BASE_URL", "http://observatory.test:1888")
    monkeypatch.setenv("SPACECAT_RETRY_ATTEMPTS", "0")
    return monkeypatch


def _stub_client(monkeypatch: pytest.MonkeyPatch, **methods: Any) -> None:
    defaults: dict[str, Any] = {
        "fetch_event_history": lambda self: [],
        "fetch_all_image_history": lambda self: [],
        "fetch_sequence": lambda self: [],
    }
    defaults.update(methods)
    for name, fn in defaults.items():
        monkeypatch.setattr(SpaceCatClient, name, fn)


def test_parse_args_defaults_to_run() -> None:
    args = cli.parse_args([])
    assert args.command == "run"
    assert args.max_cycles is None


def test_parse_args_subcommands() -> None:
    assert cli.parse_args(["events", "--count", "5"]).count == 5
    assert cli.parse_args(["run", "--max-cycles", "2"]).max_cycles == 2
    assert cli.parse_args(["last-af"]).command == "last-af"


def test_config_failure_exit_code(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SPACECAT_TIMEOUT_SECONDS", "0")
    assert cli.main(["run"]) == cli.EXIT_CONFIG


def test_invalid_webhook_is_channel_failure(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DISCORD_WEBHOOK_URL", "https://example.com/not-a-webhook")
    assert cli.main(["run", "--max-cycles", "1"]) == cli.EXIT_CHANNELS


def test_run_monitoring_only_mode(clean_env: pytest.MonkeyPatch) -> None:
    _stub_client(clean_env)
    assert cli.main(["run", "--max-cycles", "1"]) == cli.EXIT_OK


def test_baseline_failure_exit_code(clean_env: pytest.MonkeyPatch) -> None:
    def _fail(self: SpaceCatClient) -> list[Event]:
        raise SpaceCatAPIError("offline")

    _stub_client(clean_env, fetch_event_history=_fail)
    assert cli.main(["run", "--max-cycles", "1"]) == cli.EXIT_BASELINE


def test_events_query_prints_table(
    clean_env: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    events = [Event.model_validate({"Time": "2025-01-01T21:00:00", "Event": "GUIDER-START"})]
    _stub_client(clean_env, fetch_event_history=lambda self: events)

    assert cli.main(["events", "--count", "3"]) == cli.EXIT_OK
    assert "GUIDER-START" in capsys.readouterr().out


def test_images_query_api_failure(clean_env: pytest.MonkeyPatch) -> None:
    def _fail(self: SpaceCatClient) -> list[ImageMetadata]:
        raise SpaceCatAPIError("offline")

    _stub_client(clean_env, fetch_all_image_history=_fail)
    assert cli.main(["images"]) == cli.EXIT_API


def test_sequence_query(clean_env: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    tree = [
        {"GlobalTriggers": [{"Name": "Meridian Flip_Trigger", "TimeToFlip": 1.5}]},
        {"Name": "M42_Container", "Status": "RUNNING"},
    ]
    _stub_client(clean_env, fetch_sequence=lambda self: tree)

    assert cli.main(["sequence"]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Current target: M42" in out
    assert "01:30" in out


def test_thumbnail_is_written_to_output(
    clean_env: pytest.MonkeyPatch, tmp_path: Any, capsys: pytest.CaptureFixture[str]
) -> None:
    requests: list[tuple[int, str | None]] = []

    def _thumbnail(self: SpaceCatClient, index: int, image_type: str | None = None) -> bytes:
        requests.append((index, image_type))
        return b"\xff\xd8\xff\xe0jpeg"

    _stub_client(clean_env, fetch_thumbnail=_thumbnail)
    output = tmp_path / "frame.jpg"

    code = cli.main(["thumbnail", "3", "--output", str(output), "--image-type", "LIGHT"])

    assert code == cli.EXIT_OK
    assert requests == [(3, "LIGHT")]
    assert output.read_bytes() == b"\xff\xd8\xff\xe0jpeg"
    assert "JPEG" in capsys.readouterr().out


def test_thumbnail_defaults(clean_env: pytest.MonkeyPatch, tmp_path: Any) -> None:
    args = cli.parse_args(["thumbnail"])
    assert args.index == 0
    assert args.output == "thumbnail.jpg"
    assert args.image_type is None

    _stub_client(clean_env, fetch_thumbnail=lambda self, index, image_type=None: b"\x89PNG....")
    assert cli.main(["thumbnail"]) == cli.EXIT_OK
    assert (tmp_path / "thumbnail.jpg").read_bytes() == b"\x89PNG...."


def test_thumbnail_api_failure(clean_env: pytest.MonkeyPatch, tmp_path: Any) -> None:
    def _fail(self: SpaceCatClient, index: int, image_type: str | None = None) -> bytes:
        raise SpaceCatAPIError("Thumbnail 9 was empty.")

    _stub_client(clean_env, fetch_thumbnail=_fail)
    assert cli.main(["thumbnail", "9"]) == cli.EXIT_API
    assert not (tmp_path / "thumbnail.jpg").exists()


def test_thumbnail_unwritable_output(clean_env: pytest.MonkeyPatch, tmp_path: Any) -> None:
    _stub_client(clean_env, fetch_thumbnail=lambda self, index, image_type=None: b"\xff\xd8\xff")
    missing_dir = tmp_path / "missing" / "thumb.jpg"
    assert cli.main(["thumbnail", "--output", str(missing_dir)]) == cli.EXIT_OUTPUT
