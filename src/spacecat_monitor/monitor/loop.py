"""Polling orchestrator: baseline, then sequence/events/images ticks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from ..api.client import SpaceCatClient
from ..api.models import Event, EventTypes, MountInfo, TargetStart
from ..chat.base import NotificationCard
from ..chat.dispatcher import NotificationDispatcher
from ..config import Settings
from ..exceptions import SpaceCatAPIError
from . import cards
from .cooldown import CooldownGate
from .dedup import event_fingerprint, image_fingerprint
from .meridian import format_with_clock
from .state import PollState
from .target import (
    SEQUENTIAL_INSTRUCTION_SET,
    TargetInfo,
    TargetSource,
    extract_meridian_flip_hours,
    latest_target_start,
    resolve_current_target,
)

MOUNT_EVENTS = frozenset(
    {EventTypes.MOUNT_BEFORE_FLIP, EventTypes.MOUNT_AFTER_FLIP, EventTypes.MOUNT_PARKED}
)


class MonitorLoop:
    """Owns ``PollState`` and drives one sequential tick at a time."""

    def __init__(
        self,
        settings: Settings,
        client: SpaceCatClient,
        dispatcher: NotificationDispatcher,
        logger: logging.Logger,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.dispatcher = dispatcher
        self.logger = logger
        self._sleep = sleep
        self._wall_clock = wall_clock
        self.state = PollState(
            image_gate=CooldownGate(cooldown_seconds=settings.image_cooldown_seconds, clock=clock)
        )
        self.notifications_sent = 0

    def run_forever(self, max_ticks: int | None = None) -> int:
        """Baseline once, then tick until interrupted or ``max_ticks`` is reached.

        Baseline failures propagate as ``SpaceCatAPIError``. Returns ticks run.
        """
        self.initialize_baseline()
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.run_tick()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self._sleep(self.settings.poll_interval_seconds)
        return ticks

    def initialize_baseline(self) -> None:
        """Mark existing history as seen and resolve the starting target.

        No per-item notifications are sent; only the startup summary.
        """
        self.logger.info("Fetching initial baseline")
        events = self.client.fetch_event_history()
        for event in events:
            if event.is_noop_filter_change():
                continue
            self.state.seen_events.is_new(event_fingerprint(event))
        self.state.current_target = latest_target_start(events)

        try:
            tree = self.client.fetch_sequence()
        except SpaceCatAPIError as exc:
            self.logger.warning("Could not load sequence during initialization: %s", exc)
        else:
            self.state.sequence_seen = True
            self.state.meridian_flip_hours = extract_meridian_flip_hours(tree)
            if self.state.current_target is None:
                name = resolve_current_target(tree)
                if name is not None:
                    self.state.current_target = TargetInfo.from_sequence(name)

        images = self.client.fetch_all_image_history()
        for image in images:
            self.state.seen_images.is_new(image_fingerprint(image))

        self.logger.info(
            "Baseline: %d events, %d images",
            len(self.state.seen_events),
            len(self.state.seen_images),
        )
        if self.state.current_target is not None:
            self.logger.info(
                "Current target: %s (from %s)",
                self.state.current_target.name,
                self.state.current_target.source.label,
            )

        if self.dispatcher.channel_count > 0:
            card = cards.build_welcome_card(
                current_target=self.state.current_target,
                events_in_history=len(self.state.seen_events),
                images_in_history=len(self.state.seen_images),
                channel_count=self.dispatcher.channel_count,
                meridian_flip_hours=self.state.meridian_flip_hours,
                mount=self._fetch_mount_info(),
                now=self._now(),
            )
            self._send(card)

    def run_tick(self) -> None:
        self.poll_sequence()
        self.poll_events()
        self.poll_images()

    def poll_sequence(self) -> None:
        try:
            tree = self.client.fetch_sequence()
        except SpaceCatAPIError as exc:
            if not self.state.sequence_seen:
                self.logger.warning("Error fetching sequence (will retry silently): %s", exc)
            return

        self.state.sequence_seen = True
        self.state.meridian_flip_hours = extract_meridian_flip_hours(tree)

        current = self.state.current_target
        if current is not None and current.source is TargetSource.TARGET_START_EVENT:
            return
        name = resolve_current_target(tree)
        if name is None:
            return
        self._update_target(TargetInfo.from_sequence(name))

    def poll_events(self) -> None:
        try:
            events = self.client.fetch_event_history()
        except SpaceCatAPIError as exc:
            self.logger.error("Error fetching events: %s", exc)
            return

        for event in events:
            if event.is_noop_filter_change():
                continue
            if not self.state.seen_events.is_new(event_fingerprint(event)):
                continue
            self.logger.info("New event %s at %s", event.kind, event.time)
            self.handle_event(event)

    def handle_event(self, event: Event) -> None:
        if event.kind == EventTypes.TS_TARGETSTART:
            self._handle_target_start(event)
        elif event.kind == EventTypes.AUTOFOCUS_FINISHED:
            self._handle_autofocus_finished()
        elif event.kind in MOUNT_EVENTS:
            if self.dispatcher.channel_count > 0:
                card = cards.build_mount_event_card(
                    event, self.state.current_target, self._fetch_mount_info()
                )
                self._send(card)
        elif event.kind == EventTypes.IMAGE_SAVE:
            # Covered by the image phase.
            return
        elif self.dispatcher.channel_count > 0:
            self._send(cards.build_event_card(event))

    def poll_images(self) -> None:
        try:
            images = self.client.fetch_all_image_history()
        except SpaceCatAPIError as exc:
            self.logger.error("Error fetching images: %s", exc)
            return

        gate = self.state.image_gate
        for index, image in enumerate(images):
            if not self.state.seen_images.is_new(image_fingerprint(image)):
                continue
            self.logger.info(
                "New image %s (%s, %s) at %s",
                index,
                image.image_type,
                image.filter or "no filter",
                image.timestamp,
            )
            if self.dispatcher.channel_count == 0:
                continue
            if not gate.should_send_now():
                gate.record_suppressed()
                self.logger.info(
                    "Skipping image notification (cooldown: %.0fs remaining)",
                    gate.remaining_seconds(),
                )
                continue

            skipped = gate.record_sent()
            card = cards.build_image_card(
                image,
                current_target=self.state.current_target,
                skipped=skipped,
                meridian_flip_hours=self.state.meridian_flip_hours,
                now=self._now(),
            )
            self.dispatcher.dispatch_with_attachment(
                card,
                fetch_bytes=lambda index=index: self.client.fetch_thumbnail(index),
                filename=f"thumbnail_{index}.jpg",
            )
            self.notifications_sent += 1

    def _handle_target_start(self, event: Event) -> None:
        details = event.details
        if not isinstance(details, TargetStart):
            return
        if details.target_name == SEQUENTIAL_INSTRUCTION_SET:
            return
        self._update_target(TargetInfo.from_target_start(details))

    def _update_target(self, new_target: TargetInfo) -> None:
        previous = self.state.current_target
        if previous is not None and previous.name == new_target.name:
            return
        self.state.current_target = new_target
        self.logger.info("Target now %s (from %s)", new_target.name, new_target.source.label)
        if self.state.meridian_flip_hours is not None:
            self.logger.info(
                "Meridian flip in %s",
                format_with_clock(self.state.meridian_flip_hours, now=self._now()),
            )
        if self.dispatcher.channel_count == 0:
            return
        card = cards.build_target_card(
            new_target,
            previous=previous,
            meridian_flip_hours=self.state.meridian_flip_hours,
            mount=self._fetch_mount_info(),
            now=self._now(),
        )
        self._send(card)

    def _handle_autofocus_finished(self) -> None:
        try:
            result = self.client.fetch_last_autofocus()
        except SpaceCatAPIError as exc:
            self.logger.error("Failed to fetch autofocus data: %s", exc)
            return
        self.logger.info(
            "Autofocus finished on %s: position change %+d, best R² %.4f",
            result.filter or "unknown filter",
            result.position_change(),
            result.best_r_squared(),
        )
        if self.dispatcher.channel_count > 0:
            self._send(cards.build_autofocus_card(result))

    def _fetch_mount_info(self) -> MountInfo | None:
        try:
            return self.client.fetch_mount_info()
        except SpaceCatAPIError as exc:
            self.logger.debug("Mount info unavailable: %s", exc)
            return None

    def _send(self, card: NotificationCard) -> None:
        self.dispatcher.dispatch(card)
        self.notifications_sent += 1

    def _now(self) -> datetime | None:
        return self._wall_clock() if self._wall_clock is not None else None
