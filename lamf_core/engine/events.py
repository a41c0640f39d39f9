"""Lifecycle event publishing.

Engine operations publish inside ``batch()``: events queue up while the
operation runs and go to the sink only once it completes, so a rolled
back operation never announces anything.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from lamf_core.exceptions import SinkError
from lamf_core.models.base import Event

logger = logging.getLogger(__name__)

EVENT_SOURCE = "lamf-core"


class EventSink(Protocol):
    """Anything that can take a record for a topic."""

    def send(self, topic: str, record: Any, key: str | None = None) -> None: ...


@dataclass
class PublisherStats:
    """Track publishing outcomes."""

    published: int = 0
    failed: int = 0
    discarded: int = 0


class EventPublisher:
    """Wrap lifecycle changes in ``Event`` envelopes and route them to a sink."""

    def __init__(
        self,
        sink: EventSink | None = None,
        topic_prefix: str = "lamf",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the publisher.

        Parameters
        ----------
        sink : EventSink | None
            Destination for events. ``None`` builds events without sending.
        topic_prefix : str
            Topics are ``<prefix>.<entity>``, e.g. ``lamf.loan``.
        clock : Callable[[], datetime]
            Source of event timestamps.
        """
        self.sink = sink
        self.topic_prefix = topic_prefix
        self.clock = clock
        self.stats = PublisherStats()
        self._local = threading.local()

    def topic_for(self, event_type: str) -> str:
        """Return the topic for an ``entity.action`` event type."""
        return f"{self.topic_prefix}.{event_type.split('.')[0]}"

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Hold events until the block exits cleanly."""
        if getattr(self._local, "pending", None) is not None:
            yield
            return

        self._local.pending = []
        try:
            yield
            pending = self._local.pending
        except BaseException:
            self.stats.discarded += len(self._local.pending)
            raise
        finally:
            self._local.pending = None

        for event in pending:
            self._send(event)

    def publish(
        self,
        event_type: str,
        subject: str,
        data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Event:
        """Build an event and send it, or queue it inside a batch."""
        event = Event(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            event_time=self.clock(),
            source=EVENT_SOURCE,
            subject=subject,
            data=data,
            metadata=metadata or {},
        )

        pending = getattr(self._local, "pending", None)
        if pending is not None:
            pending.append(event)
        else:
            self._send(event)
        return event

    def _send(self, event: Event) -> None:
        if self.sink is None:
            return
        try:
            self.sink.send(self.topic_for(event.event_type), event, key=event.subject)
        except SinkError:
            # The change is already committed; report and carry on
            self.stats.failed += 1
            logger.exception("Failed to publish %s for %s", event.event_type, event.subject)
            return
        self.stats.published += 1
