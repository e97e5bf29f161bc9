"""Event emitters for the apply pipeline."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from relay_control.core.events_model import ApplyEvent

logger = logging.getLogger(__name__)


ALLOWED_EVENTS = {
    "apply.started",
    "apply.artifact_written",
    "apply.aborted",
    "apply.validation_failed",
    "apply.restart_failed",
    "apply.applied",
}

# Restart failures leave the engine possibly down.
_EVENT_LEVELS = {
    "apply.aborted": logging.ERROR,
    "apply.validation_failed": logging.WARNING,
    "apply.restart_failed": logging.CRITICAL,
}


def _check(event: ApplyEvent) -> None:
    if event.event_type not in ALLOWED_EVENTS:
        raise ValueError(f"Invalid event type: {event.event_type}")
    if not event.run_id:
        raise ValueError("Event must have run_id")


class EventEmitter(ABC):
    """Abstract event emitter."""

    @abstractmethod
    def emit(self, events: Iterable[ApplyEvent]) -> None:
        """Emit one or more events."""
        pass


class LoggingEventEmitter(EventEmitter):
    """Writes each event to the log."""

    def emit(self, events: Iterable[ApplyEvent]) -> None:
        for event in events:
            _check(event)
            level = _EVENT_LEVELS.get(event.event_type, logging.INFO)
            logger.log(
                level,
                f"[EVENT] {event.event_type} | run={event.run_id} | {event.metadata}",
            )


class RecordingEventEmitter(EventEmitter):
    """Keeps events in memory (tests, diagnostics)."""

    def __init__(self):
        self.events = []

    def emit(self, events: Iterable[ApplyEvent]) -> None:
        for event in events:
            _check(event)
            self.events.append(event)

    def types(self):
        return [event.event_type for event in self.events]


class MultiEventEmitter:
    """Fan-out to multiple emitters."""

    def __init__(self, emitters: Iterable[EventEmitter]):
        self._emitters = list(emitters)

    def emit(self, events: Iterable[ApplyEvent]):
        """Emit to all emitters."""
        events = list(events)
        for emitter in self._emitters:
            emitter.emit(events)


class NullEventEmitter(EventEmitter):
    """No-op emitter (used when events are not needed)."""

    def emit(self, events: Iterable[ApplyEvent]) -> None:
        """Do nothing."""
        pass
