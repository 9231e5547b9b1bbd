"""Lightweight event model used by sessions to decouple game logic from its observers.

Sessions emit strongly-typed events; the service routes them to handlers
(by default: log records) without parsing free-text strings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class Category(Enum):
    """High-level event categories."""

    TURN = auto()  # per-turn lifecycle (shot, ai_shot, end)
    SYSTEM = auto()  # created / placed / undo / discarded


@dataclass(slots=True)
class Event:
    """Immutable event emitted by a session or the service."""

    category: Category
    type: str  # finer-grained identifier, e.g. "shot", "end", "undo"
    payload: Dict[str, Any]


class EventRouter:
    def __init__(self) -> None:
        self.handlers: Dict[str, Callable[[Event], None]] = {}

    def __call__(self, event: Event) -> None:  # sessions call router(event)
        self.route_event(event)

    def register_handler(self, event_type: str, handler: Callable[[Event], None]) -> None:
        self.handlers[event_type] = handler

    def route_event(self, event: Event) -> None:
        if event.type in self.handlers:
            self.handlers[event.type](event)
        else:
            logger.debug("No handler for event type: %s", event.type)


def log_shot(ev: Event) -> None:
    p = ev.payload
    logger.debug("[%s] %s fired %s: %s", p["game_id"], p["shooter"], p["coord"], p["result"])


def log_end(ev: Event) -> None:
    p = ev.payload
    logger.info("[%s] Game over: %s won after %d turns", p["game_id"], p["winner"], p["turns"])


def log_system(ev: Event) -> None:
    details = ", ".join(f"{k}={v}" for k, v in ev.payload.items() if k != "game_id")
    logger.info("[%s] %s %s", ev.payload.get("game_id"), ev.type, details)


def default_router() -> EventRouter:
    """Router that turns every known event into a log record."""
    router = EventRouter()
    router.register_handler("shot", log_shot)
    router.register_handler("ai_shot", log_shot)
    router.register_handler("end", log_end)
    for event_type in ("created", "placed", "undo", "discarded"):
        router.register_handler(event_type, log_system)
    return router
