"""In-process event channel between the editor, citation manager and AI panel.

Each topic keeps the name of the browser event it stands in for, so logs
read the same on both sides.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    EDITOR_FOCUS = "editor-focus"
    EDITOR_INSERT_CITATION = "editor-insert-citation"
    REQUEST_INSERT_CITATION = "request-insert-citation"
    ADD_REFERENCE_ENTRY = "add-reference-entry"
    OPEN_ADD_SOURCE = "open-add-source"
    REQUEST_AI = "request-ai"


@dataclass(frozen=True)
class EditorFocus:
    topic = Topic.EDITOR_FOCUS


@dataclass(frozen=True)
class EditorInsertCitation:
    inline: str
    topic = Topic.EDITOR_INSERT_CITATION


@dataclass(frozen=True)
class RequestInsertCitation:
    inline: str
    topic = Topic.REQUEST_INSERT_CITATION


@dataclass(frozen=True)
class AddReferenceEntry:
    entry: str
    topic = Topic.ADD_REFERENCE_ENTRY


@dataclass(frozen=True)
class OpenAddSource:
    topic = Topic.OPEN_ADD_SOURCE


@dataclass(frozen=True)
class RequestAI:
    task: str
    word_target: Optional[int] = None
    topic = Topic.REQUEST_AI


Event = Union[
    EditorFocus,
    EditorInsertCitation,
    RequestInsertCitation,
    AddReferenceEntry,
    OpenAddSource,
    RequestAI,
]
Handler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe over typed topics."""

    def __init__(self) -> None:
        self._handlers: dict[Topic, list[Handler]] = {topic: [] for topic in Topic}

    def subscribe(self, topic: Topic, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *topic*.

        Returns:
            A callable that removes the subscription
        """
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    def publish(self, event: Event) -> int:
        """Deliver *event* to the topic's handlers in subscription order.

        Returns:
            Number of handlers called
        """
        handlers = list(self._handlers[event.topic])
        logger.debug("%s -> %d handler(s)", event.topic.value, len(handlers))
        for handler in handlers:
            handler(event)
        return len(handlers)
