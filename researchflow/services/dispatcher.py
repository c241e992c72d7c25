"""Client side of the AI actions: validate, POST ``/api/ai``, route the result.

Replacement tasks come back as text for the editor; analytical tasks come
back as a payload for the side panel.  Each in-flight request is tracked
on its own so overlapping requests never clear each other's state.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from researchflow.errors import ValidationError
from researchflow.services.ai_tasks import MAX_WORD_TARGET, REPLACEMENT_TASKS, requires_text, task_family

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "AI request failed. Please try again."
EMPTY_TEXT_NOTICE = "Please write some content in this section first."


@dataclass
class DispatchResult:
    """Outcome of one AI action."""

    task: str
    kind: str  # "replace" or "panel"
    ok: bool
    data: dict[str, Any] = field(default_factory=dict)
    notice: Optional[str] = None

    @property
    def revised(self) -> Optional[str]:
        """Replacement text, when this is a successful replacement result."""
        if not self.ok or self.kind != "replace":
            return None
        text = self.data.get("revised")
        return text if isinstance(text, str) else None


class AIDispatcher:
    """Sends AI actions to the server's ``/api/ai`` route."""

    def __init__(self, http: httpx.Client, path: str = "/api/ai"):
        """
        Args:
            http: Client bound to the server's base URL
            path: Route of the AI endpoint
        """
        self.http = http
        self.path = path
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._pending: dict[int, str] = {}

    @property
    def pending(self) -> list[str]:
        """Tasks currently in flight, oldest first."""
        with self._lock:
            return list(self._pending.values())

    @property
    def busy(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def invoke(
        self,
        task: str,
        section_text: Optional[str] = None,
        word_target: Optional[int] = None,
        field: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> DispatchResult:
        """Run *task* against the server.

        Raises:
            UnsupportedTaskError: If the task is unknown (no request is sent)
            ValidationError: If the task needs text and *section_text* is
                empty, or *word_target* is out of range (no request is sent)
        """
        task_family(task)
        text = section_text or ""
        if requires_text(task) and not text.strip():
            raise ValidationError(EMPTY_TEXT_NOTICE)
        if word_target is not None and not 1 <= word_target <= MAX_WORD_TARGET:
            raise ValidationError(f"Word target must be between 1 and {MAX_WORD_TARGET}")

        kind = "replace" if task in REPLACEMENT_TASKS else "panel"
        body: dict[str, Any] = {"task": task, "sectionText": text}
        if word_target is not None:
            body["wordTarget"] = word_target
        if field:
            body["field"] = field
        if notes:
            body["notes"] = notes

        request_id = self._begin(task)
        try:
            response = self.http.post(self.path, json=body)
            if response.status_code >= 400:
                logger.warning("AI task %s failed: HTTP %d", task, response.status_code)
                return DispatchResult(task, kind, ok=False, notice=FAILURE_NOTICE)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("AI task %s failed: %s", task, e)
            return DispatchResult(task, kind, ok=False, notice=FAILURE_NOTICE)
        finally:
            self._end(request_id)

        if not isinstance(data, dict):
            logger.warning("AI task %s returned a non-object body", task)
            return DispatchResult(task, kind, ok=False, notice=FAILURE_NOTICE)
        if data.get("fallback"):
            # Placeholder text (missing key, empty provider answer) is a notice, not content
            logger.warning("AI task %s answered with a placeholder: %s", task, data.get("result"))
            notice = data.get("result")
            if not isinstance(notice, str) or not notice:
                notice = FAILURE_NOTICE
            return DispatchResult(task, kind, ok=False, data=data, notice=notice)
        if kind == "replace" and not isinstance(data.get("revised"), str):
            logger.warning("AI task %s returned no revised text", task)
            return DispatchResult(task, kind, ok=False, data=data, notice=FAILURE_NOTICE)
        return DispatchResult(task, kind, ok=True, data=data)

    def _begin(self, task: str) -> int:
        with self._lock:
            request_id = next(self._ids)
            self._pending[request_id] = task
        return request_id

    def _end(self, request_id: int) -> None:
        with self._lock:
            self._pending.pop(request_id, None)
