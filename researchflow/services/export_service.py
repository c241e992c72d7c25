"""Paper export endpoints' backing service.

No file is produced yet; each format answers with a fixed message after
a short delay.
"""

import asyncio
from typing import Any, Awaitable, Callable

from researchflow.errors import ValidationError

EXPORT_MESSAGES = {
    "pdf": "PDF export feature coming soon! Your paper will be exported with professional academic formatting.",
    "docx": "DOCX export feature coming soon! Your paper will be formatted with proper academic styling.",
}


class PaperExporter:
    """Stub exporter for PDF and DOCX."""

    def __init__(
        self,
        delay: float = 1.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize exporter.

        Args:
            delay: Seconds to wait before answering
            sleep: Coroutine used for the delay
        """
        self.delay = delay
        self._sleep = sleep

    async def export(self, fmt: str) -> dict[str, Any]:
        """Pretend to export the paper as *fmt*.

        Raises:
            ValidationError: If *fmt* is not a supported format
        """
        if fmt not in EXPORT_MESSAGES:
            raise ValidationError(f"Unsupported export format: {fmt}")
        if self.delay > 0:
            await self._sleep(self.delay)
        return {"ok": True, "message": EXPORT_MESSAGES[fmt]}
