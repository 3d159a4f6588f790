"""Transient research state owned by the presentation layer.

Holds the current topic, result, error and loading flag. At most one
submission is in flight; once it settles exactly one of ``result`` or
``error`` is set.
"""

import json
import logging
import re

from baseline.client import ResearchClient
from baseline.errors import ResearchError
from baseline.models import ResearchResult
from baseline.notebook import notebook_filename, serialize_notebook

log = logging.getLogger(__name__)

_EMBEDDED_JSON = re.compile(r"(\{.*\})", re.DOTALL)
_STATUS_PREFIX = re.compile(r"got status: \d+.*?\. ", re.IGNORECASE)


def clean_error_message(message: str) -> str:
    """Reduce a raw error string to the most specific readable message.

    Messages from upstream APIs often embed a JSON error body; prefer its
    ``error.message`` or ``message`` when present.
    """
    m = _EMBEDDED_JSON.search(message)
    if m:
        try:
            body = json.loads(m.group(1))
        except json.JSONDecodeError:
            body = None
        if isinstance(body, dict):
            err = body.get("error")
            if isinstance(err, dict) and err.get("message"):
                return str(err["message"])
            if body.get("message"):
                return str(body["message"])
    cleaned = _STATUS_PREFIX.sub("", message.split("{")[0]).strip().rstrip(" -:")
    return cleaned or message


class ResearchSession:
    def __init__(self, client: ResearchClient):
        self.client = client
        self.topic: str = ""
        self.result: ResearchResult | None = None
        self.error: str | None = None
        self.loading: bool = False

    async def submit(self, topic: str) -> bool:
        """Run one research request. Returns False if the submission was ignored."""
        if not topic or not topic.strip() or self.loading:
            return False

        self.loading = True
        self.error = None
        self.result = None
        self.topic = topic
        try:
            self.result = await self.client.research(topic)
        except ResearchError as exc:
            log.error("Error during research generation: %s", exc.message)
            self.error = clean_error_message(exc.message)
        finally:
            self.loading = False
        return True

    def export_notebook(self) -> tuple[str, bytes]:
        """Return (filename, .ipynb bytes) for the current result."""
        if self.result is None:
            raise RuntimeError("No research result to export")
        return notebook_filename(self.topic), serialize_notebook(self.result.notebook_code)
