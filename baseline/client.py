"""HTTP client for the research endpoint.

One POST per submission, no retries. Whatever the server returns on success
is run through the normalizer, so callers always get a conforming
ResearchResult whether or not the server normalized it already.
"""

import logging

import httpx

from baseline.config import ClientConfig
from baseline.errors import MalformedResponseError, ServiceError, ValidationError
from baseline.models import ResearchResult
from baseline.normalizer import normalize_result

log = logging.getLogger(__name__)

UNKNOWN_SERVER_ERROR = "An unknown server error occurred."


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return UNKNOWN_SERVER_ERROR
    if isinstance(body, dict):
        message = body.get("error")
        if isinstance(message, str) and message:
            return message
    return ServiceError.default_message


class ResearchClient:
    def __init__(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    async def research(self, topic: str) -> ResearchResult:
        if not isinstance(topic, str) or not topic.strip():
            raise ValidationError()

        async with httpx.AsyncClient(
            timeout=self.config.timeout_s, transport=self._transport
        ) as http:
            try:
                resp = await http.post(self.config.generate_url, json={"topic": topic})
            except httpx.HTTPError as exc:
                log.warning("Research request failed: %s", exc)
                raise ServiceError() from exc

        if not resp.is_success:
            message = _error_message(resp)
            log.warning("Research request returned %d: %s", resp.status_code, message)
            raise ServiceError(message, status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponseError() from exc
        return normalize_result(payload)
