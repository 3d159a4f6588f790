"""Error kinds raised across the research pipeline.

Every error carries the message shown to the user and the HTTP status the
API answers with, so the request boundary can convert any of them into a
single ``{"error": message}`` body.
"""


class ResearchError(Exception):
    status_code: int = 500
    default_message: str = "An internal server error occurred."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ResearchError):
    """A required input field is missing or has the wrong type."""

    status_code = 400
    default_message = "Research topic is required."


class MalformedResponseError(ResearchError):
    """The generator returned content no JSON object could be recovered from."""

    status_code = 500
    default_message = "The model returned an invalid JSON response, please try again."


class ServiceError(ResearchError):
    """Transport failure or non-success status from a remote service."""

    status_code = 500
    default_message = "Failed to fetch research from the server."


class ConfigurationError(ResearchError):
    status_code = 500
    default_message = "API key is not configured on the server."
