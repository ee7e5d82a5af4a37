"""Error taxonomy shared by the relay endpoint and the relay client.

Every error carries a human-readable message; the endpoint turns it into the
`error` field of the 500 envelope, the client re-raises it to the caller.
"""


class RelayError(Exception):
    """Base class for all chat relay errors."""
    pass


class ConfigurationError(RelayError):
    """Required configuration (URL, credential) is missing or invalid."""
    pass


class MissingCredential(ConfigurationError):
    """Upstream API key is not configured."""
    pass


class ValidationError(RelayError):
    """Request body does not match the ChatRequest contract."""
    pass


class MissingMessage(ValidationError):
    """`message` is absent or empty."""
    pass


class UpstreamError(RelayError):
    """The generation API failed or returned something unusable.

    Attributes:
        status_code: Upstream HTTP status, or None if no response was received.
        body: Raw upstream response text, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamEmptyResponse(UpstreamError):
    """Upstream answered 2xx but without candidate content."""
    pass


class TransportError(RelayError):
    """The relay itself answered with a non-2xx status (client side)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApplicationError(RelayError):
    """The relay answered 2xx but reported `success: false`."""
    pass
