class RelayError(Exception):
    """Base class for failures the relay reports to its caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(RelayError):
    """Bad method or request body. Nothing was sent upstream."""

    status_code = 400


class UnknownProviderError(RelayError):
    status_code = 400

    def __init__(self, provider: str):
        super().__init__("Unknown provider")
        self.provider = provider


class ConfigurationError(RelayError):
    """The resolved provider has no credential configured."""

    status_code = 500


class UpstreamTransportError(RelayError):
    """Network failure or non-OK upstream status."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class UpstreamParseError(RelayError):
    """A stream fragment could not be decoded. Handled inside normalizers."""
