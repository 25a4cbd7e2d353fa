"""Error taxonomy shared by the router and all backend providers."""


class ProviderError(Exception):
    """A backend failed: network, authentication, malformed response or unsupported operation."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ConfigurationError(ValueError):
    """Request or settings are incomplete (e.g. completions without a model)."""
