"""AI routing and provider failures."""


class ProviderNotFoundError(Exception):
    """No provider could be resolved for a request."""

    def __init__(self, requested: str | None = None):
        self.requested = requested or "auto"
        super().__init__(f"No AI provider available (requested: {self.requested})")


class ProviderError(Exception):
    """A provider could not serve a request (missing credential or backend failure)."""

    def __init__(self, provider_id: str, message: str):
        super().__init__(message)
        self.provider_id = provider_id
        self.message = message

    def __str__(self) -> str:
        return self.message
