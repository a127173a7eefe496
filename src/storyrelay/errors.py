"""Error taxonomy shared by the stores, clients and HTTP layer."""


class RelayError(Exception):
    """Base class for all StoryRelay errors."""

    status_code = 500

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def details(self) -> str:
        """Human-readable detail for the JSON error envelope."""
        return self.detail or self.message


class ValidationError(RelayError):
    """A required request field is missing or blank."""

    status_code = 400


class ProviderError(RelayError):
    """An upstream call (completion, database, agent service) failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        detail: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, detail)
        self.provider = provider
        self.upstream_status = upstream_status

    def __str__(self) -> str:
        if self.detail:
            return f"{self.provider}: {self.message} ({self.detail})"
        return f"{self.provider}: {self.message}"


class ResponseShapeError(ProviderError):
    """An upstream reply did not match the expected structure."""


class NoAgentAvailable(RelayError):
    """Chat was requested before any summary or agent exists."""

    def __init__(self) -> None:
        super().__init__(
            "Failed to create or retrieve an agent",
            "No summary yet, cannot start a conversation",
        )


class StoryPipelineError(RelayError):
    """A step of the add-story pipeline failed.

    Earlier steps are not rolled back, so ``summary_id`` is set whenever the
    summary had already been stored when the failure happened.
    """

    def __init__(
        self,
        step: str,
        cause: Exception,
        completed_steps: list[str],
        summary_id: str | None = None,
    ) -> None:
        super().__init__("Failed to add new story", str(cause))
        self.step = step
        self.cause = cause
        self.completed_steps = completed_steps
        self.summary_id = summary_id
