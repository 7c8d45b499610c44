class DashboardError(Exception):
    """Base exception for the build dashboard."""

    pass


class TransportError(DashboardError):
    """Raised when a call to the build-tracking API fails.

    Covers HTTP error statuses, connection/timeout failures and payloads that
    cannot be decoded into the expected models.
    """

    def __init__(self, message: str, cause: BaseException | None = None, status_code: int | None = None):
        self.cause = cause
        self.status_code = status_code
        super().__init__(message)


class AggregationError(DashboardError):
    """Raised when an aggregation cycle cannot fetch the repository list."""

    def __init__(self, cause: TransportError):
        self.cause = cause
        super().__init__(f"Repository list fetch failed: {cause}")


class RepositoryNotFoundError(DashboardError):
    """Raised when a repository id is not part of the current snapshot."""

    def __init__(self, repository_id: int):
        self.repository_id = repository_id
        super().__init__(f"Repository {repository_id} is not on the dashboard")
