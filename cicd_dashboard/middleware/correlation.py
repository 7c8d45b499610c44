"""X-Request-ID handling for dashboard API calls.

Every response carries an X-Request-ID. The UI shell may send its own; it is
echoed back unchanged, otherwise a UUID4 is minted. The ID lands on log events
through core.logging.add_correlation_id and on error bodies via the handlers
in main.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"


def _new_request_id() -> str:
    return str(uuid.uuid4())


def setup_correlation_middleware(app: FastAPI) -> None:
    # validator=None: UI-supplied IDs need not be UUIDs
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        generator=_new_request_id,
        validator=None,
    )


def get_correlation_id() -> str | None:
    """Current request's ID, or None outside a request (e.g. a timer-driven refresh)."""
    return correlation_id.get(None)


__all__ = ["REQUEST_ID_HEADER", "setup_correlation_middleware", "get_correlation_id"]
