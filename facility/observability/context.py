"""
Correlation ids for scheduling work.

Every API request (X-Request-ID) and every CLI command runs inside a
RequestContext, so log lines from one occupancy query or one treatment-date
assignment share an id.
"""

import contextvars
import uuid

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


def generate_request_id(prefix: str = "req") -> str:
    """New id such as "req-3f2a9c1b0d4e5f67"; the CLI uses prefix="cli"."""
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Binds a correlation id for the duration of a block.

        with RequestContext(request_id=request.headers.get("X-Request-ID")):
            scheduler.assign_treatment_date(onboarding_id, day, assigned_by=staff_id)

    Without an id one is generated. Contexts nest; leaving one restores the
    outer id.
    """

    def __init__(self, request_id: str | None = None, prefix: str = "req"):
        self.request_id = request_id or generate_request_id(prefix)
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "RequestContext":
        self._token = _request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_id_var.reset(self._token)
            self._token = None
