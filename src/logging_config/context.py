"""Billing Run Context.

Context variables that bind a run ID and the office being billed
to every log entry emitted during an invoice run.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


_run_id_var: ContextVar[str] = ContextVar("run_id", default="")
_office_id_var: ContextVar[str] = ContextVar("office_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_run_id() -> str:
    """Generate a unique billing run ID using UUID4."""
    return str(uuid.uuid4())


def get_run_id() -> str:
    """Get the current run ID from context."""
    return _run_id_var.get()


def get_office_id() -> str:
    """Get the office being billed in the current context."""
    return _office_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    run_id = _run_id_var.get()
    if run_id:
        ctx["run_id"] = run_id
    office_id = _office_id_var.get()
    if office_id:
        ctx["office_id"] = office_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class BillingRunContext:
    """Context manager for run-scoped logging context.

    Example:
        with BillingRunContext(office_id="office-7"):
            logger.info("assembling invoice")  # includes run_id, office_id
    """

    run_id: str = ""
    office_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.run_id:
            self.run_id = generate_run_id()

    def __enter__(self) -> "BillingRunContext":
        self._tokens = [
            (_run_id_var, _run_id_var.set(self.run_id)),
            (_office_id_var, _office_id_var.set(self.office_id)),
            (_extra_context_var, _extra_context_var.set(self.extra.copy())),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the context."""
        current = _extra_context_var.get()
        _extra_context_var.set({**current, **kwargs})
        self.extra.update(kwargs)
