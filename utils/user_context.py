"""Acting-user identity, carried through the call stack in a contextvar."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)


def get_current_user_id() -> UUID:
    """
    The user on whose behalf the current code runs.

    Lead ownership and history attribution come from here. Raises
    RuntimeError when unset: reaching user-scoped code without an
    authenticated user is a bug, not a default-to-anonymous case.
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise RuntimeError(
            "No user context set. Lead operations must run inside an "
            "authenticated request or user_context()."
        )
    return user_id


def set_current_user_id(user_id: UUID) -> None:
    """Set by the request middleware once the user is resolved."""
    _current_user_id.set(user_id)


def clear_current_user_id() -> None:
    """Cleared by the request middleware in its finally block."""
    _current_user_id.set(None)


@contextmanager
def user_context(user_id: UUID):
    """
    Temporarily act as user_id (tests, scripts, background imports).

    Example:
        with user_context(agent_id):
            importer.import_csv(text)
    """
    previous = _current_user_id.get()
    set_current_user_id(user_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_user_id()
        else:
            set_current_user_id(previous)
