"""Error taxonomy shared by the service layer.

Every service failure derives from :class:`CampusCrewError` and carries the
operation name and the id of the entity involved, so the API layer can render
a structured reason without inspecting the message text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class CampusCrewError(RuntimeError):
    """Base exception for service-level failures."""

    status_code = 500

    def __init__(
        self,
        reason: str,
        *,
        operation: str | None = None,
        entity_id: object | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.operation = operation
        self.entity_id = entity_id

    def to_dict(self) -> dict[str, object]:
        """Return the payload rendered to API clients."""
        return {
            "detail": self.reason,
            "operation": self.operation,
            "entity_id": None if self.entity_id is None else str(self.entity_id),
        }


class ValidationFailed(CampusCrewError):
    """Input is missing or out of range; raised before any store call."""

    status_code = 400


class StateConflictError(CampusCrewError):
    """Operation is not allowed in the entity's current status."""

    status_code = 409


class NotFoundError(CampusCrewError):
    """Referenced entity id does not resolve."""

    status_code = 404


class AuthorizationError(CampusCrewError):
    """Caller is not the owning principal (or an admin)."""

    status_code = 403


class RateLimitedError(CampusCrewError):
    """Caller must wait before repeating the request."""

    status_code = 429


class CollaboratorUnavailableError(CampusCrewError):
    """The backing store, blob store or SMS gateway failed."""

    status_code = 503


@contextmanager
def store_call(
    db: Session,
    operation: str,
    entity_id: object | None = None,
) -> Iterator[None]:
    """Translate store failures into :class:`CollaboratorUnavailableError`.

    The session is rolled back so a failed write never leaves partial state
    pending in the unit of work.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Store call %s failed for %s: %s", operation, entity_id, exc)
        raise CollaboratorUnavailableError(
            "The data store is unavailable, please retry",
            operation=operation,
            entity_id=entity_id,
        ) from exc


def require(condition: bool, reason: str, *, operation: str, entity_id: object | None = None) -> None:
    """Raise :class:`ValidationFailed` unless ``condition`` holds."""
    if not condition:
        raise ValidationFailed(reason, operation=operation, entity_id=entity_id)
