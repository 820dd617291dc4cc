"""API key issuance, verification and lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from swip_api.core.security import (
    create_lookup_hash,
    generate_api_key,
    get_api_key_preview,
    hash_api_key,
    is_valid_api_key_format,
    verify_api_key,
)
from swip_api.db.session import SessionFactory, SessionLocal
from swip_api.db.time import utcnow
from swip_api.models import ApiKey, App
from swip_api.models.api_key import DEFAULT_ENVIRONMENT

logger = logging.getLogger(__name__)


class ApiKeyService:
    """Creates keys for app owners and resolves presented keys to apps."""

    def __init__(self, session_factory: SessionFactory = SessionLocal) -> None:
        """Initialize the service.

        Args:
            session_factory: Opens sessions for work done outside a request,
                such as the ``last_used`` touch.
        """
        self._session_factory = session_factory

    def issue_key(
        self,
        db: Session,
        *,
        app: App,
        user_id: str,
        name: str | None = None,
        environment: str | None = None,
    ) -> tuple[ApiKey, str]:
        """Create and persist a key for ``app``.

        Returns:
            The stored row and the plaintext secret. The secret is not
            recoverable afterwards.
        """
        secret = generate_api_key()
        api_key = ApiKey(
            app_id=app.id,
            user_id=user_id,
            name=name,
            environment=environment or DEFAULT_ENVIRONMENT,
            key_hash=hash_api_key(secret),
            lookup_hash=create_lookup_hash(secret),
            preview=get_api_key_preview(secret),
            revoked=False,
        )
        db.add(api_key)
        db.commit()
        db.refresh(api_key)
        logger.info(
            "API key created",
            extra={
                "key_id": api_key.id,
                "app_id": app.id,
                "user_id": user_id,
                "environment": api_key.environment,
            },
        )
        return api_key, secret

    def resolve(self, db: Session, secret: str) -> ApiKey | None:
        """Return the active key matching ``secret``, or None.

        The lookup digest only selects the candidate row; the key is accepted
        only if the bcrypt hash also verifies.
        """
        if not is_valid_api_key_format(secret):
            return None

        candidate = db.execute(
            select(ApiKey).where(
                ApiKey.lookup_hash == create_lookup_hash(secret),
                ApiKey.revoked.is_(False),
            )
        ).scalar_one_or_none()
        if candidate is None:
            return None
        if not verify_api_key(secret, candidate.key_hash):
            logger.warning(
                "API key digest matched but hash verification failed",
                extra={"key_id": candidate.id},
            )
            return None
        return candidate

    def touch_last_used(self, key_id: str, when: datetime | None = None) -> None:
        """Record key usage. Runs after the response; failures are only logged."""
        try:
            with self._session_factory() as db:
                db.execute(
                    update(ApiKey)
                    .where(ApiKey.id == key_id)
                    .values(last_used=when or utcnow())
                )
                db.commit()
        except SQLAlchemyError:
            logger.exception(
                "Failed to update API key last used timestamp",
                extra={"key_id": key_id},
            )

    def list_keys(self, db: Session, user_id: str) -> list[ApiKey]:
        """Return every key on apps owned by ``user_id``, newest first."""
        stmt = (
            select(ApiKey)
            .join(App, App.id == ApiKey.app_id)
            .where(App.owner_id == user_id)
            .order_by(ApiKey.created_at.desc(), ApiKey.id)
        )
        return list(db.execute(stmt).scalars())

    def get_owned_key(self, db: Session, key_id: str, user_id: str) -> ApiKey | None:
        """Return the key if it belongs to an app owned by ``user_id``."""
        stmt = (
            select(ApiKey)
            .join(App, App.id == ApiKey.app_id)
            .where(ApiKey.id == key_id, App.owner_id == user_id)
        )
        return db.execute(stmt).scalar_one_or_none()

    def set_revoked(self, db: Session, api_key: ApiKey, revoked: bool) -> ApiKey:
        """Flip the revoked flag and commit."""
        api_key.revoked = revoked
        db.commit()
        db.refresh(api_key)
        logger.info(
            "API key %s",
            "revoked" if revoked else "reactivated",
            extra={"key_id": api_key.id, "app_id": api_key.app_id},
        )
        return api_key

    def delete_key(self, db: Session, api_key: ApiKey) -> None:
        """Permanently remove a key."""
        key_id, app_id = api_key.id, api_key.app_id
        db.delete(api_key)
        db.commit()
        logger.info("API key permanently deleted", extra={"key_id": key_id, "app_id": app_id})


def get_api_key_service() -> ApiKeyService:
    """Return an API key service bound to the default session factory."""
    return ApiKeyService()
