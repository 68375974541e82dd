import logging
from typing import Optional

from gamearena.core import security
from gamearena.core.config import Settings
from gamearena.core.errors import ForbiddenError, NotFoundError
from gamearena.models.user_model import User
from gamearena.schemas import user_schemas
from gamearena.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, store: LedgerStore):
        self.store = store

    def register(self, registration: user_schemas.UserCreate, is_admin: bool = False) -> User:
        hashed_password = security.get_password_hash(registration.password)
        return self.store.create_user(registration, hashed_password, is_admin=is_admin)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.store.find_user_by_email(email)
        if not user or not security.verify_password(password, user.hashed_password):
            logger.info("Failed login attempt for %s", email)
            return None
        return user

    def get_user(self, user_id: str) -> User:
        return self.store.get_user(user_id)

    def require_admin(self, user_id: Optional[str]) -> User:
        """Resolves an admin id or raises ForbiddenError; unknown ids are forbidden too."""
        if not user_id:
            raise ForbiddenError("Access denied")
        try:
            user = self.store.get_user(user_id)
        except NotFoundError:
            raise ForbiddenError("Access denied")
        if not user.is_admin:
            raise ForbiddenError("Access denied")
        return user

    def bootstrap_admin(self, settings: Settings) -> Optional[User]:
        if not settings.BOOTSTRAP_ADMIN:
            return None
        existing = self.store.find_user_by_email(settings.ADMIN_EMAIL)
        if existing:
            return existing
        admin = user_schemas.UserCreate(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            full_name=settings.ADMIN_FULL_NAME,
        )
        return self.register(admin, is_admin=True)
