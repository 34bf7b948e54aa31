"""
User Service
=============================================================================
Users are a collaborator of the access control core: the core only needs
their `role` (a role NAME) and their `active` flag. Managing them is gated
by the "Usuarios" entity like any other registry row:

    list / get -> Usuarios.view
    create     -> Usuarios.create
    update     -> Usuarios.edit
    remove     -> Usuarios.delete

CONCEPT: Password Hashing with bcrypt (passlib)
  The store only ever sees a bcrypt hash. On update, an empty password
  means "keep the current one"; a non-empty password is re-hashed.
  Hashes never leave this module: present_user() strips them.

REMOVAL POLICY:
  settings.user_removal_mode decides what "remove" means:
    "deactivate" (default) -> active=False, the row stays
    "delete"               -> the row is deleted
  No "last administrator" guard exists; removing every admin is allowed.
=============================================================================
"""

from passlib.context import CryptContext

from rbac_service.config import settings
from rbac_service.core.entities import USERS_ENTITY
from rbac_service.core.errors import RecordNotFound, ValidationFailed
from rbac_service.core.session import AccessSession
from rbac_service.observability.logging import get_logger
from rbac_service.store.base import ROLES, USERS, DuplicateRecordError, PersistenceStore, Record

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def present_user(user: Record) -> Record:
    """User record without its password hash."""
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
        "avatar": user.get("avatar") or "",
        "active": user.get("active", True),
    }


async def authenticate_user(store: PersistenceStore, email: str, password: str) -> Record | None:
    """
    Return the user for (email, password), or None.

    None covers unknown email, wrong password and deactivated accounts alike,
    so callers cannot leak which one it was.
    """
    matches = await store.get_by_filter(USERS, email=email)
    if not matches:
        return None
    user = matches[0]
    if not user.get("active", True):
        return None
    if not pwd_context.verify(password, user["hashed_password"]):
        return None
    return user


class UserService:
    def __init__(
        self,
        store: PersistenceStore,
        session: AccessSession,
        removal_mode: str | None = None,
    ):
        self.store = store
        self.session = session
        self.removal_mode = removal_mode or settings.user_removal_mode

    async def _load(self, user_id: str) -> Record:
        user = await self.store.get_by_id(USERS, user_id)
        if user is None:
            raise RecordNotFound(USERS, user_id)
        return user

    async def _check_role_exists(self, role_name: str) -> None:
        if not role_name or not await self.store.get_by_filter(ROLES, name=role_name):
            raise ValidationFailed(f"Role '{role_name}' does not exist")

    async def _check_email_free(self, email: str, user_id: str | None = None) -> None:
        if not email or not email.strip():
            raise ValidationFailed("Email is required")
        existing = await self.store.get_by_filter(USERS, email=email)
        if any(user["id"] != user_id for user in existing):
            raise ValidationFailed(f"A user with email '{email}' already exists")

    async def list_users(self) -> list[Record]:
        self.session.require(USERS_ENTITY, "view")
        return [present_user(u) for u in await self.store.list_all(USERS, order_by="name")]

    async def get_user(self, user_id: str) -> Record:
        self.session.require(USERS_ENTITY, "view")
        return present_user(await self._load(user_id))

    async def create_user(
        self,
        name: str,
        email: str,
        role: str,
        password: str,
        avatar: str = "",
        active: bool = True,
    ) -> Record:
        self.session.require(USERS_ENTITY, "create")
        if not name or not name.strip():
            raise ValidationFailed("Name is required")
        if not password:
            raise ValidationFailed("Password is required")
        await self._check_email_free(email)
        await self._check_role_exists(role)

        try:
            user = await self.store.insert(
                USERS,
                {
                    "name": name,
                    "email": email,
                    "role": role,
                    "avatar": avatar or "",
                    "hashed_password": pwd_context.hash(password),
                    "active": active,
                },
            )
        except DuplicateRecordError as e:
            raise ValidationFailed(f"A user with email '{email}' already exists") from e
        logger.info("user_created", user_id=user["id"], role=role)
        return present_user(user)

    async def update_user(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
        password: str | None = None,
        avatar: str | None = None,
        active: bool | None = None,
    ) -> Record:
        self.session.require(USERS_ENTITY, "edit")
        user = await self._load(user_id)

        changes: Record = {}
        if name is not None:
            if not name.strip():
                raise ValidationFailed("Name is required")
            changes["name"] = name
        if email is not None and email != user["email"]:
            await self._check_email_free(email, user_id)
            changes["email"] = email
        if role is not None and role != user["role"]:
            await self._check_role_exists(role)
            changes["role"] = role
        if password:
            changes["hashed_password"] = pwd_context.hash(password)
        if avatar is not None:
            changes["avatar"] = avatar
        if active is not None:
            changes["active"] = active

        try:
            updated = await self.store.update_by_id(USERS, user_id, changes)
        except DuplicateRecordError as e:
            raise ValidationFailed(f"A user with email '{email}' already exists") from e
        if updated is None:
            raise RecordNotFound(USERS, user_id)
        logger.info("user_updated", user_id=user_id, fields=sorted(changes))
        return present_user(updated)

    async def remove_user(self, user_id: str) -> Record | None:
        """
        Remove a user according to the configured removal mode.

        RETURNS:
          The deactivated user ("deactivate"), or None ("delete").
        """
        self.session.require(USERS_ENTITY, "delete")
        await self._load(user_id)

        if self.removal_mode == "delete":
            if not await self.store.delete_by_id(USERS, user_id):
                raise RecordNotFound(USERS, user_id)
            logger.info("user_deleted", user_id=user_id)
            return None

        updated = await self.store.update_by_id(USERS, user_id, {"active": False})
        if updated is None:
            raise RecordNotFound(USERS, user_id)
        logger.info("user_deactivated", user_id=user_id)
        return present_user(updated)
