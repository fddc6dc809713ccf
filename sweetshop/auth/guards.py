"""Role and ownership checks.

The comparators are plain functions so they can be exercised without a
request or a database; the FastAPI dependency and ``ensure_owner`` wrap them
with the 403 responses the routes expect.
"""

from fastapi import Depends

from sweetshop.auth.dependencies import get_current_user
from sweetshop.core.errors import Forbidden
from sweetshop.models.user import Role, User


def is_admin(user: User) -> bool:
    return user.role == Role.ADMIN.value


def is_owner(actor_id: int, owner_id: int) -> bool:
    return actor_id is not None and actor_id == owner_id


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise Forbidden("Admin privilege required")
    return current_user


def ensure_owner(user: User, sweet) -> None:
    if not is_owner(user.id, sweet.user_id):
        raise Forbidden("Only the owner can modify this sweet")
