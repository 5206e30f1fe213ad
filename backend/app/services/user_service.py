"""User service."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.models.user import User

logger = get_logger(__name__)


async def ensure_user(db: AsyncSession, user_id: int, *, name: str | None = None) -> User:
    """Return the user with ``user_id``, creating a bare row if missing.

    Note: This function commits the transaction when it creates the user.
    """
    user = await db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id, name=name)
    db.add(user)
    await db.commit()
    logger.info("User created", user_id=user_id)
    return user
