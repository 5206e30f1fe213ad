"""Authentication utilities.

Token issuance and validation live outside this service. Requests identify
their user through the ``X-User-Id`` header set by the gateway; requests
without it act as the guest user (id=1), which is created at startup.

WARNING: the header is trusted as-is. Deployments must strip it from
external traffic at the gateway.
"""

from typing import Annotated

from fastapi import Header

# Default guest user - used when no identity is forwarded
DEFAULT_USER_ID = 1


def get_auth_user(
    x_user_id: Annotated[int | None, Header(alias="X-User-Id")] = None,
) -> int:
    """Get the current user ID for HTTP requests.

    Args:
        x_user_id: User ID forwarded by the gateway, if any

    Returns:
        User ID (int)

    Example (``CurrentUser`` from ``app.api.deps``):
        @router.post("/items")
        async def create_item(user_id: CurrentUser):
            return {"user_id": user_id}
    """
    if x_user_id is None:
        return DEFAULT_USER_ID
    return x_user_id

