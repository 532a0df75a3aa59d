# app/core/rbac.py

from fastapi import Depends, HTTPException, status
from app.api.deps import get_current_actor
from app.models.enums import ActorRole
from app.schemas.workflow import Actor

def AllowRoles(*allowed_roles):
    """
    Endpoint-level RBAC:
    - Accepts ActorRole values or raw strings
    - Case-insensitive
    - Admin bypasses everything

    This only decides who may call an endpoint. Whether an actor may review
    a particular application is decided by the authorization service.
    """

    def normalize(role) -> str:
        if isinstance(role, ActorRole):
            return role.value.lower().strip()
        return str(role).lower().strip()

    normalized_allowed = {normalize(r) for r in allowed_roles}

    async def role_checker(current_actor: Actor = Depends(get_current_actor)):
        user_role = normalize(current_actor.role)

        # Admin bypass
        if user_role == "admin":
            return current_actor

        if user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{current_actor.role.value}'"
            )

        return current_actor

    return role_checker
