"""Centralized authentication dependencies.

Provides user-scoped and service-role Supabase clients, and resolves the
calling user into an explicit Actor that routers hand to services. Nothing
below the router layer reads ambient session state.
"""

import os
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException
from supabase import Client, create_client

from apps.api.core.errors import ForbiddenError

logger = structlog.get_logger()

ADMIN_ROLE = "admin"
SUPPORTER_ROLE = "supporter"


def _get_supabase_url() -> str:
    url = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
    if not url:
        raise RuntimeError("SUPABASE_URL is not configured")
    return url


def _get_supabase_anon_key() -> str:
    key = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not key:
        raise RuntimeError("SUPABASE_ANON_KEY is not configured")
    return key


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract Bearer token from Authorization header.

    Returns the raw JWT string.
    """
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid Authorization header. Expected: Bearer <token>",
        )

    token = authorization[7:].strip()
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
        )
    return token


async def get_user_client(token: str = Depends(get_user_token)) -> Client:
    """Provide a Supabase client authenticated with the user's JWT.

    RLS policies will be enforced for all queries.

    Note: We pass an empty string as the refresh token because the API
    is stateless: each request carries a fresh token from the client.
    """
    client = create_client(_get_supabase_url(), _get_supabase_anon_key())
    client.auth.set_session(token, "")
    return client


def get_service_client() -> Client:
    """Provide a service-role Supabase client (bypasses RLS).

    Used by the public pledge form and the statement import CLI.
    """
    url = _get_supabase_url()
    service_key = os.environ.get("SUPABASE_SERVICE_KEY") or os.environ.get(
        "SUPABASE_SERVICE_ROLE_KEY", ""
    )
    if not service_key:
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")
    return create_client(url, service_key)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a request."""

    user_id: str
    email: Optional[str]
    role: str
    client: Client

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _lookup_role(client: Client, user_id: str) -> str:
    response = (
        client.table("profiles").select("role").eq("id", user_id).limit(1).execute()
    )
    rows = response.data or []
    if rows and rows[0].get("role"):
        return str(rows[0]["role"])
    return SUPPORTER_ROLE


async def get_current_actor(client: Client = Depends(get_user_client)) -> Actor:
    """Resolve the bearer token into an Actor with its profile role."""
    user_response = client.auth.get_user()
    if not user_response or not user_response.user:
        raise HTTPException(status_code=401, detail="Invalid bearer token")

    user = user_response.user
    role = _lookup_role(client, user.id)
    structlog.contextvars.bind_contextvars(actor_id=user.id, actor_role=role)
    return Actor(
        user_id=user.id,
        email=getattr(user, "email", None),
        role=role,
        client=client,
    )


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Only operators may import statements or read organization figures."""
    if not actor.is_admin:
        logger.warning("admin_required", actor_id=actor.user_id, role=actor.role)
        raise ForbiddenError()
    return actor
