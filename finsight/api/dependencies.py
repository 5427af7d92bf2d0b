"""
Request dependencies: caller identity and rate limit profiles.
"""

from typing import Callable, Optional
from fastapi import HTTPException, Request
from finsight.api.services import pipeline_service


def client_identity(request: Request) -> str:
    """Caller identity used for rate limiting: the client IP."""
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def require_ready() -> None:
    if not pipeline_service.is_ready():
        raise HTTPException(status_code=503, detail="Pipeline not initialized")


def rate_limited(profile: str) -> Callable:
    """
    Dependency factory enforcing a rate limit profile.

    The dependency resolves to the caller identity.
    """
    async def dependency(request: Request) -> str:
        require_ready()
        identity = client_identity(request)
        await pipeline_service.enforce(profile, identity)
        return identity

    return dependency
