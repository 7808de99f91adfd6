"""
OAuth login and callback endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from .schemas import LinkedIdentityModel
from .system import LinkSystem, get_system


router = APIRouter()

STATE_COOKIE = "oauth_state"


@router.get("/login")
async def login(system: LinkSystem = Depends(get_system)):
    """Redirect to the identity provider with a fresh state value"""
    redirect = system.oauth.begin_login()
    response = RedirectResponse(redirect.url, status_code=307)
    response.set_cookie(
        STATE_COOKIE,
        redirect.state,
        max_age=system.config.oauth_state_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    state: Optional[str] = None,
    code: Optional[str] = None,
    system: LinkSystem = Depends(get_system)
):
    """Complete the OAuth flow and persist the external identity if new"""
    result = await system.oauth.handle_callback(state, code, request.cookies.get(STATE_COOKIE))
    identity = result.identity
    body = LinkedIdentityModel(
        id=identity.id,
        global_name=identity.global_name,
        avatar=identity.avatar,
        avatar_url=identity.avatar_url,
        created=result.created,
    )
    response = JSONResponse(body.model_dump())
    response.delete_cookie(STATE_COOKIE)
    return response
