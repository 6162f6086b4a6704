"""Auth router — sign-up, login and the current user's profile."""

from fastapi import APIRouter, Depends, Request

from leave_portal.auth.dependencies import get_current_user
from leave_portal.auth.schemas import LoginRequest, SignupRequest, TokenResponse
from leave_portal.auth.service import authenticate, create_access_token, register_user
from leave_portal.common.rate_limit import AUTH_RATE_LIMIT, limiter
from leave_portal.dependencies import get_repository
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import ProfileUpdate, UserOut
from leave_portal.users.service import UserService

router = APIRouter(prefix="", tags=["auth"])


def _token_response(user: UserOut) -> TokenResponse:
    access_token, expires_in = create_access_token(user)
    return TokenResponse(access_token=access_token, expires_in=expires_in, user=user)


# ── POST /signup ────────────────────────────────────────────────────

@router.post("/signup", response_model=TokenResponse, status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
async def signup(
    request: Request,
    body: SignupRequest,
    repo: LeaveRepository = Depends(get_repository),
):
    """Register an account; Admin roles must supply the admin access code."""
    user = await register_user(repo, body)
    return _token_response(user)


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    repo: LeaveRepository = Depends(get_repository),
):
    user = await authenticate(repo, body.email, body.password)
    return _token_response(user)


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(user: UserOut = Depends(get_current_user)):
    return user


# ── PUT /me ─────────────────────────────────────────────────────────

@router.put("/me", response_model=UserOut)
async def update_me(
    body: ProfileUpdate,
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    """Edit name, department or date of joining."""
    return await UserService.update_profile(repo, user, body)
