"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from familyhub.api.deps import get_current_user, get_request_context
from familyhub.database import get_session
from familyhub.models.user import Profile
from familyhub.schemas.auth import (
    ConfirmRequest,
    ConfirmResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
    UserProfileResponse,
)
from familyhub.services.auth_service import (
    confirm_email,
    login,
    refresh_access_token,
    signup,
)
from familyhub.services.context import RequestContext

router = APIRouter(tags=["auth"])


@router.post("/auth/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup_user(request: SignupRequest, session: Session = Depends(get_session)):
    """Create an account. A confirmation link is issued out-of-band."""
    profile = signup(
        email=request.email,
        password=request.password,
        full_name=request.full_name,
        invite_code=request.invite_code,
        session=session,
    )
    return SignupResponse(user_id=profile.id, email=profile.email, email_confirmed=False)


@router.post("/auth/confirm", response_model=ConfirmResponse)
def confirm(request: ConfirmRequest, session: Session = Depends(get_session)):
    """Confirm an email address; joins the family of the signup invite code, if any."""
    profile, family_id = confirm_email(request.token, session)
    return ConfirmResponse(user_id=profile.id, email_confirmed=True, family_id=family_id)


@router.post("/auth/login", response_model=LoginResponse)
def login_user(request: LoginRequest, session: Session = Depends(get_session)):
    return LoginResponse(**login(request.email, request.password, session))


@router.post("/auth/refresh", response_model=RefreshResponse)
def refresh(request: RefreshRequest, session: Session = Depends(get_session)):
    """Issue a new access token using a refresh token."""
    return RefreshResponse(access_token=refresh_access_token(request.refresh_token, session))


@router.get("/me", response_model=UserProfileResponse)
def get_me(
    user: Profile = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    """Get current user's profile with their active family role."""
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        active_family_id=ctx.family_id,
        role=ctx.role,
    )
