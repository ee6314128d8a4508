"""
Auth Router - self-service signup
"""
from fastapi import APIRouter, Depends

from app.club.dependencies import get_signup_service
from app.envelope import success_response

from .models import SignupRequest
from .signup import SignupService

router = APIRouter(tags=["auth"])


@router.post("/signup")
async def signup(
    body: SignupRequest,
    service: SignupService = Depends(get_signup_service),
):
    """
    Password signup

    With `club_name` and `club_subdomain` in `data` the new user also gets a
    club, owned by them, with themselves as its first active member.
    """
    result = await service.signup(body.email, body.password, body.data)
    return success_response(result.model_dump())
