# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Password utility endpoints – server-side generator and strength meter.
Both require a logged-in user; neither touches stored credentials.
"""

from fastapi import APIRouter, Depends

from core.exceptions import ValidationError
from core.security import get_current_user
from models.user import User
from services.password_tools import check_strength, generate_password
from utils.schemas import (
    GeneratePasswordRequest,
    GeneratePasswordResponse,
    StrengthCheckRequest,
    StrengthResponse,
)

router = APIRouter(prefix="/utils", tags=["utils"])


@router.post("/generate-password", response_model=GeneratePasswordResponse)
def generate(
    body: GeneratePasswordRequest,
    current_user: User = Depends(get_current_user),  # must be logged in
):
    password = generate_password(
        length=body.length,
        include_uppercase=body.include_uppercase,
        include_lowercase=body.include_lowercase,
        include_numbers=body.include_numbers,
        include_symbols=body.include_symbols,
        exclude_similar=body.exclude_similar,
    )
    return {"password": password, "strength": check_strength(password)}


@router.post("/check-password-strength", response_model=StrengthResponse)
def strength(
    body: StrengthCheckRequest,
    current_user: User = Depends(get_current_user),
):
    if not body.password:
        raise ValidationError({"password": "Password is required"}, "Password is required")
    return {"strength": check_strength(body.password)}
