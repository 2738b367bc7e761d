# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the password utility endpoints."""

from typing import List

from core.schemas import CamelModel


class GeneratePasswordRequest(CamelModel):
    length: int = 16
    include_uppercase: bool = True
    include_lowercase: bool = True
    include_numbers: bool = True
    include_symbols: bool = True
    exclude_similar: bool = False


class StrengthCheckRequest(CamelModel):
    password: str = ""


class Strength(CamelModel):
    strength: int
    strength_label: str
    feedback: List[str]


class GeneratePasswordResponse(CamelModel):
    password: str
    strength: Strength


class StrengthResponse(CamelModel):
    strength: Strength
