# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Password generator and strength meter.

Both are pure functions over their arguments; nothing here reads or writes
stored credentials.
"""

import random
import re
import secrets
import string

from core.exceptions import ValidationError

MIN_LENGTH = 8
MAX_LENGTH = 32

_SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# Look-alike characters (i l 1 L o 0 O) removed
_UPPER_UNAMBIGUOUS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
_LOWER_UNAMBIGUOUS = "abcdefghijkmnopqrstuvwxyz"
_DIGITS_UNAMBIGUOUS = "23456789"

_STRENGTH_LABELS = (
    (6, "Very Strong"),
    (5, "Strong"),
    (4, "Medium"),
    (3, "Weak"),
)


def generate_password(
    length: int = 16,
    include_uppercase: bool = True,
    include_lowercase: bool = True,
    include_numbers: bool = True,
    include_symbols: bool = True,
    exclude_similar: bool = False,
) -> str:
    """
    Random password from the OS CSPRNG with at least one character of every
    selected class.
    """
    if not (MIN_LENGTH <= length <= MAX_LENGTH):
        raise ValidationError(
            {"length": f"Length must be between {MIN_LENGTH} and {MAX_LENGTH}"},
            f"Length must be between {MIN_LENGTH} and {MAX_LENGTH}",
        )

    classes = []
    if include_uppercase:
        classes.append(_UPPER_UNAMBIGUOUS if exclude_similar else string.ascii_uppercase)
    if include_lowercase:
        classes.append(_LOWER_UNAMBIGUOUS if exclude_similar else string.ascii_lowercase)
    if include_numbers:
        classes.append(_DIGITS_UNAMBIGUOUS if exclude_similar else string.digits)
    if include_symbols:
        classes.append(_SYMBOLS)
    if not classes:
        raise ValidationError(
            {"charset": "At least one character type must be included"},
            "At least one character type must be included",
        )

    charset = "".join(classes)
    chars = [secrets.choice(chars) for chars in classes]
    chars.extend(secrets.choice(charset) for _ in range(length - len(chars)))

    # Guaranteed characters must not sit at predictable positions
    random.SystemRandom().shuffle(chars)
    return "".join(chars)


def check_strength(password: str) -> dict:
    """Score 0-7 with a label and improvement hints."""
    score = 0
    feedback = []

    if len(password) >= 8:
        score += 1
    else:
        feedback.append("Use at least 8 characters")
    if len(password) >= 12:
        score += 1
    if len(password) >= 16:
        score += 1

    for pattern, hint in (
        (r"[a-z]", "Add lowercase letters"),
        (r"[A-Z]", "Add uppercase letters"),
        (r"[0-9]", "Add numbers"),
        (r"[^a-zA-Z0-9]", "Add special characters"),
    ):
        if re.search(pattern, password):
            score += 1
        else:
            feedback.append(hint)

    label = next((name for floor, name in _STRENGTH_LABELS if score >= floor), "Very Weak")
    return {
        "strength": score,
        "strength_label": label,
        "feedback": feedback or ["Strong password!"],
    }
