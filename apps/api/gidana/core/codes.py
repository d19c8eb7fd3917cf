"""Human-typed property codes of the form ``PREFIX-NNNN``."""
from __future__ import annotations

import random
import re

CODE_DIGITS = 4
CODE_PATTERN = re.compile(r"^[A-Z0-9]+-\d{4}$")


def normalise_code(raw: str) -> str:
    """Trim and upper-case a code exactly as stored."""

    return raw.strip().upper()


def is_well_formed(code: str) -> bool:
    return bool(CODE_PATTERN.match(code))


def generate_code(prefix: str, rng: random.Random | None = None) -> str:
    """Return a fresh candidate code; uniqueness is enforced by the store."""

    chooser = rng or random.SystemRandom()
    number = chooser.randrange(10**CODE_DIGITS)
    return f"{normalise_code(prefix)}-{number:0{CODE_DIGITS}d}"
