"""
Studio Money - Amount Parsing
==============================
User-entered amounts ("1 234,56") in, integer cents out.
"""

from __future__ import annotations

import re

from core.commands.errors import ValidationError
from core.money.arithmetic import MAX_CENTS

_AMOUNT_RE = re.compile(r"^(\d+)(?:[.,](\d*))?$")


def parse_amount_to_cents(raw: str) -> int:
    """
    Parse a decimal amount into cents.

    Accepts '.' or ',' as separator and ignores whitespace. A third
    fraction digit rounds half-up; further digits are ignored.

        parse_amount_to_cents("12,345") == 1235
    """
    if raw is None:
        raise ValidationError("amount is required.")
    text = "".join(str(raw).split())
    if not text:
        raise ValidationError("amount is required.")
    match = _AMOUNT_RE.match(text)
    if match is None:
        raise ValidationError(f"'{raw}' is not a valid non-negative amount.")

    units, fraction = match.group(1), match.group(2) or ""
    cents = int(units) * 100 + int((fraction[:2]).ljust(2, "0"))
    if len(fraction) > 2 and int(fraction[2]) >= 5:
        cents += 1
    if cents > MAX_CENTS:
        raise ValidationError("amount exceeds the maximum storable amount.")
    return cents
