"""Helpers for extracting phone number / OTP pairs from panel message text.

Matchers run in a fixed order and the first hit wins:

A. ``OTP|code [for] <phone> [is] <code>``
B. ``<phone> <code>`` (unspaced phone of 10-15 characters, then whitespace or ``:``)
C. ``<code> [is] [your] OTP|code ... <phone>``

A message that satisfies both A and C resolves through A, even when C
would give a different reading.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Sequence, Tuple

from otprelay.core.models import ParsedOtp

Matcher = Callable[[str], Optional[ParsedOtp]]

# Keyword form: optional leading "+", digits, single whitespace characters
# allowed between digits ("+1 202 555 0199").
_PHONE = r"\+?\d(?:\s?\d)*"
# Bare forms: an unbroken run of 10-15 characters, digits with an optional
# leading "+". Spaced digit groups (card or reference numbers) never join
# into a phone number.
_LONG_PHONE = r"(?:\+\d{9,14}|\d{10,15})"
_CODE = r"\d{4,8}"

PATTERN_A = re.compile(
    rf"(?:OTP|code)\s+(?:for\s+)?({_PHONE})\s+(?:is\s+)?({_CODE})",
    re.IGNORECASE,
)
PATTERN_B = re.compile(rf"({_LONG_PHONE})[\s:]+({_CODE})")
PATTERN_C = re.compile(
    rf"({_CODE})\s+(?:is\s+)?(?:your\s+)?(?:OTP|code).*?({_LONG_PHONE})",
    re.IGNORECASE,
)

_WHITESPACE = re.compile(r"\s+")


def _build(phone: str, code: str) -> ParsedOtp:
    return ParsedOtp(phone_number=_WHITESPACE.sub("", phone), otp_code=code)


def match_keyword_first(text: str) -> Optional[ParsedOtp]:
    match = PATTERN_A.search(text)
    return _build(match.group(1), match.group(2)) if match else None


def match_number_then_code(text: str) -> Optional[ParsedOtp]:
    match = PATTERN_B.search(text)
    return _build(match.group(1), match.group(2)) if match else None


def match_code_first(text: str) -> Optional[ParsedOtp]:
    match = PATTERN_C.search(text)
    # code precedes the phone number here
    return _build(match.group(2), match.group(1)) if match else None


DEFAULT_MATCHERS: Tuple[Matcher, ...] = (
    match_keyword_first,
    match_number_then_code,
    match_code_first,
)


class OtpMessageParser:
    """Ordered list of matchers; extra matchers run after the built-in ones."""

    def __init__(self, extra: Sequence[Matcher] = ()) -> None:
        self._matchers: Tuple[Matcher, ...] = DEFAULT_MATCHERS + tuple(extra)

    def parse(self, text: str) -> Optional[ParsedOtp]:
        for matcher in self._matchers:
            result = matcher(text)
            if result is not None:
                return result
        return None


_default_parser = OtpMessageParser()


def parse_otp_message(text: str) -> Optional[ParsedOtp]:
    return _default_parser.parse(text)
