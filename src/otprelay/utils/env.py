"""Environment helper utilities."""

from __future__ import annotations

import os
import shlex
from typing import Mapping, Optional, Sequence


_FALSE_VALUES = {"0", "false", "no", "off"}


def _lookup(name: str, environ: Optional[Mapping[str, str]]) -> Optional[str]:
    source = os.environ if environ is None else environ
    return source.get(name)


def get_str_env(name: str, *, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return a stripped value, treating blank strings as unset."""
    raw = _lookup(name, environ)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def get_bool_env(
    name: str,
    *,
    default: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Return True/False for an environment flag."""
    value = get_str_env(name, environ=environ)
    if value is None:
        return default
    return value.lower() not in _FALSE_VALUES


def get_list_env(
    name: str,
    *,
    default: Sequence[str] | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[str]:
    """
    Read a whitespace-delimited list from the environment.

    Values can be quoted, e.g. `--foo "--bar=baz qux"`.
    """
    value = get_str_env(name, environ=environ)
    if value is None:
        return list(default or [])
    try:
        parsed = shlex.split(value)
    except ValueError:
        parsed = value.split()
    return [item for item in parsed if item]
