"""Normalisation of question option payloads.

Options arrive as a native list, as a JSON-encoded list, or (from older
imports) as a ``|``-separated string. Everything past this module sees
``list[str]``.
"""

import json
from typing import Any

from app.core.errors import InvalidRequestError

MIN_OPTIONS = 2
MAX_OPTIONS = 6


def normalize_options(raw: Any) -> list[str]:
    """Return *raw* as a list of non-empty, stripped option strings.

    Raises:
        InvalidRequestError: when the payload cannot be read as a list of
            2–6 options.
    """
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except json.JSONDecodeError as exc:
                raise InvalidRequestError(f"Options are not valid JSON: {exc.msg}") from exc
        else:
            raw = text.split("|") if text else []

    if not isinstance(raw, (list, tuple)):
        raise InvalidRequestError("Options must be a list of strings")

    options = [str(opt).strip() for opt in raw]
    if any(not opt for opt in options):
        raise InvalidRequestError("Options must not be blank")
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        raise InvalidRequestError(
            f"A question needs between {MIN_OPTIONS} and {MAX_OPTIONS} options",
            details={"option_count": len(options)},
        )
    return options


def is_valid_option(options: list[str], index: int) -> bool:
    return 0 <= index < len(options)
