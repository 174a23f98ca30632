"""
safe_url.py
-----------
Validated link targets for rendered messages.

A `SafeUrl` can only be obtained through `SafeUrl.parse()`, which enforces a
scheme allow-list and rejects characters that browsers strip or reinterpret
inside URLs (whitespace, control characters, backslashes). Anything that does
not validate is rendered as plain text by the caller instead of as a link.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlsplit

DEFAULT_ALLOWED_SCHEMES = frozenset({"http", "https", "mailto"})

# C0 controls, space, DEL, C1 controls, and backslash ("/\host" is read as "//host")
_FORBIDDEN_CHARS_RE = re.compile(r"[\x00-\x20\x7f-\x9f\\]")
_SCHEME_LIKE_RE = re.compile(r"[^/?#]*:")


class UnsafeUrlError(ValueError):
    """Raised when a link target fails validation."""


@dataclass(frozen=True)
class SafeUrl:
    value: str
    scheme: Optional[str] = None

    @classmethod
    def parse(
        cls, raw: str, allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES
    ) -> "SafeUrl":
        """
        Validate a raw link target.

        Relative targets (no scheme) are accepted; absolute targets must use a
        scheme from `allowed_schemes` (compared case-insensitively).

        Raises:
            UnsafeUrlError: if the target is empty, contains forbidden
                characters, or uses a scheme outside the allow-list.
        """
        if not raw:
            raise UnsafeUrlError("Empty link target")
        if _FORBIDDEN_CHARS_RE.search(raw):
            raise UnsafeUrlError("Link target contains whitespace or control characters")

        try:
            parts = urlsplit(raw)
        except ValueError as e:
            raise UnsafeUrlError(f"Malformed link target: {e}") from e

        scheme = parts.scheme.lower()
        if not scheme:
            # urlsplit ignores scheme-like prefixes with invalid characters;
            # refuse any colon before the first path, query or fragment delimiter.
            if _SCHEME_LIKE_RE.match(raw):
                raise UnsafeUrlError(f"Unrecognised scheme in link target: {raw!r}")
            return cls(value=raw)

        allowed = {s.lower() for s in allowed_schemes}
        if scheme not in allowed:
            raise UnsafeUrlError(f"Scheme {scheme!r} is not allowed")
        return cls(value=raw, scheme=scheme)

    def __str__(self) -> str:
        return self.value
