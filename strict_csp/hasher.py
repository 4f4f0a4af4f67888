"""CSP source-list hashes for inline scripts and styles."""

from __future__ import annotations

import base64
import hashlib

HASH_FUNCTION = "sha256"


def hash_inline_content(text: str) -> str:
    """Return the quoted CSP hash token for the text of an inline element.

    ``text`` must be exactly what sits between the opening and closing tag,
    whitespace and newlines included, or browsers will not match the hash.

    Example:
        >>> hash_inline_content("")
        "'sha256-47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU='"
    """
    digest = hashlib.new(HASH_FUNCTION, text.encode("utf-8")).digest()
    return f"'{HASH_FUNCTION}-{base64.b64encode(digest).decode('ascii')}'"
