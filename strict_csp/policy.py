"""Strict CSP (Content-Security-Policy) construction and parsing."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from strict_csp.config.loader import StrictCspSettings

logger = structlog.get_logger()

STRICT_DYNAMIC = "'strict-dynamic'"
UNSAFE_INLINE = "'unsafe-inline'"
UNSAFE_EVAL = "'unsafe-eval'"
HTTPS_SCHEME = "https:"


class PolicyOptions(BaseModel):
    """Switches applied on top of the strict hash-based policy."""

    model_config = ConfigDict(frozen=True)

    # Fallbacks for browsers without CSP3 support. Ignored by modern browsers
    # in presence of hashes and 'strict-dynamic'.
    enable_browser_fallbacks: bool = True
    # Dangerous DOM sinks only accept typed objects instead of strings.
    enable_trusted_types: bool = False
    # Allows eval() and friends, making the policy slightly less secure.
    enable_unsafe_eval: bool = False

    @classmethod
    def from_settings(cls, settings: StrictCspSettings) -> PolicyOptions:
        return cls(
            enable_browser_fallbacks=settings.enable_browser_fallbacks,
            enable_trusted_types=settings.enable_trusted_types,
            enable_unsafe_eval=settings.enable_unsafe_eval,
        )


def build_policy(
    script_hashes: Sequence[str] | None = None,
    style_hashes: Sequence[str] | None = None,
    options: PolicyOptions | None = None,
) -> str:
    """Return a strict Content Security Policy for mitigating XSS.

    Directive order and token order are fixed so identical inputs always
    produce byte-identical output. If you modify this policy, check it is not
    trivially bypassable with csp-evaluator.withgoogle.com.

    Example:
        >>> build_policy()
        "script-src 'strict-dynamic' https:;style-src ;object-src 'none';base-uri 'self';"
    """
    script_hashes = list(script_hashes or [])
    style_hashes = list(style_hashes or [])
    options = options or PolicyOptions()

    directives: dict[str, list[str]] = {
        # 'strict-dynamic' lets hashed scripts load further scripts.
        "script-src": [STRICT_DYNAMIC, *script_hashes],
        "style-src": [*style_hashes],
        # Disables plugins such as Flash.
        "object-src": ["'none'"],
        # Blocks injected <base> tags from redirecting relative script URLs.
        "base-uri": ["'self'"],
    }

    if options.enable_browser_fallbacks:
        # Safari fallback, ignored wherever 'strict-dynamic' is supported.
        directives["script-src"].append(HTTPS_SCHEME)
        # 'unsafe-inline' is only ignored in presence of a hash or nonce.
        if script_hashes:
            directives["script-src"].append(UNSAFE_INLINE)

    if options.enable_trusted_types:
        directives["require-trusted-types-for"] = ["'script'"]

    if options.enable_unsafe_eval:
        directives["script-src"].append(UNSAFE_EVAL)

    logger.debug("strict_csp_policy_built", directives=len(directives))
    return serialize_policy(directives)


def serialize_policy(directives: dict[str, list[str]]) -> str:
    """Serialize {directive: [tokens]} as ``name tok tok;`` segments, unseparated."""
    return "".join(f"{name} {' '.join(tokens)};" for name, tokens in directives.items())


def parse_policy(csp: str) -> dict[str, list[str]]:
    """Parse a CSP string into an ordered {directive: [tokens]} dict.

    Example:
        >>> parse_policy("script-src 'strict-dynamic' https:;object-src 'none';")
        {"script-src": ["'strict-dynamic'", "https:"], "object-src": ["'none'"]}
    """
    result: dict[str, list[str]] = {}
    if not csp or not csp.strip():
        return result
    for part in csp.split(";"):
        tokens = part.split()
        if not tokens:
            continue
        result[tokens[0].lower()] = tokens[1:]
    return result
