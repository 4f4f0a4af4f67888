"""Entry point for enabling a hash-based strict Content Security Policy."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from strict_csp.config.loader import StrictCspSettings, get_settings
from strict_csp.document import HtmlDocument
from strict_csp.hasher import hash_inline_content
from strict_csp.policy import PolicyOptions, build_policy
from strict_csp.rewriter import DomRewriter, build_loader_script

logger = structlog.get_logger()


class StrictCsp:
    """Owns one HTML document and applies strict CSP rewrites to it.

    Instances are not shared: use one per document.
    """

    def __init__(self, html: str | bytes) -> None:
        self._document = HtmlDocument(html)
        self._rewriter = DomRewriter(self._document)

    def serialize(self) -> str:
        return self._document.serialize()

    def inject_policy_meta_tag(self, csp: str) -> None:
        self._rewriter.inject_policy_meta_tag(csp)

    def get_policy_meta_content(self) -> str | None:
        return self._rewriter.get_policy_meta_content()

    def refactor_sourced_scripts(self) -> None:
        self._rewriter.refactor_sourced_scripts()

    def hash_inline_scripts(self) -> list[str]:
        return self._rewriter.collect_inline_script_hashes()

    def hash_inline_styles(self) -> list[str]:
        return self._rewriter.collect_inline_style_hashes()

    @staticmethod
    def build_policy(
        script_hashes: Sequence[str] | None = None,
        style_hashes: Sequence[str] | None = None,
        options: PolicyOptions | None = None,
    ) -> str:
        return build_policy(script_hashes, style_hashes, options)

    @staticmethod
    def build_loader_script(sources: Sequence[str]) -> str | None:
        return build_loader_script(sources)

    @staticmethod
    def hash_inline_content(text: str) -> str:
        return hash_inline_content(text)


@dataclass
class StrictCspResult:
    """Rewritten document together with the policy injected into it."""

    html: str
    policy: str
    script_hashes: list[str] = field(default_factory=list)
    style_hashes: list[str] = field(default_factory=list)


def enable_strict_csp(
    html: str | bytes,
    options: PolicyOptions | None = None,
    settings: StrictCspSettings | None = None,
) -> StrictCspResult:
    """Run the full rewrite: load sourced scripts inline, hash, build and inject.

    ``options`` wins over the policy switches in ``settings``; settings default
    to the process-wide ones.
    """
    settings = settings or get_settings()
    options = options or PolicyOptions.from_settings(settings)

    csp = StrictCsp(html)
    if settings.refactor_sourced_scripts:
        csp.refactor_sourced_scripts()
    script_hashes = csp.hash_inline_scripts()
    style_hashes = csp.hash_inline_styles() if settings.hash_inline_styles else []

    policy = build_policy(script_hashes, style_hashes, options)
    csp.inject_policy_meta_tag(policy)
    logger.info(
        "strict_csp_enabled",
        script_hashes=len(script_hashes),
        style_hashes=len(style_hashes),
    )
    return StrictCspResult(
        html=csp.serialize(),
        policy=policy,
        script_hashes=script_hashes,
        style_hashes=style_hashes,
    )
