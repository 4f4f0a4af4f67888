"""DOM rewriting that makes a hash-based strict CSP enforceable."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from strict_csp.document import (
    HtmlDocument,
    TagPredicate,
    meta_http_equiv,
    tag_with_attr,
    tag_without_attr,
)
from strict_csp.hasher import hash_inline_content

logger = structlog.get_logger()

CSP_HTTP_EQUIV = "Content-Security-Policy"

INLINE_SCRIPT = tag_without_attr("script", "src")
INLINE_STYLE = tag_without_attr("style", "href")
SOURCED_SCRIPT = tag_with_attr("script", "src")
CSP_META = meta_http_equiv(CSP_HTTP_EQUIV)

_LOADER_TEMPLATE = """
    var scripts = [{sources}];
    scripts.forEach(function(scriptUrl) {{
      var s = document.createElement('script');
      s.src = scriptUrl;
      s.async = false; // preserve execution order.
      document.body.appendChild(s);
    }});
    """

# Order matters: backslashes first so later escapes are not doubled.
_JS_STRING_ESCAPES = (
    ("\\", "\\\\"),
    ("'", "\\'"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
    ("</", "<\\/"),
    ("<!--", "<\\!--"),
)


def _js_string(value: str) -> str:
    """Quote ``value`` as a single-quoted JS literal safe inside <script>."""
    for raw, escaped in _JS_STRING_ESCAPES:
        value = value.replace(raw, escaped)
    return f"'{value}'"


def build_loader_script(sources: Sequence[str]) -> str | None:
    """Return JS that loads ``sources`` in order, or None when there are none.

    Each script is created with ``async = false`` so the browser executes them
    in insertion order, like the original blocking ``<script src>`` tags.
    """
    if not sources:
        return None
    return _LOADER_TEMPLATE.format(sources=",".join(_js_string(s) for s in sources))


class DomRewriter:
    """Rewrites one HtmlDocument in place for a hash-based strict CSP."""

    def __init__(self, document: HtmlDocument) -> None:
        self._document = document

    def inject_policy_meta_tag(self, csp: str) -> None:
        """Set ``csp`` on the CSP meta tag, creating it at the start of <head>.

        A response header is preferable: markup before the meta tag is not
        covered and meta tags cannot carry report-only policies.
        """
        doc = self._document
        meta = doc.select_one(CSP_META)
        if meta is None:
            meta = doc.create_element("meta", {"http-equiv": CSP_HTTP_EQUIV})
            doc.prepend(doc.head(), meta)
            logger.info("csp_meta_tag_created")
        else:
            logger.info("csp_meta_tag_updated")
        doc.set_attr(meta, "content", csp)

    def get_policy_meta_content(self) -> str | None:
        meta = self._document.select_one(CSP_META)
        if meta is None:
            return None
        return self._document.get_attr(meta, "content")

    def collect_and_strip_sourced_scripts(self) -> list[str]:
        """Remove every ``<script src>`` and return the sources in document order."""
        doc = self._document
        sources: list[str] = []
        for script in doc.select(SOURCED_SCRIPT):
            src = doc.get_attr(script, "src")
            doc.remove(script)
            if src is not None:
                sources.append(src)
        logger.info("sourced_scripts_stripped", count=len(sources))
        return sources

    def refactor_sourced_scripts(self) -> None:
        """Replace all sourced scripts with a single inline loader that can be hashed."""
        sources = self.collect_and_strip_sourced_scripts()
        loader = build_loader_script(sources)
        if loader is None:
            return
        doc = self._document
        script = doc.create_element("script")
        doc.set_text(script, loader)
        doc.append(doc.body(), script)
        logger.info("loader_script_inserted", sources=sources)

    def collect_inline_script_hashes(self) -> list[str]:
        hashes = self._hash_all(INLINE_SCRIPT)
        logger.info("inline_scripts_hashed", count=len(hashes))
        return hashes

    def collect_inline_style_hashes(self) -> list[str]:
        hashes = self._hash_all(INLINE_STYLE)
        logger.info("inline_styles_hashed", count=len(hashes))
        return hashes

    def _hash_all(self, predicate: TagPredicate) -> list[str]:
        doc = self._document
        return [hash_inline_content(doc.get_text(tag) or "") for tag in doc.select(predicate)]
