"""Mutable HTML document backed by BeautifulSoup."""

from __future__ import annotations

from collections.abc import Callable
from html.entities import html5

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import HTMLParserTreeBuilder
from bs4.builder._htmlparser import BeautifulSoupHTMLParser
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

logger = structlog.get_logger()

TagPredicate = Callable[[Tag], bool]


class _EntityPreservingParser(BeautifulSoupHTMLParser):
    """html.parser that keeps character references in text as written."""

    def handle_entityref(self, name: str) -> None:
        if f"{name};" in html5:
            self.handle_data(f"&{name};")
        else:
            self.handle_data(f"&{name}")

    def handle_charref(self, name: str) -> None:
        self.handle_data(f"&#{name};")


class _EntityPreservingTreeBuilder(HTMLParserTreeBuilder):
    def feed(self, markup) -> None:
        super().feed(markup, _parser_class=_EntityPreservingParser)


class _RawTextFormatter(HTMLFormatter):
    """Emit text nodes untouched; escape only attribute values (&, <, >)."""

    def __init__(self) -> None:
        super().__init__(entity_substitution=EntitySubstitution.substitute_xml)

    def substitute(self, ns: str) -> str:
        if isinstance(ns, NavigableString):
            return ns
        return super().substitute(ns)


_FORMATTER = _RawTextFormatter()


def tag_with_attr(name: str, attr: str) -> TagPredicate:
    """Match ``<name attr=...>``, e.g. ``script[src]``."""
    return lambda tag: tag.name == name and tag.has_attr(attr)


def tag_without_attr(name: str, attr: str) -> TagPredicate:
    """Match ``<name>`` lacking ``attr``, e.g. ``script:not([src])``."""
    return lambda tag: tag.name == name and not tag.has_attr(attr)


def meta_http_equiv(value: str) -> TagPredicate:
    """Match ``<meta http-equiv="value">`` (header names are case-insensitive)."""
    wanted = value.lower()

    def _match(tag: Tag) -> bool:
        if tag.name != "meta":
            return False
        http_equiv = tag.get("http-equiv")
        return isinstance(http_equiv, str) and http_equiv.lower() == wanted

    return _match


class HtmlDocument:
    """One parsed HTML document, mutated in place and serialized on demand.

    Tags handed out by ``select`` belong to this document; callers should not
    keep them beyond the operation that fetched them.
    """

    def __init__(self, html: str | bytes) -> None:
        if not isinstance(html, (str, bytes)):
            raise TypeError(f"html must be str or bytes, not {type(html).__name__}")
        self._soup = BeautifulSoup(html, builder=_EntityPreservingTreeBuilder())

    def serialize(self) -> str:
        return self._soup.decode(formatter=_FORMATTER)

    def select(self, predicate: TagPredicate) -> list[Tag]:
        """Return every tag matching ``predicate`` in document order."""
        return self._soup.find_all(predicate)

    def select_one(self, predicate: TagPredicate) -> Tag | None:
        return self._soup.find(predicate)

    def create_element(self, name: str, attrs: dict[str, str] | None = None) -> Tag:
        return self._soup.new_tag(name, attrs=attrs or {})

    def head(self) -> Tag:
        """Return ``<head>``, creating it when the markup has none.

        A created head goes after any doctype, comments and whitespace that
        open the container, so the document keeps its standards mode.
        """
        head = self._soup.find("head")
        if head is not None:
            return head
        head = self.create_element("head")
        root = self._soup.find("html") or self._soup
        root.insert(self._prologue_length(root), head)
        logger.warning("head_element_created", inside=root.name)
        return head

    @staticmethod
    def _prologue_length(container: Tag) -> int:
        """Count leading doctype, comment and whitespace-only nodes."""
        count = 0
        for node in container.contents:
            if isinstance(node, PreformattedString):
                count += 1
            elif isinstance(node, NavigableString) and not node.strip():
                count += 1
            else:
                break
        return count

    def body(self) -> Tag:
        """Return ``<body>``, or the closest container when it is missing."""
        body = self._soup.find("body")
        if body is not None:
            return body
        root = self._soup.find("html") or self._soup
        logger.warning("body_element_missing", fallback=root.name)
        return root

    @staticmethod
    def remove(tag: Tag) -> None:
        tag.decompose()

    @staticmethod
    def prepend(container: Tag, tag: Tag) -> None:
        container.insert(0, tag)

    @staticmethod
    def append(container: Tag, tag: Tag) -> None:
        container.append(tag)

    @staticmethod
    def get_attr(tag: Tag, name: str) -> str | None:
        value = tag.get(name)
        # Multi-valued attributes (class, rel) come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return value

    @staticmethod
    def set_attr(tag: Tag, name: str, value: str) -> None:
        tag[name] = value

    @staticmethod
    def get_text(tag: Tag) -> str:
        """Raw inner content of ``tag``; script and style bodies are never escaped."""
        return tag.decode_contents(formatter=_FORMATTER)

    @staticmethod
    def set_text(tag: Tag, text: str) -> None:
        tag.string = text
