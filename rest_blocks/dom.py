"""
DOM queries over block HTML fragments.

Fragments are parsed with BeautifulSoup and queried with CSS selectors
(soupsieve). Selectors that look like XPath ("/...", "./...", "(...)") are
evaluated with lxml instead; each match is re-serialized and re-parsed with
html.parser (no tree-construction fixups, so a lone <tr> or <td> survives)
so every node in a NodeSet is a plain BeautifulSoup tag regardless of which
engine found it.

``query`` sources descend into matched elements through Fragment.of(),
which wraps a copy of the element instead of re-parsing its markup.
"""

import copy
from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag
from lxml import etree
from soupsieve import SelectorSyntaxError

from .exceptions import SelectorError
from .logger import get_module_logger

logger = get_module_logger("dom")

# Parser fallback chain, most lenient first
PARSERS = ("html5lib", "lxml", "html.parser")

XPATH_PREFIXES = ("/", "./", "(")


def is_xpath(selector: str) -> bool:
    return selector.lstrip().startswith(XPATH_PREFIXES)


def _attr_value(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    # BeautifulSoup splits multi-valued attributes such as class
    if isinstance(value, list):
        return " ".join(value)
    return value


class NodeSet:
    """
    Ordered set of matched elements.

    ``attr``, ``html`` and ``text`` read the first element, and return None
    when nothing matched. Iterating yields a Fragment per element.
    """

    def __init__(self, nodes: list[Tag]):
        self.nodes = nodes

    def __iter__(self) -> Iterator["Fragment"]:
        for node in self.nodes:
            yield Fragment.of(node)

    def __len__(self) -> int:
        return len(self.nodes)

    def __bool__(self) -> bool:
        return bool(self.nodes)

    def first(self) -> Optional[Tag]:
        return self.nodes[0] if self.nodes else None

    def attr(self, name: str) -> Optional[str]:
        node = self.first()
        if node is None:
            return None
        return _attr_value(node, name)

    def html(self) -> Optional[str]:
        node = self.first()
        if node is None:
            return None
        return node.decode_contents()

    def text(self) -> Optional[str]:
        node = self.first()
        if node is None:
            return None
        return node.get_text()


class RootNodeSet(NodeSet):
    """
    The fragment itself, for rules without a selector.

    ``html`` and ``text`` cover the whole fragment; ``attr`` reads the
    fragment's first top-level element (the block's wrapper).
    """

    def __init__(self, container: Tag):
        super().__init__([container])
        self.container = container

    def attr(self, name: str) -> Optional[str]:
        wrapper = self.container.find(True, recursive=False)
        if wrapper is None:
            return None
        return _attr_value(wrapper, name)


class Fragment:
    """A parsed HTML fragment."""

    def __init__(self, soup: BeautifulSoup, parser: str):
        self.soup = soup
        self.parser = parser
        # html5lib and lxml wrap fragments in <html><body>; html.parser does not
        self.container = soup.body or soup
        # Set when the fragment wraps one matched element (see of())
        self.element: Optional[Tag] = None

    @classmethod
    def of(cls, tag: Tag) -> "Fragment":
        """
        Wrap a copy of an already-parsed element.

        The element keeps its tree shape, so table rows and cells stay
        intact. Root lookups on the result read the element itself.
        """
        wrapper = BeautifulSoup("", "html.parser")
        element = copy.copy(tag)
        wrapper.append(element)
        fragment = cls(wrapper, "html.parser")
        fragment.element = element
        return fragment

    def query(self, selector: Optional[str] = None) -> NodeSet:
        """
        Select elements inside the fragment.

        Args:
            selector: CSS selector or XPath expression. None selects the
                      fragment root, or the wrapped element for
                      fragments built with of().

        Returns:
            NodeSet of matches in document order

        Raises:
            SelectorError: if the selector cannot be compiled
        """
        if selector is None:
            if self.element is not None:
                return NodeSet([self.element])
            return RootNodeSet(self.container)
        if is_xpath(selector):
            return NodeSet(self._xpath(selector))
        try:
            return NodeSet(self.container.select(selector))
        except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
            raise SelectorError(selector, str(e))

    def _xpath(self, expression: str) -> list[Tag]:
        markup = self.container.decode_contents()
        if not markup.strip():
            return []
        tree = etree.HTML(markup)
        if tree is None:
            return []
        try:
            found = tree.xpath(expression)
        except etree.XPathError as e:
            raise SelectorError(expression, str(e))

        nodes = []
        for element in found:
            # Attribute and text results carry no element to wrap
            if not isinstance(element, etree._Element):
                logger.debug(f"Ignoring non-element XPath result for '{expression}'")
                continue
            element_markup = etree.tostring(element, method="html", encoding="unicode", with_tail=False)
            tag = BeautifulSoup(element_markup, "html.parser").find(True)
            if tag is not None:
                nodes.append(tag)
        return nodes

    def __str__(self) -> str:
        return self.container.decode_contents()


def _parse(html: str, parser: str) -> tuple[BeautifulSoup, str]:
    """Parse with the preferred parser, falling back along PARSERS."""
    candidates = [parser] + [p for p in PARSERS if p != parser]
    last_error = None
    for name in candidates:
        try:
            return BeautifulSoup(html, name), name
        except Exception as e:
            # bs4.FeatureNotFound when a parser is not installed
            logger.warning(f"{name} parsing failed, trying next parser: {e}")
            last_error = e
    raise last_error


class DomQuery:
    """Factory turning HTML strings into queryable fragments."""

    def __init__(self, parser: str = "html5lib"):
        self.parser = parser

    def parse(self, html: str) -> Fragment:
        soup, used = _parse(html, self.parser)
        if used != self.parser:
            # Stick with the parser that works so later fragments skip the retry
            self.parser = used
        return Fragment(soup, used)
