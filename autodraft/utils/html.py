"""HTML normalization for the WeChat article renderer.

WeChat drops heading styling and collapses native list numbering, so headings
become styled paragraphs and every list item becomes its own paragraph with a
literal ``n. `` or bullet prefix. All passes are pure ``str -> str`` functions
and running them again on their own output changes nothing.
"""

from __future__ import annotations

import re
from typing import Callable, Sequence

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, Tag

HEADING_FONT_SIZES = {1: "24px", 2: "22px", 3: "20px", 4: "18px", 5: "16px", 6: "15px"}
HEADING_STYLE = "font-size:{size};font-weight:700;margin:1em 0 0.6em;"
BULLET = "• "

_HEADING_TAG = re.compile(r"^h[1-6]$")


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _trimmed(nodes: Sequence[PageElement]) -> list[PageElement]:
    start, end = 0, len(nodes)
    while start < end and _is_blank(nodes[start]):
        start += 1
    while end > start and _is_blank(nodes[end - 1]):
        end -= 1
    return list(nodes[start:end])


def _is_blank(node: PageElement) -> bool:
    return type(node) is NavigableString and not str(node).strip()


def _append_trimmed(target: Tag, nodes: Sequence[PageElement]) -> None:
    nodes = _trimmed(nodes)
    last = len(nodes) - 1
    for index, node in enumerate(nodes):
        if type(node) is NavigableString:
            text = str(node)
            if index == 0:
                text = text.lstrip()
            if index == last:
                text = text.rstrip()
            node.extract()
            target.append(text)
        else:
            target.append(node.extract())


def _item_groups(item: Tag) -> list[list[PageElement]]:
    """Split a list item into inline runs; loose items wrap each run in <p>."""
    groups: list[list[PageElement]] = []
    inline: list[PageElement] = []
    for child in list(item.contents):
        if isinstance(child, Tag) and child.name == "p":
            if inline:
                groups.append(inline)
                inline = []
            groups.append(list(child.contents))
        else:
            inline.append(child)
    if inline:
        groups.append(inline)
    return [group for group in groups if _trimmed(group)]


def _convert_headings(soup: BeautifulSoup) -> None:
    for heading in soup.find_all(_HEADING_TAG):
        level = int(heading.name[1])
        paragraph = soup.new_tag("p")
        paragraph["style"] = HEADING_STYLE.format(size=HEADING_FONT_SIZES.get(level, "18px"))
        _append_trimmed(paragraph, list(heading.contents))
        heading.replace_with(paragraph)


def _flatten_list(soup: BeautifulSoup, block: Tag, prefix: Callable[[int], str]) -> None:
    items = block.find_all("li", recursive=False)
    if not items:
        return
    for index, item in enumerate(items, start=1):
        paragraph = soup.new_tag("p")
        paragraph.append(prefix(index))
        for position, group in enumerate(_item_groups(item)):
            if position:
                paragraph.append(soup.new_tag("br"))
            _append_trimmed(paragraph, group)
        block.insert_before(paragraph)
    block.decompose()


def _flatten_lists(soup: BeautifulSoup) -> None:
    # innermost first so nested lists are already paragraphs when the parent flattens
    for block in reversed(soup.find_all(["ol", "ul"])):
        if block.name == "ol":
            _flatten_list(soup, block, lambda n: f"{n}. ")
        else:
            _flatten_list(soup, block, lambda _: BULLET)


def convert_headings(html: str) -> str:
    """Rewrite ``<h1>``..``<h6>`` into bold paragraphs with an inline font size."""
    soup = _parse(html)
    _convert_headings(soup)
    return str(soup)


def flatten_lists(html: str) -> str:
    """Expand ``<ol>``/``<ul>`` into one prefixed paragraph per item."""
    soup = _parse(html)
    _flatten_lists(soup)
    return str(soup)


def normalize_for_wechat(html: str) -> str:
    soup = _parse(html)
    _convert_headings(soup)
    _flatten_lists(soup)
    return str(soup)


__all__ = [
    "BULLET",
    "HEADING_FONT_SIZES",
    "convert_headings",
    "flatten_lists",
    "normalize_for_wechat",
]
