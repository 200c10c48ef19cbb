"""
DOM primitives over lxml.html element trees.

Small, browser-shaped helpers (closest, innerHTML, insertAdjacentHTML,
remove, hide) used by the Field Controller. Elements are plain
``lxml.html.HtmlElement`` instances; nothing here keeps state.
"""

import html
from typing import Callable, List, Optional

import lxml.html
from lxml.html import HtmlElement


def parse_fragment(markup: str) -> HtmlElement:
    """
    Parse an HTML fragment into a detached ``<div>`` wrapper.

    Leading text is kept on ``wrapper.text`` so ``inner_html(wrapper)``
    serializes the fragment back without loss.
    """
    return lxml.html.fragment_fromstring(markup, create_parent="div")


def inner_html(element: HtmlElement) -> str:
    """Serialize the children (and text) of ``element``, like ``innerHTML``."""
    parts = [html.escape(element.text, quote=False)] if element.text else []
    for child in element:
        parts.append(lxml.html.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


def insert_beforeend(container: HtmlElement, markup: str) -> List[HtmlElement]:
    """
    Append parsed ``markup`` after the last child of ``container``.

    Returns the inserted elements (text nodes are merged, not returned).
    """
    wrapper = parse_fragment(markup)
    if wrapper.text:
        if len(container):
            last = container[-1]
            last.tail = (last.tail or "") + wrapper.text
        else:
            container.text = (container.text or "") + wrapper.text
    inserted = list(wrapper)
    for child in inserted:
        container.append(child)
    return inserted


def remove_element(element: HtmlElement) -> None:
    """Detach ``element`` from its parent, keeping its tail text in place."""
    if element.getparent() is not None:
        element.drop_tree()


def closest(
    element: Optional[HtmlElement],
    predicate: Callable[[HtmlElement], bool],
) -> Optional[HtmlElement]:
    """Return ``element`` or its nearest ancestor satisfying ``predicate``."""
    while element is not None:
        if predicate(element):
            return element
        element = element.getparent()
    return None


def tokens(value: Optional[str]) -> List[str]:
    """Split a space-separated attribute (class, data-controller, ...)."""
    return value.split() if value else []


def has_class(element: HtmlElement, class_name: str) -> bool:
    return class_name in tokens(element.get("class"))


def has_token(element: HtmlElement, attribute: str, token: str) -> bool:
    return token in tokens(element.get(attribute))


def find_by_token(
    scope: HtmlElement,
    attribute: str,
    token: str,
) -> Optional[HtmlElement]:
    """First descendant of ``scope`` whose ``attribute`` contains ``token``."""
    for element in scope.iterdescendants():
        if not isinstance(element, HtmlElement):
            continue
        if has_token(element, attribute, token):
            return element
    return None


def find_input_with_name_containing(
    scope: HtmlElement,
    fragment: str,
) -> Optional[HtmlElement]:
    """First ``<input>`` under ``scope`` whose name contains ``fragment``."""
    matches = scope.xpath(".//input[contains(@name, $fragment)]", fragment=fragment)
    return matches[0] if matches else None


def get_element_by_id(root: HtmlElement, element_id: str) -> Optional[HtmlElement]:
    matches = root.xpath("//*[@id=$element_id]", element_id=element_id)
    return matches[0] if matches else None


def hide(element: HtmlElement) -> None:
    """Set ``display: none`` on ``element``, replacing any prior display rule."""
    declarations = [
        declaration.strip()
        for declaration in (element.get("style") or "").split(";")
        if declaration.strip() and not declaration.strip().lower().startswith("display")
    ]
    declarations.append("display: none")
    element.set("style", "; ".join(declarations) + ";")


def is_hidden(element: HtmlElement) -> bool:
    style = (element.get("style") or "").replace(" ", "").lower()
    return "display:none" in style


def is_attached(element: HtmlElement, root: HtmlElement) -> bool:
    """True when ``element`` is still reachable from the document ``root``."""
    top = element
    while top.getparent() is not None:
        top = top.getparent()
    return top is root
