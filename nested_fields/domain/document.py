"""
FormDocument: an HTML page with one or more nested-field controllers.

Plays the role of the browser for the Field Controller: it discovers
controller scopes, routes clicks through ``data-action`` descriptors
(``click->nested-rondo#addField``) and collects the data a form
submission would send.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import lxml.html
from lxml.html import HtmlElement

from nested_fields.domain.controller import ClickEvent, NestedFieldController
from nested_fields.domain.dom import (
    closest,
    get_element_by_id,
    has_token,
    inner_html,
    is_attached,
    tokens,
)
from nested_fields.domain.errors import ControllerNotFoundError, UnknownActionError
from nested_fields.domain.identifiers import IdentifierSource, create_identifier_source
from nested_fields.settings import Settings, get_settings

logger = logging.getLogger(__name__)


ACTION_PATTERN = re.compile(r"^(?:(?P<event>[\w:.-]+)->)?(?P<identifier>[\w-]+)#(?P<method>\w+)$")

ACTION_METHODS = {
    "addField": "add_field",
    "removeField": "remove_field",
}

UNSUBMITTED_INPUT_TYPES = {"submit", "button", "reset", "image", "file"}


@dataclass(frozen=True)
class ActionDescriptor:
    """One parsed ``data-action`` entry."""
    event: str
    identifier: str
    method: str


def parse_actions(value: Optional[str]) -> List[ActionDescriptor]:
    """
    Parse a ``data-action`` attribute into descriptors.

    The event defaults to ``click``; malformed entries are skipped.
    """
    descriptors = []
    for entry in tokens(value):
        match = ACTION_PATTERN.match(entry)
        if not match:
            logger.debug(f"Ignoring malformed action descriptor '{entry}'")
            continue
        descriptors.append(ActionDescriptor(
            event=match.group("event") or "click",
            identifier=match.group("identifier"),
            method=match.group("method"),
        ))
    return descriptors


class FormDocument:
    """
    Live page model. Controllers are created lazily per scope element and
    share one identifier source, so indices never repeat within a page.
    """
    
    def __init__(
        self,
        root: HtmlElement,
        settings: Optional[Settings] = None,
        identifier_source: Optional[IdentifierSource] = None,
        fragment: bool = False,
    ):
        self.root = root
        self.settings = settings or get_settings()
        self.identifier_source = identifier_source or create_identifier_source(
            self.settings.identifier_source
        )
        self._fragment = fragment
        self._controllers: Dict[int, NestedFieldController] = {}
    
    @classmethod
    def from_html(
        cls,
        markup: str,
        settings: Optional[Settings] = None,
        identifier_source: Optional[IdentifierSource] = None,
    ) -> "FormDocument":
        """Parse a full page or a body fragment."""
        fragment = re.search(r"<html[\s>]", markup, re.IGNORECASE) is None
        root = lxml.html.document_fromstring(markup)
        return cls(root, settings, identifier_source, fragment=fragment)
    
    def to_html(self) -> str:
        """Serialize back; fragments come back as body content only."""
        if self._fragment and self.root.find("body") is not None:
            return inner_html(self.root.find("body"))
        return lxml.html.tostring(self.root, encoding="unicode")
    
    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    
    def get_element_by_id(self, element_id: str) -> Optional[HtmlElement]:
        return get_element_by_id(self.root, element_id)
    
    def css(self, selector: str) -> List[HtmlElement]:
        """Elements matching a CSS selector (requires ``cssselect``)."""
        return self.root.cssselect(selector)
    
    def controllers(self) -> List[NestedFieldController]:
        """Controllers for every scope with the configured identifier, in document order."""
        identifier = self.settings.controller_identifier
        return [
            self.controller_for(element)
            for element in self.root.iter()
            if isinstance(element, HtmlElement) and has_token(element, "data-controller", identifier)
        ]
    
    def controller_for(self, scope: HtmlElement) -> NestedFieldController:
        key = id(scope)
        if key not in self._controllers:
            self._controllers[key] = NestedFieldController.from_settings(
                scope,
                settings=self.settings,
                identifier_source=self.identifier_source,
            )
        return self._controllers[key]
    
    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    
    def click(self, target: HtmlElement) -> ClickEvent:
        """
        Dispatch a click on ``target`` to every matching action, walking up
        from the target like event bubbling. Clicks on elements already
        removed from the document are ignored.
        
        Raises:
            ControllerNotFoundError: Action names a controller with no enclosing scope
            UnknownActionError: Action names a method the controller does not have
        """
        event = ClickEvent(target)
        if not is_attached(target, self.root):
            logger.debug("Click on an element no longer in the document; ignored")
            return event
        identifier = self.settings.controller_identifier
        
        element = target
        while element is not None:
            for action in parse_actions(element.get("data-action")):
                if action.event != "click" or action.identifier != identifier:
                    continue
                self._invoke(element, action, event)
            element = element.getparent()
        return event
    
    def click_by_id(self, element_id: str) -> ClickEvent:
        target = self.get_element_by_id(element_id)
        if target is None:
            raise KeyError(f"No element with id '{element_id}'")
        return self.click(target)
    
    def _invoke(self, element: HtmlElement, action: ActionDescriptor, event: ClickEvent) -> None:
        scope = closest(element, lambda candidate: has_token(candidate, "data-controller", action.identifier))
        if scope is None:
            raise ControllerNotFoundError(
                f"Action '{action.identifier}#{action.method}' is outside any "
                f"data-controller=\"{action.identifier}\" scope"
            )
        method_name = ACTION_METHODS.get(action.method)
        if method_name is None:
            raise UnknownActionError(f"Controller '{action.identifier}' has no action '{action.method}'")
        
        getattr(self.controller_for(scope), method_name)(event)
    
    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    
    def form_data(self, form: Optional[HtmlElement] = None) -> List[Tuple[str, str]]:
        """
        Collect ``(name, value)`` pairs as a browser would submit them.
        
        Controls inside ``<template>`` are inert and skipped. Hidden blocks
        are still submitted, which is what carries destroy markers.
        """
        scope = form if form is not None else self.root
        pairs: List[Tuple[str, str]] = []
        
        for element in scope.iter("input", "textarea", "select"):
            name = element.get("name")
            if not name or "disabled" in element.attrib:
                continue
            if closest(element, lambda candidate: candidate.tag == "template") is not None:
                continue
            
            if element.tag == "input":
                input_type = (element.get("type") or "text").lower()
                if input_type in UNSUBMITTED_INPUT_TYPES:
                    continue
                if input_type in ("checkbox", "radio"):
                    if "checked" not in element.attrib:
                        continue
                    pairs.append((name, element.get("value", "on")))
                    continue
                pairs.append((name, element.get("value", "")))
            elif element.tag == "textarea":
                pairs.append((name, element.text or ""))
            else:
                pairs.extend((name, value) for value in _selected_values(element))
        
        return pairs


def _selected_values(select: HtmlElement) -> List[str]:
    options = select.findall(".//option")
    selected = [option for option in options if "selected" in option.attrib]
    if not selected and options and "multiple" not in select.attrib:
        selected = options[:1]
    return [
        option.get("value") if option.get("value") is not None else (option.text or "")
        for option in selected
    ]
