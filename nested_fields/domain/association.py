"""
Association resolution for add triggers.

Walks up from the trigger to the nearest element carrying
``data-association`` or ``data-associations`` and reads the association
descriptor from it.
"""

from dataclasses import dataclass
from typing import Optional, Union

from lxml.html import HtmlElement

from nested_fields.domain.dom import closest


ASSOCIATION_ATTR = "data-association"
ASSOCIATIONS_ATTR = "data-associations"
TEMPLATE_ID_ATTR = "data-template-id"


@dataclass(frozen=True)
class AssociationDescriptor:
    """Singular/plural association names plus an optional custom template id."""
    singular: Optional[str]
    plural: Optional[str]
    template_id: Optional[str] = None

    @classmethod
    def from_element(cls, element: HtmlElement) -> "AssociationDescriptor":
        return cls(
            singular=element.get(ASSOCIATION_ATTR) or None,
            plural=element.get(ASSOCIATIONS_ATTR) or None,
            template_id=element.get(TEMPLATE_ID_ATTR) or None,
        )


@dataclass(frozen=True)
class AssociationFound:
    element: HtmlElement
    descriptor: AssociationDescriptor


@dataclass(frozen=True)
class AssociationNotFound:
    trigger: HtmlElement


AssociationLookup = Union[AssociationFound, AssociationNotFound]


def carries_association(element: HtmlElement) -> bool:
    return element.get(ASSOCIATION_ATTR) is not None or element.get(ASSOCIATIONS_ATTR) is not None


def find_association(trigger: HtmlElement) -> AssociationLookup:
    """Resolve the association owning ``trigger`` (the trigger itself counts)."""
    owner = closest(trigger, carries_association)
    if owner is None:
        return AssociationNotFound(trigger)
    return AssociationFound(owner, AssociationDescriptor.from_element(owner))
