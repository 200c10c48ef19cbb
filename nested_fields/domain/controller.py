"""
Field Controller: adds and removes nested field blocks inside one
controller scope (an element with ``data-controller="nested-rondo"``).

Add: resolve the owning association, read the template fragment, swap the
sentinel index for a fresh identifier, stamp the discriminator and append
the result to the field-contain target.

Remove: dynamic blocks leave the DOM; existing blocks get their destroy
input set to "1" and are hidden, so the marker is still submitted.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from lxml.html import HtmlElement

from nested_fields.domain.association import AssociationNotFound, find_association
from nested_fields.domain.dom import (
    closest,
    find_input_with_name_containing,
    get_element_by_id,
    has_class,
    has_token,
    hide,
    inner_html,
    insert_beforeend,
    is_attached,
    remove_element,
)
from nested_fields.domain.errors import (
    AssociationNotFoundError,
    ConfigurationError,
    DestroyMarkerNotFoundError,
    FieldBlockNotFoundError,
    FieldContainerNotFoundError,
    TemplateNotFoundError,
)
from nested_fields.domain.field_block import BlockKind, BlockState, FieldBlock
from nested_fields.domain.identifiers import (
    ClockIdentifierSource,
    IdentifierSource,
    create_identifier_source,
)
from nested_fields.domain.services.template_substitution_pure import (
    stamp_discriminator,
    substitute_index,
)
from nested_fields.settings import Settings, get_settings

logger = logging.getLogger(__name__)


DEFAULT_IDENTIFIER = "nested-rondo"
TEMPLATE_TARGET = "template"
FIELD_CONTAIN_TARGETS = ("fieldContain", "field-contain")
DISCRIMINATOR_FIELD_ATTR = "data-discriminator-field"
DISCRIMINATOR_VALUE_ATTR = "data-discriminator-value"
LEGACY_FIELD_CLASS_ATTR = "data-field-class"


@dataclass
class ClickEvent:
    """A click on ``target``; handlers call ``prevent_default()`` like in a browser."""
    target: HtmlElement
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass(frozen=True)
class Instantiation:
    """One template instantiation, before insertion."""
    content: str
    identifier: int
    association: Optional[str]
    template_id: Optional[str]
    discriminator_stamped: bool = False


class NestedFieldController:
    """
    Controller bound to one scope element.
    
    Targets and values are looked up through the controller identifier:
    ``data-<identifier>-target`` and ``data-<identifier>-field-class-value``.
    Targets inside a nested scope with the same identifier belong to that
    nested controller, not to this one.
    """
    
    def __init__(
        self,
        element: HtmlElement,
        identifier: str = DEFAULT_IDENTIFIER,
        identifier_source: Optional[IdentifierSource] = None,
        destroy_field: str = "_destroy",
        destroy_value: str = "1",
        strict: bool = True,
    ):
        """
        Args:
            element: The controller scope element
            identifier: Controller name used in data attributes
            identifier_source: Mints fresh indices (defaults to the clock)
            destroy_field: Token identifying the destroy input by name
            destroy_value: Value written to mark a record for deletion
            strict: Raise configuration errors instead of logging them
        """
        self.element = element
        self.identifier = identifier
        self.identifier_source = identifier_source or ClockIdentifierSource()
        self.destroy_field = destroy_field
        self.destroy_value = destroy_value
        self.strict = strict
    
    @classmethod
    def from_settings(
        cls,
        element: HtmlElement,
        settings: Optional[Settings] = None,
        identifier_source: Optional[IdentifierSource] = None,
    ) -> "NestedFieldController":
        settings = settings or get_settings()
        return cls(
            element,
            identifier=settings.controller_identifier,
            identifier_source=identifier_source or create_identifier_source(settings.identifier_source),
            destroy_field=settings.destroy_field,
            destroy_value=settings.destroy_value,
            strict=settings.strict,
        )
    
    # ------------------------------------------------------------------
    # Scope, targets and values
    # ------------------------------------------------------------------
    
    @property
    def target_attribute(self) -> str:
        return f"data-{self.identifier}-target"
    
    def is_scope(self, element: HtmlElement) -> bool:
        return has_token(element, "data-controller", self.identifier)
    
    def owns(self, element: HtmlElement) -> bool:
        """True when the nearest enclosing scope of ``element`` is this controller's."""
        return closest(element.getparent(), self.is_scope) is self.element
    
    def find_target(self, *names: str) -> Optional[HtmlElement]:
        for element in self.element.iterdescendants():
            if not isinstance(element, HtmlElement):
                continue
            if any(has_token(element, self.target_attribute, name) for name in names) and self.owns(element):
                return element
        return None
    
    @property
    def template_target(self) -> Optional[HtmlElement]:
        return self.find_target(TEMPLATE_TARGET)
    
    @property
    def field_contain_target(self) -> Optional[HtmlElement]:
        return self.find_target(*FIELD_CONTAIN_TARGETS)
    
    @property
    def field_class_value(self) -> Optional[str]:
        return (
            self.element.get(f"data-{self.identifier}-field-class-value")
            or self.element.get(LEGACY_FIELD_CLASS_ATTR)
            or None
        )
    
    @property
    def document_root(self) -> HtmlElement:
        return self.element.getroottree().getroot()
    
    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------
    
    def add_field(self, event: ClickEvent) -> List[HtmlElement]:
        """
        Append a freshly instantiated field block to the field-contain target.
        
        Returns:
            The inserted top-level elements (empty when a configuration
            error was logged in non-strict mode)
        """
        event.prevent_default()
        try:
            container = self.field_contain_target
            if container is None:
                raise FieldContainerNotFoundError(
                    f"No '{FIELD_CONTAIN_TARGETS[0]}' target in controller '{self.identifier}'"
                )
            instantiation = self.instantiate(event.target)
        except ConfigurationError as e:
            logger.error(f"addField failed: {e}")
            if self.strict:
                raise
            return []
        
        inserted = insert_beforeend(container, instantiation.content)
        logger.debug(
            f"Inserted {len(inserted)} element(s) for '{instantiation.association}' "
            f"with index {instantiation.identifier}",
            extra={
                "association": instantiation.association,
                "identifier": instantiation.identifier,
                "template_id": instantiation.template_id,
            },
        )
        return inserted
    
    def instantiate(self, trigger: HtmlElement) -> Instantiation:
        """
        Resolve the association and template for ``trigger`` and substitute
        a fresh identifier into the template content.
        
        Raises:
            AssociationNotFoundError: No ancestor carries association names
            TemplateNotFoundError: Template target or custom id missing
        """
        lookup = find_association(trigger)
        if isinstance(lookup, AssociationNotFound):
            raise AssociationNotFoundError(
                f"No element with data-association or data-associations above <{trigger.tag}>"
            )
        descriptor = lookup.descriptor
        
        template = self.resolve_template(descriptor.template_id)
        content = inner_html(template)
        new_id = self.identifier_source.next_id()
        
        result = substitute_index(content, descriptor.singular, descriptor.plural, new_id)
        if not result.substituted:
            logger.debug(
                f"No sentinel for '{descriptor.singular}'/'{descriptor.plural}' in template; "
                "content inserted unchanged"
            )
        
        discriminator_field = template.get(DISCRIMINATOR_FIELD_ATTR)
        new_content, stamped = stamp_discriminator(
            result.content,
            discriminator_field,
            template.get(DISCRIMINATOR_VALUE_ATTR),
        )
        if discriminator_field and not stamped:
            logger.debug(f"Discriminator input '[{discriminator_field}]' not found; left unchanged")
        
        return Instantiation(
            content=new_content,
            identifier=new_id,
            association=result.matched_association,
            template_id=template.get("id"),
            discriminator_stamped=stamped,
        )
    
    def resolve_template(self, template_id: Optional[str] = None) -> HtmlElement:
        """Custom template by id when given, else the scope's template target."""
        if template_id:
            template = get_element_by_id(self.document_root, template_id)
            if template is None:
                raise TemplateNotFoundError(f"No template element with id '{template_id}'")
            return template
        
        template = self.template_target
        if template is None:
            raise TemplateNotFoundError(
                f"No '{TEMPLATE_TARGET}' target in controller '{self.identifier}'"
            )
        return template
    
    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------
    
    def remove_field(self, event: ClickEvent) -> Optional[FieldBlock]:
        """
        Remove (dynamic) or destroy-mark and hide (existing) the block
        owning the trigger.
        
        Clicking the trigger of a block that is already gone is a no-op.
        
        Returns:
            The affected block with its new state, or None on no-op/error
        """
        event.prevent_default()
        trigger = event.target
        
        if not is_attached(trigger, self.document_root):
            logger.debug("removeField on a block no longer in the document; ignored")
            return None

        wrapper = self.resolve_wrapper(trigger)
        if wrapper is None:
            error = FieldBlockNotFoundError(
                f"No ancestor with class '{self.field_class_value}' around remove trigger"
            )
            logger.error(f"removeField failed: {error}")
            if self.strict:
                raise error
            return None
        
        block = FieldBlock(wrapper, BlockKind.of_trigger(trigger), trigger)
        
        if block.is_dynamic:
            remove_element(block.element)
            block.state = BlockState.ABSENT
            logger.debug("Removed dynamic field block")
            return block
        
        marker = find_input_with_name_containing(block.element, self.destroy_field)
        if marker is None:
            error = DestroyMarkerNotFoundError(
                f"Existing field block has no input named like '{self.destroy_field}'"
            )
            logger.error(f"removeField failed: {error}")
            if self.strict:
                raise error
            return None
        
        marker.set("value", self.destroy_value)
        hide(block.element)
        block.state = BlockState.MARKED_FOR_DELETION
        logger.debug(f"Marked existing field block for deletion ({marker.get('name')})")
        return block
    
    def resolve_wrapper(self, trigger: HtmlElement) -> Optional[HtmlElement]:
        """
        Nearest ancestor with the declared field class, else the trigger's
        immediate parent.
        
        Relying on the immediate parent only works when the trigger sits
        directly inside the block; declare the field class otherwise.
        """
        field_class = self.field_class_value
        if field_class:
            return closest(trigger, lambda element: has_class(element, field_class))
        return trigger.getparent()
