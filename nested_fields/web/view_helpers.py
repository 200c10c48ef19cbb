"""
Association Markup Builder.

Jinja2 helpers that render, for each addable association, an inert
``<template>`` holding the child fields (indexed with the sentinel
``new_<singular>``) plus an add trigger, and for each removable block a
hidden destroy input plus a remove trigger. The Field Controller consumes
this markup through data attributes only.
"""

import logging
import types
import typing
from typing import Any, Callable, Dict, Optional, Union

from jinja2 import Environment
from markupsafe import Markup
from pydantic import BaseModel, ConfigDict, Field, model_validator

from nested_fields.domain.errors import AssociationReflectionError
from nested_fields.settings import Settings, get_settings
from nested_fields.web.form_builder import FormBuilder, content_tag, is_new_record, normalize_options
from nested_fields.web.inflection import pluralize, singularize, underscore

logger = logging.getLogger(__name__)


SENTINEL_PREFIX = "new_"


class RenderOptions(BaseModel):
    """Options for ``link_to_add_association``."""
    partial: Optional[str] = Field(default=None, description="Jinja2 template name for the child fields")
    component: Optional[Any] = Field(default=None, description="Component class rendering the child fields")
    locals: Dict[str, Any] = Field(default_factory=dict, description="Extra template/component variables")
    build_object: Optional[Callable[[Any], Any]] = Field(default=None, description="parent -> new child")
    object_params: Dict[str, Any] = Field(default_factory=dict, description="Initial attribute values")
    discriminator_field: Optional[str] = None
    discriminator_value: Optional[str] = None
    template_id: Optional[str] = None
    
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")
    
    @model_validator(mode="after")
    def check_discriminator_pair(self):
        """Discriminator field and value come together or not at all."""
        if bool(self.discriminator_field) != bool(self.discriminator_value):
            raise ValueError("discriminator_field and discriminator_value must be given together")
        return self


def reflect_association_class(parent: Any, association: str) -> type:
    """
    Find the child class of ``association`` from the parent's annotations.

    Works for pydantic models and dataclasses declaring e.g.
    ``tasks: List[Task]``.
    """
    parent_class = type(parent)
    model_fields = getattr(parent_class, "model_fields", None)
    if isinstance(model_fields, dict):
        field = model_fields.get(association)
        annotation = field.annotation if field is not None else None
    else:
        try:
            hints = typing.get_type_hints(parent_class)
        except Exception as e:
            raise AssociationReflectionError(
                f"Cannot read annotations of {parent_class.__name__}: {e}"
            ) from e
        annotation = hints.get(association)

    if annotation is None:
        raise AssociationReflectionError(
            f"{type(parent).__name__} has no association '{association}'"
        )
    
    args = typing.get_args(annotation)
    # Optional[List[Task]] -> List[Task]
    while args and typing.get_origin(annotation) in (Union, types.UnionType):
        annotation = next(arg for arg in args if arg is not type(None))
        args = typing.get_args(annotation)
    
    if not args or not isinstance(args[0], type):
        raise AssociationReflectionError(
            f"Association '{association}' on {type(parent).__name__} is not a typed collection"
        )
    return args[0]


class NestedFieldsHelper:
    """
    View helpers bound to a Jinja2 environment.
    
    ``register(env)`` exposes ``link_to_add_association`` and
    ``link_to_remove_association`` as template globals.
    """
    
    def __init__(
        self,
        env: Optional[Environment] = None,
        settings: Optional[Settings] = None,
        reflector: Callable[[Any, str], type] = reflect_association_class,
    ):
        self.env = env
        self.settings = settings or get_settings()
        self.reflector = reflector
    
    @property
    def identifier(self) -> str:
        return self.settings.controller_identifier
    
    def register(self, env: Environment) -> Environment:
        """Bind to ``env`` and install the helpers as globals."""
        self.env = env
        env.globals["link_to_add_association"] = self.link_to_add_association
        env.globals["link_to_remove_association"] = self.link_to_remove_association
        return env
    
    def link_to(self, name: Any, html_options: Dict[str, Any]) -> Markup:
        attrs = {"href": "#"}
        attrs.update(html_options)
        return content_tag("a", name, attrs)
    
    # ------------------------------------------------------------------
    # Remove trigger
    # ------------------------------------------------------------------
    
    def link_to_remove_association(
        self,
        name: Any,
        form: FormBuilder,
        html_options: Optional[Dict[str, Any]] = None,
    ) -> Markup:
        """
        Hidden destroy input plus a remove link classed ``dynamic`` (new
        record) or ``existing`` (persisted record).
        """
        options = normalize_options(html_options)
        kind = "dynamic" if is_new_record(form.object) else "existing"
        
        options["class"] = _join_classes(options.get("class"), f"remove_fields {kind}")
        options["data-field-kind"] = kind
        options["data-action"] = f"click->{self.identifier}#removeField"
        
        destroy_input = form.hidden_field(self.settings.destroy_field, "false")
        return destroy_input + self.link_to(name, options)
    
    # ------------------------------------------------------------------
    # Add trigger
    # ------------------------------------------------------------------
    
    def link_to_add_association(
        self,
        name: Any,
        form: FormBuilder,
        association: str,
        render_options: Optional[Union[RenderOptions, Dict[str, Any]]] = None,
        html_options: Optional[Dict[str, Any]] = None,
    ) -> Markup:
        """
        Render the template fragment for a new ``association`` child and the
        link that instantiates it.
        
        Args:
            name: Link text (plain text is escaped, ``Markup`` is kept)
            form: Builder of the parent record
            association: Association name, e.g. "tasks"
            render_options: ``RenderOptions`` or a dict of its fields
            html_options: Extra link attributes (classes are appended)
        
        Raises:
            pydantic.ValidationError: Unknown or inconsistent render options
            AssociationReflectionError: Child class cannot be determined
        """
        if not isinstance(render_options, RenderOptions):
            render_options = RenderOptions(**(render_options or {}))
        options = normalize_options(html_options)
        
        singular = singularize(association)
        options["class"] = _join_classes(options.get("class"), "add_fields")
        options["data-association"] = singular
        options["data-associations"] = pluralize(association)
        options["data-action"] = f"click->{self.identifier}#addField"
        
        new_object = self.build_new_object(form, association, render_options)
        model_name = underscore(type(new_object).__name__)
        template_id = render_options.template_id or f"{model_name}_fields_template"
        options["data-template-id"] = template_id
        
        template_attrs: Dict[str, Any] = {
            "id": template_id,
            f"data-{self.identifier}-target": "template",
        }
        if render_options.discriminator_field:
            template_attrs["data-discriminator-field"] = render_options.discriminator_field
            template_attrs["data-discriminator-value"] = render_options.discriminator_value
        
        fields = self.render_association(association, form, new_object, render_options)
        logger.debug(f"Rendered template '{template_id}' for association '{association}'")
        return content_tag("template", fields, template_attrs) + self.link_to(name, options)
    
    def build_new_object(self, form: FormBuilder, association: str, render_options: RenderOptions) -> Any:
        """New child via ``build_object`` or the reflected class, with ``object_params`` applied."""
        if render_options.build_object is not None:
            new_object = render_options.build_object(form.object)
        else:
            new_object = self.reflector(form.object, association)()
        
        for key, value in render_options.object_params.items():
            if hasattr(new_object, key):
                setattr(new_object, key, value)
            else:
                logger.debug(f"{type(new_object).__name__} has no attribute '{key}'; skipped")
        return new_object
    
    def render_association(
        self,
        association: str,
        form: FormBuilder,
        new_object: Any,
        render_options: RenderOptions,
    ) -> Markup:
        """
        Render the child fields for ``new_object`` under the sentinel index
        ``new_<singular>``, through a component or a Jinja2 partial.
        """
        child_index = f"{SENTINEL_PREFIX}{singularize(association)}"
        locals_ = dict(render_options.locals)
        
        if render_options.component is not None:
            component_class = render_options.component
            
            def render(builder: FormBuilder) -> Any:
                instance = component_class(form_builder=builder, component=new_object, **locals_)
                return instance() if callable(instance) else str(instance)
        else:
            if self.env is None:
                raise RuntimeError("NestedFieldsHelper needs a Jinja2 environment to render partials")
            partial = render_options.partial or f"{singularize(association)}_fields.html"
            template = self.env.get_template(partial)
            
            def render(builder: FormBuilder) -> Any:
                return template.render(f=builder, **locals_)
        
        return form.fields_for(association, new_object, child_index=child_index, render=render)


def _join_classes(existing: Optional[str], extra: str) -> str:
    return " ".join(part for part in (existing, extra) if part)
