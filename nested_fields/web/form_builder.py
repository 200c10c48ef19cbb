"""
FormBuilder: renders inputs whose names a server can parse back into
nested records (``project[tasks_attributes][0][title]``).

Mirrors the Rails ``fields_for`` naming scheme the Field Controller relies
on. New child objects are rendered with a sentinel child index
(``new_task``) that the controller swaps for a fresh identifier.
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from markupsafe import Markup, escape


RenderCallable = Callable[["FormBuilder"], Any]

_MISSING = object()


def is_new_record(record: Any) -> bool:
    """
    Whether ``record`` has never been persisted.

    Honours ``new_record`` / ``persisted`` attributes when present, otherwise
    treats a record without an ``id`` as new.
    """
    if record is None:
        return True
    new_record = getattr(record, "new_record", None)
    if isinstance(new_record, bool):
        return new_record
    persisted = getattr(record, "persisted", None)
    if isinstance(persisted, bool):
        return not persisted
    if isinstance(record, dict):
        return record.get("id") is None
    return getattr(record, "id", None) is None


def normalize_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Turn Python-friendly keyword options into HTML attributes.

    ``class_`` becomes ``class``; ``data={"template_id": "x"}`` becomes
    ``data-template-id="x"``; other underscores become hyphens.
    """
    attrs: Dict[str, Any] = {}
    for key, value in (options or {}).items():
        if key == "data" and isinstance(value, dict):
            for data_key, data_value in value.items():
                attrs[f"data-{str(data_key).replace('_', '-')}"] = data_value
            continue
        key = key.rstrip("_").replace("_", "-")
        attrs[key] = value
    return attrs


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def html_attrs(attrs: Dict[str, Any]) -> Markup:
    """Serialize attributes; ``None``/``False`` are dropped, ``True`` is bare."""
    parts = []
    for key, value in attrs.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(Markup(" {}").format(key))
            continue
        parts.append(Markup(' {}="{}"').format(key, format_value(value)))
    return Markup("").join(parts)


def content_tag(name: str, content: Any = "", attrs: Optional[Dict[str, Any]] = None) -> Markup:
    return Markup("<{0}{1}>{2}</{0}>").format(Markup(name), html_attrs(attrs or {}), content)


def void_tag(name: str, attrs: Optional[Dict[str, Any]] = None) -> Markup:
    return Markup("<{}{}>").format(Markup(name), html_attrs(attrs or {}))


class FormBuilder:
    """
    Builds field names and inputs for one record.
    
    Usage in a Jinja2 template::
    
        {{ f.text_field("name") }}
        {% call(tf) f.fields_for("tasks") %}
            {{ tf.text_field("title") }}
        {% endcall %}
    """
    
    def __init__(self, object_name: str, obj: Any = None, index: Optional[Union[int, str]] = None):
        """
        Args:
            object_name: Name prefix, e.g. "project" or "project[tasks_attributes][0]"
            obj: The record whose values fill the inputs
            index: Child index this builder was created with, if any
        """
        self.object_name = object_name
        self.object = obj
        self.index = index
    
    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------
    
    def field_name(self, attribute: str) -> str:
        return f"{self.object_name}[{attribute}]"
    
    def field_id(self, attribute: str) -> str:
        """``project[tasks_attributes][0]`` + ``title`` -> ``project_tasks_attributes_0_title``."""
        base = re.sub(r"\]\[|[\[\]]", "_", self.object_name).strip("_")
        return f"{base}_{attribute}"
    
    def value_of(self, attribute: str) -> Any:
        if self.object is None:
            return None
        if isinstance(self.object, dict):
            return self.object.get(attribute)
        return getattr(self.object, attribute, None)
    
    def _input(self, input_type: str, attribute: str, value: Any, options: Dict[str, Any]) -> Markup:
        attrs: Dict[str, Any] = {
            "type": input_type,
            "name": self.field_name(attribute),
            "id": self.field_id(attribute),
        }
        if value is not _MISSING:
            attrs["value"] = value
        else:
            current = self.value_of(attribute)
            if current is not None:
                attrs["value"] = format_value(current)
        attrs.update(normalize_options(options))
        return void_tag("input", attrs)
    
    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    
    def hidden_field(self, attribute: str, value: Any = _MISSING, **options) -> Markup:
        return self._input("hidden", attribute, value, options)
    
    def text_field(self, attribute: str, value: Any = _MISSING, **options) -> Markup:
        return self._input("text", attribute, value, options)
    
    def text_area(self, attribute: str, **options) -> Markup:
        attrs = {"name": self.field_name(attribute), "id": self.field_id(attribute)}
        attrs.update(normalize_options(options))
        current = self.value_of(attribute)
        return content_tag("textarea", "" if current is None else format_value(current), attrs)
    
    def select(self, attribute: str, choices: Iterable[Union[str, Tuple[str, str]]], **options) -> Markup:
        """``choices`` are values or ``(label, value)`` pairs; the current value is selected."""
        current = self.value_of(attribute)
        rendered = []
        for choice in choices:
            label, value = choice if isinstance(choice, tuple) else (choice, choice)
            selected = current is not None and format_value(current) == format_value(value)
            rendered.append(content_tag("option", label, {"value": value, "selected": selected}))
        attrs = {"name": self.field_name(attribute), "id": self.field_id(attribute)}
        attrs.update(normalize_options(options))
        return content_tag("select", Markup("").join(rendered), attrs)
    
    def label(self, attribute: str, text: Optional[str] = None, **options) -> Markup:
        attrs = {"for": self.field_id(attribute)}
        attrs.update(normalize_options(options))
        return content_tag("label", text or attribute.replace("_", " ").capitalize(), attrs)
    
    # ------------------------------------------------------------------
    # Nested records
    # ------------------------------------------------------------------
    
    def nested_builder(self, association: str, record: Any, index: Union[int, str]) -> "FormBuilder":
        return FormBuilder(f"{self.object_name}[{association}_attributes][{index}]", record, index)
    
    def nested_builders(self, association: str, records: Optional[Iterable[Any]] = None) -> List["FormBuilder"]:
        """One builder per child record, indexed 0, 1, ... in order."""
        if records is None:
            records = self.value_of(association) or []
        return [self.nested_builder(association, record, index) for index, record in enumerate(records)]
    
    def fields_for(
        self,
        association: str,
        record: Any = _MISSING,
        child_index: Optional[Union[int, str]] = None,
        render: Optional[RenderCallable] = None,
        caller: Optional[RenderCallable] = None,
    ) -> Markup:
        """
        Render nested fields for ``association``.
        
        Args:
            association: Association name, e.g. "tasks"
            record: A single child record; omitted means every child of the
                current object
            child_index: Index to use instead of the position (a sentinel
                such as "new_task" for templates)
            render: Callable receiving the child builder
            caller: Jinja2 ``{% call %}`` body (same role as ``render``)
        
        Persisted children also get a hidden ``id`` input.
        """
        body = render or caller
        if body is None:
            raise TypeError("fields_for needs a render callable or a {% call %} block")
        
        if record is _MISSING:
            records = list(self.value_of(association) or [])
        else:
            records = [record]
        
        output = []
        for position, child in enumerate(records):
            index = child_index if child_index is not None else position
            builder = self.nested_builder(association, child, index)
            output.append(Markup(body(builder)))
            if not is_new_record(child):
                output.append(builder.hidden_field("id", builder.value_of("id")))
        return Markup("").join(output)
