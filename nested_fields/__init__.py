"""
Nested Fields: client-side add/remove of nested form records.

The Field Controller instantiates inert ``<template>`` fragments with a
fresh index and removes or destroy-marks field blocks. The Association
Markup Builder renders those templates and their triggers server-side.
"""

from nested_fields.domain.controller import ClickEvent, NestedFieldController
from nested_fields.domain.document import FormDocument
from nested_fields.web.form_builder import FormBuilder
from nested_fields.web.view_helpers import NestedFieldsHelper, RenderOptions

__version__ = "0.1.0"

__all__ = [
    "ClickEvent",
    "NestedFieldController",
    "FormDocument",
    "FormBuilder",
    "NestedFieldsHelper",
    "RenderOptions",
]
