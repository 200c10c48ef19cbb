"""
Shared pytest fixtures for all tests.

Provides settings isolation, deterministic identifier sources and the
sample markup used across controller and builder tests.
"""

from typing import Optional

import pytest
from jinja2 import DictLoader, Environment

from nested_fields.domain.document import FormDocument
from nested_fields.domain.identifiers import CounterIdentifierSource
from nested_fields.settings import Settings, clear_settings_cache
from nested_fields.web.view_helpers import NestedFieldsHelper


FIRST_ID = 1700000000001


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch):
    """Keep env-derived settings from leaking between tests."""
    for key in (
        "ENVIRONMENT",
        "NESTED_FIELDS_CONTROLLER",
        "NESTED_FIELDS_DESTROY_FIELD",
        "NESTED_FIELDS_DESTROY_VALUE",
        "NESTED_FIELDS_ID_SOURCE",
        "NESTED_FIELDS_STRICT",
    ):
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings():
    return Settings(identifier_source="counter", strict=True)


@pytest.fixture
def lenient_settings():
    return Settings(identifier_source="counter", strict=False)


@pytest.fixture
def id_source():
    """Counter whose first identifier is FIRST_ID."""
    return CounterIdentifierSource(FIRST_ID - 1)


# =============================================================================
# MARKUP FIXTURES
# =============================================================================

PROJECT_PAGE = """
<form id="project_form">
  <div id="scope" data-controller="nested-rondo" data-nested-rondo-field-class-value="nested-fields">
    <template id="task_fields_template" data-nested-rondo-target="template">
      <div class="nested-fields">
        <input type="text" name="project[tasks_attributes][new_task][title]" id="project_tasks_attributes_new_task_title">
        <input type="hidden" name="project[tasks_attributes][new_task][_destroy]" value="false">
        <a href="#" class="remove_fields dynamic" data-action="click->nested-rondo#removeField">Remove</a>
      </div>
    </template>
    <div id="tasks" data-nested-rondo-target="fieldContain">
      <div class="nested-fields" id="task_0">
        <input type="text" name="project[tasks_attributes][0][title]" value="Existing">
        <input type="hidden" name="project[tasks_attributes][0][_destroy]" value="false">
        <span><a href="#" id="remove_0" class="remove_fields existing" data-action="click->nested-rondo#removeField">Remove</a></span>
        <input type="hidden" name="project[tasks_attributes][0][id]" value="7">
      </div>
    </div>
    <div class="links">
      <a href="#" id="add_task" class="add_fields" data-association="task" data-associations="tasks" data-action="click->nested-rondo#addField">Add task</a>
    </div>
  </div>
</form>
"""


@pytest.fixture
def project_page():
    return PROJECT_PAGE


@pytest.fixture
def make_document(settings, id_source):
    """Factory parsing markup with strict settings and the counter source."""
    def _make(markup: str, doc_settings: Optional[Settings] = None) -> FormDocument:
        return FormDocument.from_html(markup, settings=doc_settings or settings, identifier_source=id_source)
    return _make


@pytest.fixture
def project_document(make_document, project_page):
    return make_document(project_page)


# =============================================================================
# MODEL / BUILDER FIXTURES
# =============================================================================

TEMPLATES = {
    "task_fields.html": (
        '<div class="nested-fields">\n'
        '  {{ f.text_field("title") }}\n'
        '  {{ f.hidden_field("type") }}\n'
        '  {{ link_to_remove_association("Remove", f) }}\n'
        "</div>\n"
    ),
    "project_form.html": (
        '<form id="project_form">\n'
        '<div data-controller="nested-rondo" data-nested-rondo-field-class-value="nested-fields">\n'
        '  {{ f.text_field("name") }}\n'
        '  <div id="tasks" data-nested-rondo-target="fieldContain">\n'
        '  {% call(tf) f.fields_for("tasks") %}'
        '<div class="nested-fields">\n'
        '    {{ tf.text_field("title") }}\n'
        '    {{ link_to_remove_association("Remove", tf, {"id": "remove_" ~ tf.index}) }}\n'
        "  </div>\n"
        "  {% endcall %}\n"
        "  </div>\n"
        '  {{ link_to_add_association("Add task", f, "tasks", {"template_id": "task_template"}, {"id": "add_task"}) }}\n'
        "</div>\n"
        "</form>\n"
    ),
}


@pytest.fixture
def jinja_env():
    return Environment(loader=DictLoader(TEMPLATES), autoescape=True)


@pytest.fixture
def helper(jinja_env, settings):
    helper = NestedFieldsHelper(settings=settings)
    helper.register(jinja_env)
    return helper
