"""
Tier-1 tests for template_substitution_pure.py: sentinel substitution
and discriminator stamping.

No document, no controller, no logging.
"""

import lxml.html

from nested_fields.domain.services.template_substitution_pure import (
    replace_sentinel,
    sentinel_pattern,
    stamp_discriminator,
    substitute_index,
)


# =========================================================================
# sentinel_pattern / replace_sentinel
# =========================================================================

class TestSentinelPattern:
    """Tests for the bracketed sentinel pattern."""

    def test_singular_miss_does_not_affect_plural_pass(self):
        content = 'name="p[new_tasks][title]" '
        assert sentinel_pattern("task").search(content) is None
        assert sentinel_pattern("tasks").search(content).group(1) == '[title]" '
        assert sentinel_pattern("task").search(content) is None

    def test_captures_text_up_to_next_whitespace(self):
        match = sentinel_pattern("task").search('name="p[new_task][title]" id="x"')
        assert match.group(1) == '[title]" '

    def test_captures_to_end_of_content_without_whitespace(self):
        match = sentinel_pattern("task").search('<input name="task[new_task][title]">')
        assert match.group(1) == '[title]">'

    def test_is_case_sensitive(self):
        assert sentinel_pattern("task").search('name="p[NEW_TASK][title]" ') is None

    def test_association_name_is_escaped(self):
        assert sentinel_pattern("a.b").search('x[new_aXb][y] ') is None
        assert sentinel_pattern("a.b").search('x[new_a.b][y] ') is not None

    def test_replace_counts_occurrences(self):
        content, count = replace_sentinel('a[new_task][x] b[new_task][y] ', "task", 5)
        assert content == "a[5][x] b[5][y] "
        assert count == 2


# =========================================================================
# substitute_index
# =========================================================================

class TestSubstituteIndex:
    """Tests for singular-then-plural substitution."""

    def test_replaces_every_singular_occurrence_with_same_id(self):
        content = (
            '<input name="project[tasks_attributes][new_task][title]" id="t1">\n'
            '<input name="project[tasks_attributes][new_task][_destroy]" value="false">\n'
            '<select name="project[tasks_attributes][new_task][owner]"></select>'
        )
        result = substitute_index(content, "task", "tasks", 42)

        assert result.content == (
            '<input name="project[tasks_attributes][42][title]" id="t1">\n'
            '<input name="project[tasks_attributes][42][_destroy]" value="false">\n'
            '<select name="project[tasks_attributes][42][owner]"></select>'
        )
        assert result.replacements == 3
        assert result.matched_association == "task"
        assert result.substituted

    def test_trailing_text_is_preserved_verbatim(self):
        content = 'x[new_task][a]"\ty[new_task][b]"\nz'
        result = substitute_index(content, "task", "tasks", 9)
        assert result.content == 'x[9][a]"\ty[9][b]"\nz'

    def test_falls_back_to_plural(self):
        content = '<input name="project[tasks_attributes][new_tasks][title]" id="a">'
        result = substitute_index(content, "task", "tasks", 7)
        assert result.content == '<input name="project[tasks_attributes][7][title]" id="a">'
        assert result.matched_association == "tasks"

    def test_singular_wins_when_both_present(self):
        content = 'a[new_task][x] b[new_tasks][y] '
        result = substitute_index(content, "task", "tasks", 3)
        assert result.content == "a[3][x] b[new_tasks][y] "
        assert result.matched_association == "task"

    def test_no_sentinel_returns_input_unchanged(self):
        content = '<input name="project[name]" id="project_name">\n'
        result = substitute_index(content, "task", "tasks", 1)
        assert result.content == content
        assert result.content is content
        assert not result.substituted
        assert result.replacements == 0

    def test_unbracketed_id_sentinel_is_left_alone(self):
        content = 'id="project_tasks_attributes_new_task_title" name="p[new_task][t]" '
        result = substitute_index(content, "task", "tasks", 1)
        assert 'id="project_tasks_attributes_new_task_title"' in result.content
        assert 'name="p[1][t]"' in result.content

    def test_missing_names_are_skipped(self):
        content = 'a[new_tasks][x] '
        result = substitute_index(content, None, "tasks", 2)
        assert result.content == "a[2][x] "

    def test_sentinel_mid_attribute(self):
        result = substitute_index('<input name="task[new_task][title]">', "task", "tasks", 1700000000001)
        assert result.content == '<input name="task[1700000000001][title]">'


# =========================================================================
# stamp_discriminator
# =========================================================================

def _inputs(markup):
    wrapper = lxml.html.fragment_fromstring(markup, create_parent="div")
    return {element.get("name"): element.get("value") for element in wrapper.iter("input")}


class TestStampDiscriminator:
    """Tests for discriminator stamping."""

    def test_sets_value_on_matching_input(self):
        content = (
            '<div><input name="task[1][type]">'
            '<input name="task[1][title]" value="Write"></div>'
        )
        stamped_content, stamped = stamp_discriminator(content, "type", "UrgentTask")

        assert stamped
        assert _inputs(stamped_content) == {
            "task[1][type]": "UrgentTask",
            "task[1][title]": "Write",
        }

    def test_only_first_match_is_stamped(self):
        content = '<input name="a[1][type]"><input name="b[1][type]">'
        stamped_content, _ = stamp_discriminator(content, "type", "Urgent")
        values = _inputs(stamped_content)
        assert values["a[1][type]"] == "Urgent"
        assert values["b[1][type]"] is None

    def test_overwrites_existing_value(self):
        content = '<input name="task[1][type]" value="Task">'
        stamped_content, _ = stamp_discriminator(content, "type", "UrgentTask")
        assert _inputs(stamped_content)["task[1][type]"] == "UrgentTask"

    def test_missing_input_leaves_content_unchanged(self):
        content = '<input name="task[1][title]">'
        assert stamp_discriminator(content, "type", "UrgentTask") == (content, False)

    def test_field_name_must_be_bracketed(self):
        content = '<input name="task[1][prototype_id]">'
        assert stamp_discriminator(content, "type", "UrgentTask") == (content, False)

    def test_no_field_is_a_no_op(self):
        content = '<input name="task[1][type]">'
        assert stamp_discriminator(content, None, "UrgentTask") == (content, False)

    def test_no_value_is_a_no_op(self):
        content = '<input name="task[1][type]">'
        assert stamp_discriminator(content, "type", None) == (content, False)
