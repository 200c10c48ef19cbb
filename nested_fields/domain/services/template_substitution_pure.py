"""
Pure template-instantiation functions used by the Field Controller.

These functions contain NO DOM access beyond detached fragments and NO
logging. They are deterministic given their inputs, so the controller
can be tested through them with exact identifiers.

Sentinel format: ``[new_<association>]`` immediately followed by the rest
of the attribute value, up to and including the next whitespace character
(or the end of the content). The bracketed token is replaced; the trailing
text is preserved verbatim.
"""

import re
from dataclasses import dataclass
from typing import Optional, Pattern

from nested_fields.domain.dom import (
    find_input_with_name_containing,
    inner_html,
    parse_fragment,
)


SENTINEL_PREFIX = "new_"


@dataclass(frozen=True)
class SubstitutionResult:
    """Outcome of instantiating a template with a fresh identifier."""
    content: str
    matched_association: Optional[str]  # None when no sentinel was present
    replacements: int = 0

    @property
    def substituted(self) -> bool:
        return self.matched_association is not None


# ---------------------------------------------------------------------------
# sentinel_pattern
# ---------------------------------------------------------------------------

def sentinel_pattern(association: str) -> Pattern[str]:
    """
    Pattern matching ``[new_<association>]`` plus the whitespace-delimited
    text that follows it (group 1).

    Each pass builds its own pattern from its own association name;
    compiled patterns keep no match state between searches.
    """
    token = re.escape(f"[{SENTINEL_PREFIX}{association}]")
    return re.compile(token + r"(.*?(?:\s|\Z))")


# ---------------------------------------------------------------------------
# replace_sentinel
# ---------------------------------------------------------------------------

def replace_sentinel(content: str, association: str, new_id: int) -> tuple:
    """
    Replace every ``[new_<association>]`` occurrence with ``[<new_id>]``.

    Returns:
        Tuple of (new_content: str, replacement_count: int)
    """
    pattern = sentinel_pattern(association)
    return pattern.subn(lambda match: f"[{new_id}]{match.group(1)}", content)


# ---------------------------------------------------------------------------
# substitute_index  (singular pass, then plural pass)
# ---------------------------------------------------------------------------

def substitute_index(
    content: str,
    singular: Optional[str],
    plural: Optional[str],
    new_id: int,
) -> SubstitutionResult:
    """
    Substitute the sentinel index in ``content`` with ``new_id``.

    The singular sentinel wins: the plural pass only runs when the singular
    pass changed nothing. When neither sentinel is present the content is
    returned unchanged.

    Args:
        content: Template fragment markup
        singular: Singular association name (e.g. "task")
        plural: Plural association name (e.g. "tasks")
        new_id: Fresh identifier for this instantiation

    Returns:
        SubstitutionResult with the new content and which name matched
    """
    for association in (singular, plural):
        if not association:
            continue
        new_content, count = replace_sentinel(content, association, new_id)
        if new_content != content:
            return SubstitutionResult(new_content, association, count)
    return SubstitutionResult(content, None, 0)


# ---------------------------------------------------------------------------
# stamp_discriminator
# ---------------------------------------------------------------------------

def stamp_discriminator(
    content: str,
    field: Optional[str],
    value: Optional[str],
) -> tuple:
    """
    Set the value of the first input whose name contains ``[<field>]``.

    Nothing happens unless both ``field`` and ``value`` are given. A missing
    input is not an error: the content is returned unchanged.

    Returns:
        Tuple of (content: str, stamped: bool)
    """
    if not field or not value:
        return content, False

    wrapper = parse_fragment(content)
    target = find_input_with_name_containing(wrapper, f"[{field}]")
    if target is None:
        return content, False

    target.set("value", value)
    return inner_html(wrapper), True
