"""
Field Block model: one sub-record's inputs and its removal semantics.

A block is either DYNAMIC (inserted client-side, never persisted) or
EXISTING (rendered from a persisted record). The kind is read off the
remove trigger: ``data-field-kind`` first, then the legacy
``dynamic`` / ``existing`` class.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from lxml.html import HtmlElement

from nested_fields.domain.dom import has_class


FIELD_KIND_ATTR = "data-field-kind"


class BlockKind(str, Enum):
    """Whether a block was added client-side or rendered from a persisted record."""
    DYNAMIC = "dynamic"
    EXISTING = "existing"

    @classmethod
    def of_trigger(cls, trigger: HtmlElement) -> "BlockKind":
        declared = trigger.get(FIELD_KIND_ATTR)
        if declared in (cls.DYNAMIC.value, cls.EXISTING.value):
            return cls(declared)
        if has_class(trigger, cls.DYNAMIC.value):
            return cls.DYNAMIC
        return cls.EXISTING


class BlockState(str, Enum):
    """Per-block lifecycle. No transition leads back to a visible state."""
    PERSISTED = "persisted"
    MARKED_FOR_DELETION = "marked_for_deletion"
    DYNAMIC = "dynamic"
    ABSENT = "absent"


@dataclass
class FieldBlock:
    """A resolved field block together with the trigger acting on it."""
    element: HtmlElement
    kind: BlockKind
    trigger: Optional[HtmlElement] = None
    state: Optional[BlockState] = None

    def __post_init__(self):
        if self.state is None:
            self.state = BlockState.DYNAMIC if self.kind is BlockKind.DYNAMIC else BlockState.PERSISTED

    @property
    def is_dynamic(self) -> bool:
        return self.kind is BlockKind.DYNAMIC
