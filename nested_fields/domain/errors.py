"""
Error taxonomy for the Field Controller.

Configuration errors mean the rendered markup and the controller disagree
on the data-attribute contract. They are developer-facing and never shown
to end users.
"""


class NestedFieldsError(Exception):
    """Base class for nested_fields errors."""
    pass


class ConfigurationError(NestedFieldsError):
    """Raised when markup violates the Builder/Controller contract."""
    pass


class AssociationNotFoundError(ConfigurationError):
    """Raised when no ancestor of an add trigger names an association."""
    pass


class TemplateNotFoundError(ConfigurationError):
    """Raised when the template target or a custom template id does not resolve."""
    pass


class FieldContainerNotFoundError(ConfigurationError):
    """Raised when the controller scope has no field-contain target."""
    pass


class DestroyMarkerNotFoundError(ConfigurationError):
    """Raised when an existing field block has no destroy input."""
    pass


class ControllerNotFoundError(ConfigurationError):
    """Raised when an action element is not inside a matching controller scope."""
    pass


class UnknownActionError(ConfigurationError):
    """Raised when a data-action descriptor names a method the controller lacks."""
    pass


class AssociationReflectionError(NestedFieldsError):
    """Raised when the Builder cannot determine the class of a new child object."""
    pass


class FieldBlockNotFoundError(ConfigurationError):
    """Raised when a remove trigger has no ancestor with the declared field class."""
    pass
