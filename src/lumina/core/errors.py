"""Exception types raised by Lumina.

Every message is written to be shown to the user as-is.
"""


class LuminaError(Exception):
    """Base class for errors surfaced to the user."""

    pass


class ValidationError(LuminaError):
    """User input was rejected before any external call was made."""

    pass


class GenerationError(LuminaError):
    """The image-generation service failed on a batch element.

    The message is the service's own error message.  The original exception
    is chained as ``__cause__``.
    """

    pass


# Name used for this failure class in user-facing docs.
ExternalServiceError = GenerationError


class GenerationInProgressError(LuminaError):
    """A Generate action was submitted while another one is running."""

    pass


class ReferenceReadError(LuminaError):
    """One or more selected reference files could not be read."""

    pass
