"""
Error types raised by the planner services.

The API layer maps each of these onto an HTTP status in app.main.
"""


class PlannerError(Exception):
    """Base class for planner errors."""


class ConfigurationError(PlannerError):
    """A required setting (e.g. the OpenAI API key) is missing."""


class GenerationError(PlannerError):
    """Plan generation failed or the completion could not be parsed."""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.details = details


class MissingInputError(GenerationError):
    """The request did not carry the text needed to build a prompt."""


class UpstreamError(GenerationError):
    """The completion service answered with an error."""


class NotFoundError(PlannerError):
    """No project matches the requested id."""


class PrivacyError(PlannerError):
    """The project is private and the viewer is not its owner."""


class AuthorizationError(PlannerError):
    """A mutation was attempted by someone other than the owner."""


class AuthenticationRequiredError(PlannerError):
    """The operation needs a signed-in viewer."""
