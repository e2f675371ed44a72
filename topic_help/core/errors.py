"""Exception types raised by the help index core."""


class HelpError(Exception):
    """Base class for all recoverable help-index errors."""


class ConfigurationError(HelpError):
    """A configured source or the configuration file itself cannot be read."""


class ParserSelectionError(HelpError):
    """No registered parser pattern matches a source filename."""

    def __init__(self, filename: str):
        super().__init__(f"No parser registered for: {filename}")
        self.filename = filename


class ManualNotFoundError(HelpError):
    """An operation referenced a manual name that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"No manual named '{name}'")
        self.name = name


class IncompleteCompletionError(HelpError):
    """Accept was requested while the typed text does not name a topic."""


class SessionClosedError(HelpError):
    """A completion session was used after it was accepted or cancelled."""
