"""Errors raised by the content pipeline."""


class PortfolioError(Exception):
    """Base class for every pipeline error."""


class MalformedFrontmatterError(PortfolioError):
    """A frontmatter block opens but never closes."""


class InvalidDateError(PortfolioError):
    """A date field is present but cannot be parsed."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date: {value!r}")


class HighlightFailure(PortfolioError):
    """A code block could not be highlighted."""

    def __init__(self, language, reason=""):
        self.language = language
        message = f"Cannot highlight language '{language}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MissingSourceDirectoryError(PortfolioError):
    """The configured content directory does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Content directory not found: {path}")


class WriteFailure(PortfolioError):
    """The output collection could not be written."""

    def __init__(self, path, reason=""):
        self.path = path
        super().__init__(f"Cannot write {path}: {reason}" if reason else f"Cannot write {path}")


class LoadError(PortfolioError):
    """A generated collection could not be loaded."""
