from typing import Optional


class AnalyzerError(Exception):
    """Base class for errors raised by rnmigrate_analyzer."""


class ConfigurationInvalid(AnalyzerError):
    """Configuration is missing, unreadable or fails validation. Fatal."""


class SourceRootUnreadable(AnalyzerError):
    """The configured source root does not exist or cannot be listed. Fatal."""


class ParseFailure(AnalyzerError):
    """One source file could not be parsed. Recorded per file, never fatal."""

    def __init__(self, path: Optional[str], message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.path = path
        self.message = message
        self.line = line
        self.column = column
        super().__init__(self.describe())

    def describe(self) -> str:
        where = ""
        if self.line is not None:
            where = f" ({self.line}:{self.column or 0})"
        return f"{self.message}{where}"
