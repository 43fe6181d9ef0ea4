"""
fixrepo exceptions.

Every failure that stops a consolidation run raises a FixRepoError
subclass. Each carries the repository coordinates needed to find the
offending record (tag, table, version) both as attributes and in its
string form, e.g.

    Unknown key in extra message descriptions | Reference: ZZ | Table: messages

Data-quality problems that do not stop a run are logged as warnings
instead (see fixrepo.core.logging.WarningTally).
"""
from typing import Any, List, Optional, Tuple


class FixRepoError(Exception):
    """
    Base exception for all fixrepo errors.

    Subclasses list their labelled attributes in _context(); empty ones are
    left out of the message.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """
        Args:
            message: Human-readable error message
            details: Optional free-form context, rendered as key=value pairs
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def _context(self) -> List[Tuple[str, Any]]:
        return []

    def __str__(self) -> str:
        text = self.message
        if self.details:
            text += " (" + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")"
        parts = [f"{label}: {value}" for label, value in self._context() if value not in (None, "")]
        return " | ".join([text] + parts)


class MalformedKeyError(FixRepoError):
    """
    A table key that must be a field tag is not a non-negative integer.

    Points at a defect in the repository files or the loader.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        key: Optional[str] = None,
        table: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.key = key
        self.table = table

    def _context(self):
        return [("Key", None if self.key is None else repr(self.key)), ("Table", self.table)]


class UnknownReferenceError(FixRepoError):
    """
    A tag, enum value, message or component that the target table lacks.

    Raised by override batches before anything is written, and by the
    lookups of ConsolidatedRepo.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        reference: Optional[str] = None,
        table: Optional[str] = None,
    ):
        """
        Args:
            message: Human-readable error message
            details: Optional free-form context
            reference: The key that could not be resolved
            table: The table that was searched
        """
        super().__init__(message, details)
        self.reference = reference
        self.table = table

    def _context(self):
        return [("Reference", self.reference), ("Table", self.table)]


class DuplicateNameError(FixRepoError):
    """A supplied enum name targets a value that already has one."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        tag: Optional[str] = None,
        enum_value: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.tag = tag
        self.enum_value = enum_value

    def _context(self):
        return [("Tag", self.tag), ("Enum", self.enum_value)]


class UnknownVersionError(FixRepoError):
    """
    A version label missing from the catalog, or a field tag above every
    version's max-tag watermark (the repository is newer than the catalog).
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        version: Optional[str] = None,
        tag: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.version = version
        self.tag = tag

    def _context(self):
        return [("Version", self.version), ("Tag", self.tag)]


class ConsolidationError(FixRepoError):
    """
    The per-version tables cannot be merged as given.

    Raised for structural problems: the newest version has no data, a
    snapshot sits in the wrong slot, or a field has more than one record.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        version: Optional[str] = None,
        table: Optional[str] = None,
    ):
        """
        Args:
            message: Human-readable error message
            details: Optional free-form context
            version: Label of the version being processed
            table: Name of the table being processed
        """
        super().__init__(message, details)
        self.version = version
        self.table = table

    def _context(self):
        return [("Version", self.version), ("Table", self.table)]


class ConfigurationError(FixRepoError):
    """An environment or .env setting has an unusable value."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file

    def _context(self):
        return [("Key", self.config_key), ("File", self.config_file)]
