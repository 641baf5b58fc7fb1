"""Exception hierarchy for daffodil-bin.

This module defines the exception classes raised while planning and
running saved processor builds:
- DaffodilBinError: Base exception for all daffodil-bin errors
- ConfigurationError: Build description is invalid (raised before any compile)
- NoCompatibleMappingError: A version table has no entry for a version
- SelectorSyntaxError: A version selector cannot be parsed
- DuplicateLabelError: Two artifacts share the same label
- LibraryResolutionError: Library entries for a version cannot be found
- ArtifactBuildError: One or more child compilations failed

User-facing messages are safe to display. Technical details are logged
internally via structlog.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

logger = structlog.get_logger(__name__)


class DaffodilBinError(Exception):
    """Base exception for daffodil-bin.

    Args:
        user_message: Message to display to the user.
        internal_details: Optional technical details. These are logged
            but never included in the exception message.

    Example:
        >>> raise DaffodilBinError(
        ...     "Saved parser build failed",
        ...     internal_details="child exited with 1 for /tmp/x/target/p-1.0-daffodil360.bin",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "daffodil_bin_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ConfigurationError(DaffodilBinError):
    """Raised when the build description is invalid.

    Configuration errors are always detected before any child process
    is launched and abort the whole build.
    """

    pass


class SelectorSyntaxError(ConfigurationError):
    """Raised when a version selector cannot be parsed.

    Attributes:
        selector: The offending selector text.
    """

    def __init__(self, selector: str, reason: str) -> None:
        super().__init__(f"Invalid version selector '{selector}': {reason}")
        self.selector = selector


class NoCompatibleMappingError(ConfigurationError):
    """Raised when a version table has no entry matching a version.

    Attributes:
        version: The version that was looked up.
        table_name: Name of the table that was consulted.
    """

    def __init__(self, version: str, table_name: str) -> None:
        super().__init__(f"No compatible mapping for version '{version}' in {table_name}")
        self.version = version
        self.table_name = table_name


class DuplicateLabelError(ConfigurationError):
    """Raised when two artifact specs share a label.

    The label is the only thing that makes saved processors for the same
    target version unique, so duplicates would overwrite each other.

    Attributes:
        labels: The duplicated labels (None stands for "no label").
    """

    def __init__(self, labels: Iterable[str | None]) -> None:
        self.labels = sorted(labels, key=lambda label: (label is not None, label or ""))
        shown = ", ".join("<none>" if label is None else label for label in self.labels)
        super().__init__(f"Artifacts define duplicate labels: {shown}")


class LibraryResolutionError(DaffodilBinError):
    """Raised when the library entries for a target version cannot be resolved."""

    pass


class ArtifactBuildError(DaffodilBinError):
    """Raised when one or more saved processors could not be built.

    Attributes:
        failed: File names of the artifacts that were not produced.
    """

    def __init__(
        self,
        failed: Sequence[str],
        *,
        internal_details: str | None = None,
    ) -> None:
        self.failed = list(failed)
        super().__init__(
            f"Failed to save daffodil parser: {', '.join(self.failed)}",
            internal_details=internal_details,
        )
