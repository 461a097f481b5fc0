"""Row-level access policy.

Reads of an access-controlled type are filtered by the access column in
the same backend request, creates get the column injected. Update and
delete rely on the backend's own row-level enforcement unless the source
is configured with ``filter_writes``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from row_source.core.conventions import Conventions
from row_source.core.exceptions import MissingSubjectError


class AccessPolicy:
    """Supplies and enforces the current subject identifier.

    Args:
        conventions: Resolves whether a type is access controlled and
            which column holds the subject.
        subject_accessor: Zero-argument callable returning the current
            subject, or None when there is none.
    """

    def __init__(
        self,
        conventions: Conventions,
        subject_accessor: Callable[[], Any] | None = None,
    ) -> None:
        self._conventions = conventions
        self._subject_accessor = subject_accessor

    def current_subject(self) -> Any:
        if self._subject_accessor is None:
            return None
        subject = self._subject_accessor()
        if subject is None or subject == "":
            return None
        return subject

    def require_subject(self, record_type: str, *, operation: str | None = None) -> Any:
        """Return the subject for an access-controlled type.

        Returns None without consulting the accessor when access control
        is disabled for the type.

        Raises:
            MissingSubjectError: If access control applies and no subject
                is available.
        """
        if not self._conventions.access_control_enabled(record_type):
            return None
        subject = self.current_subject()
        if subject is None:
            raise MissingSubjectError(record_type, operation=operation)
        return subject

    def read_filters(self, record_type: str, *, operation: str | None = None) -> dict[str, Any]:
        subject = self.require_subject(record_type, operation=operation)
        if subject is None:
            return {}
        return {self._conventions.access_control_column(record_type): subject}

    def write_filters(self, record_type: str, *, operation: str | None = None) -> dict[str, Any]:
        if not self._conventions.settings.filter_writes:
            return {}
        return self.read_filters(record_type, operation=operation)

    def inject(
        self,
        record_type: str,
        row: Mapping[str, Any],
        *,
        subject: Any = None,
        operation: str | None = None,
    ) -> dict[str, Any]:
        """Return a copy of ``row`` with the access column set to the subject.

        ``subject`` is the value from an earlier ``require_subject`` call; when
        omitted it is resolved here.
        """
        if subject is None:
            subject = self.require_subject(record_type, operation=operation)
        result = dict(row)
        if subject is not None:
            result[self._conventions.access_control_column(record_type)] = subject
        return result
