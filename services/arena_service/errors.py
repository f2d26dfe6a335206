"""User-facing error conditions of the workbench session.

Each carries a ``message`` that is safe to show in a notification. None of
them is fatal: the session converts them into notifications and the HTTP
layer into status codes.
"""

from __future__ import annotations


class ArenaError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationRejected(ArenaError):
    """Input was refused before any state changed."""


class ExportFailed(ArenaError):
    """Copying or exporting the output did not happen."""


class TemplateNotFound(ArenaError, LookupError):
    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template {template_id!r} not found")
        self.template_id = template_id
