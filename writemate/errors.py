from __future__ import annotations


class WriteMateError(Exception):
    """Base class for worksheet engine errors."""


class AssetFetchFailed(WriteMateError):
    """A remote typeface could not be downloaded during export.

    The message is meant to be shown to the user as-is; the export attempt
    is abandoned and can simply be retried.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class InvalidTemplateReference(WriteMateError, KeyError):
    def __init__(self, template_id: str) -> None:
        super().__init__(f"Unknown template: {template_id}")
        self.template_id = template_id

    def __str__(self) -> str:
        return self.args[0]
