from __future__ import annotations


class RestGraphError(Exception):
    """Base class for errors raised while turning an API description into a schema."""


class ConstructionError(RestGraphError):
    """The schema cannot be built from the given endpoints."""


class DuplicateArgumentError(ConstructionError):
    def __init__(self, operation_id: str, argument: str):
        self.operation_id = operation_id
        self.argument = argument
        super().__init__(
            f"Endpoint '{operation_id}' declares argument '{argument}' more than once"
        )


class LoaderError(RestGraphError):
    """The API description document is malformed or unsupported."""
