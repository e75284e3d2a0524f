"""Exception hierarchy for plant matching."""


class PlantMatchError(Exception):
    """Base exception for all plantmatch errors."""


class DatabaseNotFound(PlantMatchError):
    """The catalog SQLite database file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Catalog database not found at: {path}")


class StoreUnavailable(PlantMatchError):
    """The candidate read against the catalog store failed."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Catalog store at {path} unavailable: {detail}")


class MalformedCandidate(PlantMatchError):
    """A retrieved catalog row is missing a required field."""

    def __init__(self, row_id, field: str):
        self.row_id = row_id
        self.field = field
        super().__init__(f"Catalog row {row_id!r} has no {field}")
