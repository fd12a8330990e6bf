"""
Error taxonomy for scenario-table validation.

Every problem found while loading or validating the tables is reported as a
SchemaError record. Loaders collect all of them and raise a single
SchemaValidationError so one pass surfaces every data-entry defect.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class SchemaErrorKind(str, Enum):
    """Kinds of schema violations"""
    MISSING_FIELD = "MissingField"
    DUPLICATE_KEY = "DuplicateKey"
    DANGLING_REFERENCE = "DanglingReference"
    EMPTY_COLLECTION = "EmptyCollection"
    MALFORMED_RECORD = "MalformedRecord"


@dataclass(frozen=True)
class SchemaError:
    """
    A single violation found in the source tables.

    Attributes:
        kind: Violation kind
        message: Human readable description
        path: Location in the tables, outermost first (e.g. ("category 'Bicycles'", "level '1'"))
        key: The offending identifier (code, name or column), if any
    """
    kind: SchemaErrorKind
    message: str
    path: Tuple[str, ...] = ()
    key: Optional[str] = None

    def __str__(self) -> str:
        where = " / ".join(self.path)
        if where:
            return f"[{self.kind.value}] {where}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


class SchemaValidationError(ValueError):
    """Raised when one or more schema violations were found"""

    def __init__(self, errors: Sequence[SchemaError]):
        self.errors: List[SchemaError] = list(errors)
        lines = [f"{len(self.errors)} schema error(s):"]
        lines.extend(f"  - {error}" for error in self.errors)
        super().__init__("\n".join(lines))

    def of_kind(self, kind: SchemaErrorKind) -> List[SchemaError]:
        """Return the errors of a single kind"""
        return [error for error in self.errors if error.kind == kind]
