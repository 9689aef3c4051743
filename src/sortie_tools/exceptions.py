"""
Exceptions raised when SORTIE-ND files do not match the expected layout.

All of them derive from ValueError.
"""


class SortieDataError(ValueError):
    """Base class for malformed or inconsistent SORTIE data."""


class DocumentStructureError(SortieDataError):
    """An XML element or attribute is missing from its expected position."""


class ColumnNameError(SortieDataError):
    """A summary output column does not follow "<Stage> <Variable>: <Species>"."""

    def __init__(self, columns: list[str]):
        self.columns = columns
        super().__init__(
            f"Cannot parse summary column name(s) {columns}; "
            "expected '<Stage> <Variable>: <Species>'"
        )


class DuplicateKeyError(SortieDataError):
    """Several values share one cell of a long-to-wide pivot."""

    def __init__(self, keys: list[str], duplicates: list[tuple]):
        self.keys = keys
        self.duplicates = duplicates
        shown = duplicates[:5]
        more = f" (and {len(duplicates) - 5} more)" if len(duplicates) > 5 else ""
        super().__init__(f"Duplicate values for {keys}: {shown}{more}")


class TreeMapJoinError(SortieDataError):
    """A tree references a species, stage or variable code that is not declared."""


class UnknownStageError(TreeMapJoinError):
    """A tree "tp" code has no entry in the life stage registry."""

    def __init__(self, codes: list[int], known: dict[int, str]):
        self.codes = codes
        self.known = known
        super().__init__(
            f"Unknown life stage code(s) {codes}; known codes: {known}. "
            "Pass life_stages to declare them."
        )
