"""
Custom exceptions for the reference data store.

This module defines a hierarchy of exceptions to provide more
precise error handling across schema definition, seeding and lookups.
"""


class RefDataError(Exception):
    """
    Base exception for all reference data errors.

    All custom exceptions in the package inherit from this class,
    so callers can catch every store-specific failure in one place.
    """

    pass


class ConfigurationError(RefDataError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Required configuration parameters are missing
    - Configuration values are invalid
    - A destructive operation is requested against a protected target
    """

    pass


class SchemaError(RefDataError):
    """
    Raised for schema definition problems.

    Covers issues such as:
    - Unknown table or entity names
    - Unknown or read-only columns in an update
    - Administrative updates without changes or an actor
    - DDL statements rejected by the database
    """

    pass


class ConstraintViolationError(RefDataError):
    """
    Raised when a write violates an integrity constraint.

    Duplicate primary keys during seeding are never reported with this
    exception; they are skipped. Every other violation is fatal to the
    statement that caused it.
    """

    def __init__(self, message, table=None, rows=None):
        super().__init__(message)
        self.table = table
        self.rows = rows or []


class ForeignKeyViolationError(ConstraintViolationError):
    """
    Raised when a referenced row does not exist.

    Also used for self-referencing parents (subdivision parents,
    timezone aliases, classification code parents) that cannot be
    resolved, including parents from a different domain.
    """

    pass


class CheckViolationError(ConstraintViolationError):
    """
    Raised when a value falls outside its allowed set.

    Specific to:
    - status values other than active/deprecated
    - text directions other than ltr/rtl
    - unknown quantity types or label entity tags
    - NOT NULL columns left empty and fixed-width codes of the wrong length
    """

    pass


class UniqueViolationError(ConstraintViolationError):
    """Raised when a non-primary-key unique column would be duplicated."""

    pass


class HierarchyError(ConstraintViolationError):
    """
    Raised when parent links would not form a forest.

    Covers self-loops, cycles and level numbers that disagree
    with the depth implied by the parent link.
    """

    pass


class RecordNotFoundError(RefDataError):
    """Raised when an administrative update targets a missing row."""

    pass


class SeedError(RefDataError):
    """
    Raised when a seed step cannot complete.

    The original error is chained as ``__cause__``; the step's
    transaction is rolled back so the step can simply be re-run.
    """

    pass


class ExportError(RefDataError):
    """Raised when exporting tables to Parquet fails."""

    pass
