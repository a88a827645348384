"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class MissingOrganizationError(DomainException):
    """Caller has no organization bound to its session"""

    pass


class InvalidYearMonthError(DomainException, ValueError):
    """Month string is not in the expected YYYY-MM or YYYYMM form"""

    pass


class RecordNotFoundError(DomainException):
    """Requested row does not exist for the organization"""

    pass


class DuplicateRecordError(DomainException):
    """Row with the same natural key already exists"""

    pass


class PersistenceUnavailableError(DomainException):
    """Storage layer cannot be reached"""

    pass
