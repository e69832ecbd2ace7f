"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AuthenticationMissing(DomainException):
    """No user identity was supplied with the request"""

    pass


class StorageError(DomainException):
    """Query execution, connection or row decoding failed"""

    pass


class InvalidQueryError(DomainException):
    """Reporting window or pagination parameters are malformed"""

    pass


class RateProviderError(DomainException):
    """Exchange rate provider is unavailable or returned a malformed snapshot"""

    pass
