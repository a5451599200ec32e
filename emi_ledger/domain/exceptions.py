"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidArgumentError(DomainException):
    """Caller supplied missing or malformed payment input"""

    pass


class AccountNotFoundError(DomainException):
    """Referenced customer account does not exist"""

    def __init__(self, account_number: str):
        super().__init__(f"Customer account not found: {account_number}")
        self.account_number = account_number


class StorageError(DomainException):
    """Database unavailable or transaction failed; no partial changes were kept"""

    pass
