"""
Error taxonomy for the persistence layer.

Every failure surfaced by lnstore is a StoreError subclass, so callers
never need to know which engine (SQLAlchemy, sqlite3, the filesystem)
produced it.
"""


class StoreError(Exception):
    """Base class for all persistence errors."""


class DatabaseError(StoreError):
    """Relational or encrypted-store engine failure (message-wrapped)."""

    def __init__(self, message: str):
        super().__init__(f"Database error: {message}")
        self.message = message


class NotInitializedError(StoreError):
    """Secret requested before it was ever saved."""

    def __init__(self, message: str = "Node has not been initialized"):
        super().__init__(message)


class AlreadyInitializedError(StoreError):
    """A first-time initialization was attempted twice."""

    def __init__(self, message: str = "Node has already been initialized"):
        super().__init__(message)


class WrongPasswordError(StoreError):
    """Decryption key mismatch, distinct from corrupt data."""

    def __init__(self, message: str = "The provided password is incorrect"):
        super().__init__(message)


class InvalidRecordError(StoreError):
    """A stored value failed post-read structural validation."""


class InvalidPeerInfoError(InvalidRecordError):
    """A persisted peer row holds an unparsable public key or address."""


class InvalidMnemonicError(StoreError):
    """Plaintext seed is not a well-formed BIP-39 phrase."""


class IOFailure(StoreError):
    """Legacy-file or mirror-file read/write failure."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CorruptSecretError(AssertionError):
    """
    A stored secret decrypted correctly but is not a valid mnemonic.

    Only reachable if something other than this package wrote the row,
    so it is an invariant violation rather than a StoreError.
    """
