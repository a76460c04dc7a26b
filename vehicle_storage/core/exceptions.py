"""
Exception hierarchy for the storage engine.

Store transport failures are surfaced on writes only; read paths degrade to
an ``Unavailable`` result instead of raising.
"""


class StorageEngineError(Exception):
    """Base class for all storage engine errors"""
    pass


class TransientStoreError(StorageEngineError):
    """Network, auth or transport failure talking to the object store"""
    pass


class StoreWriteError(TransientStoreError):
    """Raised when a put or delete against the object store fails"""
    pass


class ValidationError(StorageEngineError):
    """Raised for invalid arguments, before any side effect"""
    pass


class ImageDecodeError(StorageEngineError):
    """Raised when uploaded bytes cannot be decoded as an image"""
    pass


class ImageEncodeError(StorageEngineError):
    """Raised when the JPEG encoder fails"""
    pass


class CleanupInProgressError(StorageEngineError):
    """Raised when another cleanup run holds the lock for the same trigger"""

    def __init__(self, lock_name: str):
        self.lock_name = lock_name
        super().__init__(f"Cleanup already running for '{lock_name}'")
