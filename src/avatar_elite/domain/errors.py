"""Error taxonomy for user-visible failures."""


class AvatarEliteError(Exception):
    """Base class for errors converted into user-facing messages."""


class InsufficientCreditsError(AvatarEliteError):
    """Raised when a consume cannot be covered by the balance."""

    def __init__(self, cost: int, remaining: int) -> None:
        super().__init__(f"Need {cost} credits, have {remaining}")
        self.cost = cost
        self.remaining = remaining


class CapacityExceededError(AvatarEliteError):
    """Raised when an avatar or reference list is full."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Limit of {capacity} images reached")
        self.capacity = capacity


class BackendFailureError(AvatarEliteError):
    """Raised when an image backend call fails."""


class StoreUnavailableError(AvatarEliteError):
    """Raised when the durable account store cannot be reached."""


class TransportDownloadError(AvatarEliteError):
    """Raised when an uploaded image cannot be downloaded."""


class PaymentError(AvatarEliteError):
    """Raised when a checkout session cannot be created."""
