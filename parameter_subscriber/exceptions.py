class SubscriberError(Exception):
    """Base class for failures that abort a whole propagation cycle."""


class InvalidNotificationError(SubscriberError):
    """Raised when an inbound event does not carry a parameter name."""


class ResolutionError(SubscriberError):
    """Raised when the subscriptions of a parameter cannot be discovered."""
