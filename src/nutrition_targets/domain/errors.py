"""Error taxonomy for nutrition target resolution."""


class NutritionTargetsError(Exception):
    """Base class for errors raised by this package."""


class NotAuthenticated(NutritionTargetsError):
    """No user id is available for the requested operation."""


class LocalStoreFailure(NutritionTargetsError):
    """The on-device store could not complete a read or write."""


class RemoteUnavailable(NutritionTargetsError):
    """The remote store could not be reached or timed out."""


class InvalidInput(NutritionTargetsError):
    """A value is outside the domain accepted by the operation."""
