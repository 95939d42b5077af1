class ServiceHubError(ValueError):
    """Base class for user-visible ServiceHub errors."""


class DuplicateAccountError(ServiceHubError):
    pass


class UnknownAccountError(ServiceHubError):
    pass


class BadCredentialError(ServiceHubError):
    pass


class InvalidRoleError(ServiceHubError):
    pass


class UnauthenticatedError(ServiceHubError):
    """The session carries no identity for the required role."""


class ForbiddenError(ServiceHubError):
    pass


class ProfileIncompleteError(ServiceHubError):
    """A provider tried to reach a screen that needs a completed profile."""


class NotFoundError(ServiceHubError):
    pass


class ProviderNotFoundError(NotFoundError):
    pass


class BookingNotFoundError(NotFoundError):
    pass


class InvalidTransitionError(ServiceHubError):
    pass


class InvalidPostalCodeError(ServiceHubError):
    pass


class GeocoderUnavailableError(ServiceHubError):
    pass


class StoreUnavailableError(ServiceHubError):
    """The persistence layer could not be reached."""
