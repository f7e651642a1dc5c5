class MomentumError(Exception):
    """Base class for failures raised by the session core."""


class ValidationError(MomentumError):
    """Missing or malformed identifier or payload field."""


class NotFoundError(MomentumError):
    """The identifier is not present in the session store."""


class InternalError(MomentumError):
    """Unexpected failure while processing a request."""
