class FleetError(Exception):
    """Base class for errors raised by the fleet services."""


class ValidationFailure(FleetError):
    """A required field is missing or a value cannot be used."""


class PreconditionFailed(FleetError):
    """The requested transition is not allowed in the current state.

    Raised before anything is written, so the stored state is unchanged.
    """
