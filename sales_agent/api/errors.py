"""
Error taxonomy of the chat turn.

Each error carries the HTTP status and the client-facing message the router
returns as ``{"error": message}``. Gateway-class failures all share one
generic message; the detail only goes to the log.
"""

GENERIC_TURN_FAILURE = "Something went wrong with the chat processing."
STORE_FAILURE = "Failed to save conversation."


class TurnError(Exception):
    """Base class for every failure that aborts a chat turn."""

    status_code: int = 500
    public_message: str = GENERIC_TURN_FAILURE

    def __init__(self, detail: str = "", public_message: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class ValidationError(TurnError):
    """Malformed turn request. Raised before any external call."""

    status_code = 400

    def __init__(self, public_message: str):
        super().__init__(detail=public_message, public_message=public_message)


class GatewayError(TurnError):
    """Completion gateway unreachable, erroring, or returning unusable content."""

    status_code = 502


class LabelContractViolation(GatewayError):
    """A classifier answered with text outside its declared label set."""

    def __init__(self, stage: str, raw_output: str, valid_labels):
        super().__init__(
            detail=f"{stage} classifier returned {raw_output!r}, expected one of {sorted(valid_labels)}"
        )
        self.stage = stage
        self.raw_output = raw_output


class TurnTimeout(GatewayError):
    """A completion call or the whole turn ran past its deadline."""

    status_code = 504


class StoreError(TurnError):
    """The reply was generated but the conversation record could not be persisted."""

    status_code = 500
    public_message = STORE_FAILURE
