"""Typed error hierarchy for the approval core.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer renders it with. Validation errors are raised before any mutation;
``TransactionFailed`` means the unit of work was rolled back.

    PremiumFreightError
    +-- InvalidArgument            400
    |   +-- InvalidRejectionReason 400
    |   +-- InvalidEditToken       400
    +-- AlreadyFullyApproved       400
    +-- Unauthenticated            401
    +-- Forbidden                  403
    |   +-- CrossPlantForbidden    403
    |   +-- OutOfSequence          403
    +-- NotFound                   404
    +-- IncompleteApproverChain    409
    +-- TransactionFailed          500
"""


class PremiumFreightError(Exception):
    """Base exception for all approval-core errors."""

    code: str = "PREMIUM_FREIGHT_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgument(PremiumFreightError):
    code = "INVALID_ARGUMENT"
    status_code = 400


class InvalidRejectionReason(InvalidArgument):
    code = "INVALID_REJECTION_REASON"


class InvalidEditToken(InvalidArgument):
    code = "INVALID_EDIT_TOKEN"


class AlreadyFullyApproved(PremiumFreightError):
    code = "ALREADY_FULLY_APPROVED"
    status_code = 400

    def __init__(self, order_id: int, required_level: int):
        self.order_id = order_id
        self.required_level = required_level
        super().__init__(
            f"Order {order_id} has already reached its required approval level ({required_level})."
        )


class Unauthenticated(PremiumFreightError):
    code = "UNAUTHENTICATED"
    status_code = 401


class Forbidden(PremiumFreightError):
    code = "FORBIDDEN"
    status_code = 403


class CrossPlantForbidden(Forbidden):
    code = "CROSS_PLANT_FORBIDDEN"

    def __init__(self, actor_plant: str, order_plant: str | None):
        self.actor_plant = actor_plant
        self.order_plant = order_plant
        super().__init__(
            f"Approvers of plant {actor_plant} cannot act on orders from plant {order_plant}."
        )


class OutOfSequence(Forbidden):
    code = "OUT_OF_SEQUENCE"

    def __init__(
        self,
        order_id: int,
        expected_level: int | None,
        actor_level: int | None,
        message: str | None = None,
    ):
        self.order_id = order_id
        self.expected_level = expected_level
        self.actor_level = actor_level
        if message is None and expected_level is None:
            message = f"Order {order_id} is not awaiting any approval."
        elif message is None:
            message = (
                f"Order {order_id} is awaiting approval level {expected_level}; "
                f"your level is {actor_level}."
            )
        super().__init__(message)


class NotFound(PremiumFreightError):
    code = "NOT_FOUND"
    status_code = 404


class IncompleteApproverChain(PremiumFreightError):
    code = "INCOMPLETE_APPROVER_CHAIN"
    status_code = 409

    def __init__(self, plant: str | None, missing_levels: list[int]):
        self.plant = plant
        self.missing_levels = missing_levels
        super().__init__(
            f"No approver configured for level(s) {', '.join(map(str, missing_levels))} "
            f"(plant {plant or 'regional'})."
        )


class TransactionFailed(PremiumFreightError):
    code = "TRANSACTION_FAILED"
    status_code = 500
