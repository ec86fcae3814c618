"""Error taxonomy for the storefront domain.

Input-shape problems are raised as ``protean.exceptions.ValidationError`` and
unknown identifiers as ``ObjectNotFoundError``; the classes below cover the
remaining cases and carry the HTTP status the API renders them with.
"""


class StorefrontError(Exception):
    status_code = 400
    code = "storefront_error"

    def __init__(self, message: str, code: str | None = None, **context):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class AuthorizationError(StorefrontError):
    """Role or ownership mismatch."""

    status_code = 403
    code = "forbidden"


class ConflictError(StorefrontError):
    """Duplicate task or offer code, or a lost race on a usage quota."""

    status_code = 409
    code = "conflict"


class StoreUnavailable(StorefrontError):
    status_code = 503
    code = "store_unavailable"


class WorkflowSideEffectError(StorefrontError):
    """Downstream workflow automation failed after the primary write succeeded.

    Never surfaced to the caller; reported to the workflow incident sink.
    """

    status_code = 500
    code = "workflow_side_effect_failed"

    def __init__(self, message: str, stage: str, order_id: str | None = None, task_id: str | None = None):
        super().__init__(message, stage=stage, order_id=order_id, task_id=task_id)
        self.stage = stage
        self.order_id = order_id
        self.task_id = task_id


class OfferNotFound(StorefrontError):
    status_code = 404
    code = "offer_not_found"

    def __init__(self, message: str = "Offer not found"):
        super().__init__(message)


class OfferRejected(StorefrontError):
    """An offer failed one of the validation checks; ``code`` names the check."""

    status_code = 400
    code = "offer_rejected"

    def __init__(self, message: str, code: str):
        super().__init__(message, code=code)
        if code == "not_eligible":
            self.status_code = 403
