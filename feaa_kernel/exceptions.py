"""
Typed Exception Hierarchy for the FEAA ordering kernel.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, log-safe) and carries its structured
context as attributes rather than only inside the message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FeaaError (base)
    |
    +-- InvalidStateError
    |   +-- OrderFinalisedError
    |
    +-- UnauthenticatedError
    |
    +-- InvalidArgumentError
    |   +-- UnknownClientError
    |   +-- UnknownOrderTypeError
    |   +-- InvalidCostPolicyError
    |
    +-- OrderNotFoundError
    |
    +-- CommitError
    |   +-- PartialCommitError
    |
    +-- DeliveryError
    |   +-- InvoiceDeliveryError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                     | When Raised
----------------|--------------------------|--------------------------------------
State           | ORDER_FINALISED          | set_report on a finalised order
----------------|--------------------------|--------------------------------------
Auth            | UNAUTHENTICATED          | Operation attempted without a token
----------------|--------------------------|--------------------------------------
Argument        | UNKNOWN_CLIENT           | Order created for a client id the
                |                          | store does not know
                | UNKNOWN_ORDER_TYPE       | Order type flag is not 1 or 2
                | INVALID_COST_POLICY      | Negative cap/loading, quarters < 1
----------------|--------------------------|--------------------------------------
Lookup          | ORDER_NOT_FOUND          | Order id neither staged nor stored
----------------|--------------------------|--------------------------------------
Commit          | PARTIAL_COMMIT           | Some staged orders failed to save
----------------|--------------------------|--------------------------------------
Delivery        | INVOICE_DELIVERY_FAILED  | Capable channel's transport raised
----------------|--------------------------|--------------------------------------
Config          | CONFIGURATION_ERROR      | YAML config failed validation

===============================================================================
HANDLING PATTERNS
===============================================================================

1. An undeliverable invoice is NOT an exception. ``DispatchChain`` returns a
   falsy ``DispatchOutcome``; callers check it.

2. PartialCommitError keeps the failed orders staged as dirty:

    try:
        staging.commit(token)
    except PartialCommitError as e:
        log.error("commit incomplete", extra={"failed_ids": e.failed_ids})
        # retry later; nothing was dropped

3. InvalidStateError is a caller bug and is never retried.
"""


class FeaaError(Exception):
    """
    Base exception for all FEAA ordering errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FEAA_ERROR"

    def log_fields(self) -> dict[str, object]:
        """Structured context written into log records as ``exc_<name>``."""
        return {k: v for k, v in vars(self).items() if not k.startswith("_")}


# State exceptions


class InvalidStateError(FeaaError):
    """Operation is not allowed in the object's current state."""

    code: str = "INVALID_STATE"


class OrderFinalisedError(InvalidStateError):
    """Order lines cannot change once the order is finalised."""

    code: str = "ORDER_FINALISED"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} was already finalised")


# Authentication


class UnauthenticatedError(FeaaError):
    """No valid session token is held for the operation."""

    code: str = "UNAUTHENTICATED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Not logged in: {operation} requires a session token")


# Argument exceptions


class InvalidArgumentError(FeaaError):
    """Caller supplied an argument the ordering core cannot accept."""

    code: str = "INVALID_ARGUMENT"


class UnknownClientError(InvalidArgumentError):
    """Client id is not known to the backing store."""

    code: str = "UNKNOWN_CLIENT"

    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Invalid client ID: {client_id}")


class UnknownOrderTypeError(InvalidArgumentError):
    """Order type flag does not map to a known kind of work."""

    code: str = "UNKNOWN_ORDER_TYPE"

    def __init__(self, order_type: int):
        self.order_type = order_type
        super().__init__(f"Unknown order type: {order_type}")


class InvalidCostPolicyError(InvalidArgumentError):
    """A cost policy field is outside its allowed range."""

    code: str = "INVALID_COST_POLICY"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


# Lookup


class OrderNotFoundError(FeaaError):
    """Order id is neither staged nor persisted."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


# Commit


class CommitError(FeaaError):
    """Base exception for staging flush failures."""

    code: str = "COMMIT_ERROR"


class PartialCommitError(CommitError):
    """
    Some staged orders could not be saved.

    The failed orders remain staged (as dirty) so a later commit can retry
    them; the saved ones have been removed from staging.
    """

    code: str = "PARTIAL_COMMIT"

    def __init__(self, failed_ids: list[int], saved_ids: list[int]):
        self.failed_ids = failed_ids
        self.saved_ids = saved_ids
        super().__init__(
            f"Commit incomplete: {len(failed_ids)} order(s) failed to save "
            f"({failed_ids}), {len(saved_ids)} saved"
        )

    def log_fields(self) -> dict[str, object]:
        fields = super().log_fields()
        fields["failed_count"] = len(self.failed_ids)
        fields["saved_count"] = len(self.saved_ids)
        return fields


# Delivery


class DeliveryError(FeaaError):
    """Base exception for invoice delivery failures."""

    code: str = "DELIVERY_ERROR"


class InvoiceDeliveryError(DeliveryError):
    """The transport for a capable contact channel raised while sending."""

    code: str = "INVOICE_DELIVERY_FAILED"

    def __init__(self, method: str, client_id: int, reason: str):
        self.method = method
        self.client_id = client_id
        self.reason = reason
        super().__init__(
            f"Sending invoice to client {client_id} via {method} failed: {reason}"
        )


# Configuration


class ConfigurationError(FeaaError):
    """Configuration file is missing required data or holds invalid values."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, problem: str):
        self.source = source
        self.problem = problem
        super().__init__(f"Invalid configuration in {source}: {problem}")
