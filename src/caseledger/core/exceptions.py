"""caseledger exception hierarchy."""

from __future__ import annotations


class CaseLedgerError(Exception):
    """Base exception for all caseledger errors."""


class SlabConfigurationError(CaseLedgerError):
    """Logging slab table is not a contiguous partition of [0, inf)."""


class PayoutCalculationError(CaseLedgerError):
    """Payout could not be computed from the supplied inputs."""


class MissingRateError(PayoutCalculationError):
    """A location with case activity has no processing rate."""

    def __init__(self, client: str, location_id: str, cases: int) -> None:
        self.client = client = str(client)
        self.location_id = location_id
        self.cases = cases
        super().__init__(
            f"No processing rate for client={client!r}, location={location_id!r} "
            f"({cases} cases)"
        )


class InvariantViolationError(PayoutCalculationError):
    """Input activity breaks an invariant (negative values, bad dates, excess bonus cases)."""


class EmptyPeriodError(PayoutCalculationError):
    """No daily activity supplied for the requested period."""

    def __init__(self, resource_id: str, month: int, year: int, reason: str = "no daily activity") -> None:
        self.resource_id = resource_id
        self.month = month
        self.year = year
        super().__init__(f"{reason} for resource {resource_id} in {year}-{month:02d}")


class PayoutNotFoundError(CaseLedgerError):
    """No payout record for the requested resource and period."""


class PayoutLockedError(CaseLedgerError):
    """Payout is approved or paid and can no longer be recomputed."""

    def __init__(self, resource_id: str, month: int, year: int, status: str) -> None:
        self.resource_id = resource_id
        self.status = status = str(status)
        super().__init__(
            f"Payout for resource {resource_id} in {year}-{month:02d} is {status} and cannot be recalculated"
        )


class InvalidStatusTransitionError(CaseLedgerError):
    """Requested payout status change is not allowed from the current status."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current = str(current)
        self.target = target = str(target)
        super().__init__(f"Cannot move payout from {current!r} to {target!r}")


class CacheError(CaseLedgerError):
    """Redis cache operation failed."""


class StorageError(CaseLedgerError):
    """DynamoDB or S3 operation failed."""
