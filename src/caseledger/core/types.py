"""Type aliases used across caseledger."""

from __future__ import annotations

from decimal import Decimal

from caseledger.models.activity import Client

LocationId = str
# compute_payout also accepts the plain string value as the client; keys are
# coerced with Client(...) before lookup.
RateKey = tuple[Client, LocationId]
ProcessingRates = dict[RateKey, Decimal]
