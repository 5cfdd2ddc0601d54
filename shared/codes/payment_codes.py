"""
Payment specific codes and remote status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    TIMEOUT = 60003
    PROVIDER_UNAVAILABLE = 60005
    CLOSE_FAILED = 60006

    # Local validation (61xxx)
    CONFIGURATION_ERROR = 61000
    INVALID_AMOUNT = 61001


# Remote object states that count as a successful business outcome
SUCCESS_STATES = frozenset({"Open", "Completed"})

# The only decline reason the shopper can fix by picking another funding source
SOFT_DECLINE_REASONS = frozenset({"InvalidPaymentMethod"})
