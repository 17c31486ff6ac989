"""caseledger: monthly resource payout calculation for case-logging work."""

__version__ = "0.1.0"
