"""Infrastructure models package exports."""
from .base import Base, metadata
from .transaction import WalletTransactionModel

__all__ = [
    "Base",
    "metadata",
    "WalletTransactionModel",
]
