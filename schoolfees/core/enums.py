from enum import Enum
from typing import Optional


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    CHEQUE = "cheque"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PaymentMethod":
        """Accept 'Cash', 'Bank Transfer', 'bank-transfer', ... Raises ValueError on unknown values."""
        key = (value or "").strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid payment method '{value}'. Allowed: {allowed}") from None


class PaymentStatus(str, Enum):
    FULLY_PAID = "FullyPaid"
    PARTIALLY_PAID = "PartiallyPaid"
    NOT_PAID = "NotPaid"
