"""Player currency balances with non-negative debit semantics."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from arcane_backend.shared.enums import Currency


class InsufficientFundsError(Exception):
    """Raised when a debit exceeds the available balance."""

    def __init__(self, currency: Currency, required: int, available: int) -> None:
        super().__init__(
            f"Not enough {currency.value}. Required: {required}, Available: {available}"
        )
        self.currency = currency
        self.required = required
        self.available = available

    def as_data(self) -> dict[str, object]:
        """Return the structured payload reported to clients."""
        return {
            "currency": self.currency.value,
            "required": self.required,
            "available": self.available,
        }


class BalanceLedger(BaseModel):
    """Immutable mapping of currency to amount held by a player."""

    model_config = ConfigDict(frozen=True)

    amounts: dict[Currency, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_non_negative(self) -> BalanceLedger:
        """Reject negative balances."""
        for currency, amount in self.amounts.items():
            if amount < 0:
                msg = f"Balance for {currency.value} cannot be negative ({amount})."
                raise ValueError(msg)
        return self

    def amount(self, currency: Currency) -> int:
        """Return the held amount of *currency* (zero when absent)."""
        return self.amounts.get(currency, 0)

    def credit(self, currency: Currency, amount: int) -> BalanceLedger:
        """Return a ledger with *amount* added to *currency*."""
        if amount < 0:
            msg = "Credit amount must be non-negative."
            raise ValueError(msg)
        return self._with(currency, self.amount(currency) + amount)

    def debit(self, currency: Currency, amount: int) -> BalanceLedger:
        """Return a ledger with *amount* removed from *currency*."""
        return self.debit_many({currency: amount})

    def debit_many(self, costs: Mapping[Currency, int]) -> BalanceLedger:
        """Apply several debits at once, validating all of them first."""
        for currency, amount in costs.items():
            if amount < 0:
                msg = "Debit amount must be non-negative."
                raise ValueError(msg)
            available = self.amount(currency)
            if available < amount:
                raise InsufficientFundsError(currency, amount, available)
        amounts = dict(self.amounts)
        for currency, amount in costs.items():
            amounts[currency] = amounts.get(currency, 0) - amount
        return BalanceLedger(amounts=amounts)

    def _with(self, currency: Currency, amount: int) -> BalanceLedger:
        amounts = dict(self.amounts)
        amounts[currency] = amount
        return BalanceLedger(amounts=amounts)


__all__ = ["BalanceLedger", "InsufficientFundsError"]
