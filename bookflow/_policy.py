"""
Policy — configuration values the rules depend on.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from bookflow.money import Money, MoneyLike, money

# Ceiling on any loan term. Policies may shorten it, never extend it.
MAX_BORROW_PERIOD_DAYS = 30

# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Business configuration for pricing, fines and borrowing.

    Fluent builder pattern — chain methods to configure.

    Example:
        policy = (
            Policy()
            .with_tax_rate("0.08")
            .with_fine_daily_rate("1.00")
            .with_max_extension_days(7)
        )

    Note: fine_daily_rate has no default. The overdue rate is a business
    decision made by the library, so assessing a fine without it configured
    raises instead of guessing.
    """

    tax_rate: Money = Decimal("0.08")
    fine_daily_rate: Money | None = None
    max_extension_days: int = 7
    max_borrow_period_days: int = MAX_BORROW_PERIOD_DAYS

    def __post_init__(self) -> None:
        tax_rate = money(self.tax_rate)
        if not Decimal(0) <= tax_rate < Decimal(1):
            raise ValueError(f"tax_rate must be in [0, 1), got {tax_rate}")
        object.__setattr__(self, "tax_rate", tax_rate)

        if self.fine_daily_rate is not None:
            rate = money(self.fine_daily_rate)
            if rate < 0:
                raise ValueError(f"fine_daily_rate must be >= 0, got {rate}")
            object.__setattr__(self, "fine_daily_rate", rate)

        if self.max_extension_days < 1:
            raise ValueError("max_extension_days must be >= 1")
        if not 0 <= self.max_borrow_period_days <= MAX_BORROW_PERIOD_DAYS:
            raise ValueError(
                f"max_borrow_period_days must be in [0, {MAX_BORROW_PERIOD_DAYS}], "
                f"got {self.max_borrow_period_days}"
            )

    def with_tax_rate(self, rate: MoneyLike) -> Policy:
        """
        Set the sales tax rate as a fraction.

        Example:
            .with_tax_rate("0.08")  # 8%
        """
        return Policy(
            tax_rate=money(rate),
            fine_daily_rate=self.fine_daily_rate,
            max_extension_days=self.max_extension_days,
            max_borrow_period_days=self.max_borrow_period_days,
        )

    def with_fine_daily_rate(self, rate: MoneyLike) -> Policy:
        """
        Set the amount charged per calendar day a borrowed book is late.

        Example:
            .with_fine_daily_rate("1.00")
        """
        return Policy(
            tax_rate=self.tax_rate,
            fine_daily_rate=money(rate),
            max_extension_days=self.max_extension_days,
            max_borrow_period_days=self.max_borrow_period_days,
        )

    def with_max_extension_days(self, days: int) -> Policy:
        return Policy(
            tax_rate=self.tax_rate,
            fine_daily_rate=self.fine_daily_rate,
            max_extension_days=days,
            max_borrow_period_days=self.max_borrow_period_days,
        )

    def with_max_borrow_period_days(self, days: int) -> Policy:
        return Policy(
            tax_rate=self.tax_rate,
            fine_daily_rate=self.fine_daily_rate,
            max_extension_days=self.max_extension_days,
            max_borrow_period_days=days,
        )

    def require_fine_daily_rate(self) -> Money:
        """Configured overdue rate, or ValueError when it was never set."""
        if self.fine_daily_rate is None:
            raise ValueError(
                "fine_daily_rate is not configured; "
                "set it with Policy.with_fine_daily_rate()"
            )
        return self.fine_daily_rate

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> Policy:
        """
        Build from a settings payload. Unknown keys are ignored.

        Example:
            Policy.from_mapping({"tax_rate": "0.08", "fine_daily_rate": "0.50"})
        """
        policy = cls()
        if (rate := data.get("tax_rate")) is not None:
            policy = policy.with_tax_rate(_as_money(rate))
        if (fine := data.get("fine_daily_rate")) is not None:
            policy = policy.with_fine_daily_rate(_as_money(fine))
        if (ext := data.get("max_extension_days")) is not None:
            policy = policy.with_max_extension_days(int(str(ext)))
        if (period := data.get("max_borrow_period_days")) is not None:
            policy = policy.with_max_borrow_period_days(int(str(period)))
        return policy


def _as_money(value: object) -> Money:
    if isinstance(value, (Decimal, int, float, str)):
        return money(value)
    raise TypeError(f"expected a number, got {type(value).__name__}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "MAX_BORROW_PERIOD_DAYS",
    "Policy",
)
