"""
Tax Service.

Computes taxes in integer cents with Decimal arithmetic. Table orders never
call this at submission: their tax is computed once, on the consolidated
invoice, so per-order rounding cannot compound across a dining visit.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Union

from rest_api.models import ConsolidatedOrder, Order
from shared.config.constants import TaxBehavior
from shared.config.logging import get_logger
from shared.config.settings import TaxRate

logger = get_logger(__name__)

_CENT = Decimal("1")


@dataclass(frozen=True)
class TaxLine:
    name: str
    rate: Decimal
    amount_cents: int


@dataclass(frozen=True)
class TaxBreakdown:
    """Taxes applied to a subtotal."""

    subtotal_cents: int
    service_tax_cents: int = 0
    vat_cents: int = 0
    lines: tuple[TaxLine, ...] = field(default_factory=tuple)

    @property
    def total_tax_cents(self) -> int:
        return self.service_tax_cents + self.vat_cents

    @property
    def grand_total_cents(self) -> int:
        return self.subtotal_cents + self.total_tax_cents


class TaxService:
    """
    Tax calculation over configured rates.

    A rate whose name mentions "service" is a service charge; every other
    rate counts as VAT.
    """

    def __init__(self, rates: list[TaxRate], enabled: bool = True):
        self._rates = list(rates)
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled and bool(self._rates)

    def calculate(self, subtotal_cents: int) -> TaxBreakdown:
        """Apply every rate to the subtotal, rounding each half up to the cent."""
        if subtotal_cents < 0:
            raise ValueError(f"subtotal_cents must be non-negative, got {subtotal_cents}")
        if not self.enabled:
            return TaxBreakdown(subtotal_cents=subtotal_cents)

        service_tax = 0
        vat = 0
        lines = []
        for tax_rate in self._rates:
            amount = int(
                (Decimal(subtotal_cents) * tax_rate.rate).quantize(_CENT, rounding=ROUND_HALF_UP)
            )
            lines.append(TaxLine(name=tax_rate.name, rate=tax_rate.rate, amount_cents=amount))
            if "service" in tax_rate.name.lower():
                service_tax += amount
            else:
                vat += amount

        return TaxBreakdown(
            subtotal_cents=subtotal_cents,
            service_tax_cents=service_tax,
            vat_cents=vat,
            lines=tuple(lines),
        )

    def calculate_table_invoice_taxes(self, subtotal_cents: int, order_ids: list[int]) -> TaxBreakdown:
        """Taxes of a consolidated table invoice (computed exactly once per visit)."""
        breakdown = self.calculate(subtotal_cents)
        logger.info(
            "Table invoice tax calculated",
            order_ids=order_ids,
            subtotal_cents=subtotal_cents,
            service_tax_cents=breakdown.service_tax_cents,
            vat_cents=breakdown.vat_cents,
            grand_total_cents=breakdown.grand_total_cents,
        )
        return breakdown

    def calculate_individual_order_taxes(self, order: Order) -> TaxBreakdown:
        """
        Taxes of a single order, recomputed from its subtotal.
        Any previously stored tax is replaced, never added to.
        """
        breakdown = self.calculate(order.subtotal_cents)
        logger.debug(
            "Individual order tax calculated",
            order_id=order.id,
            subtotal_cents=order.subtotal_cents,
            tax_cents=breakdown.total_tax_cents,
        )
        return breakdown

    def validate_tax_isolation(
        self,
        order: Union[Order, ConsolidatedOrder],
        expected_behavior: str,
    ) -> bool:
        """
        Check that an order's tax matches the policy for its kind.

        - deferred: a table child order carries no tax
        - calculated: a pickup order carries tax (when taxes are enabled)
        - consolidated: a consolidated invoice references its dining session

        Violations are logged and reported, never raised.
        """
        table_number = order.table_number
        if expected_behavior == TaxBehavior.DEFERRED:
            if table_number and order.tax_cents > 0:
                logger.error(
                    "Tax isolation violation: table order carries individual tax",
                    order_id=order.id,
                    table_number=table_number,
                    tax_cents=order.tax_cents,
                )
                return False
        elif expected_behavior == TaxBehavior.CALCULATED:
            if (
                not table_number
                and self.enabled
                and order.subtotal_cents > 0
                and order.tax_cents <= 0
            ):
                logger.error(
                    "Tax isolation violation: pickup order has no tax",
                    order_id=order.id,
                    subtotal_cents=order.subtotal_cents,
                )
                return False
        elif expected_behavior == TaxBehavior.CONSOLIDATED:
            if not getattr(order, "session_id", None):
                logger.warning(
                    "Tax isolation warning: consolidated order missing session",
                    order_id=order.id,
                    table_number=table_number,
                )
                return False
        else:
            raise ValueError(f"Unknown tax behavior: {expected_behavior!r}")

        logger.debug(
            "Tax isolation check passed",
            order_id=order.id,
            expected=expected_behavior,
            tax_cents=order.tax_cents,
        )
        return True

    def get_tax_summary(self, order: Order) -> dict[str, Any]:
        """Tax figures of an order for display."""
        return {
            "subtotal_cents": order.subtotal_cents,
            "tax_cents": order.tax_cents,
            "total_cents": order.total_cents,
            "tax_enabled": self.enabled,
            "is_table_order": bool(order.table_number),
            "tax_deferred": bool(order.tax_deferred),
            "rates": [{"name": r.name, "rate": str(r.rate)} for r in self._rates],
        }
