# pharmacy_pos/domain/cart/terminal.py
import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from pharmacy_pos.core.errors import ValidationFailure
from pharmacy_pos.domain.checkout.schemas import BillCreate, BillItemIn, BillOut
from pharmacy_pos.domain.pricing.aggregate import CartAggregate
from pharmacy_pos.domain.pricing.settlement import Adjustments, BillSettlement, PaymentMethod, settle
from pharmacy_pos.domain.pricing.valuation import Number

from .cart import Cart, CartLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalizedSale:
    """Snapshot of a sale at the moment the cashier completes it."""

    lines: Tuple[CartLine, ...]
    aggregate: CartAggregate
    settlement: BillSettlement
    customer_id: Optional[str] = None

    def to_bill_create(self) -> BillCreate:
        adjustments = self.settlement.adjustments
        return BillCreate(
            customer_id=self.customer_id,
            items=[
                BillItemIn(
                    product_id=line.product_id,
                    product_name=line.name,
                    product_sku=line.sku,
                    quantity=line.cart_quantity,
                    unit_price=line.cart_price,
                    discount_percent=line.discount_percent,
                    tax_percent=line.tax_percent,
                )
                for line in self.lines
            ],
            payment_method=adjustments.payment_method,
            amount_paid=adjustments.amount_paid,
            discount_amount=adjustments.global_discount,
            doctor_fees=adjustments.doctor_fees,
            other_charges=adjustments.other_charges,
            doctor_name=adjustments.doctor_name,
            notes=adjustments.notes,
        )


class SaleRecorder(Protocol):
    async def record_sale(self, sale: FinalizedSale) -> BillOut: ...


class CheckoutTerminal:
    """One in-progress sale: the cart plus the bill-level adjustments.

    Totals are derived on every read, so any edit to a line or to an
    adjustment is reflected immediately.
    """

    def __init__(self, recorder: SaleRecorder):
        self._recorder = recorder
        self.cart = Cart()
        self.customer_id: Optional[str] = None
        self._adjustments = Adjustments()

    @property
    def adjustments(self) -> Adjustments:
        return self._adjustments

    @property
    def aggregate(self) -> CartAggregate:
        return self.cart.totals()

    @property
    def settlement(self) -> BillSettlement:
        return settle(self.aggregate, self._adjustments)

    @property
    def can_checkout(self) -> bool:
        return not self.cart.is_empty and self.settlement.can_checkout

    def _adjust(self, **changes) -> Adjustments:
        self._adjustments = dataclasses.replace(self._adjustments, **changes)
        return self._adjustments

    def set_global_discount(self, amount: Number) -> Adjustments:
        return self._adjust(global_discount=amount)

    def set_doctor_fees(self, amount: Number) -> Adjustments:
        return self._adjust(doctor_fees=amount)

    def set_other_charges(self, amount: Number) -> Adjustments:
        return self._adjust(other_charges=amount)

    def set_amount_paid(self, amount: Number) -> Adjustments:
        return self._adjust(amount_paid=amount)

    def set_payment_method(self, method: PaymentMethod) -> Adjustments:
        return self._adjust(payment_method=method)

    def set_doctor_name(self, name: Optional[str]) -> Adjustments:
        return self._adjust(doctor_name=name)

    def set_notes(self, notes: Optional[str]) -> Adjustments:
        return self._adjust(notes=notes)

    def select_customer(self, customer_id: Optional[str]) -> None:
        self.customer_id = customer_id

    def reset(self) -> None:
        self.cart.clear()
        self.customer_id = None
        self._adjustments = Adjustments()

    async def checkout(self) -> BillOut:
        """Send the finalized sale to the recorder and start a new one.

        Refused locally while the grand total is zero. If recording fails the
        cart and adjustments are left as they were and the error propagates.
        """
        totals = self.aggregate
        settlement = settle(totals, self._adjustments)
        if self.cart.is_empty or not settlement.can_checkout:
            raise ValidationFailure("Nothing to bill: the grand total must be greater than zero")

        sale = FinalizedSale(
            lines=self.cart.lines,
            aggregate=totals,
            settlement=settlement,
            customer_id=self.customer_id,
        )
        bill = await self._recorder.record_sale(sale)

        logger.info(f"Checkout complete: bill {bill.bill_number} for {settlement.grand_total}")
        self.reset()
        return bill
