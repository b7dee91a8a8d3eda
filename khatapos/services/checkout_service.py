"""
Checkout session - one terminal's cart, payment inputs and commit protocol.

Cart, settlement and guard logic live in pure services; this class only owns
the explicit state they operate on and the single asynchronous boundary, the
sale commit, which is serialized per session: while a commit is in flight any
further confirmation (or cart edit) is rejected with CommitInProgress.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from khatapos.models import Cart, Customer, LineIdentity, PaymentMode, SettlementResult, WALK_IN_CUSTOMER, \
    DEFAULT_CREDIT_LIMIT, DEFAULT_REORDER_LEVEL, normalize_payment_mode
from khatapos.exceptions import BusinessLogicError, NotFoundError, PosError, CommitInProgress, CreditLimitExceeded
from khatapos.services import cart_service, credit_guard_service, ledger_service, sale_commit_service
from khatapos.services.barcode_service import ScanOutcome, resolve_scan
from khatapos.services.catalog_service import fetch_snapshot, fetch_customers, find_customer, with_walk_in
from khatapos.services.pos_api_client import PosApiClient
from khatapos.services.settlement_service import settle_for_customer, resolve_payment_mode
from khatapos.services.stock_snapshot_service import StockSnapshot, EMPTY_SNAPSHOT
from khatapos.utils.number_format import parse_amount

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class CommitReceipt:
    """What the operator sees after a committed sale."""
    sale_id: Optional[str]
    settlement: SettlementResult
    customer: Customer
    forced: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sale_id': self.sale_id,
            'settlement': self.settlement.to_dict(),
            'customer': self.customer.to_dict(),
            'forced': self.forced,
            'warnings': list(self.warnings),
        }


class CheckoutSession:
    """State of a single till; one logical operator per session."""

    def __init__(
        self,
        terminal_id: str,
        client: PosApiClient,
        default_reorder_level: int = DEFAULT_REORDER_LEVEL,
        default_credit_limit: Decimal = DEFAULT_CREDIT_LIMIT,
    ):
        self.terminal_id = terminal_id
        self.client = client
        self.default_reorder_level = default_reorder_level
        self.default_credit_limit = default_credit_limit

        self.snapshot: StockSnapshot = EMPTY_SNAPSHOT
        self.customers: List[Customer] = with_walk_in([])
        self.cart: Cart = cart_service.empty_cart()
        self.customer: Customer = WALK_IN_CUSTOMER
        self.payment_mode: PaymentMode = PaymentMode.CASH_OR_MIXED
        self.amount_tendered: Decimal = ZERO
        self.payment_open = False

        # (customer id, settlement) last blocked by the credit limit; only it may be forced
        self._pending_override: Optional[Tuple[str, SettlementResult]] = None
        self._commit_lock = threading.Lock()

    def __repr__(self):
        return f"<CheckoutSession(terminal={self.terminal_id!r}, lines={len(self.cart)}, total={self.cart.total})>"

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def reload(self) -> StockSnapshot:
        """Replace snapshot and customer list wholesale."""
        snapshot = fetch_snapshot(self.client, self.default_reorder_level)
        customers = fetch_customers(self.client, self.default_credit_limit)
        self.snapshot = snapshot
        self.customers = customers
        # Keep the active customer's balance in step with the fresh list
        self.customer = find_customer(self.customers, self.customer.id)
        self.payment_mode = resolve_payment_mode(self.payment_mode, self.customer)
        return snapshot

    def search(self, term: str = ''):
        return self.snapshot.search(term)

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    @property
    def commit_in_flight(self) -> bool:
        return self._commit_lock.locked()

    def _ensure_idle(self):
        if self.commit_in_flight:
            raise CommitInProgress()

    def add_item(self, item_id, variant_id=None) -> cart_service.AddResult:
        """Add by id; returns Added or NeedsVariantChoice."""
        self._ensure_idle()
        item, variant = self.snapshot.resolve(item_id, variant_id)
        result = cart_service.add_item(self.cart, self.snapshot, item, variant)
        if isinstance(result, cart_service.Added):
            self.cart = result.cart
            logger.info(f"[CHECKOUT] {self.terminal_id}: added {result.line.name} (qty {result.line.quantity})")
        return result

    def add_variant(self, item_id, variant_id) -> cart_service.Added:
        """Second step after NeedsVariantChoice: the operator picked a variant."""
        if variant_id is None:
            raise BusinessLogicError('Select a variant to add.')
        return self.add_item(item_id, variant_id)

    def increment(self, item_id, variant_id=None, delta: int = 1) -> Cart:
        self._ensure_idle()
        self.cart = cart_service.increment(self.cart, self.snapshot, LineIdentity(str(item_id), variant_id), delta)
        return self.cart

    def remove(self, item_id, variant_id=None) -> Cart:
        self._ensure_idle()
        self.cart = cart_service.remove(self.cart, LineIdentity(str(item_id), variant_id))
        return self.cart

    def clear_cart(self) -> Cart:
        """Discard the cart and any payment in progress (cancel sale)."""
        self._ensure_idle()
        self.cart = cart_service.clear(self.cart)
        self.cancel_payment()
        return self.cart

    def scan(self, code: str) -> Tuple[ScanOutcome, cart_service.AddResult]:
        """Feed a decoded barcode into add_item."""
        outcome = resolve_scan(self.snapshot, code)
        if not outcome.found_item:
            raise NotFoundError(f'No item found for code "{outcome.code}".', payload={'code': outcome.code})
        variant_id = outcome.variant.id if outcome.variant is not None else None
        return outcome, self.add_item(outcome.item.id, variant_id)

    # ------------------------------------------------------------------
    # Customer & payment inputs
    # ------------------------------------------------------------------

    def select_customer(self, customer_id: Optional[str]) -> Customer:
        self._ensure_idle()
        customer = find_customer(self.customers, customer_id)
        if customer.id != self.customer.id:
            self._pending_override = None
        self.customer = customer
        self.payment_mode = resolve_payment_mode(self.payment_mode, self.customer)
        return self.customer

    def open_payment(self) -> SettlementResult:
        """Start the payment dialog: full cash tender pre-filled."""
        if self.cart.is_empty:
            raise BusinessLogicError('Cart is empty. Cannot process payment.')
        self.payment_open = True
        self.payment_mode = PaymentMode.CASH_OR_MIXED
        self.amount_tendered = self.cart.total
        return self.preview()

    def set_payment(self, mode=None, amount_tendered=None) -> SettlementResult:
        """
        Update the payment inputs and return the fresh preview.

        Full credit is silently reverted to cash/mixed while Walk-in is active.
        """
        if mode is not None:
            self.payment_mode = resolve_payment_mode(normalize_payment_mode(mode), self.customer)
        if amount_tendered is not None:
            self.amount_tendered = parse_amount(amount_tendered)
        return self.preview()

    def cancel_payment(self):
        """Close the payment dialog; nothing was persisted, nothing to undo."""
        self.payment_open = False
        self.payment_mode = PaymentMode.CASH_OR_MIXED
        self.amount_tendered = ZERO
        self._pending_override = None

    def preview(self) -> SettlementResult:
        return settle_for_customer(self.cart.total, self.payment_mode, self.amount_tendered, self.customer)

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    def confirm(self, force_override: bool = False) -> CommitReceipt:
        """
        Evaluate the settlement and commit the sale.

        force_override only applies to the exact settlement that was last
        blocked by the credit limit; if the inputs changed since, the new
        settlement is evaluated from scratch.

        Raises:
            BusinessLogicError: empty cart
            CommitInProgress: another confirmation is already committing
            ValidationError: Walk-in with credit, negative tender
            CreditLimitExceeded: recoverable; resubmit with force_override=True
            CommitFailure: backend failure, cart and inputs preserved
        """
        if not self._commit_lock.acquire(blocking=False):
            logger.warning(f"[CHECKOUT] {self.terminal_id}: duplicate confirmation ignored")
            raise CommitInProgress()

        try:
            if self.cart.is_empty:
                raise BusinessLogicError('Cart is empty. Cannot process sale.')

            cart, customer = self.cart, self.customer
            settlement = self.preview()
            forced = bool(force_override) and self._pending_override == (customer.id, settlement)

            decision = credit_guard_service.evaluate(settlement, customer, force_override=forced)
            if decision.recoverable:
                self._pending_override = (customer.id, settlement)
                logger.info(
                    f"[CHECKOUT] {self.terminal_id}: credit limit block for {customer.id} "
                    f"(projected {settlement.resulting_outstanding}, limit {customer.credit_limit})"
                )
            decision.raise_for_rejection()

            try:
                response = sale_commit_service.commit_sale(self.client, cart, settlement, customer, forced)
            except CreditLimitExceeded:
                # Backend re-check: same recoverable path as the local block
                self._pending_override = (customer.id, settlement)
                raise

            sale_id = sale_commit_service.extract_sale_id(response)
            warnings = ledger_service.post_entries(
                self.client, ledger_service.entries_for_sale(settlement, customer, sale_id)
            )
            if forced:
                logger.warning(
                    f"[CHECKOUT] {self.terminal_id}: credit limit overridden for {customer.id}, "
                    f"balance {settlement.resulting_outstanding} > {customer.credit_limit}"
                )

            self.cart = cart_service.clear(cart)
            self.customer = WALK_IN_CUSTOMER
            self.cancel_payment()

            try:
                self.reload()
            except (PosError, ValueError) as e:
                logger.error(f"[CHECKOUT] {self.terminal_id}: snapshot refresh after sale failed: {e}")
                warnings.append('Stock could not be refreshed; reload the catalog.')

            return CommitReceipt(sale_id, settlement, customer, forced, warnings)
        finally:
            self._commit_lock.release()

    # ------------------------------------------------------------------
    # Khata payments
    # ------------------------------------------------------------------

    def record_payment(self, customer_id: str, amount) -> Customer:
        """Record a khata payment and update the local customer list."""
        customer = find_customer(self.customers, customer_id)
        if customer.is_walk_in and str(customer_id) != WALK_IN_CUSTOMER.id:
            raise NotFoundError(f'Customer {customer_id} not found.')

        _, new_outstanding = ledger_service.record_payment(self.client, customer, parse_amount(amount))
        updated = replace(customer, outstanding_credit=new_outstanding)
        self.customers = [updated if c.id == updated.id else c for c in self.customers]
        if self.customer.id == updated.id:
            self.customer = updated
        return updated

    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'terminal_id': self.terminal_id,
            'cart': self.cart.to_dict(),
            'customer': self.customer.to_dict(),
            'payment_open': self.payment_open,
            'payment_mode': self.payment_mode.value,
            'amount_tendered': str(self.amount_tendered),
            'settlement': self.preview().to_dict(),
            'commit_in_flight': self.commit_in_flight,
            'override_pending': self._pending_override is not None,
            'snapshot_fetched_at': self.snapshot.fetched_at.isoformat(),
        }
