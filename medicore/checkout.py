"""Adapter for the third-party checkout widget.

The widget reports completion through three callbacks assigned as
attributes before ``start_payment`` is called:

- ``on_completed(order_id)``
- ``on_dismissed()``
- ``on_error(error)``

CheckoutAdapter turns that into one awaitable PaymentOutcome, verifies a
completed order with the server and refreshes the session so the new
license status is visible to every subscriber.
"""
import asyncio
from typing import Any, Optional

import pydantic

from medicore.api.payment import PaymentService
from medicore.errors import MediCoreError, PaymentError
from medicore.logging_config import get_logger
from medicore.models import PaymentOutcome, PaymentStatus
from medicore.session_store import SessionStore

logger = get_logger(__name__)


class CheckoutAdapter:
    """Run one license payment through a callback-style widget."""

    def __init__(
        self,
        widget: Any,
        payment: PaymentService,
        store: SessionStore,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the adapter.

        Args:
            widget: Checkout widget exposing start_payment() and callbacks
            payment: Payment API wrapper
            store: Session store refreshed after a verified payment
            timeout: Seconds to wait for the widget (None: no limit)
        """
        self.widget = widget
        self.payment = payment
        self.store = store
        self.timeout = timeout

    async def pay(self) -> PaymentOutcome:
        """
        Start a payment and wait for the widget's outcome.

        Returns:
            PaymentOutcome (success, cancelled or error)

        Raises:
            PaymentError: Paid, but the server could not verify the order
            MediCoreError: Payment could not be initiated
            asyncio.TimeoutError: The widget never reported back
        """
        loop = asyncio.get_running_loop()
        outcome_future: asyncio.Future = loop.create_future()

        payload = await asyncio.to_thread(self.payment.initiate)

        def resolve(outcome: PaymentOutcome):
            # First callback wins; widgets may fire more than one
            if not outcome_future.done():
                outcome_future.set_result(outcome)

        def report(outcome: PaymentOutcome):
            loop.call_soon_threadsafe(resolve, outcome)

        self.widget.on_completed = lambda order_id: report(
            PaymentOutcome(status=PaymentStatus.SUCCESS, order_id=str(order_id))
        )
        self.widget.on_dismissed = lambda: report(
            PaymentOutcome(status=PaymentStatus.CANCELLED)
        )
        self.widget.on_error = lambda error: report(
            PaymentOutcome(status=PaymentStatus.ERROR, error=str(error))
        )

        self.widget.start_payment({**payload, "return_url": None, "cancel_url": None})

        try:
            outcome = await asyncio.wait_for(outcome_future, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("checkout_timed_out", timeout=self.timeout)
            raise
        finally:
            self._detach()

        logger.info("checkout_finished", status=outcome.status.value, order_id=outcome.order_id)

        if outcome.status == PaymentStatus.SUCCESS:
            try:
                await asyncio.to_thread(self.payment.verify, outcome.order_id)
            except MediCoreError as e:
                logger.error("payment_verification_failed", order_id=outcome.order_id, error=str(e))
                raise PaymentError(
                    "Payment successful but failed to update status. Please contact support."
                ) from e
            try:
                await asyncio.to_thread(self.store.refresh_identity)
            except (MediCoreError, pydantic.ValidationError) as e:
                logger.warning("identity_refresh_after_payment_failed", error=str(e))

        return outcome

    def _detach(self):
        """Stop listening to the widget; late callbacks are logged and dropped."""
        def late(*args):
            logger.info("checkout_callback_after_finish", args=[str(a) for a in args])

        self.widget.on_completed = late
        self.widget.on_dismissed = late
        self.widget.on_error = late
