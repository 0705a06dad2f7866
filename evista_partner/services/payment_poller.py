"""
Payment Polling
Runs as two asyncio tasks once a payment (VA number or QRIS code) exists:

* a poller that asks the backend for the payment status on a progressive
  schedule: polls 1-3 wait 5s, 4-6 wait 10s, 7-9 wait 20s, then every 30s;
* a 1-second countdown to the payment's expires_at.

Whichever reaches a terminal outcome first wins; the other is cancelled. A
request error never stops the poller, the next poll is simply scheduled.
"""
import asyncio
import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from evista_partner.models.payment import PaymentOutcome
from evista_partner.utils.helpers import now_local, to_local

logger = logging.getLogger(__name__)

SUCCESS_DELAY_SECONDS = 1
COUNTDOWN_TICK_SECONDS = 1

SUCCESS_STATUSES = {"paid", "success", "settlement", "settled"}
EXPIRED_STATUSES = {"expired", "expire"}
FAILED_STATUSES = {"failed", "failure", "cancelled", "canceled", "cancel", "deny"}


def poll_delay(poll_number: int) -> int:
    """Seconds to wait before the n-th poll (1-based)"""
    if poll_number <= 3:
        return 5
    if poll_number <= 6:
        return 10
    if poll_number <= 9:
        return 20
    return 30


def extract_status(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    for source in (data if isinstance(data, dict) else {}, payload):
        for key in ("status", "payment_status", "transaction_status"):
            value = source.get(key)
            if isinstance(value, str) and value:
                return value.strip().lower()
    return None


def classify_status(payload: Any) -> Optional[PaymentOutcome]:
    """Terminal outcome for a payment-detail response, None while still pending"""
    status = extract_status(payload)
    if status in SUCCESS_STATUSES:
        return PaymentOutcome.SUCCESS
    if status in EXPIRED_STATUSES:
        return PaymentOutcome.EXPIRED
    if status in FAILED_STATUSES:
        # Cancelled is reported as failed
        return PaymentOutcome.FAILED
    return None


class PaymentWatch:
    """Cancellable handle owning the poll task and the expiry countdown"""

    def __init__(
        self,
        fetch_status: Callable[[], Awaitable[Any]],
        on_outcome: Callable[[PaymentOutcome], Any],
        expires_at: Optional[datetime] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        tick: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_local,
    ):
        self.fetch_status = fetch_status
        self.on_outcome = on_outcome
        self.expires_at = to_local(expires_at) if expires_at else None
        self.sleep = sleep
        self.tick = tick
        self.clock = clock

        self.poll_count = 0
        self.outcome: Optional[PaymentOutcome] = None
        self._cancelled = False
        self._tasks: list = []
        self._done: Optional[asyncio.Future] = None

    @property
    def active(self) -> bool:
        return self.outcome is None and not self._cancelled

    def remaining_seconds(self) -> Optional[int]:
        if self.expires_at is None:
            return None
        return max(0, int((self.expires_at - self.clock()).total_seconds()))

    def start(self) -> "PaymentWatch":
        loop = asyncio.get_running_loop()
        self._done = loop.create_future()
        self._tasks.append(asyncio.create_task(self._poll_loop(), name="payment-poll"))
        if self.expires_at is not None:
            self._tasks.append(asyncio.create_task(self._countdown_loop(), name="payment-countdown"))
        logger.info("💳 Payment watch started (expires_at=%s)", self.expires_at)
        return self

    async def wait(self) -> Optional[PaymentOutcome]:
        """Outcome once reached; None when cancelled first"""
        if self._done is None:
            return self.outcome
        return await self._done

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._stop_tasks()
        if self._done is not None and not self._done.done():
            self._done.set_result(None)
        logger.info("🛑 Payment watch cancelled after %d poll(s)", self.poll_count)

    def _stop_tasks(self) -> None:
        current = asyncio.current_task()
        for task in self._tasks:
            # Never cancel the task that is running the outcome callback
            if task is not current and not task.done():
                task.cancel()

    async def _finish(self, outcome: PaymentOutcome) -> None:
        if not self.active:
            return
        self.outcome = outcome
        self._stop_tasks()
        logger.info("💳 Payment outcome: %s", outcome.value)
        if self._done is not None and not self._done.done():
            self._done.set_result(outcome)
        result = self.on_outcome(outcome)
        if inspect.isawaitable(result):
            await result

    async def _poll_loop(self) -> None:
        while self.active:
            self.poll_count += 1
            await self.sleep(poll_delay(self.poll_count))
            if not self.active:
                return
            try:
                payload = await self.fetch_status()
            except Exception as exc:
                logger.warning("⚠️  Payment status poll #%d failed: %s", self.poll_count, exc)
                continue

            outcome = classify_status(payload)
            if outcome is None:
                continue
            if outcome is PaymentOutcome.SUCCESS:
                await self.sleep(SUCCESS_DELAY_SECONDS)
            await self._finish(outcome)
            return

    async def _countdown_loop(self) -> None:
        while self.active:
            if self.remaining_seconds() <= 0:
                await self._finish(PaymentOutcome.EXPIRED)
                return
            await self.tick(COUNTDOWN_TICK_SECONDS)
