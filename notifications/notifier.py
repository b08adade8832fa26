"""Gated, concurrent email delivery."""

import asyncio
import logging
from typing import Optional, Protocol

from .alert_settings import RecipientClass
from .delivery import DeliveryReport, EmailMessage
from .exceptions import NotificationError
from .gate import NotificationGate

logger = logging.getLogger(__name__)


class EmailTransport(Protocol):
    """Anything that can send one email, like :class:`EmailService`."""

    def send_email(self, to_email: str, subject: str, html_body: str,
                   text_body: Optional[str] = None) -> bool: ...


def _unique_recipients(recipients: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for recipient in recipients:
        address = (recipient or "").strip()
        if address:
            seen.setdefault(address, None)
    return list(seen)


class Notifier:
    """Sends one alert to a recipient class through the gate.

    The gate is consulted once per call. Each recipient gets an independent
    send on a worker thread, bounded by ``send_timeout`` seconds and by
    ``max_concurrency`` in-flight sends. Delivery problems are counted in
    the returned report and never raised.
    """

    def __init__(
        self,
        gate: NotificationGate,
        transport: EmailTransport | None,
        send_timeout: float = 30.0,
        max_concurrency: int = 5,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.gate = gate
        self.transport = transport
        self.send_timeout = send_timeout
        self.max_concurrency = max_concurrency

    async def notify(
        self,
        alert_type: str,
        recipient_class: RecipientClass,
        recipients: list[str],
        message: EmailMessage,
    ) -> DeliveryReport:
        addresses = _unique_recipients(recipients)
        if not addresses:
            return DeliveryReport()

        decision = self.gate.evaluate(
            alert_type, recipient_class, addresses, message.subject
        )
        if not decision.send:
            reasons = [decision.reason] if decision.reason else []
            if decision.testing_mode:
                return DeliveryReport(testing_mode=len(addresses), reasons=reasons)
            return DeliveryReport(skipped=len(addresses), reasons=reasons)

        if self.transport is None:
            logger.warning(
                f"Email service not configured, {alert_type} not sent to {addresses}"
            )
            self.gate.record(
                alert_type, recipient_class, addresses, message.subject,
                sent=False, reason="Email service not configured",
            )
            return DeliveryReport(
                attempted=len(addresses),
                failed=len(addresses),
                reasons=["Email service not configured"],
            )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(
                self._send_one(semaphore, alert_type, address, message)
                for address in addresses
            )
        )

        delivered = [a for a, ok in zip(addresses, outcomes) if ok]
        failed = [a for a, ok in zip(addresses, outcomes) if not ok]

        if delivered:
            self.gate.record(
                alert_type, recipient_class, delivered, message.subject, sent=True
            )
        if failed:
            self.gate.record(
                alert_type, recipient_class, failed, message.subject,
                sent=False, reason="Delivery failed",
            )

        return DeliveryReport(
            attempted=len(addresses),
            sent=len(delivered),
            failed=len(failed),
            reasons=[f"Delivery failed for {address}" for address in failed],
        )

    async def _send_one(
        self,
        semaphore: asyncio.Semaphore,
        alert_type: str,
        recipient: str,
        message: EmailMessage,
    ) -> bool:
        async with semaphore:
            try:
                await self._deliver(alert_type, recipient, message)
            except NotificationError as e:
                logger.error(str(e))
                return False
            return True

    async def _deliver(
        self, alert_type: str, recipient: str, message: EmailMessage
    ) -> None:
        assert self.transport is not None
        try:
            delivered = await asyncio.wait_for(
                asyncio.to_thread(
                    self.transport.send_email,
                    recipient,
                    message.subject,
                    message.html,
                    message.text,
                ),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError as e:
            raise NotificationError(
                recipient, alert_type, f"timed out after {self.send_timeout}s"
            ) from e
        except Exception as e:
            raise NotificationError(recipient, alert_type, str(e)) from e

        if not delivered:
            raise NotificationError(recipient, alert_type, "transport rejected the message")
