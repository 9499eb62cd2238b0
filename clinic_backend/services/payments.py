"""Online payment for appointments.

Orders are created with a Razorpay-compatible processor. The processor owns
idempotency of order creation, so retrying either call never double-charges.
An appointment is only ever marked paid after the processor itself reports
the order as ``paid``; any failure to reach it leaves the appointment unpaid.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.core import config
from clinic_backend.scheduling import lifecycle
from clinic_backend.scheduling.lifecycle import AppointmentState
from clinic_backend.services.cancellation import get_appointment
from clinic_backend.services.errors import (
    AuthorizationError,
    ExternalServiceError,
    InvalidStateError,
)

logger = logging.getLogger(__name__)

PAID_ORDER_STATUS = 'paid'


@dataclass(frozen=True)
class PaymentOrder:
    order_ref: str
    amount: int
    currency: str


def compute_signature(order_ref: str, payment_id: str, secret: str) -> str:
    message = f'{order_ref}|{payment_id}'.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def signature_matches(order_ref: str, payment_id: str, signature: str, secret: str) -> bool:
    if not (order_ref and payment_id and signature and secret):
        return False
    return hmac.compare_digest(compute_signature(order_ref, payment_id, secret), signature)


class PaymentProcessorClient:
    """Thin client for the processor's order API."""

    def __init__(
        self,
        base_url: str = config.PAYMENT_API_BASE_URL,
        key_id: str = config.PAYMENT_KEY_ID,
        key_secret: str = config.PAYMENT_KEY_SECRET,
        timeout: float = config.PAYMENT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            with httpx.Client(
                base_url=self.base_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self.transport,
            ) as http_client:
                response = http_client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.exception('Payment processor request %s %s failed', method, path)
            raise ExternalServiceError('Payment processor is unreachable. Please try again.') from exc

        if response.is_error:
            logger.error('Payment processor returned %s for %s %s: %s', response.status_code, method, path, response.text)
            raise ExternalServiceError(f'Payment processor returned status {response.status_code}.')

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError('Payment processor returned an unreadable response.') from exc

    def create_order(self, amount: int, currency: str, receipt: str) -> dict:
        return self._request('POST', '/orders', json={'amount': amount, 'currency': currency, 'receipt': receipt})

    def fetch_order(self, order_ref: str) -> dict:
        return self._request('GET', f'/orders/{order_ref}')


class PaymentGate:
    def __init__(
        self,
        db: Session,
        client: PaymentProcessorClient,
        currency: str | None = None,
        key_secret: str | None = None,
    ):
        self.db = db
        self.client = client
        self.currency = currency or config.PAYMENT_CURRENCY
        self.key_secret = key_secret if key_secret is not None else config.PAYMENT_KEY_SECRET

    def create_order(self, appointment_id: int, actor: Actor) -> PaymentOrder:
        appointment = get_appointment(self.db, appointment_id)

        if actor.role is not ActorRole.PATIENT or appointment.patient_id != actor.subject:
            raise AuthorizationError('Only the patient who booked this appointment can pay for it.')
        if lifecycle.state_of(appointment) is not AppointmentState.BOOKED:
            raise InvalidStateError(f'Appointment is {lifecycle.state_of(appointment).value} and cannot be paid for.')
        if appointment.paid:
            raise InvalidStateError('Appointment has already been paid for.')

        # Processor amounts are in the smallest currency unit.
        amount = appointment.amount * 100
        order = self.client.create_order(amount=amount, currency=self.currency, receipt=str(appointment.id))

        order_ref = order.get('id')
        if not order_ref:
            raise ExternalServiceError('Payment processor did not return an order id.')

        appointment.payment_order_id = order_ref
        self.db.commit()

        logger.info('Created payment order %s for appointment %s', order_ref, appointment.id)
        return PaymentOrder(order_ref=order_ref, amount=order.get('amount', amount), currency=order.get('currency', self.currency))

    def verify_and_mark(self, order_ref: str, payment_id: str, signature: str, actor: Actor | None = None) -> bool:
        """Mark the order's appointment paid once the processor confirms it.

        Returns ``False`` when the signature does not check out or the order
        is not paid yet. Processor failures raise :class:`ExternalServiceError`
        and leave the appointment untouched. When ``actor`` is given it must
        be the patient who booked the appointment.
        """
        if not signature_matches(order_ref, payment_id, signature, self.key_secret):
            logger.warning('Rejected payment confirmation for order %s: bad signature', order_ref)
            return False

        order = self.client.fetch_order(order_ref)
        if order.get('status') != PAID_ORDER_STATUS:
            logger.info('Order %s is %s, not marking paid', order_ref, order.get('status'))
            return False

        receipt = str(order.get('receipt') or '')
        if not receipt.isdigit():
            raise ExternalServiceError(f'Order {order_ref} does not reference an appointment.')

        appointment = get_appointment(self.db, int(receipt))
        if actor is not None and (actor.role is not ActorRole.PATIENT or appointment.patient_id != actor.subject):
            raise AuthorizationError('Only the patient who booked this appointment can confirm its payment.')

        if lifecycle.mark_paid(self.db, appointment, order_ref):
            self.db.commit()
            logger.info('Appointment %s paid via order %s', appointment.id, order_ref)

        return True
