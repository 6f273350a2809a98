"""Stripe subscriptions and webhook handling."""
import logging
import time
from datetime import datetime, timedelta, timezone

import stripe

from moviestream.models import Subscription, User

logger = logging.getLogger(__name__)

INCOMPLETE = "incomplete"
ACTIVE = "active"
PAYMENT_CHECK_AFTER_SECONDS = 60
DEFAULT_PERIOD = timedelta(days=30)
SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def _as_dict(obj):
    if obj is None:
        return None
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class PaymentProcessor:
    """Stripe calls bound to one secret key, returning plain dicts."""

    def __init__(self, secret_key: str, webhook_secret: str = ""):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def create_customer(self, email, name):
        logger.info("Creating Stripe customer for email: %s, name: %s", email, name)
        return _as_dict(stripe.Customer.create(email=email, name=name, api_key=self.secret_key))

    def create_subscription(self, customer_id, price_id):
        logger.info("Creating subscription for customer %s on price %s", customer_id, price_id)
        return _as_dict(stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": price_id}],
            payment_behavior="default_incomplete",
            payment_settings={"save_default_payment_method": "on_subscription"},
            expand=["latest_invoice.payment_intent"],
            api_key=self.secret_key,
        ))

    def retrieve_subscription(self, subscription_id):
        return _as_dict(stripe.Subscription.retrieve(subscription_id, api_key=self.secret_key))

    def retrieve_invoice(self, invoice_id):
        return _as_dict(stripe.Invoice.retrieve(invoice_id, api_key=self.secret_key))

    def retrieve_payment_intent(self, payment_intent_id):
        return _as_dict(stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.secret_key))

    def construct_event(self, payload, signature):
        return _as_dict(stripe.Webhook.construct_event(payload, signature, self.webhook_secret))


def _id_of(ref):
    # expandable fields come back either as an id string or as the object
    if isinstance(ref, dict):
        return ref.get("id")
    return ref


def _first_item(subscription):
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def plan_id_of(subscription):
    price = _first_item(subscription).get("price") or {}
    return price.get("id") if isinstance(price, dict) else price


def client_secret_of(subscription):
    invoice = subscription.get("latest_invoice")
    if not isinstance(invoice, dict):
        return None
    intent = invoice.get("payment_intent")
    if isinstance(intent, dict) and intent.get("client_secret"):
        return intent["client_secret"]
    confirmation = invoice.get("confirmation_secret") or {}
    return confirmation.get("client_secret")


def _invoice_paid(invoice):
    return bool(invoice.get("paid")) or invoice.get("status") == "paid"


def period_end_of(subscription, default=None):
    raw = subscription.get("current_period_end") or _first_item(subscription).get("current_period_end")
    if raw:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc).replace(tzinfo=None)
    if default is not None:
        return default
    return datetime.now(timezone.utc).replace(tzinfo=None) + DEFAULT_PERIOD


def effective_status(subscription, processor, now=None):
    status = subscription.get("status")
    if status != INCOMPLETE:
        return status

    now_ts = now if now is not None else time.time()
    invoice_ref = subscription.get("latest_invoice")
    invoice = invoice_ref if isinstance(invoice_ref, dict) else None
    try:
        if invoice_ref:
            logger.info("Checking latest invoice for subscription %s", subscription.get("id"))
            invoice = processor.retrieve_invoice(_id_of(invoice_ref))
            if _invoice_paid(invoice):
                logger.info("Invoice is paid, treating subscription %s as active", subscription.get("id"))
                return ACTIVE

        created = subscription.get("created")
        if created and now_ts - int(created) > PAYMENT_CHECK_AFTER_SECONDS:
            intent_ref = invoice.get("payment_intent") if invoice else None
            if intent_ref:
                intent = processor.retrieve_payment_intent(_id_of(intent_ref))
                logger.info("Payment intent status: %s", intent.get("status"))
                if intent.get("status") == "succeeded":
                    return ACTIVE
    except Exception as e:
        logger.warning("Error checking invoice/payment status for %s: %s", subscription.get("id"), e)

    return status


def subscription_state(subscription, status, default_period_end=None):
    return Subscription(
        subscriptionId=subscription.get("id"),
        planId=plan_id_of(subscription),
        status=status,
        currentPeriodEnd=period_end_of(subscription, default_period_end),
    )


def reconcile(subscription, processor, now=None):
    return subscription_state(subscription, effective_status(subscription, processor, now))


def apply_subscription(user, state):
    """Store ``state`` on the user; returns True when anything changed."""
    if user.subscription is not None and user.subscription.as_tuple() == state.as_tuple():
        return False
    user.subscription = state
    user.save()
    return True


def handle_webhook_event(event):
    event_type = event.get("type")
    if event_type not in SUBSCRIPTION_EVENTS:
        if event_type == "payment_intent.succeeded":
            intent = event.get("data", {}).get("object", {})
            logger.info("PaymentIntent for %s was successful!", intent.get("amount"))
        else:
            logger.info("Unhandled event type %s", event_type)
        return None

    subscription = event.get("data", {}).get("object", {})
    user = User.objects(stripeCustomerId=_id_of(subscription.get("customer"))).first()
    if not user:
        logger.warning("No user for Stripe customer %s", subscription.get("customer"))
        return None

    previous = user.subscription
    if event_type == "customer.subscription.deleted":
        if previous is None or previous.subscriptionId != subscription.get("id"):
            logger.info("Ignoring deletion of %s, user %s holds %s",
                        subscription.get("id"), user.email, previous.subscriptionId if previous else None)
            return user
        status = "canceled"
    else:
        status = subscription.get("status")
    # without a processor period end, keep the stored one so replays change nothing
    default_end = None
    if previous is not None and previous.subscriptionId == subscription.get("id"):
        default_end = previous.currentPeriodEnd
    state = subscription_state(subscription, status, default_end)
    changed = apply_subscription(user, state)
    logger.info("User %s subscription %s (%s)", user.email, status, "updated" if changed else "unchanged")
    return user
