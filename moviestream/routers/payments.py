import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from moviestream import billing
from moviestream.auth import get_current_user
from moviestream.errors import ApiError, bad_request, upstream_failure
from moviestream.models import User
from moviestream.schemas import ConfirmSubscriptionRequest, CreateSubscriptionRequest
from moviestream.utils.serializers import serialize_subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


def get_processor(request: Request) -> billing.PaymentProcessor:
    processor = getattr(request.app.state, "processor", None)
    if processor is None:
        raise ApiError(500, "PAYMENT_NOT_CONFIGURED", "Payments are not configured")
    return processor


@router.post("/create-subscription")
def create_subscription(
    payload: CreateSubscriptionRequest,
    user: User = Depends(get_current_user),
    processor: billing.PaymentProcessor = Depends(get_processor),
):
    try:
        if not user.stripeCustomerId:
            customer = processor.create_customer(user.email, user.username)
            user.stripeCustomerId = customer["id"]
            user.save()
        subscription = processor.create_subscription(user.stripeCustomerId, payload.priceId)
    except Exception as e:
        raise upstream_failure("Failed to create subscription", "PAYMENT_ERROR", e)

    return {
        "success": True,
        "clientSecret": billing.client_secret_of(subscription),
        "subscriptionId": subscription.get("id"),
        "customerId": user.stripeCustomerId,
    }


@router.post("/confirm-subscription")
def confirm_subscription(
    payload: ConfirmSubscriptionRequest,
    user: User = Depends(get_current_user),
    processor: billing.PaymentProcessor = Depends(get_processor),
):
    logger.info("Confirming subscription %s for user %s", payload.subscriptionId, user.id)
    try:
        subscription = processor.retrieve_subscription(payload.subscriptionId)
    except Exception as e:
        raise upstream_failure("Failed to confirm subscription", "PAYMENT_ERROR", e)

    state = billing.reconcile(subscription, processor)
    logger.info("Final subscription status: %s", state.status)
    billing.apply_subscription(user, state)
    return {"success": True, "subscription": serialize_subscription(state)}


@router.get("/subscription-status")
def subscription_status(
    user: User = Depends(get_current_user),
    processor: billing.PaymentProcessor = Depends(get_processor),
):
    if not user.subscription or not user.subscription.subscriptionId:
        return {"success": True, "status": "inactive", "subscription": None}

    try:
        subscription = processor.retrieve_subscription(user.subscription.subscriptionId)
    except Exception as e:
        raise upstream_failure("Failed to get subscription status", "PAYMENT_ERROR", e)

    state = billing.subscription_state(subscription, subscription.get("status"), user.subscription.currentPeriodEnd)
    data = serialize_subscription(state)
    data["id"] = data.pop("subscriptionId")
    return {"success": True, "status": state.status, "subscription": data}


@router.post("/webhook")
async def stripe_webhook(request: Request, processor: billing.PaymentProcessor = Depends(get_processor)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature", "")
    if not signature:
        raise bad_request("Missing Stripe signature", "INVALID_SIGNATURE")
    try:
        event = processor.construct_event(payload, signature)
    except Exception as e:
        logger.warning("Webhook signature check failed: %s", e)
        raise ApiError(400, "INVALID_SIGNATURE", "Webhook Error: invalid payload or signature", detail=str(e))

    await run_in_threadpool(billing.handle_webhook_event, event)
    return {"received": True}
