import logging

import httpx

from examdesk.core.config import settings

logger = logging.getLogger(__name__)

OTP_MESSAGE = "Your verification code: {code}\nValid for {minutes} minutes."


async def send_sms(phone: str, message: str) -> bool:
    """
    Hand a message to the configured SMS gateway.
    Delivery problems are logged and reported as False, never raised.
    """
    if not settings.SMS_GATEWAY_URL:
        logger.warning("SMS_GATEWAY_URL is not set, skipping SMS delivery")
        return False

    payload = {"to": phone, "message": message}
    if settings.SMS_SENDER:
        payload["sender"] = settings.SMS_SENDER
    headers = {"Authorization": f"Bearer {settings.SMS_API_KEY}"} if settings.SMS_API_KEY else {}

    try:
        async with httpx.AsyncClient(timeout=settings.SMS_TIMEOUT_SECONDS) as client:
            response = await client.post(settings.SMS_GATEWAY_URL, json=payload, headers=headers)
            response.raise_for_status()
        return True
    except httpx.HTTPError as e:
        logger.error(f"Error sending SMS: {str(e)}")
        return False


async def send_otp_sms(phone: str, code: str) -> bool:
    message = OTP_MESSAGE.format(code=code, minutes=settings.OTP_TTL_MINUTES)
    return await send_sms(phone, message)
