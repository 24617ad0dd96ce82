import logging
import secrets

import redis

from utils.exceptions import RateLimitError, ValidationError

logger = logging.getLogger(__name__)

OTP_EXPIRY_SECONDS = 600
# a resend is refused while the current code is younger than this
OTP_RESEND_INTERVAL_SECONDS = 120
MAX_ATTEMPTS = 5
LOCKOUT_SECONDS = 900


def _otp_key(mobile_number: str) -> str:
    return f"otp:{mobile_number}"


def _attempts_key(mobile_number: str) -> str:
    return f"otp_attempts:{mobile_number}"


def generate_otp() -> str:
    return str(secrets.randbelow(900000) + 100000)


def _attempts(cache: redis.Redis, mobile_number: str) -> int:
    return int(cache.get(_attempts_key(mobile_number)) or 0)


def send_otp(cache: redis.Redis, mobile_number: str) -> dict:
    if _attempts(cache, mobile_number) >= MAX_ATTEMPTS:
        raise RateLimitError("Too many failed attempts. Please request a new OTP after 15 minutes.")

    ttl = cache.ttl(_otp_key(mobile_number))
    if ttl and ttl > OTP_EXPIRY_SECONDS - OTP_RESEND_INTERVAL_SECONDS:
        raise RateLimitError("Please wait before requesting a new OTP")

    otp = generate_otp()
    cache.setex(_otp_key(mobile_number), OTP_EXPIRY_SECONDS, otp)
    # the attempt budget is per code; a locked number never reaches this point
    cache.delete(_attempts_key(mobile_number))
    # no SMS gateway wired in; the code goes to the application log
    logger.info("OTP for %s: %s", mobile_number, otp)
    return {"success": True, "message": "OTP sent successfully"}


def verify_otp(cache: redis.Redis, mobile_number: str, otp: str) -> bool:
    otp_key = _otp_key(mobile_number)
    attempts_key = _attempts_key(mobile_number)

    if _attempts(cache, mobile_number) >= MAX_ATTEMPTS:
        cache.delete(otp_key)
        cache.setex(attempts_key, LOCKOUT_SECONDS, MAX_ATTEMPTS)
        raise RateLimitError("Too many failed attempts. Please request a new OTP after 15 minutes.")

    stored = cache.get(otp_key)
    if stored is None:
        raise ValidationError("OTP has expired or does not exist. Please request a new OTP.")

    if stored != otp:
        attempts = cache.incr(attempts_key)
        cache.expire(attempts_key, LOCKOUT_SECONDS)
        logger.warning("Invalid OTP for %s (attempt %s)", mobile_number, attempts)
        raise ValidationError("Invalid OTP")

    cache.delete(otp_key, attempts_key)
    return True
