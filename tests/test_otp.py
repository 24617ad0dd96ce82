import pytest

from services import otp as otp_service
from utils.exceptions import RateLimitError, ValidationError

MOBILE = "9876543210"


def _current_code(cache):
    return cache.get(f"otp:{MOBILE}")


def test_correct_code_clears_state(cache):
    result = otp_service.send_otp(cache, MOBILE)
    assert result["success"] is True
    code = _current_code(cache)
    assert code.isdigit() and len(code) == 6
    assert cache.ttl(f"otp:{MOBILE}") == otp_service.OTP_EXPIRY_SECONDS

    assert otp_service.verify_otp(cache, MOBILE, code) is True
    assert _current_code(cache) is None
    assert cache.get(f"otp_attempts:{MOBILE}") is None

    # one-time use
    with pytest.raises(ValidationError):
        otp_service.verify_otp(cache, MOBILE, code)


def test_resend_window(cache):
    otp_service.send_otp(cache, MOBILE)
    cache.advance(60)
    with pytest.raises(RateLimitError):
        otp_service.send_otp(cache, MOBILE)

    cache.advance(61)
    otp_service.send_otp(cache, MOBILE)
    assert cache.ttl(f"otp:{MOBILE}") == otp_service.OTP_EXPIRY_SECONDS


def test_expired_code(cache):
    otp_service.send_otp(cache, MOBILE)
    code = _current_code(cache)
    cache.advance(otp_service.OTP_EXPIRY_SECONDS + 1)
    with pytest.raises(ValidationError) as exc:
        otp_service.verify_otp(cache, MOBILE, code)
    assert "expired" in exc.value.message


def test_lockout_after_five_failures_even_with_correct_code(cache):
    otp_service.send_otp(cache, MOBILE)
    code = _current_code(cache)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(5):
        with pytest.raises(ValidationError) as exc:
            otp_service.verify_otp(cache, MOBILE, wrong)
        assert exc.value.message == "Invalid OTP"

    with pytest.raises(RateLimitError):
        otp_service.verify_otp(cache, MOBILE, code)
    assert _current_code(cache) is None

    # requesting a fresh code does not bypass the lockout
    with pytest.raises(RateLimitError):
        otp_service.send_otp(cache, MOBILE)

    cache.advance(otp_service.LOCKOUT_SECONDS + 1)
    otp_service.send_otp(cache, MOBILE)
    assert otp_service.verify_otp(cache, MOBILE, _current_code(cache)) is True


def test_new_code_gets_fresh_attempt_budget(cache):
    otp_service.send_otp(cache, MOBILE)
    wrong = "000000"

    for _ in range(4):
        with pytest.raises(ValidationError):
            otp_service.verify_otp(cache, MOBILE, wrong)

    cache.advance(otp_service.OTP_RESEND_INTERVAL_SECONDS + 1)
    otp_service.send_otp(cache, MOBILE)
    assert cache.get(f"otp_attempts:{MOBILE}") is None

    with pytest.raises(ValidationError):
        otp_service.verify_otp(cache, MOBILE, wrong)
    assert otp_service.verify_otp(cache, MOBILE, _current_code(cache)) is True


def test_correct_code_before_fifth_failure_succeeds(cache):
    otp_service.send_otp(cache, MOBILE)
    code = _current_code(cache)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(4):
        with pytest.raises(ValidationError):
            otp_service.verify_otp(cache, MOBILE, wrong)

    assert otp_service.verify_otp(cache, MOBILE, code) is True
    assert cache.get(f"otp_attempts:{MOBILE}") is None
