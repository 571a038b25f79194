import json
import logging
from intranet.common.constants import request_id_ctx
from intranet.common.logging_setup import JSONFormatter, SecurityFilter, mask_phone, sanitize_message_text


def make_record(msg, **extra):
    record = logging.LogRecord("arl.test", logging.INFO, __file__, 10, msg, (), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_sanitize_redacts_secret_values():
    out = sanitize_message_text('sending otp=483920 with {"session_token": "abc.def"}')
    assert "483920" not in out
    assert "abc.def" not in out
    assert out.count("[REDACTED]") == 2


def test_sanitize_leaves_plain_messages_alone():
    assert sanitize_message_text("suggestion.submitted") == "suggestion.submitted"


def test_mask_phone_keeps_prefix_and_last_digits():
    assert mask_phone("233241234567") == "2332******67"
    assert mask_phone("12345") == "*****"


def test_json_formatter_masks_phone_and_shortens_public_ids():
    token = request_id_ctx.set("req-1")
    try:
        line = JSONFormatter().format(make_record(
            "otp.request.issued", phone="233241234567",
            admin_public_id="0190f5f2-1c2d-7abc-8def-1234567890ab"))
    finally:
        request_id_ctx.reset(token)

    data = json.loads(line)
    assert data["message"] == "otp.request.issued"
    assert data["phone"] == "2332******67"
    assert data["admin_public_id"] == "0190f5f2...90ab"
    assert data["request_id"] == "req-1"


def test_security_filter_rewrites_record_message():
    record = logging.LogRecord("arl.test", logging.INFO, __file__, 10, "token=%s", ("s3cr3t",), None)
    assert SecurityFilter().filter(record)
    assert record.getMessage() == "token=[REDACTED]"
