from intranet.config.settings import config_settings
from intranet.common.logging_setup import get_logger

logger = get_logger("arl.auth")

SESSION_TTL_SECONDS = config_settings.SESSION_TTL_DAYS * 24 * 3600

COOKIE_NAME = config_settings.SESSION_COOKIE_NAME

SESSION_HEADER_NAME = "X-Session-Token"

OTP_SMS_TEMPLATE = "Your ARL Connect verification code is: {code}. Valid for {minutes} minutes. Do not share this code."
