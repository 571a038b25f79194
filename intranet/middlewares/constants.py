from intranet.common.logging_setup import get_logger

logger = get_logger("arl.middleware")
