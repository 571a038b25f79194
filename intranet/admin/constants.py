from intranet.common.logging_setup import get_logger

logger = get_logger("arl.admin")

ACTIVITY_PAGE_LIMIT = 50
