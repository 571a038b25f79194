from intranet.common.logging_setup import get_logger

logger = get_logger("arl.suggestions")

SUGGESTION_PAGE_LIMIT = 20

MAX_CATEGORY_ID = 2**31 - 1     # INTEGER primary key; larger values never reach the driver
