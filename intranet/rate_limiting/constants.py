DEFAULT_LIMIT = 20         # default requests
DEFAULT_WINDOW = 60         # seconds
RATE_LIMIT_PREFIX = "rl"    # redis key prefix for per-route throttling
SUGGESTION_RL_PREFIX = "sg:rl"
FAIL_OPEN = True            # per-route throttling only; if redis is unavailable, let the request through
