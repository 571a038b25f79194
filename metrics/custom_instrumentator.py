from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator, metrics

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5)


def build_instrumentator(health_path: str) -> Instrumentator:
    # one registry per app so repeated create_app() calls don't collide on metric names;
    # the metrics must be registered on it too or /metrics serves an empty page
    registry = CollectorRegistry()
    instrumentator = Instrumentator(
        should_ignore_untemplated=True,      # /suggestions/<uuid> -> /suggestions/{public_id}
        excluded_handlers=["/metrics", health_path],
        should_instrument_requests_inprogress=True,
        should_group_status_codes=False,     # keep 401 vs 429 apart on the otp routes
        registry=registry,
    )
    instrumentator.add(metrics.requests(registry=registry))
    instrumentator.add(metrics.latency(buckets=LATENCY_BUCKETS, registry=registry))
    return instrumentator
