"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

provider_requests = Counter(
    'provider_requests_total',
    'Total upstream provider API calls',
    ['provider', 'method', 'status'],
    registry=registry
)

provider_request_duration = Histogram(
    'provider_request_duration_seconds',
    'Upstream provider API latency in seconds',
    ['provider', 'method'],
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache_key'],
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache_key'],
    registry=registry
)

token_refreshes = Counter(
    'provider_token_refreshes_total',
    'Total bearer token fetches',
    ['provider'],
    registry=registry
)

payment_intents = Counter(
    'payment_intents_total',
    'Total payment intents created or updated',
    ['operation', 'currency'],
    registry=registry
)

bookings = Counter(
    'bookings_total',
    'Total booking confirmation outcomes',
    ['status'],
    registry=registry
)

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total rate limit exceeded events',
    ['client'],
    registry=registry
)

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total webhook delivery attempts',
    ['status', 'retry_count'],
    registry=registry
)

webhook_duration = Histogram(
    'webhook_delivery_duration_seconds',
    'Webhook delivery duration in seconds',
    ['status'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    from prometheus_client import generate_latest
    return generate_latest(registry).decode('utf-8')
