"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest

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

cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['namespace'],
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['namespace'],
    registry=registry
)

quotes_calculated = Counter(
    'quotes_calculated_total',
    'Total quote calculations by outcome',
    ['outcome'],
    registry=registry
)

quote_duration = Histogram(
    'quote_calculation_duration_seconds',
    'Quote calculation duration in seconds, including upstream calls',
    registry=registry
)

availability_requests = Counter(
    'availability_requests_total',
    'Total availability lookups against the PMS',
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
    return generate_latest(registry).decode('utf-8')
