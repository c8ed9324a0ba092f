import re
import time
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from fastapi import Response
from flobotz.core.logging import get_logger

logger = get_logger("monitoring")

REGISTRY = CollectorRegistry()

# HTTP Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    registry=REGISTRY
)

# Application Metrics
total_users = Gauge(
    'total_users',
    'Total number of users in the system',
    registry=REGISTRY
)

total_chats = Gauge(
    'total_chats',
    'Total number of chats in the system',
    registry=REGISTRY
)

total_messages = Gauge(
    'total_messages',
    'Total number of messages in the system',
    registry=REGISTRY
)

llm_requests_total = Counter(
    'llm_requests_total',
    'Total requests to the assistant provider',
    ['kind', 'status'],
    registry=REGISTRY
)

llm_request_duration_seconds = Histogram(
    'llm_request_duration_seconds',
    'Assistant provider request duration in seconds',
    ['kind'],
    registry=REGISTRY
)

stream_fragments_total = Counter(
    'chat_stream_fragments_total',
    'Text fragments relayed to clients',
    registry=REGISTRY
)

webhook_deliveries_total = Counter(
    'webhook_deliveries_total',
    'Webhook notifications by outcome',
    ['status'],
    registry=REGISTRY
)

# Database Metrics
database_connections = Gauge(
    'database_connections_active',
    'Active database connections',
    registry=REGISTRY
)

database_queries_total = Counter(
    'database_queries_total',
    'Total database operations',
    ['operation'],
    registry=REGISTRY
)

database_errors_total = Counter(
    'database_errors_total',
    'Failed database operations',
    ['operation'],
    registry=REGISTRY
)

database_query_duration_seconds = Histogram(
    'database_query_duration_seconds',
    'Database operation duration in seconds',
    ['operation'],
    registry=REGISTRY
)

# Authentication Metrics
auth_attempts_total = Counter(
    'auth_attempts_total',
    'Total authentication attempts',
    ['status'],
    registry=REGISTRY
)

# Error Metrics
errors_total = Counter(
    'errors_total',
    'Total application errors',
    ['error_type', 'endpoint'],
    registry=REGISTRY
)

# Health check metrics
health_check_status = Gauge(
    'health_check_status',
    'Health check status (1 = healthy, 0 = unhealthy)',
    ['service'],
    registry=REGISTRY
)

_UUID_SEGMENT = re.compile(r'/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}')


class MetricsMiddleware:
    """Middleware to collect HTTP metrics"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        path = scope["path"]

        if path == "/metrics":
            await self.app(scope, receive, send)
            return

        normalized_path = normalize_path(path)

        start_time = time.time()
        http_requests_in_progress.inc()

        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            errors_total.labels(
                error_type=type(e).__name__,
                endpoint=normalized_path
            ).inc()
            logger.error("Request error", path=path, error=str(e))
            raise
        finally:
            duration = time.time() - start_time
            http_requests_in_progress.dec()

            http_requests_total.labels(
                method=method,
                endpoint=normalized_path,
                status_code=status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=normalized_path
            ).observe(duration)


def normalize_path(path: str) -> str:
    """Collapse chat/message ids so metric label cardinality stays bounded"""
    path = _UUID_SEGMENT.sub('/{id}', path)
    path = re.sub(r'/chat/[^/]+/(messages|visibility)', r'/chat/{id}/\1', path)
    path = re.sub(r'/chat/messages/[^/]+/trailing', '/chat/messages/{id}/trailing', path)
    return path


def record_llm_request(kind: str, duration: float, success: bool = True):
    """Record assistant provider request metrics"""
    status = "success" if success else "error"
    llm_requests_total.labels(kind=kind, status=status).inc()
    llm_request_duration_seconds.labels(kind=kind).observe(duration)


def record_stream_fragment():
    stream_fragments_total.inc()


def record_webhook_delivery(status: str):
    """Record webhook outcome: delivered, rejected, failed or skipped"""
    webhook_deliveries_total.labels(status=status).inc()


def record_auth_attempt(success: bool = True):
    """Record authentication attempt"""
    status = "success" if success else "failure"
    auth_attempts_total.labels(status=status).inc()


def record_database_operation(operation: str, duration: float, success: bool = True):
    """Record database operation metrics"""
    database_queries_total.labels(operation=operation).inc()
    database_query_duration_seconds.labels(operation=operation).observe(duration)
    if not success:
        database_errors_total.labels(operation=operation).inc()


def update_application_metrics(user_count: int, chat_count: int, message_count: int):
    """Update application-level metrics"""
    total_users.set(user_count)
    total_chats.set(chat_count)
    total_messages.set(message_count)


def update_health_status(service: str, is_healthy: bool):
    """Update health status for a service"""
    health_check_status.labels(service=service).set(1 if is_healthy else 0)


async def get_metrics() -> Response:
    """Endpoint to expose Prometheus metrics"""
    try:
        metrics_data = generate_latest(REGISTRY)
        return Response(
            content=metrics_data,
            media_type=CONTENT_TYPE_LATEST
        )
    except Exception as e:
        logger.error("Failed to generate metrics", error=str(e))
        return Response(
            content="Error generating metrics",
            status_code=500
        )


class DatabaseMetricsCollector:
    """Collect database-related metrics"""

    @staticmethod
    async def collect_from_db(db_session):
        """Collect row counts into the application gauges"""
        try:
            from flobotz.models import User, Chat, Message

            user_count = db_session.query(User).count()
            chat_count = db_session.query(Chat).count()
            message_count = db_session.query(Message).count()

            update_application_metrics(user_count, chat_count, message_count)
            return {"users": user_count, "chats": chat_count, "messages": message_count}

        except Exception as e:
            logger.error("Failed to collect database metrics", error=str(e))
            return None
