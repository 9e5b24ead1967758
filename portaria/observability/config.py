"""
OpenTelemetry Configuration

Sets up tracing and logging for the Portaria visitor register according to
the deployment environment.
"""

import logging
from typing import Optional
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource

from ..config import Settings


def setup_observability(settings: Optional[Settings] = None) -> Optional[TracerProvider]:
    """Initialize logging and, when enabled, the OpenTelemetry tracer provider."""
    settings = settings or Settings.from_env()
    environment = settings.environment

    setup_structured_logging(environment, settings.log_level)

    if not settings.otel_enabled:
        # Spans fall back to the no-op tracer provider
        return None

    # Environment-specific sampling
    if environment == 'production':
        sampler = TraceIdRatioBased(0.1)
    elif environment == 'staging':
        sampler = TraceIdRatioBased(0.5)
    else:
        sampler = TraceIdRatioBased(1.0)

    resource = Resource.create({
        "service.name": settings.service_name,
        "service.version": settings.service_version,
        "deployment.environment": environment
    })

    tracer_provider = TracerProvider(
        sampler=sampler,
        resource=resource
    )

    if environment not in ('production', 'staging'):
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(tracer_provider)
    return tracer_provider


def setup_structured_logging(environment: str, log_level: Optional[str] = None):
    """Configure root logging for the environment."""
    level = {
        'production': logging.WARNING,
        'staging': logging.INFO,
        'development': logging.INFO,
        'test': logging.WARNING
    }.get(environment, logging.INFO)

    if log_level:
        level = getattr(logging, log_level.upper(), level)

    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        handlers=[logging.StreamHandler()]
    )

    if environment == 'production':
        logging.getLogger('pymongo').setLevel(logging.WARNING)

    elif environment == 'development':
        logging.getLogger('portaria.domain').setLevel(logging.DEBUG)
        logging.getLogger('portaria.services').setLevel(logging.DEBUG)
