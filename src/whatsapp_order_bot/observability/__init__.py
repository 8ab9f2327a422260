"""OpenTelemetry instrumentation and observability utilities."""

from whatsapp_order_bot.observability.config import configure_logging, setup_observability
from whatsapp_order_bot.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
