"""OpenTelemetry logging and tracing service for tool call telemetry"""

import logging
from datetime import datetime, timezone

from opentelemetry import trace
from opentelemetry._logs import SeverityNumber, set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from src.config import config

logger = logging.getLogger(__name__)


class TelemetryService:
    """Handle OpenTelemetry logging and tracing for tool calls"""

    def __init__(self):
        self.logging_enabled = config.otel_logging_enabled
        self.tracing_enabled = config.otel_tracing_enabled
        self.logger_provider = None
        self.tracer_provider = None
        self.otel_logger = None

        # Initialize logging if enabled
        if self.logging_enabled:
            try:
                self._initialize_logging()
            except Exception as e:
                logger.warning(f"Failed to initialize OTel logging: {e}. Logging disabled.")
                self.logging_enabled = False

        # Initialize tracing if enabled
        if self.tracing_enabled:
            try:
                self._initialize_tracing()
            except Exception as e:
                logger.warning(f"Failed to initialize OTel tracing: {e}. Tracing disabled.")
                self.tracing_enabled = False

    def _resource(self) -> Resource:
        return Resource(
            attributes={
                SERVICE_NAME: config.otel_service_name,
                SERVICE_VERSION: config.otel_service_version,
            }
        )

    def _initialize_logging(self) -> None:
        """Initialize OpenTelemetry logging with OTLP log exporter"""
        self.logger_provider = LoggerProvider(resource=self._resource())

        log_endpoint = config.otel_endpoint
        if not log_endpoint.endswith("/v1/logs"):
            log_endpoint = f"{log_endpoint.rstrip('/')}/v1/logs"

        log_exporter = OTLPLogExporter(endpoint=log_endpoint)
        self.logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))

        set_logger_provider(self.logger_provider)
        self.otel_logger = self.logger_provider.get_logger(__name__)

        logger.info(f"OpenTelemetry logging initialized with endpoint: {log_endpoint}")

    def _initialize_tracing(self) -> None:
        """Initialize OpenTelemetry tracing with OTLP trace exporter"""
        self.tracer_provider = TracerProvider(resource=self._resource())

        trace_endpoint = config.otel_endpoint
        if not trace_endpoint.endswith("/v1/traces"):
            trace_endpoint = f"{trace_endpoint.rstrip('/')}/v1/traces"

        trace_exporter = OTLPSpanExporter(endpoint=trace_endpoint)
        self.tracer_provider.add_span_processor(BatchSpanProcessor(trace_exporter))

        trace.set_tracer_provider(self.tracer_provider)

        # httpx instrumentation (embedding provider requests) is initialized
        # separately via _ensure_instrumentation_initialized()

        logger.info(f"OpenTelemetry tracing initialized with endpoint: {trace_endpoint}")

    def log_tool_call(
        self,
        tool_name: str,
        category: str,
        operation_type: str,
        duration_ms: float,
        success: bool,
        error: Exception | str | None = None,
    ) -> None:
        """
        Log a tool invocation to OpenTelemetry

        Only low cardinality attributes are recorded; arguments and results are never
        included since they may contain user data.

        Args:
            tool_name: Name of the MCP tool being called
            category: Tool category (mongodb)
            operation_type: Operation type (read, metadata, create, ...)
            duration_ms: Execution time in milliseconds
            success: Whether the call succeeded
            error: The error (or error text) if the call failed
        """
        if not self.logging_enabled or not self.otel_logger:
            return

        try:
            attributes: dict[str, str | int | float | bool] = {
                "mcp.tool.name": tool_name,
                "mcp.tool.category": category,
                "mcp.tool.operation_type": operation_type,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "response.success": success,
                "response.duration_ms": float(duration_ms),
            }

            if error is not None:
                attributes["error.type"] = (
                    type(error).__name__ if isinstance(error, Exception) else "ToolError"
                )
                error_message = str(error)
                if len(error_message) > 500:
                    error_message = error_message[:500] + "..."
                attributes["error.message"] = error_message

            status = "SUCCESS" if success else "FAILED"
            log_body = f"[{tool_name}] {status} time={duration_ms:.1f}ms"
            if error is not None:
                log_body += f" error={attributes['error.type']}"

            severity = logging.INFO if success else logging.ERROR

            self.otel_logger.emit(
                body=log_body,
                severity_number=SeverityNumber(self._severity_to_number(severity)),
                attributes=attributes,
                timestamp=int(datetime.now(timezone.utc).timestamp() * 1e9),
            )

        except Exception as e:
            # Don't let telemetry errors break the application
            logger.warning(f"Failed to log telemetry: {e}")

    def _severity_to_number(self, level: int) -> int:
        """Convert Python logging level to OpenTelemetry severity number"""
        # OpenTelemetry severity numbers: https://opentelemetry.io/docs/specs/otel/logs/data-model/#severity-fields
        if level >= logging.CRITICAL:
            return 21  # FATAL
        elif level >= logging.ERROR:
            return 17  # ERROR
        elif level >= logging.WARNING:
            return 13  # WARN
        elif level >= logging.INFO:
            return 9  # INFO
        else:
            return 5  # DEBUG


# Global telemetry service instance
_telemetry_service: TelemetryService | None = None
# Track if instrumentation has been initialized
_instrumentation_initialized = False


def _ensure_instrumentation_initialized() -> None:
    """Ensure httpx instrumentation is initialized before embedding clients are created"""
    global _instrumentation_initialized
    if not _instrumentation_initialized and config.otel_tracing_enabled:
        try:
            HTTPXClientInstrumentor().instrument()
            _instrumentation_initialized = True
            logger.info("HTTP request tracing instrumentation initialized")
        except Exception as e:
            logger.warning(f"Failed to initialize HTTP tracing instrumentation: {e}")


def get_telemetry_service() -> TelemetryService:
    """Get or create the global telemetry service instance"""
    global _telemetry_service
    _ensure_instrumentation_initialized()
    if _telemetry_service is None:
        _telemetry_service = TelemetryService()
    return _telemetry_service
