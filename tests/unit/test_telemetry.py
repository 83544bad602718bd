"""Unit tests for telemetry service"""

from unittest.mock import MagicMock, patch

import pytest

from src.services.telemetry import TelemetryService


def _enable(mock_config, logging_enabled=True, tracing_enabled=False):
    mock_config.otel_logging_enabled = logging_enabled
    mock_config.otel_tracing_enabled = tracing_enabled
    mock_config.otel_endpoint = "http://localhost:4318"
    mock_config.otel_service_name = "test-service"
    mock_config.otel_service_version = "1.0.0"


class TestTelemetryService:
    """Test telemetry service initialization"""

    @patch("src.services.telemetry.config")
    def test_telemetry_service_disabled(self, mock_config):
        """Test that telemetry can be disabled"""
        _enable(mock_config, logging_enabled=False)

        service = TelemetryService()

        assert service.logging_enabled is False
        assert service.tracing_enabled is False
        assert service.otel_logger is None

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_telemetry_logging_enabled(self, mock_set_logger_provider, mock_config):
        """Test that the log exporter initializes when enabled"""
        _enable(mock_config)

        service = TelemetryService()

        assert service.logging_enabled is True
        assert service.tracing_enabled is False
        assert service.logger_provider is not None
        mock_set_logger_provider.assert_called_once()

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.trace.set_tracer_provider")
    def test_telemetry_tracing_enabled(self, mock_set_tracer_provider, mock_config):
        """Test that tracing initializes when enabled"""
        _enable(mock_config, logging_enabled=False, tracing_enabled=True)

        service = TelemetryService()

        assert service.logging_enabled is False
        assert service.tracing_enabled is True
        assert service.tracer_provider is not None

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.OTLPLogExporter", side_effect=RuntimeError("boom"))
    def test_logging_init_failure_disables_logging(self, mock_exporter, mock_config):
        """A broken exporter must not prevent the server from starting"""
        _enable(mock_config)

        service = TelemetryService()

        assert service.logging_enabled is False


class TestLogToolCall:
    """Test tool call events"""

    @pytest.fixture
    def service(self):
        with (
            patch("src.services.telemetry.config") as mock_config,
            patch("src.services.telemetry.set_logger_provider"),
        ):
            _enable(mock_config)
            service = TelemetryService()
        service.otel_logger = MagicMock()
        return service

    @patch("src.services.telemetry.config")
    def test_log_tool_call_when_disabled(self, mock_config):
        """Test that logging does nothing when disabled"""
        _enable(mock_config, logging_enabled=False)

        service = TelemetryService()
        # Should not raise any errors
        service.log_tool_call(
            tool_name="aggregate",
            category="mongodb",
            operation_type="read",
            duration_ms=12.0,
            success=True,
        )

    def test_log_successful_call(self, service):
        service.log_tool_call(
            tool_name="insert-many",
            category="mongodb",
            operation_type="create",
            duration_ms=42.5,
            success=True,
        )

        assert service.otel_logger.emit.called
        call_kwargs = service.otel_logger.emit.call_args.kwargs
        assert "[insert-many] SUCCESS" in call_kwargs["body"]

        attrs = call_kwargs["attributes"]
        assert attrs["mcp.tool.name"] == "insert-many"
        assert attrs["mcp.tool.category"] == "mongodb"
        assert attrs["mcp.tool.operation_type"] == "create"
        assert attrs["response.success"] is True
        assert attrs["response.duration_ms"] == 42.5
        assert "error.type" not in attrs

    def test_log_failed_call(self, service):
        service.log_tool_call(
            tool_name="aggregate",
            category="mongodb",
            operation_type="read",
            duration_ms=3.0,
            success=False,
            error=ValueError("Test error"),
        )

        call_kwargs = service.otel_logger.emit.call_args.kwargs
        assert "FAILED" in call_kwargs["body"]
        assert "ValueError" in call_kwargs["body"]

        attrs = call_kwargs["attributes"]
        assert attrs["response.success"] is False
        assert attrs["error.type"] == "ValueError"
        assert "Test error" in attrs["error.message"]

    def test_error_text_is_truncated(self, service):
        service.log_tool_call(
            tool_name="aggregate",
            category="mongodb",
            operation_type="read",
            duration_ms=3.0,
            success=False,
            error="x" * 1000,
        )

        attrs = service.otel_logger.emit.call_args.kwargs["attributes"]
        assert attrs["error.type"] == "ToolError"
        assert attrs["error.message"].endswith("...")
        assert len(attrs["error.message"]) == 503

    def test_emit_failure_is_swallowed(self, service):
        service.otel_logger.emit.side_effect = RuntimeError("collector down")

        service.log_tool_call(
            tool_name="aggregate",
            category="mongodb",
            operation_type="read",
            duration_ms=1.0,
            success=True,
        )
