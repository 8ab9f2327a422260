"""Unit tests for AWS Lambda handler."""

from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from src.lambda_handler import handle_eventbridge_event, is_eventbridge_event, lambda_handler
from whatsapp_order_bot.handlers.webhook_handler import InboundMessage


@pytest.mark.unit
class TestIsEventBridgeEvent:
    """Tests for is_eventbridge_event function."""

    def test_returns_true_for_eventbridge_event(self, mock_inbound_message_event: dict) -> None:
        """Test that EventBridge events are correctly identified."""
        assert is_eventbridge_event(mock_inbound_message_event) is True

    def test_returns_false_for_api_gateway_http_event(self) -> None:
        """Test that API Gateway HTTP events are correctly identified."""
        event = {
            "version": "2.0",
            "requestContext": {
                "http": {"method": "POST", "path": "/webhook"},
                "requestId": "request-id",
            },
            "rawPath": "/webhook",
        }

        assert is_eventbridge_event(event) is False

    def test_returns_false_for_malformed_event(self) -> None:
        """Test that malformed events return False."""
        assert is_eventbridge_event({"random": "data"}) is False


@pytest.mark.unit
class TestHandleEventBridgeEvent:
    """Tests for handle_eventbridge_event function."""

    @patch("src.lambda_handler.get_event_handler")
    def test_processes_inbound_message(self, mock_get_handler: Mock, mock_inbound_message_event: dict) -> None:
        """Test that a relayed message is handed to the event handler."""
        mock_handler = MagicMock()
        mock_handler.handle_inbound_message = AsyncMock(return_value=True)
        mock_get_handler.return_value = mock_handler

        result = handle_eventbridge_event(mock_inbound_message_event)

        assert result == {"statusCode": 200, "body": "Processed message wamid.abc123"}
        mock_handler.handle_inbound_message.assert_awaited_once_with(
            InboundMessage(sender="15551234567", text="hi", message_id="wamid.abc123", timestamp="1705314600")
        )

    @patch("src.lambda_handler.get_event_handler")
    def test_reports_skipped_message(self, mock_get_handler: Mock, mock_inbound_message_event: dict) -> None:
        """Test that filtered messages are acknowledged as skipped."""
        mock_handler = MagicMock()
        mock_handler.handle_inbound_message = AsyncMock(return_value=False)
        mock_get_handler.return_value = mock_handler

        result = handle_eventbridge_event(mock_inbound_message_event)

        assert result["statusCode"] == 200
        assert result["body"] == "Skipped message wamid.abc123"

    def test_returns_error_for_unsupported_event_source(self) -> None:
        """Test that unsupported event sources are rejected."""
        event = {"source": "com.other.service", "detail-type": "SomeEvent", "detail": {}}

        result = handle_eventbridge_event(event)

        assert result["statusCode"] == 400
        assert "Unsupported event type" in result["body"]

    @patch("src.lambda_handler.get_event_handler")
    def test_returns_error_for_invalid_detail(self, mock_get_handler: Mock) -> None:
        """Test that a detail missing the sender is rejected before handling."""
        event = {"source": "com.whatsapp.relay", "detail-type": "InboundMessage", "detail": {"text": "hi"}}

        result = handle_eventbridge_event(event)

        assert result == {"statusCode": 400, "body": "Invalid event format"}
        mock_get_handler.assert_not_called()

    @patch("src.lambda_handler.get_event_handler")
    def test_handles_exception_during_processing(
        self, mock_get_handler: Mock, mock_inbound_message_event: dict
    ) -> None:
        """Test that exceptions during message handling are handled gracefully."""
        mock_handler = MagicMock()
        mock_handler.handle_inbound_message = AsyncMock(side_effect=Exception("Processing error"))
        mock_get_handler.return_value = mock_handler

        result = handle_eventbridge_event(mock_inbound_message_event)

        assert result["statusCode"] == 500
        assert "Error processing event" in result["body"]


@pytest.mark.unit
class TestLambdaHandler:
    """Tests for main lambda_handler function."""

    @patch("src.lambda_handler.handle_eventbridge_event")
    def test_routes_eventbridge_events_to_handler(
        self, mock_handle_eventbridge: Mock, mock_inbound_message_event: dict
    ) -> None:
        """Test that EventBridge events are routed to the correct handler."""
        mock_handle_eventbridge.return_value = {"statusCode": 200, "body": "Success"}
        context = MagicMock()
        context.aws_request_id = "test-request-id"

        result = lambda_handler(mock_inbound_message_event, context)

        assert result["statusCode"] == 200
        mock_handle_eventbridge.assert_called_once_with(mock_inbound_message_event)

    @patch("src.lambda_handler.mangum_handler")
    def test_routes_api_gateway_events_to_mangum(self, mock_mangum_handler: Mock) -> None:
        """Test that API Gateway events are routed to Mangum."""
        mock_mangum_handler.return_value = {"statusCode": 200, "body": '{"status": "ok"}'}
        event = {
            "version": "2.0",
            "requestContext": {
                "http": {"method": "POST", "path": "/webhook"},
                "requestId": "request-id",
            },
            "rawPath": "/webhook",
        }
        context = MagicMock()
        context.aws_request_id = "test-request-id"

        result = lambda_handler(event, context)

        assert result["statusCode"] == 200
        mock_mangum_handler.assert_called_once_with(event, context)

    @patch("src.lambda_handler.handle_eventbridge_event")
    def test_handles_unhandled_exceptions(
        self, mock_handle_eventbridge: Mock, mock_inbound_message_event: dict
    ) -> None:
        """Test that unhandled exceptions are caught and returned as 500 errors."""
        mock_handle_eventbridge.side_effect = Exception("Unexpected error")
        context = MagicMock()
        context.aws_request_id = "test-request-id"

        result = lambda_handler(mock_inbound_message_event, context)

        assert result["statusCode"] == 500
        assert "Internal server error" in result["body"]
