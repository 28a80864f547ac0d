"""
Unit tests for the exception handlers.

Domain errors are rendered as {"code", "message"} with their own status,
anything else becomes a logged 500 carrying an error id.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from todo_api.core.errors import (
    ErrInvalidToken,
    ErrListDoesNotExist,
    ErrNamespaceIsArchived,
    TodoError,
)
from todo_api.exception_handlers import (
    global_exception_handler,
    setup_exception_handlers,
    todo_error_handler,
)


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/lists/1"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestTodoErrorHandler:
    """Test rendering of domain errors"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, status_code, code",
        [
            (ErrListDoesNotExist(list_id=1), 404, 3001),
            (ErrNamespaceIsArchived(namespace_id=4), 412, 5017),
            (ErrInvalidToken(), 401, 3),
        ],
    )
    async def test_status_and_code(self, mock_request, exc, status_code, code):
        response = await todo_error_handler(mock_request, exc)

        assert response.status_code == status_code
        body = json.loads(response.body.decode())
        assert body == {"code": code, "message": exc.message}

    @pytest.mark.asyncio
    async def test_custom_message(self, mock_request):
        response = await todo_error_handler(
            mock_request, ErrInvalidToken("The token has expired.")
        )

        assert json.loads(response.body.decode())["message"] == "The token has expired."

    @pytest.mark.asyncio
    async def test_context_is_not_exposed(self, mock_request):
        """Context is logged only"""
        with patch("todo_api.exception_handlers.logger") as mock_logger:
            response = await todo_error_handler(mock_request, ErrListDoesNotExist(list_id=42))

        assert "42" not in response.body.decode()
        assert "list_id" in mock_logger.debug.call_args[0][0]

    def test_repr(self):
        assert repr(ErrListDoesNotExist(list_id=1)) == (
            "ErrListDoesNotExist(code=3001, context={'list_id': 1})"
        )

    def test_defaults(self):
        exc = TodoError()

        assert exc.http_status == 400
        assert str(exc) == "An error occurred."


class TestGlobalExceptionHandler:
    """Test the fallback for unexpected exceptions"""

    @pytest.mark.asyncio
    async def test_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch("todo_api.exception_handlers.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled ValueError" in call_args[0][0]
        assert call_args[1]["extra"]["error_id"] == id(exc)
        assert call_args[1]["extra"]["path"] == "/api/v1/lists/1"
        assert call_args[1]["extra"]["client"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_returns_500_with_error_id(self, mock_request):
        exc = RuntimeError("Test error")

        with patch("todo_api.exception_handlers.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body == {"message": "Internal server error.", "error_id": id(exc)}

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None

        with patch("todo_api.exception_handlers.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("Test error"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestSetupExceptionHandlers:
    """Test registering the handlers on an app"""

    def test_registers_handlers(self):
        app = FastAPI()

        setup_exception_handlers(app)

        assert app.exception_handlers[TodoError] is todo_error_handler
        assert app.exception_handlers[Exception] is global_exception_handler
