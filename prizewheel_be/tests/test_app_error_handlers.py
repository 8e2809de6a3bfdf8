import json
import pytest
from werkzeug.exceptions import TooManyRequests
from marshmallow import ValidationError

from prizewheel_be.app import create_app
from prizewheel_be.config import TestingConfig
from prizewheel_be.exceptions import (
    AppException,
    ValidationException,
    AuthorizationException,
    TicketAlreadyUsedException,
    InternalServerErrorException
)
from prizewheel_be.error_codes import ErrorCodes


class TestAppErrorHandlers:

    @pytest.fixture(scope="class")
    def app(self):
        app = create_app(TestingConfig)

        @app.route('/test/app_exception')
        def route_app_exception():
            raise AppException(
                error_code="TEST_APP_EXC",
                status_message="This is an AppException",
                status_code=450,
                details={"info": "some app details"},
                action_button={"text": "Spin again", "actionType": "NAVIGATE", "actionPayload": "/"}
            )

        @app.route('/test/validation_exception')
        def route_validation_exception():
            raise ValidationException(status_message="Invalid input provided", details={"field": "wrong"})

        @app.route('/test/marshmallow_error')
        def route_marshmallow_error():
            raise ValidationError({"code": ["Missing data for required field."]})

        @app.route('/test/authorization_exception')
        def route_authorization_exception():
            raise AuthorizationException(status_message="Permission denied")

        @app.route('/test/ticket_used')
        def route_ticket_used():
            raise TicketAlreadyUsedException()

        @app.route('/test/internal_server_error_exception')
        def route_internal_server_error_exception():
            raise InternalServerErrorException(status_message="Custom server error")

        @app.route('/test/unhandled_exception')
        def route_unhandled_exception():
            raise ValueError("A generic unhandled error")

        @app.route('/test/rate_limited')
        def route_rate_limited():
            raise TooManyRequests()

        return app

    @pytest.fixture
    def client(self, app):
        return app.test_client()

    def _assert_error_body(self, response, status_code, error_code):
        assert response.status_code == status_code
        data = json.loads(response.data)
        assert data['status'] is False
        assert data['error_code'] == error_code
        assert 'status_message' in data
        assert 'details' in data
        assert data['request_id'] == response.headers['X-Request-ID']
        return data

    def test_app_exception(self, client):
        data = self._assert_error_body(client.get('/test/app_exception'), 450, "TEST_APP_EXC")
        assert data['status_message'] == "This is an AppException"
        assert data['details'] == {"info": "some app details"}
        assert data['action_button']['actionType'] == "NAVIGATE"

    def test_validation_exception(self, client):
        data = self._assert_error_body(client.get('/test/validation_exception'), 400, ErrorCodes.VALIDATION_ERROR)
        assert data['details'] == {"field": "wrong"}

    def test_marshmallow_validation_error(self, client):
        data = self._assert_error_body(client.get('/test/marshmallow_error'), 400, ErrorCodes.VALIDATION_ERROR)
        assert data['details']['errors'] == {"code": ["Missing data for required field."]}

    def test_authorization_exception(self, client):
        self._assert_error_body(client.get('/test/authorization_exception'), 403, ErrorCodes.FORBIDDEN)

    def test_ticket_already_used(self, client):
        data = self._assert_error_body(client.get('/test/ticket_used'), 400, ErrorCodes.TICKET_ALREADY_USED)
        assert data['status_message'] == "Ticket already used"

    def test_internal_server_error_exception(self, client):
        self._assert_error_body(client.get('/test/internal_server_error_exception'), 500, ErrorCodes.INTERNAL_SERVER_ERROR)

    def test_unhandled_exception_hides_details(self, client):
        data = self._assert_error_body(client.get('/test/unhandled_exception'), 500, ErrorCodes.INTERNAL_SERVER_ERROR)
        assert "generic unhandled error" not in data['status_message']

    def test_rate_limited(self, client):
        self._assert_error_body(client.get('/test/rate_limited'), 429, ErrorCodes.RATE_LIMITED)

    def test_not_found(self, client):
        data = self._assert_error_body(client.get('/api/does-not-exist'), 404, ErrorCodes.NOT_FOUND)
        assert data['details']['path'] == '/api/does-not-exist'

    def test_method_not_allowed(self, client):
        self._assert_error_body(client.get('/api/spin'), 405, ErrorCodes.METHOD_NOT_ALLOWED)

    def test_security_headers(self, client):
        response = client.get('/api/does-not-exist')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'
        assert 'Content-Security-Policy' in response.headers
