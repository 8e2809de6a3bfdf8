import pytest
from prizewheel_be.exceptions import (
    AppException,
    ValidationException,
    AuthenticationException,
    AuthorizationException,
    NotFoundException,
    BusinessRuleException,
    InternalServerErrorException,
    TicketNotFoundException,
    TicketAlreadyUsedException,
    TicketExpiredException,
    PrizeNotFoundException
)
from prizewheel_be.error_codes import ErrorCodes

def test_app_exception_instantiation():
    details = {"field": "value"}
    action_button = {"text": "Retry", "actionType": "RETRY_ACTION"}

    exc = AppException(
        error_code="TEST_001",
        status_message="Test message",
        status_code=400,
        details=details,
        action_button=action_button
    )

    assert exc.error_code == "TEST_001"
    assert exc.status_message == "Test message"
    assert exc.status_code == 400
    assert exc.details == details
    assert exc.action_button == action_button
    assert str(exc) == "Test message"

def test_app_exception_defaults():
    exc = AppException(error_code="TEST_002", status_message="Default test", status_code=500)
    assert exc.details == {}
    assert exc.action_button == {}

@pytest.mark.parametrize("exc_class, error_code, status_code", [
    (ValidationException, ErrorCodes.VALIDATION_ERROR, 400),
    (AuthenticationException, ErrorCodes.UNAUTHENTICATED, 401),
    (AuthorizationException, ErrorCodes.FORBIDDEN, 403),
    (NotFoundException, ErrorCodes.NOT_FOUND, 404),
    (BusinessRuleException, ErrorCodes.BUSINESS_RULE_VIOLATION, 400),
    (InternalServerErrorException, ErrorCodes.INTERNAL_SERVER_ERROR, 500),
])
def test_base_exceptions(exc_class, error_code, status_code):
    exc = exc_class(status_message="Something happened")
    assert exc.error_code == error_code
    assert exc.status_code == status_code
    assert exc.status_message == "Something happened"
    with pytest.raises(AppException):
        raise exc

def test_error_code_override():
    exc = ValidationException(status_message="Invalid segment ID", error_code=ErrorCodes.SEGMENT_NOT_FOUND)
    assert exc.error_code == ErrorCodes.SEGMENT_NOT_FOUND
    assert exc.status_code == 400

def test_ticket_not_found():
    exc = TicketNotFoundException(details={"code": "X"})
    assert isinstance(exc, NotFoundException)
    assert exc.error_code == ErrorCodes.TICKET_NOT_FOUND
    assert exc.status_code == 404
    assert exc.status_message == "Invalid ticket code"
    assert exc.details == {"code": "X"}

def test_ticket_already_used():
    exc = TicketAlreadyUsedException()
    assert isinstance(exc, BusinessRuleException)
    assert exc.error_code == ErrorCodes.TICKET_ALREADY_USED
    assert exc.status_code == 400
    assert exc.status_message == "Ticket already used"

def test_ticket_expired():
    exc = TicketExpiredException()
    assert exc.error_code == ErrorCodes.TICKET_EXPIRED
    assert exc.status_code == 400

def test_prize_not_found():
    exc = PrizeNotFoundException()
    assert isinstance(exc, InternalServerErrorException)
    assert exc.error_code == ErrorCodes.PRIZE_NOT_FOUND
    assert exc.status_code == 500
