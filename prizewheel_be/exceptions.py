from prizewheel_be.error_codes import ErrorCodes

class AppException(Exception):
    def __init__(self, error_code, status_message, status_code, details=None, action_button=None):
        super().__init__(status_message)
        self.error_code = error_code
        self.status_message = status_message
        self.status_code = status_code
        self.details = details if details is not None else {}
        self.action_button = action_button if action_button is not None else {}

class ValidationException(AppException):
    def __init__(self, status_message="Validation failed", details=None, action_button=None, error_code=ErrorCodes.VALIDATION_ERROR):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=400,
            details=details,
            action_button=action_button
        )

class AuthenticationException(AppException):
    def __init__(self, status_message="Authentication required", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.UNAUTHENTICATED,
            status_message=status_message,
            status_code=401,
            details=details,
            action_button=action_button
        )

class AuthorizationException(AppException):
    def __init__(self, status_message="Forbidden", details=None, action_button=None):
        super().__init__(
            error_code=ErrorCodes.FORBIDDEN,
            status_message=status_message,
            status_code=403,
            details=details,
            action_button=action_button
        )

class NotFoundException(AppException):
    def __init__(self, status_message="Resource not found", details=None, action_button=None, error_code=ErrorCodes.NOT_FOUND):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=404,
            details=details,
            action_button=action_button
        )

class BusinessRuleException(AppException):
    """A well-formed request that the wheel's rules do not allow."""
    def __init__(self, status_message="Request violates a business rule", details=None, action_button=None, error_code=ErrorCodes.BUSINESS_RULE_VIOLATION):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=400,
            details=details,
            action_button=action_button
        )

class InternalServerErrorException(AppException):
    def __init__(self, status_message="Internal server error", details=None, action_button=None, error_code=ErrorCodes.INTERNAL_SERVER_ERROR):
        super().__init__(
            error_code=error_code,
            status_message=status_message,
            status_code=500,
            details=details,
            action_button=action_button
        )

# --- Ticket redemption outcomes ---

class TicketNotFoundException(NotFoundException):
    def __init__(self, status_message="Invalid ticket code", details=None, action_button=None):
        super().__init__(status_message=status_message, details=details, action_button=action_button,
                         error_code=ErrorCodes.TICKET_NOT_FOUND)

class TicketAlreadyUsedException(BusinessRuleException):
    def __init__(self, status_message="Ticket already used", details=None, action_button=None):
        super().__init__(status_message=status_message, details=details, action_button=action_button,
                         error_code=ErrorCodes.TICKET_ALREADY_USED)

class TicketExpiredException(BusinessRuleException):
    def __init__(self, status_message="Ticket has expired", details=None, action_button=None):
        super().__init__(status_message=status_message, details=details, action_button=action_button,
                         error_code=ErrorCodes.TICKET_EXPIRED)

class PrizeNotFoundException(InternalServerErrorException):
    def __init__(self, status_message="Prize not found", details=None, action_button=None):
        super().__init__(status_message=status_message, details=details, action_button=action_button,
                         error_code=ErrorCodes.PRIZE_NOT_FOUND)
