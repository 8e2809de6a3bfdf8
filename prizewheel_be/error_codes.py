class ErrorCodes:
    """Machine-readable error codes returned in the ``error_code`` field of error responses."""

    GENERIC_ERROR = 'GENERIC_ERROR'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    UNAUTHENTICATED = 'UNAUTHENTICATED'
    FORBIDDEN = 'FORBIDDEN'
    NOT_FOUND = 'NOT_FOUND'
    METHOD_NOT_ALLOWED = 'METHOD_NOT_ALLOWED'
    RATE_LIMITED = 'RATE_LIMITED'
    INTERNAL_SERVER_ERROR = 'INTERNAL_SERVER_ERROR'

    # Wheel / ticket domain
    TICKET_NOT_FOUND = 'TICKET_NOT_FOUND'
    TICKET_ALREADY_USED = 'TICKET_ALREADY_USED'
    TICKET_EXPIRED = 'TICKET_EXPIRED'
    TICKET_CODE_TAKEN = 'TICKET_CODE_TAKEN'
    SEGMENT_NOT_FOUND = 'SEGMENT_NOT_FOUND'
    PRIZE_NOT_FOUND = 'PRIZE_NOT_FOUND'
    BUSINESS_RULE_VIOLATION = 'BUSINESS_RULE_VIOLATION'
