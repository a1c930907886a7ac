"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Request input is missing or invalid"""

    pass


class InvalidAmountError(ValidationError):
    """Donation amount is missing or not positive"""

    pass


class AuthenticationError(DomainException):
    """Caller could not be authenticated"""

    pass


class SignatureVerificationError(AuthenticationError):
    """Webhook signature does not match the payload and signing secret"""

    pass


class UpstreamError(DomainException):
    """An external collaborator failed"""

    pass


class ProcessorError(UpstreamError):
    """Payment processor call failed (network, rate limit, invalid state)"""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class FollowUpMetadataError(DomainException):
    """Charge metadata cannot be turned into a follow-up plan"""

    pass
