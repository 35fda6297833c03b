"""Service-level errors rendered as ``{"success": false, "error": ...}``."""


class SwissCoinError(Exception):
    """Base error carrying the HTTP status and a machine-readable code."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(SwissCoinError):
    status_code = 400
    code = "invalid_request"
    default_message = "Invalid request"


class InvalidPhoneNumberError(SwissCoinError):
    status_code = 400
    code = "invalid_phone_number"
    default_message = "Invalid phone number"


class VerificationError(SwissCoinError):
    """Provider rejected or could not complete a verification."""


class IncorrectCodeError(VerificationError):
    status_code = 400
    code = "incorrect_code"
    default_message = "Incorrect code. Please try again."


class TooManyAttemptsError(VerificationError):
    status_code = 429
    code = "too_many_attempts"
    default_message = "Too many failed attempts. Request a new code."


class RateLimitedError(VerificationError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many attempts. Please try again later."


class TransientProviderError(VerificationError):
    status_code = 400
    code = "transient_provider_failure"
    default_message = "Verification failed. Please try again."


class ProviderNotConfiguredError(VerificationError):
    status_code = 500
    code = "provider_not_configured"
    default_message = "SMS service not configured"


class ProviderError(VerificationError):
    status_code = 500
    code = "provider_error"
    default_message = "Failed to send verification code"


class LinkingFailedError(SwissCoinError):
    status_code = 500
    code = "linking_failed"
    default_message = "Account linking failed. Please contact support."
