from typing import Optional, Any


class InkShareError(Exception):
    """
    Base exception for InkShare.

    `message` is safe to show to the chat user as-is.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(InkShareError):
    """
    Raised when a webhook request fails authentication.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class UnauthorizedSender(InkShareError):
    """
    Raised when the sender is not on the allow-list.
    """
    def __init__(self, message: str = "You are not whitelisted", details: Optional[Any] = None):
        super().__init__(message, code="UNAUTHORIZED_SENDER", status_code=403, details=details)


class UnrecognizedChannel(InkShareError):
    """
    Raised when an interaction carries no resolvable sender identity.
    """
    def __init__(self, message: str = "Bot didn't recognize this method of communication", details: Optional[Any] = None):
        super().__init__(message, code="UNRECOGNIZED_CHANNEL", status_code=400, details=details)


class NotRegistered(InkShareError):
    """
    Raised when an operation needs an access token the sender never obtained.
    """
    def __init__(self, message: str = "You need to /register your reMarkable first", details: Optional[Any] = None):
        super().__init__(message, code="NOT_REGISTERED", status_code=403, details=details)


class InvalidPairingCode(InkShareError):
    """
    Raised when the document cloud rejects a pairing code.
    """
    def __init__(self, message: str = "This pairing code was rejected. Generate a new one and try again", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_PAIRING_CODE", status_code=400, details=details)


class RecipientNotFound(InkShareError):
    """
    Raised when a handle does not resolve to any registered user.
    """
    def __init__(self, message: str = "User was not found", details: Optional[Any] = None):
        super().__init__(message, code="RECIPIENT_NOT_FOUND", status_code=404, details=details)


class DocumentNotFound(InkShareError):
    """
    Raised when a document id does not resolve in the sender's account.
    """
    def __init__(self, message: str = "Document was not found", details: Optional[Any] = None):
        super().__init__(message, code="DOCUMENT_NOT_FOUND", status_code=404, details=details)


class UnsupportedAttachmentType(InkShareError):
    """
    Raised when an attachment is not a PDF.
    """
    def __init__(self, message: str = "This is not a PDF file", details: Optional[Any] = None):
        super().__init__(message, code="UNSUPPORTED_ATTACHMENT", status_code=415, details=details)


class MalformedCommandArgs(InkShareError):
    """
    Raised when a command gets the wrong number of arguments.
    The message is the usage hint for that command.
    """
    def __init__(self, message: str = "Wrong number of arguments", details: Optional[Any] = None):
        super().__init__(message, code="MALFORMED_COMMAND_ARGS", status_code=422, details=details)


class GatewayFailure(InkShareError):
    """
    Raised when the document cloud fails in any other way.
    """
    def __init__(self, message: str = "The reMarkable cloud could not complete the request", details: Optional[Any] = None):
        super().__init__(message, code="GATEWAY_FAILURE", status_code=502, details=details)


class TransportFailure(InkShareError):
    """
    Raised when a file cannot be fetched from the messaging platform.
    """
    def __init__(self, message: str = "Could not fetch the file from Telegram", details: Optional[Any] = None):
        super().__init__(message, code="TRANSPORT_FAILURE", status_code=502, details=details)
