"""
Error types shared by the relay endpoint, the relay clients and the wizard.

Each error carries the message shown to the user and the HTTP status the
endpoint answers with.
"""


class TryOnError(Exception):
    """Base class for every failure surfaced to a user"""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ValidationError(TryOnError):
    """Bad or missing user input"""
    status_code = 400


class ConfigurationError(TryOnError):
    """Operator misconfiguration, e.g. a missing API key"""
    status_code = 500


class GenerationError(TryOnError):
    """The generative API returned no usable image"""
    status_code = 500


class InternalError(TryOnError):
    """Catch-all for transport and unexpected failures"""
    status_code = 500


class RelayError(TryOnError):
    """Error answer received from a remote relay endpoint"""


class InvalidTransition(ValidationError):
    """Wizard action that is not allowed in the current state"""
