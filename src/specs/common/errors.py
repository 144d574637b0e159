"""
Common exception classes for the application
"""
from typing import Optional, Dict, Any

class LookbookError(Exception):
    """Base exception class for Lookbook errors"""
    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to standard error format"""
        return {
            "code": self.code,
            "message": str(self),
            "details": self.details
        }

class ConfigurationError(LookbookError):
    """Raised when there's an error in configuration or environment variables"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)

class MissingCredentialError(LookbookError):
    """Raised before any network call when a provider API key cannot be resolved"""
    def __init__(self, credential: str, details: Optional[Dict[str, Any]] = None):
        message = f"{credential.capitalize()} API Key not found. Please configure your {credential.capitalize()} API Key first."
        super().__init__(message, code="MISSING_CREDENTIAL", details={"credential": credential, **(details or {})})
        self.credential = credential

class InputValidationError(LookbookError):
    """Raised when required images or fields are missing or malformed"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INVALID_INPUT", details=details)

class ProviderError(LookbookError):
    """Raised when an image generation provider call fails"""
    def __init__(self, message: str, provider: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        dims = dict(details or {})
        if provider:
            dims["provider"] = provider
        super().__init__(message, code="PROVIDER_ERROR", details=dims)
        self.provider = provider

class CompositionError(LookbookError):
    """Raised when the lookbook grid cannot be composed"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="COMPOSITION_ERROR", details=details)

class VideoGenerationError(LookbookError):
    """Raised when the video job fails or its result cannot be fetched"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VIDEO_GENERATION_ERROR", details=details)

class VideoTimeoutError(LookbookError):
    """Raised when a video job does not finish within the caller's bound"""
    def __init__(self, waited_seconds: float, details: Optional[Dict[str, Any]] = None):
        message = f"Video generation did not complete within {waited_seconds:.0f}s"
        super().__init__(message, code="VIDEO_TIMEOUT", details={"waitedSeconds": waited_seconds, **(details or {})})

class ResourceNotFoundError(LookbookError):
    """Raised when a requested resource is not found"""
    def __init__(self, resource_type: str, resource_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(message, code="RESOURCE_NOT_FOUND", details=details)
