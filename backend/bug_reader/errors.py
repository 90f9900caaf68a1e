from __future__ import annotations


class BugReaderError(Exception):
    """Base error. `message` is safe to show to the user."""

    status_code = 500
    default_message = "An unknown error occurred during analysis."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =========================
# Configuration
# =========================
class ConfigurationError(BugReaderError):
    default_message = "Missing GEMINI_API_KEY in env/.env"


# =========================
# Input (image upload)
# =========================
class InputError(BugReaderError):
    status_code = 400


class UnsupportedImageError(InputError):
    status_code = 415
    default_message = "Please provide an image file (PNG, JPEG, WebP, ...)."


class ImageReadError(InputError):
    default_message = "Could not process the image file."


class ImageTooLargeError(InputError):
    status_code = 413
    default_message = "The image file is too large."


class InvalidTransitionError(BugReaderError):
    status_code = 409
    default_message = "An analysis is already in progress."


# =========================
# Analysis
# =========================
class AnalysisError(BugReaderError):
    status_code = 502


class AnalysisServiceError(AnalysisError):
    default_message = "An error occurred while analyzing the bug report with Gemini."


class InvalidResponseError(AnalysisError):
    default_message = "Failed to get a valid analysis from the AI. The response was not valid JSON."
