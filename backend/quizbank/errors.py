"""
Error taxonomy for the question bank API.

Every failure the service reports is one of these classes. The exception
handlers registered in main.py turn them into JSON bodies of the form
{"success": false, "error": "<message>"} with the class's status code.
"""


class QuestionBankError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(QuestionBankError):
    """Malformed or missing input, detected before touching the store."""
    status_code = 400


class NotFoundError(QuestionBankError):
    """The referenced id has no matching row."""
    status_code = 404


class StoreError(QuestionBankError):
    """Any failure surfaced by the database."""
    status_code = 500


class GenerationError(QuestionBankError):
    """The AI generation service failed or returned nothing usable."""
    status_code = 502


class GenerationUnavailable(QuestionBankError):
    """The AI generation service is not configured."""
    status_code = 503
