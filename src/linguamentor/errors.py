"""Errors raised by the vocabulary backend."""


class LinguaMentorError(Exception):
    """Base class for errors reported back to the client."""

    user_message = "Something went wrong, please try again."


class InvalidArgument(LinguaMentorError):
    """A request is missing a field or carries a bad value."""

    user_message = "The request is incomplete or malformed."


class Unauthorized(LinguaMentorError):
    """The caller is not on the owner allow-list."""

    user_message = "Sorry, this assistant is private."


class StorageUnavailable(LinguaMentorError):
    """A storage read or transaction failed after retries."""

    user_message = "Storage is unavailable right now, please try again."


class NotFound(LinguaMentorError):
    """A referenced word is not part of the catalog."""

    user_message = "This word is not in the vocabulary list."


class StaleAnswer(LinguaMentorError):
    """An answer button no longer matches the word being practiced."""

    user_message = "This word was already answered."
