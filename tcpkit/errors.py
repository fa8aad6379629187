"""Exception types and small checking helpers."""

import os


class TaggedError(OSError):
    """An error from a named operation, carrying a numeric error code."""

    def __init__(self, attempt, error_code, message):
        super().__init__(error_code, message)
        self.attempt = attempt
        self.error_code = error_code
        self.message = message

    def __str__(self):
        return f"{self.attempt}: {self.message}"


class UnixError(TaggedError):
    """A failed system call, described by its errno value."""

    def __init__(self, attempt, error_number):
        super().__init__(attempt, error_number, os.strerror(error_number))


def check_system_call(attempt, return_value):
    """Return a non-negative result; a negative one carries a negated errno and raises."""
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)


def notnull(context, value):
    """Return ``value``, raising RuntimeError if it is None."""
    if value is None:
        raise RuntimeError(f"{context}: returned null pointer")
    return value