# errors.py


class LoginLabError(Exception):
    """Base class for errors recovered at the request boundary."""


class ValidationError(LoginLabError):
    pass


class DuplicateError(LoginLabError):
    pass


class InvalidCredentials(LoginLabError):
    """Unknown username or wrong password; callers cannot tell which."""


class LockedError(LoginLabError):
    def __init__(self, seconds_remaining):
        super().__init__(f"locked for {seconds_remaining}s")
        self.seconds_remaining = seconds_remaining
