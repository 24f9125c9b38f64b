# wlstore/domain/errors.py
"""
Domain errors raised by services and repos.

All of them are ValueErrors so callers that only care about "bad request"
can keep catching ValueError; routers map the subclasses to status codes.
"""


class NotFoundError(ValueError):
    pass


class ConflictError(ValueError):
    pass


class InvalidTransitionError(ValueError):
    pass


class AuthError(ValueError):
    pass


class PayloadTooLargeError(ValueError):
    pass
