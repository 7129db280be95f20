"""Error taxonomy shared by the auth core and the route handlers.

Handlers raise these; ``backend.main`` renders them as ``{"detail": ...}``
responses with the matching status code.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationFailure(AppError):
    status_code = 400


class AuthenticationFailure(AppError):
    status_code = 401


class AuthorizationFailure(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class InternalError(AppError):
    status_code = 500
