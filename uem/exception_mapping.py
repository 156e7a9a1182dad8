"""
Exception → error code catalog.

Used by ErrorDispatcher.handle_exception() for exceptions that reach the
top of a request without an explicit code. Patterns are matched against
the class names in the exception's MRO, so subclasses inherit mappings.
Order matters — first match wins.
"""

import re

DEFAULT_EXCEPTION_CODE = "UNEXPECTED_ERROR"

EXCEPTION_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^ValidationError$"), "VALIDATION_ERROR"),
    (re.compile(r"^(AuthError|AuthenticationError|NotAuthenticated)$"), "AUTHENTICATION_ERROR"),
    (re.compile(r"^(PermissionError|PermissionDenied|AuthorizationError|Forbidden)$"), "AUTHORIZATION_ERROR"),
    (re.compile(r"^(CSRFError|TokenMismatch\w*)$"), "CSRF_TOKEN_MISMATCH"),
    (re.compile(r"^(RouteNotFound|NotFoundHttpException|NotFound)$"), "ROUTE_NOT_FOUND"),
    (re.compile(r"^(MethodNotAllowed\w*)$"), "METHOD_NOT_ALLOWED"),
    (re.compile(r"^(TooManyRequests\w*|Throttl\w+)$"), "TOO_MANY_REQUESTS"),
    (re.compile(r"\w+NotFound$|^DoesNotExist$"), "RECORD_NOT_FOUND"),
    (re.compile(r"^JSONDecodeError$"), "JSON_ERROR"),
    (re.compile(r"^(DatabaseError|OperationalError|IntegrityError|QueryException)$"), "DATABASE_ERROR"),
]


def code_for_exception(exc: BaseException) -> str:
    """Map an exception to an error code by walking its class hierarchy."""
    names = [cls.__name__ for cls in type(exc).__mro__]
    for pattern, code in EXCEPTION_PATTERNS:
        if any(pattern.search(name) for name in names):
            return code
    return DEFAULT_EXCEPTION_CODE
