"""Error responses returned to proxy clients."""

from fastapi.responses import PlainTextResponse

from seafile_proxy.core.config import settings

GENERIC_ERROR_MESSAGE = "Internal server error"


def error_response(error: object, status_code: int = 500) -> PlainTextResponse:
    """Plain-text error page carrying the raw error text.

    With ``EXPOSE_ERROR_DETAILS`` disabled the text is replaced by a generic
    message; the details only reach the logs.
    """
    if settings.EXPOSE_ERROR_DETAILS:
        # httpx timeouts often carry no message
        detail = str(error) or type(error).__name__
    else:
        detail = GENERIC_ERROR_MESSAGE
    return PlainTextResponse(detail, status_code=status_code)
