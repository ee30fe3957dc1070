import logging
import time

logger = logging.getLogger(__name__)

MAX_LOGGED_BODY = 2000


def _text(raw: bytes) -> str:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return "<Could not decode body>"
    if len(text) > MAX_LOGGED_BODY:
        return text[:MAX_LOGGED_BODY] + "...<truncated>"
    return text


class BillingRequestLoggingMiddleware:
    """
    Logs every billing API call: the request body of writes, the response
    status and content, the idempotency key if any, and the time taken.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()

        request_body = ""
        content_type = request.META.get("CONTENT_TYPE", "")
        if "multipart/form-data" in content_type:
            request_body = "<Multipart form data - body not logged>"
        elif request.method in ("POST", "PUT", "PATCH") and request.body:
            request_body = _text(request.body)

        logger.info(
            "API Request: %s %s key=%s body=%s",
            request.method,
            request.get_full_path(),
            request.META.get("HTTP_IDEMPOTENCY_KEY", "-"),
            request_body,
        )

        response = self.get_response(request)

        response_type = response.get("Content-Type", "")
        if getattr(response, "streaming", False):
            response_content = "<Streaming content>"
        elif response_type.startswith(("application/json", "text/")):
            response_content = _text(response.content)
        else:
            response_content = f"<Content-Type: {response_type}>"

        logger.info(
            "API Response: %s %s status=%d elapsed_ms=%.1f content=%s",
            request.method,
            request.get_full_path(),
            response.status_code,
            (time.monotonic() - started) * 1000,
            response_content,
        )
        return response
