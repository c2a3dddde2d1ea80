import logging
import re
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

# Thread-local storage for the current request ID
_thread_locals = local()

# Mobile clients may send their own correlation id; accept only sane values
_INBOUND_ID = re.compile(r"^[A-Za-z0-9\-]{8,64}$")


class RequestIDMiddleware(MiddlewareMixin):
    """
    Tag every request with an id (the client's X-Request-ID when it sends a
    well-formed one) so checkout and payment log lines can be correlated.
    """

    def process_request(self, request):
        inbound = request.headers.get("X-Request-ID", "")
        request_id = inbound if _INBOUND_ID.match(inbound) else str(uuid.uuid4())
        request.request_id = request_id
        _thread_locals.request_id = request_id
        return None

    def process_response(self, request, response):
        if hasattr(request, "request_id"):
            response["X-Request-ID"] = request.request_id
        _clear()
        return response

    def process_exception(self, request, exception):
        _clear()
        return None


def _clear():
    if hasattr(_thread_locals, "request_id"):
        delattr(_thread_locals, "request_id")


def get_request_id():
    return getattr(_thread_locals, "request_id", None)


class RequestIDFilter(logging.Filter):
    """Adds ``record.request_id`` so formatters can reference it."""

    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True
