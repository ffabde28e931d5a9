# crudkit/api/middleware.py
"""
Request ID middleware for FastAPI / Starlette.

Each request gets an id (the incoming `X-Request-ID` header, or a new UUID4)
stored in the logging contextvar, so every log line emitted while serving the
request, including the CRUD service's fault logs, carries the same `request_id`.
The id is echoed back in the `X-Request-ID` response header.

    app.add_middleware(RequestIDMiddleware)
"""

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from crudkit.core.logging.filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"
# Longer incoming ids are replaced rather than written into every log line
MAX_REQUEST_ID_LENGTH = 128


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER)
        if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
            rid = incoming
        else:
            rid = str(uuid.uuid4())

        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
