"""
Request ID middleware.

Extracts or generates a request id, exposes it on request.state and adds it
to every log line written while the request is handled.
"""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from studybuilder.core.logging import LogContext


REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        
        with LogContext(request_id=request_id):
            response = await call_next(request)
        
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
