from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[str] = ContextVar("_request_id", default="-")

# Accept caller-supplied ids only if they look like ids
_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{6,64}$")

def new_request_id(client_supplied: Optional[str] = None) -> str:
    """Start a request scope, reusing a well-formed X-Request-Id from the client."""
    if client_supplied and _CLIENT_ID_RE.match(client_supplied):
        rid = client_supplied
    else:
        rid = uuid.uuid4().hex[:12]
    _request_id.set(rid)
    return rid

def get_request_id() -> str:
    return _request_id.get()
