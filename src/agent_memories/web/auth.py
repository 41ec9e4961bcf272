# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Bearer-token authentication for the HTTP interface.

Implemented as plain ASGI middleware so it also guards the mounted MCP app,
which FastAPI dependencies never see.
"""

import json
import logging
import secrets
from typing import Iterable, Optional

from .. import config

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/health"})


def check_bearer_token(authorization: Optional[str], api_key: Optional[str]):
    """
    Validate an Authorization header against the configured key.

    Returns:
        None when the request is authorized, otherwise (status_code, message)
    """
    if not api_key:
        return 500, "Server not configured with API key"
    if not authorization or not authorization.startswith("Bearer "):
        return 401, "Missing or invalid Authorization header"
    token = authorization[len("Bearer "):]
    if not secrets.compare_digest(token.encode("utf-8"), api_key.encode("utf-8")):
        return 401, "Invalid API key"
    return None


class BearerAuthMiddleware:
    """Reject HTTP and websocket connections without a valid bearer token, except on public paths."""

    def __init__(self, app, public_paths: Iterable[str] = PUBLIC_PATHS):
        self.app = app
        self.public_paths = frozenset(public_paths)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "lifespan" or scope.get("path") in self.public_paths:
            await self.app(scope, receive, send)
            return

        authorization = None
        for name, value in scope.get("headers", []):
            if name == b"authorization":
                authorization = value.decode("latin-1")
                break

        # Read at request time so the key can be rotated by reloading config
        failure = check_bearer_token(authorization, config.API_KEY)
        if failure is None:
            await self.app(scope, receive, send)
            return

        status, message = failure
        if status == 500:
            logger.error(message)
        if scope["type"] == "websocket":
            # Closing before accept makes the server answer the handshake with 403
            await send({"type": "websocket.close", "code": 1008, "reason": message})
            return

        body = json.dumps({"error": message}).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode("ascii")),
            ],
        })
        await send({"type": "http.response.body", "body": body})
