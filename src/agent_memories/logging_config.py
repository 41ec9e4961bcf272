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
Logging configuration for Agent Memories.

Output routing depends on how the process talks to its client. The stdio MCP
transport owns stdout for protocol messages, so every log record goes to
stderr. HTTP servers use dual-stream output: stdout for INFO/DEBUG, stderr
for WARNING and above.
"""

import logging
import sys

from . import config

STDIO_TRANSPORT = "stdio"


class DualStreamHandler(logging.Handler):
    """Transport-aware handler that routes records to stdout or stderr."""

    def __init__(self, transport: str = "http"):
        super().__init__()
        self.transport = transport
        self.stdout_handler = logging.StreamHandler(sys.stdout)
        self.stderr_handler = logging.StreamHandler(sys.stderr)

        formatter = logging.Formatter('%(asctime)s %(levelname)s:%(name)s:%(message)s')
        self.stdout_handler.setFormatter(formatter)
        self.stderr_handler.setFormatter(formatter)

    def emit(self, record):
        if self.transport == STDIO_TRANSPORT or record.levelno >= logging.WARNING:
            self.stderr_handler.emit(record)
        else:
            self.stdout_handler.emit(record)


def configure_logging(transport: str = "http", level: str = None) -> logging.Logger:
    """
    Configure the root logger with a transport-aware handler.

    Args:
        transport: "stdio" for the stdio MCP server, anything else for HTTP servers
        level: Log level name; defaults to LOG_LEVEL
    """
    log_level = (level or config.LOG_LEVEL).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(DualStreamHandler(transport=transport))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger(__name__)
