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
FastAPI dependencies for the HTTP interface.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException

from ..services.context import MemoryContext, create_memory_context
from ..services.memory_service import MemoryService

logger = logging.getLogger(__name__)

# Global memory context, installed by the app lifespan (or by tests)
_context: Optional[MemoryContext] = None


def set_memory_context(context: Optional[MemoryContext]) -> None:
    """Set the global memory context."""
    global _context
    _context = context


def get_memory_context() -> MemoryContext:
    """Get the global memory context."""
    if _context is None:
        raise HTTPException(status_code=503, detail="Memory context not initialized")
    return _context


def get_memory_service(context: MemoryContext = Depends(get_memory_context)) -> MemoryService:
    """Get a MemoryService bound to the global context."""
    return MemoryService(context)


async def create_context_for_web() -> MemoryContext:
    """Create and initialize the memory context for the web interface from configuration."""
    logger.info("Creating memory context for web interface...")
    return await create_memory_context()
