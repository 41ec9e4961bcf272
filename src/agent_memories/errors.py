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
Shared error types for the memory service.

A provider that declines to reindex is reported as a status value
(see services.index_sync), not as an exception.
"""

from typing import Optional


class MemoryServiceError(Exception):
    """Base class for all errors raised by the memory service."""


class ValidationError(MemoryServiceError, ValueError):
    """Caller input failed a precondition. No store or provider call was made."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class StoreError(MemoryServiceError):
    """A durable blob store operation failed."""


class TransportError(MemoryServiceError):
    """A request to a remote collaborator could not be sent or its response could not be read."""


class SearchProviderError(MemoryServiceError):
    """The search provider answered but reported that the search failed."""
