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

"""Agent Memories - durable memory store with semantic retrieval for coding agents."""

# Load version from package metadata
try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("agent-memories")
except Exception:
    __version__ = "0.0.0.dev0"

from .models import Memory, MemorySource, ScoredMemory
from .errors import MemoryServiceError, ValidationError, StoreError, TransportError, SearchProviderError
from .services import MemoryService

__all__ = [
    'Memory',
    'MemorySource',
    'ScoredMemory',
    'MemoryService',
    'MemoryServiceError',
    'ValidationError',
    'StoreError',
    'TransportError',
    'SearchProviderError',
]
