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

"""Memory data models."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class MemorySource(str, Enum):
    """Provenance of a memory: explicitly requested by the user or inferred."""
    USER = "user"
    AUTO = "auto"


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a UTC timestamp as sortable ISO-8601 text, e.g. 2025-01-31T12:00:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Memory:
    """A single persisted memory. Immutable once created."""
    id: str
    content: str
    tags: List[str] = field(default_factory=list)
    source: MemorySource = MemorySource.USER
    created_at: str = field(default_factory=iso_timestamp)

    @classmethod
    def new(
        cls,
        content: str,
        tags: Optional[List[str]] = None,
        source: MemorySource = MemorySource.USER
    ) -> "Memory":
        """Create a memory with a fresh id and creation timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            content=content,
            tags=list(tags or []),
            source=MemorySource(source),
            created_at=iso_timestamp(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "tags": list(self.tags),
            "source": self.source.value,
            "createdAt": self.created_at,
        }

    def to_json(self) -> str:
        """Canonical serialized form, as written to the blob store."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Any) -> "Memory":
        """
        Strictly decode a serialized memory.

        Raises:
            ValueError: If any field is missing, mistyped, or out of range
        """
        if not isinstance(data, dict):
            raise ValueError("serialized memory must be a JSON object")

        memory_id = data.get("id")
        content = data.get("content")
        tags = data.get("tags")
        source = data.get("source")
        created_at = data.get("createdAt")

        if not isinstance(memory_id, str) or not memory_id:
            raise ValueError("memory id must be a non-empty string")
        if not isinstance(content, str):
            raise ValueError("memory content must be a string")
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise ValueError("memory tags must be a list of strings")
        if not isinstance(created_at, str) or not created_at:
            raise ValueError("memory createdAt must be a non-empty string")

        return cls(
            id=memory_id,
            content=content,
            tags=list(tags),
            source=MemorySource(source),
            created_at=created_at,
        )

    @classmethod
    def from_json(cls, text: str) -> "Memory":
        """
        Decode the canonical serialized form.

        Raises:
            ValueError: If the text is not JSON or not a valid memory
        """
        return cls.from_dict(json.loads(text))


@dataclass(frozen=True)
class ScoredMemory:
    """A memory returned by search, with the provider's relevance score."""
    memory: Memory
    score: float

    def to_dict(self) -> Dict[str, Any]:
        result = self.memory.to_dict()
        result["score"] = self.score
        return result


@dataclass(frozen=True)
class MemoryPage:
    """One page of a memory listing. cursor is None once the listing is exhausted."""
    memories: List[Memory]
    cursor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "memories": [memory.to_dict() for memory in self.memories],
            "cursor": self.cursor,
        }
