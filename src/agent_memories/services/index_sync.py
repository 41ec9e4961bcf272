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
Index sync controller.

Asks the search provider to rebuild its index over the blob store and
reports whether the request was accepted. Indexing runs asynchronously on
the provider side; completion is never awaited or polled here, so a memory
becomes searchable some time after an accepted resync.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from ..search.base import SearchProvider

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class ResyncAccepted:
    """The provider queued a reindex job."""
    job_id: Optional[str] = None

    accepted = True


@dataclass(frozen=True)
class ResyncRejected:
    """The provider answered but declined to reindex."""
    reason: str = UNKNOWN_ERROR

    accepted = False


ResyncOutcome = Union[ResyncAccepted, ResyncRejected]

# Called with (trigger, outcome) after every resync, e.g. trigger="create"
ResyncListener = Callable[[str, ResyncOutcome], None]


class IndexSyncController:
    """Requests reindexing and turns the provider's answer into a ResyncOutcome."""

    def __init__(self, provider: SearchProvider, listeners: Iterable[ResyncListener] = ()):
        self.provider = provider
        self._listeners: List[ResyncListener] = list(listeners)

    def add_listener(self, listener: ResyncListener) -> None:
        """Register a status hook. Intended to be called during startup wiring."""
        self._listeners.append(listener)

    async def trigger_resync(self, trigger: str = "manual") -> ResyncOutcome:
        """
        Request a reindex.

        Args:
            trigger: What caused the resync ("create", "delete", "manual"), for logs and listeners

        Returns:
            ResyncAccepted with the job id, or ResyncRejected with the provider's
            first error message

        Raises:
            TransportError: If the request could not be sent or no well-formed answer came back
        """
        response = await self.provider.request_reindex()

        if response.accepted:
            outcome: ResyncOutcome = ResyncAccepted(job_id=response.job_id)
            logger.info(f"Resync after {trigger} accepted (job {response.job_id})")
        else:
            reason = response.errors[0] if response.errors else UNKNOWN_ERROR
            outcome = ResyncRejected(reason=reason)
            logger.warning(f"Resync after {trigger} rejected: {reason}")

        self.notify(trigger, outcome)
        return outcome

    def notify(self, trigger: str, outcome: ResyncOutcome) -> None:
        for listener in self._listeners:
            try:
                listener(trigger, outcome)
            except Exception as e:
                logger.warning(f"Resync listener {listener!r} failed: {e}")
