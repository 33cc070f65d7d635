"""Outbound hook for the public site renderer.

After any mutation that changes seating or attendance, the redacted seating summary is pushed
here. Only table metadata and occupant counts cross this boundary.
"""

import abc
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.seating.dtos import SeatingConfigDTO
from guestlist.seating.repository.read_models import build_seating_config

logger = logging.getLogger(__name__)


class RenderConfigSink(abc.ABC):
    @abc.abstractmethod
    async def publish_seating(self, wedding_id: UUID, config: SeatingConfigDTO) -> None:
        raise NotImplementedError


class LoggingRenderConfigSink(RenderConfigSink):
    """Default sink: records that a new public seating summary is available."""

    async def publish_seating(self, wedding_id: UUID, config: SeatingConfigDTO) -> None:
        logger.info(
            "Seating config for wedding %s updated: %d tables, %d seated",
            wedding_id,
            len(config.tables),
            sum(table.guest_count for table in config.tables),
        )


async def publish_seating_config(
    session: AsyncSession, sink: RenderConfigSink | None, wedding_id: UUID
) -> None:
    if sink is None:
        return
    config = await build_seating_config(session, wedding_id)
    await sink.publish_seating(wedding_id, config)
