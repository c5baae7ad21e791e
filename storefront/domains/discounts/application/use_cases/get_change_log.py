"""
Get Change Log Use Case
"""

from dataclasses import dataclass

from storefront.domains.discounts.application.services import ChangeLogService
from storefront.domains.discounts.domain.entities import ChangeLogEntry


@dataclass
class GetChangeLogRequest:
    action_type_contains: str | None = None
    entity_type: str | None = None
    limit: int | None = None


class GetChangeLogUseCase:
    def __init__(self, change_log: ChangeLogService):
        self.change_log = change_log

    async def execute(self, request: GetChangeLogRequest) -> list[ChangeLogEntry]:
        return await self.change_log.list_entries(
            action_type_contains=request.action_type_contains,
            entity_type=request.entity_type,
            limit=request.limit,
        )
