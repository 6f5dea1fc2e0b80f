from abc import ABC, abstractmethod
from typing import Any

from catalog_bridge.models import (
    HoldRequest,
    HoldResult,
    NormalizedFine,
    NormalizedHold,
    NormalizedItem,
    NormalizedTransaction,
    Patron,
    PatronProfile,
    RenewRequest,
    RenewResult,
)


class IlsDriver(ABC):
    @abstractmethod
    async def patron_login(self, barcode: str, login: str) -> Patron | None:
        ...

    @abstractmethod
    async def get_my_profile(self, patron: Patron) -> PatronProfile:
        ...

    @abstractmethod
    async def get_my_transactions(self, patron: Patron) -> list[NormalizedTransaction]:
        ...

    @abstractmethod
    async def get_my_fines(self, patron: Patron) -> list[NormalizedFine]:
        ...

    @abstractmethod
    async def get_my_holds(self, patron: Patron) -> list[NormalizedHold]:
        ...

    @abstractmethod
    async def get_holding(self, id: str, patron: Patron | None = None) -> list[NormalizedItem]:
        ...

    @abstractmethod
    async def place_hold(self, details: HoldRequest) -> HoldResult:
        ...

    @abstractmethod
    async def renew_my_items(self, details: RenewRequest) -> RenewResult:
        ...

    async def get_status(self, id: str) -> list[NormalizedItem]:
        return await self.get_holding(id)

    async def get_statuses(self, ids: list[str]) -> list[list[NormalizedItem]]:
        return [await self.get_status(id) for id in ids]

    async def get_purchase_history(self, id: str) -> list[dict[str, Any]]:
        return []
