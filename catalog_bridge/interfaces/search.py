from abc import ABC, abstractmethod

from catalog_bridge.models import RecordCollection
from catalog_bridge.params import ParamBag, Query


class SearchBackend(ABC):
    identifier: str | None = None

    @abstractmethod
    async def search(
        self, query: Query, offset: int, limit: int, params: ParamBag | None = None
    ) -> RecordCollection:
        ...

    @abstractmethod
    async def retrieve(self, id: str, params: ParamBag | None = None) -> RecordCollection:
        ...

    @abstractmethod
    async def retrieve_batch(
        self, ids: list[str], params: ParamBag | None = None
    ) -> RecordCollection:
        ...
