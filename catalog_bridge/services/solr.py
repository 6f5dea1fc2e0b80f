import logging
from dataclasses import dataclass
from typing import Any

from catalog_bridge.constants import (
    BATCH_PAGE_SIZE,
    JSON_MEDIA_TYPE,
    NAMED_LIST_IMPLEMENTATION,
    RESPONSE_WRITER,
)
from catalog_bridge.decoding import decode_json
from catalog_bridge.exceptions import InvalidArgumentError, ProtocolError
from catalog_bridge.interfaces.search import SearchBackend
from catalog_bridge.models import RecordCollection, Terms
from catalog_bridge.orchestration import batch_query, chunked, quote_identifier
from catalog_bridge.params import ParamBag, Query
from catalog_bridge.services.solr_response import build_record_collection, build_terms
from catalog_bridge.transport import HttpTransport, RawResponse, build_request

logger = logging.getLogger(__name__)

BROWSE_INDEX_MISSING = (
    "Alphabetic Browse index missing.  See "
    "http://vufind.org/wiki/alphabetical_heading_browse for "
    "details on generating the index."
)


@dataclass(frozen=True)
class SolrReply:
    raw: RawResponse
    # Exactly what was sent, invariants included.
    params: ParamBag


class SolrConnector:
    """Issues requests against the request handlers of one Solr core."""

    def __init__(
        self,
        url: str,
        transport: HttpTransport,
        invariants: ParamBag | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._transport = transport
        self._invariants = invariants or ParamBag()

    @property
    def query_invariants(self) -> ParamBag:
        return self._invariants.copy()

    async def search(self, query: Query, offset: int, limit: int, params: ParamBag) -> SolrReply:
        params = params.copy()
        for name, values in query.to_param_bag().items():
            params.set(name, values)
        params.set("q", query.solr_query)
        params.set("start", offset)
        params.set("rows", limit)
        return await self.query(query.handler or "select", params)

    async def retrieve(self, id: str, params: ParamBag) -> SolrReply:
        params = params.copy()
        params.set("q", f"id:{quote_identifier(id)}")
        return await self.query("select", params)

    async def similar(self, id: str, params: ParamBag) -> SolrReply:
        params = params.copy()
        params.set("q", f"id:{quote_identifier(id)}")
        params.set("qt", "morelikethis")
        return await self.query("select", params)

    async def query(self, handler: str, params: ParamBag) -> SolrReply:
        params = params.copy()
        params.merge_with(self._invariants)
        return await self._send(handler, params)

    async def resubmit(self, params: ParamBag) -> SolrReply:
        """Send already complete parameters, without adding the invariants again."""
        return await self._send("select", params)

    async def _send(self, handler: str, params: ParamBag) -> SolrReply:
        raw = await self._transport.send(
            build_request(f"{self.url}/{handler}", params, headers={"Accept": JSON_MEDIA_TYPE})
        )
        return SolrReply(raw=raw, params=params)


class SolrBackend(SearchBackend):
    def __init__(
        self,
        connector: SolrConnector,
        dictionaries: list[str] | None = None,
        identifier: str | None = None,
    ) -> None:
        self._connector = connector
        self._dictionaries = list(dictionaries or [])
        self.identifier = identifier

    @property
    def connector(self) -> SolrConnector:
        return self._connector

    async def search(
        self, query: Query, offset: int, limit: int, params: ParamBag | None = None
    ) -> RecordCollection:
        params = params.copy() if params is not None else ParamBag()
        self._inject_response_writer(params)

        if params.get_first("spellcheck.q"):
            if self._dictionaries:
                params.set("spellcheck", "true")
                params.set("spellcheck.dictionary", self._dictionaries[0])
            else:
                logger.warning("Spellcheck requested but no spellcheck dictionary configured")

        reply = await self._connector.search(query, offset, limit, params)
        collection = self._create_record_collection(reply.raw)

        # Ask each remaining dictionary for more suggestions, unless the
        # request actually sent had spellcheck switched off.
        previous = reply.params
        for dictionary in self._dictionaries[1:]:
            if previous.get_first("spellcheck") != "true":
                continue
            follow_up = ParamBag({"q": "*:*", "spellcheck": "true", "rows": 0})
            self._inject_response_writer(follow_up)
            follow_up.merge_with(self._connector.query_invariants)
            spelling_query = previous.get("spellcheck.q")
            if spelling_query:
                follow_up.set("spellcheck.q", spelling_query)
            follow_up.set("spellcheck.dictionary", dictionary)

            reply = await self._connector.resubmit(follow_up)
            suggestions = self._create_record_collection(reply.raw)
            collection.spellcheck.merge_with(suggestions.spellcheck)
            previous = reply.params

        return collection

    async def retrieve(self, id: str, params: ParamBag | None = None) -> RecordCollection:
        params = params.copy() if params is not None else ParamBag()
        self._inject_response_writer(params)
        reply = await self._connector.retrieve(id, params)
        return self._create_record_collection(reply.raw)

    async def retrieve_batch(
        self, ids: list[str], params: ParamBag | None = None
    ) -> RecordCollection:
        # 100 ids per request keeps the query string and response size sane.
        results: RecordCollection | None = None
        for page in chunked(list(ids), BATCH_PAGE_SIZE):
            batch = await self.search(batch_query(page), 0, BATCH_PAGE_SIZE, params)
            if results is None:
                results = batch
            else:
                for record in batch.records:
                    results.add(record)
                results.total += batch.total

        if results is None:
            return RecordCollection(source_identifier=self.identifier)
        return results

    async def similar(self, id: str, params: ParamBag | None = None) -> RecordCollection:
        params = params.copy() if params is not None else ParamBag()
        self._inject_response_writer(params)
        reply = await self._connector.similar(id, params)
        return self._create_record_collection(reply.raw)

    async def terms(
        self, field: str, start: str, limit: int, params: ParamBag | None = None
    ) -> Terms:
        params = params.copy() if params is not None else ParamBag()
        self._inject_response_writer(params)
        params.set("terms", "true")
        params.set("terms.fl", field)
        params.set("terms.lower", start)
        params.set("terms.limit", limit)
        params.set("terms.lower.incl", "false")
        params.set("terms.sort", "index")

        reply = await self._connector.query("term", params)
        return build_terms(self._deserialize(reply.raw))

    async def alphabetic_browse(
        self,
        source: str,
        from_: str,
        page: int,
        limit: int = 20,
        params: ParamBag | None = None,
    ) -> dict[str, Any]:
        params = params.copy() if params is not None else ParamBag()
        self._inject_response_writer(params)
        params.set("from", from_)
        params.set("offset", page * limit)
        params.set("rows", limit)
        params.set("source", source)

        try:
            reply = await self._connector.query("browse", params)
        except ProtocolError as e:
            if self._is_missing_browse_index(e):
                raise ProtocolError(BROWSE_INDEX_MISSING, status_code=e.status_code) from e
            raise
        return self._deserialize(reply.raw)

    def _create_record_collection(self, raw: RawResponse) -> RecordCollection:
        return build_record_collection(self._deserialize(raw), self.identifier)

    def _deserialize(self, raw: RawResponse) -> Any:
        payload = decode_json(raw)
        qtime = "n/a"
        if isinstance(payload, dict):
            qtime = (payload.get("responseHeader") or {}).get("QTime", "n/a")
        logger.debug("Deserialized SOLR response (qtime=%s)", qtime)
        return payload

    @staticmethod
    def _is_missing_browse_index(error: ProtocolError) -> bool:
        message = str(error)
        return (
            "does not exist" in message
            or "no such table" in message
            or "couldn't find a browse index" in message
        )

    @staticmethod
    def _inject_response_writer(params: ParamBag) -> None:
        """Force JSON with arrarr named lists, refusing any other requested writer."""
        writer = params.get("wt") or []
        if any(value != RESPONSE_WRITER for value in writer):
            raise InvalidArgumentError(f"Invalid response writer type: {writer}")
        named_lists = params.get("json.nl") or []
        if any(value != NAMED_LIST_IMPLEMENTATION for value in named_lists):
            raise InvalidArgumentError(f"Invalid named list implementation type: {named_lists}")
        params.set("wt", RESPONSE_WRITER)
        params.set("json.nl", NAMED_LIST_IMPLEMENTATION)
