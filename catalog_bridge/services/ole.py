import asyncio
import logging
import re
from collections.abc import Callable
from datetime import date
from typing import Any

from lxml import etree
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from catalog_bridge.config import Settings
from catalog_bridge.constants import HOLD_REQUEST_TYPE, HOLDINGS_ROWS, JSON_MEDIA_TYPE
from catalog_bridge.decoding import child_text, decode_json, decode_xml, find_all
from catalog_bridge.exceptions import (
    CatalogError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
)
from catalog_bridge.interfaces.ils import IlsDriver
from catalog_bridge.models import (
    HoldRequest,
    HoldResult,
    NormalizedFine,
    NormalizedHold,
    NormalizedItem,
    NormalizedTransaction,
    Patron,
    PatronProfile,
    PickupLocation,
    RenewalCheck,
    RenewRequest,
    RenewResult,
)
from catalog_bridge.normalizers import (
    add_prefix,
    catalogue_id,
    first_value,
    is_success_code,
    normalize_fine,
    normalize_hold,
    normalize_hold_result,
    normalize_holding_item,
    normalize_profile,
    normalize_renewal,
    normalize_transaction,
    response_code,
    strip_prefix,
)
from catalog_bridge.orchestration import flatten_children
from catalog_bridge.params import ParamBag
from catalog_bridge.transport import SNIPPET_LENGTH, HttpTransport, build_request

logger = logging.getLogger(__name__)


def _sql_identifier(value: str) -> str:
    return re.sub(r"[^\w]", "", value)


class OleDriver(IlsDriver):
    """ILS driver for Kuali OLE.

    Circulation data comes from the OLE circulation service (XML), holdings
    and items from the docstore's Solr index (JSON), and patron
    authentication from the OLE database.
    """

    def __init__(
        self,
        settings: Settings,
        transport: HttpTransport,
        engine: Engine | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._engine = engine
        self._today = today

    def get_config(self, section: str) -> dict[str, Any] | None:
        return self._settings.features.get(section)

    # Patron

    async def patron_login(self, barcode: str, login: str) -> Patron | None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self._lookup_patron(barcode, login))

    def _lookup_patron(self, barcode: str, login: str) -> Patron | None:
        if self._engine is None:
            raise ConfigurationError("No catalog database configured")

        db = _sql_identifier(self._settings.db_name)
        login_field = _sql_identifier(self._settings.login_field)
        sql = text(
            "SELECT ole_ptrn_t.OLE_PTRN_ID, krim_entity_nm_t.FIRST_NM, krim_entity_nm_t.LAST_NM "
            f"FROM {db}.ole_ptrn_t, {db}.krim_entity_nm_t "
            "WHERE ole_ptrn_t.OLE_PTRN_ID = krim_entity_nm_t.ENTITY_ID "
            f"AND lower(krim_entity_nm_t.{login_field}) = :login "
            "AND lower(ole_ptrn_t.BARCODE) = :barcode"
        )
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    sql, {"login": login.lower(), "barcode": barcode.lower()}
                ).mappings().first()
        except SQLAlchemyError as e:
            raise CatalogError(f"Patron lookup failed: {e}") from e

        if row is None or not row["OLE_PTRN_ID"]:
            logger.info("Login failed for barcode %s", barcode)
            return None
        return Patron(
            id=str(row["OLE_PTRN_ID"]),
            firstname=row["FIRST_NM"] or "",
            lastname=row["LAST_NM"] or "",
            cat_username=barcode,
            cat_password=login,
        )

    async def get_my_profile(self, patron: Patron) -> PatronProfile:
        root = await self._circulation(
            "lookupUser", patron.id, operator_id=self._settings.privileged_operator_id
        )
        return normalize_profile(root, patron)

    # Circulation listings

    async def get_my_transactions(self, patron: Patron) -> list[NormalizedTransaction]:
        root = await self._circulation("getCheckedOutItems", patron.id)
        if not self._listing_succeeded(root, "getCheckedOutItems"):
            return []

        transactions = []
        for element in self._identified(root, "checkOutItem"):
            if self._settings.check_renewals_up_front:
                renewal = self.is_renewable(patron.id, child_text(element, "itemId"))
            else:
                renewal = RenewalCheck(renewable=True, message="renewable")
            transactions.append(normalize_transaction(element, renewal))
        return transactions

    async def get_my_fines(self, patron: Patron) -> list[NormalizedFine]:
        root = await self._circulation("fine", patron.id)
        if not self._listing_succeeded(root, "fine"):
            return []
        return [normalize_fine(element) for element in self._identified(root, "fineItem")]

    async def get_my_holds(self, patron: Patron) -> list[NormalizedHold]:
        root = await self._circulation("holds", patron.id)
        if not self._listing_succeeded(root, "holds"):
            return []
        today = self._today()
        return [normalize_hold(element, today) for element in self._identified(root, "hold")]

    def _listing_succeeded(self, root: etree._Element, service: str) -> bool:
        code = response_code(root)
        if not is_success_code(code):
            logger.info("OLE %s returned code %r; treating as empty", service, code)
            return False
        return True

    @staticmethod
    def _identified(root: etree._Element, tag: str) -> list[etree._Element]:
        elements = []
        for element in find_all(root, tag):
            if not catalogue_id(element):
                logger.warning(
                    "Skipping %s without a catalogue id: %s",
                    tag,
                    etree.tostring(element, encoding="unicode")[:SNIPPET_LENGTH],
                )
                continue
            elements.append(element)
        return elements

    # Holdings

    async def get_holding(self, id: str, patron: Patron | None = None) -> list[NormalizedItem]:
        if not strip_prefix(id.strip(), self._settings.bib_prefix):
            raise InvalidArgumentError(f"Record id {id!r} has no usable identifier")
        bib_id = add_prefix(id, self._settings.bib_prefix)
        holdings = await self._docstore_search(f"bibIdentifier:{bib_id} AND DocType:holdings")
        logger.debug("Record %s has %d holdings", id, len(holdings))

        async def items_for(holding: dict[str, Any]) -> list[NormalizedItem]:
            holdings_id = first_value(holding, "holdingsIdentifier")
            docs = await self._docstore_search(f"holdingsIdentifier:{holdings_id} AND DocType:item")
            return [
                normalize_holding_item(
                    holding, doc, id, self._settings.bib_prefix, self._settings.item_prefix
                )
                for doc in docs
            ]

        return await flatten_children(holdings, items_for)

    async def _docstore_search(self, q: str) -> list[dict[str, Any]]:
        params = ParamBag({"q": q, "wt": "json", "rows": HOLDINGS_ROWS})
        raw = await self._transport.send(
            build_request(self._settings.solr_service, params, headers={"Accept": JSON_MEDIA_TYPE})
        )
        payload = decode_json(raw)
        response = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(response, dict) or not isinstance(response.get("docs"), list):
            raise DecodeError("Docstore response has no response.docs", raw.text[:200])
        return response["docs"]

    # Requests

    async def place_hold(self, details: HoldRequest) -> HoldResult:
        root = await self._circulation(
            "placeRequest",
            details.patron.id,
            method="POST",
            itemBarcode=details.barcode,
            requestType=HOLD_REQUEST_TYPE,
        )
        result = normalize_hold_result(root)
        logger.info(
            "Hold on %s for patron %s: success=%s", details.barcode, details.patron.id, result.success
        )
        return result

    def get_pickup_locations(
        self, patron: Patron | None = None, details: HoldRequest | None = None
    ) -> list[PickupLocation]:
        return [PickupLocation(**location) for location in self._settings.pickup_locations]

    def get_default_pickup_location(
        self, patron: Patron | None = None, details: HoldRequest | None = None
    ) -> str:
        return self._settings.default_pickup_location

    # Renewals

    def is_renewable(self, patron_id: str, item_id: str) -> RenewalCheck:
        # OLE has no renewability lookup; the renew call itself reports refusals.
        return RenewalCheck(renewable=True, message="renewable")

    @staticmethod
    def get_renew_details(checkout: NormalizedTransaction) -> str:
        return f"{checkout.item_id},{checkout.id}"

    async def renew_my_items(self, details: RenewRequest) -> RenewResult:
        result = RenewResult()
        for detail in details.details:
            barcode, _sep, _record_id = detail.partition(",")
            root = await self._circulation(
                "renewItem",
                details.patron.id,
                method="POST",
                operator_id=self._settings.privileged_operator_id,
                itemBarcode=barcode,
            )
            result.details[barcode] = normalize_renewal(root, barcode)
        return result

    async def _circulation(
        self,
        service: str,
        patron_id: str,
        method: str = "GET",
        operator_id: str | None = None,
        **extra: str,
    ) -> etree._Element:
        params = ParamBag(
            {
                "service": service,
                "patronId": patron_id,
                "operatorId": operator_id or self._settings.operator_id,
            }
        )
        for name, value in extra.items():
            params.set(name, value)
        raw = await self._transport.send(
            build_request(self._settings.circulation_service, params, method=method)
        )
        return decode_xml(raw)
