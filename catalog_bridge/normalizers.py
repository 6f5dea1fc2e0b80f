"""Mapping of OLE circulation XML and docstore JSON into the normalized models.

Every function here is total: a missing field becomes ``""`` (or ``False``),
never ``None`` leaking out to callers.
"""

from datetime import date
from typing import Any

from lxml import etree

from catalog_bridge.constants import (
    CODE_HOLD_PLACED,
    CODE_RENEWED,
    CODE_SUCCESS,
    OVERDUE,
    STATUS_LOANED,
    UNKNOWN_TITLE,
)
from catalog_bridge.decoding import child_text, first_text
from catalog_bridge.models import (
    HoldResult,
    NormalizedFine,
    NormalizedHold,
    NormalizedItem,
    NormalizedTransaction,
    Patron,
    PatronProfile,
    RenewalCheck,
    RenewalOutcome,
)


def derive_id(compound: str) -> str:
    """``"wbm-123"`` -> ``"123"``. Only the first dash separates the prefix."""
    _prefix, sep, suffix = compound.partition("-")
    return suffix if sep else compound


def catalogue_id(element: etree._Element) -> str:
    return derive_id(child_text(element, "catalogueId").strip())


def strip_prefix(value: str, prefix: str) -> str:
    return value[len(prefix):] if prefix and value.startswith(prefix) else value


def add_prefix(value: str, prefix: str) -> str:
    return value if value.startswith(prefix) else f"{prefix}{value}"


def split_timestamp(value: str) -> tuple[str, str]:
    # Fixed-width slice: OLE timestamps are not always valid enough to parse.
    return value[:10], value[11:]


def is_available(status: str) -> bool:
    # Only LOANED counts as unavailable; the upstream has no reliable list of
    # the other unavailable states.
    return status != STATUS_LOANED


def title_or_placeholder(title: str | None) -> str:
    return title if title else UNKNOWN_TITLE


def response_code(root: etree._Element) -> str:
    return first_text(root, "code").strip()


def response_message(root: etree._Element) -> str:
    return first_text(root, "message")


def is_success_code(code: str) -> bool:
    return code == CODE_SUCCESS


def normalize_transaction(element: etree._Element, renewal: RenewalCheck) -> NormalizedTransaction:
    due_date, due_time = split_timestamp(child_text(element, "dueDate"))
    return NormalizedTransaction(
        id=catalogue_id(element),
        item_id=child_text(element, "itemId"),
        duedate=due_date,
        due_time=due_time,
        due_status=OVERDUE if child_text(element, "overDue") == "true" else "",
        title=title_or_placeholder(child_text(element, "title")),
        renewable=renewal.renewable,
        message=renewal.message,
    )


def normalize_hold(element: etree._Element, today: date | None = None) -> NormalizedHold:
    today = today or date.today()
    # ISO dates compare correctly as strings; a blank date counts as available.
    available = child_text(element, "availableDate") <= today.isoformat()
    return NormalizedHold(
        id=catalogue_id(element),
        item_id=child_text(element, "itemId"),
        type=child_text(element, "requestType"),
        expire=child_text(element, "expiryDate"),
        create=child_text(element, "createDate"),
        position=child_text(element, "priority"),
        available=available,
        reqnum=child_text(element, "requestId"),
        title=title_or_placeholder(child_text(element, "title")),
    )


def normalize_fine(element: etree._Element) -> NormalizedFine:
    return NormalizedFine(
        id=catalogue_id(element),
        amount=child_text(element, "amount"),
        balance=child_text(element, "balance"),
    )


def normalize_profile(root: etree._Element, patron: Patron) -> PatronProfile:
    profile = PatronProfile(firstname=patron.firstname, lastname=patron.lastname)
    fields = {
        "firstname": "patronName/firstName",
        "lastname": "patronName/lastName",
        "email": "patronEmail/emailAddress",
        "address1": "patronAddress/line1",
        "address2": "patronAddress/line2",
        "zip": "patronAddress/postalCode",
        "phone": "patronPhone/phoneNumber",
    }
    updates = {}
    for name, path in fields.items():
        value = child_text(root, path)
        if value:
            updates[name] = value
    return profile.model_copy(update=updates)


def first_value(doc: dict[str, Any], key: str) -> str:
    """Solr stored fields arrive either as scalars or as multi-valued lists."""
    value = doc.get(key)
    if isinstance(value, list):
        value = value[0] if value else None
    return "" if value is None else str(value)


def normalize_holding_item(
    holding: dict[str, Any],
    item: dict[str, Any],
    bib_id: str,
    bib_prefix: str,
    item_prefix: str,
) -> NormalizedItem:
    status = first_value(item, "ItemStatus_display")
    copy_number = first_value(item, "CopyNumber_display")
    enumeration = first_value(item, "Enumeration_search")
    return NormalizedItem(
        id=strip_prefix(bib_id, bib_prefix),
        item_id=strip_prefix(first_value(item, "itemIdentifier"), item_prefix),
        availability=is_available(status),
        status=status,
        location=first_value(holding, "LocationLevel_display"),
        callnumber=first_value(holding, "CallNumber_display"),
        number=f"{copy_number} : {enumeration}",
        barcode=first_value(item, "ItemBarcode_display"),
    )


def normalize_hold_result(root: etree._Element) -> HoldResult:
    return HoldResult(
        success=response_code(root) == CODE_HOLD_PLACED,
        sys_message=response_message(root),
    )


def normalize_renewal(root: etree._Element, barcode: str) -> RenewalOutcome:
    return RenewalOutcome(
        success=response_code(root) == CODE_RENEWED,
        item_id=barcode,
        sys_message=response_message(root),
    )
