from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )


class Patron(CamelModel):
    id: str
    firstname: str = ""
    lastname: str = ""
    cat_username: str = ""
    cat_password: str = ""
    email: str | None = None
    major: str | None = None
    college: str | None = None


class PatronProfile(CamelModel):
    firstname: str = ""
    lastname: str = ""
    email: str = ""
    address1: str = ""
    address2: str | None = None
    zip: str = ""
    phone: str = ""
    group: str = ""


class NormalizedItem(CamelModel):
    id: str
    item_id: str = ""
    availability: bool = False
    status: str = ""
    location: str = ""
    reserve: str = ""
    callnumber: str = ""
    return_date: str = ""
    number: str = ""
    requests_placed: str = ""
    barcode: str = ""
    notes: str = ""
    summary: str = ""
    is_holdable: bool = True
    holdtype: str = "hold"
    add_link: bool = True


class NormalizedTransaction(CamelModel):
    id: str
    item_id: str = ""
    duedate: str = ""
    due_time: str = ""
    due_status: str = ""
    volume: str = ""
    publication_year: str = ""
    title: str = ""
    renewable: bool = False
    message: str = ""


class NormalizedHold(CamelModel):
    id: str
    item_id: str = ""
    type: str = ""
    location: str = ""
    expire: str = ""
    create: str = ""
    position: str = ""
    available: bool = False
    reqnum: str = ""
    volume: str = ""
    publication_year: str = ""
    title: str = ""


class NormalizedFine(CamelModel):
    id: str
    amount: str = ""
    fine: str = ""
    balance: str = ""
    createdate: str = ""
    checkout: str = ""
    duedate: str = ""


class RenewalCheck(CamelModel):
    renewable: bool
    message: str = ""


class HoldRequest(CamelModel):
    patron: Patron
    id: str
    barcode: str
    pickup_location: str | None = None


class HoldResult(CamelModel):
    success: bool
    sys_message: str = ""


class RenewRequest(CamelModel):
    patron: Patron
    details: list[str]


class RenewalOutcome(CamelModel):
    success: bool
    new_date: str = ""
    item_id: str = ""
    sys_message: str = ""


class RenewResult(CamelModel):
    details: dict[str, RenewalOutcome] = {}


class PickupLocation(CamelModel):
    location_id: str
    location_display: str


class SearchRecord(CamelModel):
    data: dict[str, Any]
    source_identifier: str | None = None

    @property
    def id(self) -> str:
        return str(self.data.get("id", ""))


class Spellcheck(CamelModel):
    """Spelling suggestions keyed by the misspelled term, in response order."""

    query: str = ""
    terms: list[tuple[str, dict[str, Any]]] = []

    def __contains__(self, term: str) -> bool:
        return any(existing == term for existing, _info in self.terms)

    def merge_with(self, other: "Spellcheck") -> None:
        # Earlier dictionaries win: a term already present keeps its suggestions.
        for term, info in other.terms:
            if term not in self:
                self.terms.append((term, info))


class RecordCollection(CamelModel):
    total: int = 0
    offset: int = 0
    records: list[SearchRecord] = []
    spellcheck: Spellcheck = Field(default_factory=Spellcheck)
    facets: dict[str, list[tuple[str, int]]] = {}
    qtime: int | None = None
    source_identifier: str | None = None

    def __len__(self) -> int:
        return len(self.records)

    def add(self, record: SearchRecord) -> None:
        self.records.append(record)


class Terms(CamelModel):
    data: dict[str, list[tuple[str, int]]] = {}

    def get(self, field: str) -> list[tuple[str, int]]:
        return self.data.get(field, [])


class HealthResponse(CamelModel):
    status: str
    version: str


class LoginRequest(CamelModel):
    barcode: str
    login: str


class IdListRequest(CamelModel):
    ids: list[str]
