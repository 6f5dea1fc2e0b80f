import json
from collections.abc import Callable

import httpx
import pytest

from catalog_bridge.config import Settings
from catalog_bridge.models import Patron
from catalog_bridge.transport import HttpTransport

Responder = httpx.Response | Callable[[httpx.Request], httpx.Response]


class RecordingHandler:
    """Replays canned upstream responses in order and keeps every request seen."""

    def __init__(self, responses: list[Responder]):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self._responses.pop(0)
        return response(request) if callable(response) else response

    def params(self, index: int) -> httpx.QueryParams:
        return self.requests[index].url.params


def xml_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=body.encode(), headers={"content-type": "text/xml"})


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code, content=json.dumps(payload).encode(), headers={"content-type": "application/json"}
    )


def solr_docs(*docs: dict, qtime: int = 3) -> dict:
    return {
        "responseHeader": {"status": 0, "QTime": qtime},
        "response": {"numFound": len(docs), "start": 0, "docs": list(docs)},
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        circulation_service="http://ole.test/olefs/circulation",
        solr_service="http://ole.test/oledocstore/bib/select",
        search_service="http://solr.test/solr/biblio",
        default_pickup_location="MAIN",
        spellcheck_dictionaries=[],
    )


@pytest.fixture
def make_transport() -> Callable[..., tuple[HttpTransport, RecordingHandler]]:
    def factory(*responses: Responder) -> tuple[HttpTransport, RecordingHandler]:
        handler = RecordingHandler(list(responses))
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpTransport(client, timeout=5.0), handler

    return factory


@pytest.fixture
def patron() -> Patron:
    return Patron(id="10100055U", firstname="Ada", lastname="Lovelace", cat_username="2900123")


CHECKED_OUT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<checkedOutItems>
  <code>000</code>
  <message>Successfully retrieved</message>
  <checkOutItems>
    <checkOutItem>
      <catalogueId>wbm-10000123</catalogueId>
      <itemId>33165972443029224</itemId>
      <title>The Left Hand of Darkness</title>
      <dueDate>2024-05-01 23:59:00.0</dueDate>
      <overDue>true</overDue>
    </checkOutItem>
    <checkOutItem>
      <catalogueId>wbm-10000456</catalogueId>
      <itemId>9860950159307095</itemId>
      <title></title>
      <dueDate>2024-06-15 12:00:00.0</dueDate>
      <overDue>false</overDue>
    </checkOutItem>
  </checkOutItems>
</checkedOutItems>
"""

HOLDS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<holds>
  <code>000</code>
  <message>Successfully retrieved</message>
  <holdItems>
    <hold>
      <catalogueId>wbm-20000001</catalogueId>
      <itemId>005123641675530699</itemId>
      <requestType>Page/Hold Request</requestType>
      <title>Kindred</title>
      <availableDate>2024-01-10</availableDate>
      <expiryDate>2024-02-10</expiryDate>
      <createDate>2024-01-02</createDate>
      <priority>1</priority>
      <requestId>4711</requestId>
    </hold>
    <hold>
      <catalogueId>wbm-20000002</catalogueId>
      <itemId>005123641675530700</itemId>
      <requestType>Recall/Hold Request</requestType>
      <availableDate>2099-01-01</availableDate>
      <priority>3</priority>
      <requestId>4712</requestId>
    </hold>
  </holdItems>
</holds>
"""

FINES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<fine>
  <code>000</code>
  <message>Successfully retrieved</message>
  <fineItems>
    <fineItem>
      <catalogueId>wbm-30000001</catalogueId>
      <amount>5.00</amount>
      <balance>2.50</balance>
    </fineItem>
  </fineItems>
</fine>
"""

LOOKUP_USER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<lookupUser>
  <code>000</code>
  <patronName>
    <firstName>Augusta</firstName>
    <lastName>King</lastName>
  </patronName>
  <patronEmail><emailAddress>ada@example.org</emailAddress></patronEmail>
  <patronAddress>
    <line1>12 St James's Square</line1>
    <postalCode>SW1Y 4JH</postalCode>
  </patronAddress>
  <patronPhone><phoneNumber>555-0100</phoneNumber></patronPhone>
</lookupUser>
"""


def circulation_reply(code: str, message: str, root: str = "response") -> str:
    return f"<{root}><code>{code}</code><message>{message}</message></{root}>"
