import json
from typing import Any

from lxml import etree

from catalog_bridge.exceptions import DecodeError
from catalog_bridge.transport import SNIPPET_LENGTH, RawResponse

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


def _snippet(body: bytes) -> str:
    return body[:SNIPPET_LENGTH].decode("utf-8", errors="replace")


def decode_json(raw: RawResponse | bytes) -> Any:
    body = raw.body if isinstance(raw, RawResponse) else raw
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"JSON decoding error: {e}", _snippet(body)) from e


def decode_xml(raw: RawResponse | bytes) -> etree._Element:
    body = raw.body if isinstance(raw, RawResponse) else raw
    if not body.strip():
        raise DecodeError("XML decoding error: empty document")
    try:
        return etree.fromstring(body, parser=_XML_PARSER)
    except etree.XMLSyntaxError as e:
        raise DecodeError(f"XML decoding error: {e}", _snippet(body)) from e


def find_all(root: etree._Element, path: str) -> list[etree._Element]:
    """Every element matching ``path`` anywhere in the document, like XPath ``//path``."""
    return list(root.xpath(f"//{path}"))


def child_text(element: etree._Element, path: str) -> str:
    found = element.find(path)
    if found is None or found.text is None:
        return ""
    return found.text


def first_text(root: etree._Element, path: str) -> str:
    matches = find_all(root, path)
    if not matches or matches[0].text is None:
        return ""
    return matches[0].text
