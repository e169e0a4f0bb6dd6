import argparse
import json
from typing import Any

NULL_ID = "-"


class ParseError(argparse.ArgumentTypeError, ValueError):
    """
    Raised for a malformed command argument. Used as an argparse `type`,
    the parsers below turn bad input into a usage error before anything
    is sent to the server.
    """


def parse_document(text: str, what: str = "document") -> dict[str, Any]:
    """Parse a command-line argument holding a JSON object."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError as ex:
        raise ParseError(f"Invalid {what}: {ex.msg} (line {ex.lineno}, column {ex.colno})") from ex

    if not isinstance(value, dict):
        raise ParseError(f"Invalid {what}: expected a JSON object, got {type(value).__name__}")

    return value


def parse_query(text: str) -> dict[str, Any]:
    return parse_document(text, what="query")


def parse_id(text: str) -> str | None:
    """'-' stands for a null id, anything else is taken verbatim."""
    if not text:
        raise ParseError("Document id must not be empty")
    return None if text == NULL_ID else text


def parse_existing_id(text: str) -> str:
    doc_id = parse_id(text)
    if doc_id is None:
        raise ParseError(f"'{NULL_ID}' is only accepted by upsert, give a document id")
    return doc_id
