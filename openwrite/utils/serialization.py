"""Turn facade rows (snake_case dicts) into camelCase JSON payloads."""

from typing import Dict, Iterable, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic.alias_generators import to_camel

from openwrite.utils.text import parse_json_text


def serialize_row(row: Optional[Dict], exclude: Iterable[str] = (), parse_json: Iterable[str] = ()) -> Optional[Dict]:
    """
    Convert one row for the wire.

    Args:
        row: Mapping of column name to value, as returned by the facade
        exclude: Column names that must never leave the server
        parse_json: Columns holding JSON text that should be returned decoded
    """
    if row is None:
        return None
    skipped = set(exclude)
    decoded = set(parse_json)
    payload = {}
    for key, value in row.items():
        if key in skipped:
            continue
        if key in decoded:
            value = parse_json_text(value)
        payload[to_camel(key)] = value
    return jsonable_encoder(payload)


def serialize_rows(rows: Iterable[Dict], exclude: Iterable[str] = (), parse_json: Iterable[str] = ()) -> List[Dict]:
    return [serialize_row(row, exclude=exclude, parse_json=parse_json) for row in rows]
