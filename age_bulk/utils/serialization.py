"""Cypher rendering of write operations for Apache AGE."""

from __future__ import annotations

import re
from typing import Any

from age_bulk.models import EdgeDocument, EndpointSnapshot, VertexDocument, WriteMode, WriteOperation

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
DOLLAR_QUOTE = "$$"


def escape_sql_literal(s: str) -> str:
    """Escape a string for use in a PostgreSQL SQL literal (double single quotes)."""
    return s.replace("'", "''")


def format_cypher_value(val: Any) -> str:
    """Format a Python value for inline use in a Cypher statement.

    AGE's Cypher has no $param bind variables, so values are interpolated as
    escaped literals. The statement travels inside a $$-quoted SQL string, so
    a string holding $$ cannot be expressed and raises ValueError.
    """
    if val is None:
        return "null"
    elif isinstance(val, bool):
        return "true" if val else "false"
    elif isinstance(val, (int, float)):
        return repr(val)
    elif isinstance(val, str):
        if DOLLAR_QUOTE in val:
            raise ValueError(f"String value contains {DOLLAR_QUOTE!r}: {val!r}")
        escaped = val.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    elif isinstance(val, (list, tuple)):
        return "[" + ", ".join(format_cypher_value(v) for v in val) + "]"
    elif isinstance(val, dict):
        return cypher_map(val)
    else:
        return format_cypher_value(str(val))


def cypher_identifier(name: str) -> str:
    """Validate a label or property key for unquoted use in Cypher."""
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid Cypher identifier: {name!r}")
    return name


def cypher_map(props: dict[str, Any]) -> str:
    """Render a property dict as an inline Cypher map: {key: value, ...}."""
    items = ", ".join(f"{cypher_identifier(k)}: {format_cypher_value(v)}" for k, v in props.items())
    return "{" + items + "}"


def _set_clause(var: str, props: dict[str, Any]) -> str:
    parts = [f"{var}.{cypher_identifier(k)} = {format_cypher_value(v)}" for k, v in props.items() if k != "id"]
    return f" SET {', '.join(parts)}" if parts else ""


def _match_endpoint(var: str, endpoint: EndpointSnapshot) -> str:
    return f"({var}:{cypher_identifier(endpoint.label)} {{id: {format_cypher_value(endpoint.id)}}})"


def vertex_cypher(document: VertexDocument, mode: WriteMode) -> str:
    label = cypher_identifier(document.label)
    props = document.stored_properties()
    if mode is WriteMode.CREATE:
        return f"CREATE (n:{label} {cypher_map(props)}) RETURN id(n)"
    return f"MERGE (n:{label} {{id: {format_cypher_value(document.id)}}}){_set_clause('n', props)} RETURN id(n)"


def edge_cypher(document: EdgeDocument, mode: WriteMode) -> str:
    label = cypher_identifier(document.label)
    props = document.stored_properties()
    match = f"MATCH {_match_endpoint('a', document.source)}, {_match_endpoint('b', document.destination)} "
    if mode is WriteMode.CREATE:
        return match + f"CREATE (a)-[e:{label} {cypher_map(props)}]->(b) RETURN id(e)"
    return (
        match
        + f"MERGE (a)-[e:{label} {{id: {format_cypher_value(document.id)}}}]->(b)"
        + _set_clause("e", props)
        + " RETURN id(e)"
    )


def operation_cypher(operation: WriteOperation) -> str:
    if isinstance(operation.document, EdgeDocument):
        return edge_cypher(operation.document, operation.mode)
    return vertex_cypher(operation.document, operation.mode)


def operation_sql(graph_name: str, operation: WriteOperation) -> str:
    """Wrap an operation's Cypher in AGE's ``cypher()`` SQL function."""
    cypher = operation_cypher(operation)
    return f"SELECT * FROM cypher('{escape_sql_literal(graph_name)}', $$ {cypher} $$) AS (result agtype)"
