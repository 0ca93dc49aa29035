"""Parent-link validation and traversal for self-referencing tables.

Three tables link rows to other rows of the same table:
- state_region.parent_code        -> state_region.code
- timezone.canonical_tzid         -> timezone.tzid
- commodity_code / industry_code  (domain_code, parent_code) -> (domain_code, code)

DuckDB cannot insert into a table whose foreign key references itself,
so these links are checked here before any write: the parent must exist
(stored already or arriving in the same batch) within the same domain,
a row may not be its own parent, links may not form cycles, and level
numbers must agree with tree depth.

Example usage:
    validate_batch(con, "ref", INDUSTRY_CODE_TABLE, rows)
    ancestors(con, "ref", "industry_code", "10", domain="isic")
"""

from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from refdata.ddl import qualified, quote_ident
from refdata.exceptions import ForeignKeyViolationError, HierarchyError, SchemaError
from refdata.logging_config import create_logger
from refdata.schemas import get_table
from refdata.schemas.base import TableDefinition

logger = create_logger(__name__)

# Upper bound for recursive walks; real trees here are at most a few levels deep
MAX_DEPTH = 64

Key = Tuple[Any, ...]


def find_cycles(edges: Mapping[Hashable, Optional[Hashable]]) -> List[List[Hashable]]:
    """Find every cycle in a child -> parent mapping.

    Each cycle is reported once, starting from the node first reached
    while walking. Links to nodes outside the mapping end a walk.
    """
    cycles = []
    settled = set()

    for start in edges:
        if start in settled:
            continue
        path = []
        on_path = {}
        node = start
        while node is not None and node in edges and node not in settled:
            if node in on_path:
                cycles.append(path[on_path[node]:])
                break
            on_path[node] = len(path)
            path.append(node)
            node = edges[node]
        settled.update(path)

    return cycles


def _node_key(table: TableDefinition, row: Mapping[str, Any]) -> Key:
    return table.key_of(row)


def _parent_key(table: TableDefinition, row: Mapping[str, Any]) -> Optional[Key]:
    ref = table.self_reference
    parent = row.get(ref.column)
    if parent is None:
        return None
    if ref.scope_column:
        return (row.get(ref.scope_column), parent)
    return (parent,)


def load_links(con, schema: str, table: TableDefinition) -> Dict[Key, Tuple[Optional[Key], Any]]:
    """Load every stored row as key -> (parent key, level)."""
    ref = table.self_reference
    columns = list(table.primary_key) + [ref.column]
    if ref.level_column:
        columns.append(ref.level_column)
    select = ", ".join(quote_ident(c) for c in columns)
    result = con.execute(f"SELECT {select} FROM {qualified(schema, table.name)}").fetchall()

    nodes = {}
    for values in result:
        row = dict(zip(columns, values))
        nodes[_node_key(table, row)] = (
            _parent_key(table, row),
            row.get(ref.level_column) if ref.level_column else None,
        )
    return nodes


def describe_key(key: Key) -> str:
    return ":".join(str(part) for part in key)


def validate_batch(
    con,
    schema: str,
    table: TableDefinition,
    rows: Iterable[Mapping[str, Any]],
    replace_existing: bool = False,
) -> None:
    """Validate parent links of rows about to be written.

    Args:
        con: DuckDB connection (inside the writing transaction)
        schema: Schema holding the reference tables
        table: Definition of the table being written
        rows: Rows with at least the key, parent and level columns
        replace_existing: True for updates, where batch rows replace stored
            rows; False for insert-or-skip, where stored rows win

    Raises:
        ForeignKeyViolationError: If a parent cannot be resolved
        HierarchyError: On self-loops, cycles or inconsistent levels
    """
    ref = table.self_reference
    if ref is None:
        return

    nodes = load_links(con, schema, table)
    incoming = []
    seen = set()
    for row in rows:
        key = _node_key(table, row)
        if key in nodes and not replace_existing:
            # insert-or-skip leaves the stored row untouched
            continue
        if key in seen:
            continue
        seen.add(key)
        level = row.get(ref.level_column) if ref.level_column else None
        incoming.append((key, (_parent_key(table, row), level)))

    if not incoming:
        return

    nodes.update(dict(incoming))

    for key, (parent, level) in incoming:
        if parent is None:
            if level is not None and level != 1:
                raise HierarchyError(
                    f"{table.name} {describe_key(key)} has no parent but level {level}; "
                    f"root codes are level 1",
                    table=table.name,
                    rows=[key],
                )
            continue

        if parent == key:
            raise HierarchyError(
                f"{table.name} {describe_key(key)} cannot be its own parent",
                table=table.name,
                rows=[key],
            )

        if parent not in nodes:
            detail = ""
            if ref.scope_column:
                other_domains = sorted(
                    k[0] for k in nodes if k[1] == parent[1] and k[0] != parent[0]
                )
                if other_domains:
                    detail = f" (exists only in {', '.join(other_domains)})"
            raise ForeignKeyViolationError(
                f"{table.name} {describe_key(key)} references missing parent "
                f"{describe_key(parent)}{detail}",
                table=table.name,
                rows=[key],
            )

        parent_level = nodes[parent][1]
        if level is not None and parent_level is not None and level != parent_level + 1:
            raise HierarchyError(
                f"{table.name} {describe_key(key)} is level {level} but its parent "
                f"{describe_key(parent)} is level {parent_level}",
                table=table.name,
                rows=[key],
            )

    cycles = find_cycles({key: parent for key, (parent, _) in nodes.items()})
    if cycles:
        cycle = cycles[0]
        path = " -> ".join(describe_key(k) for k in cycle + [cycle[0]])
        raise HierarchyError(
            f"{table.name} parent links form a cycle: {path}",
            table=table.name,
            rows=cycle,
        )

    logger.debug(f"Validated {len(incoming)} parent links for {table.name}")


def _walk_sql(schema: str, table: TableDefinition, upward: bool) -> str:
    """Recursive query over parent links, starting from one row."""
    ref = table.self_reference
    target = qualified(schema, table.name)
    name_col = quote_ident(table.name_column)
    key_col = quote_ident(ref.ref_column)
    parent_col = quote_ident(ref.column)

    scope_select = f"t.{quote_ident(ref.scope_column)} AS scope, " if ref.scope_column else "NULL AS scope, "
    start_filter = f"{key_col} = ?"
    join_scope = ""
    if ref.scope_column:
        scope = quote_ident(ref.scope_column)
        start_filter = f"{scope} = ? AND {key_col} = ?"
        join_scope = f"t.{scope} = chain.scope AND "

    if upward:
        join = f"{join_scope}t.{key_col} = chain.parent"
    else:
        join = f"{join_scope}t.{parent_col} = chain.node"

    return f"""
        WITH RECURSIVE chain(scope, node, parent, name, depth) AS (
            SELECT {scope_select}t.{key_col}, t.{parent_col}, t.{name_col}, 0
            FROM {target} AS t
            WHERE {start_filter}
            UNION ALL
            SELECT {scope_select}t.{key_col}, t.{parent_col}, t.{name_col}, chain.depth + 1
            FROM {target} AS t
            JOIN chain ON {join}
            WHERE chain.depth < {MAX_DEPTH}
        )
        SELECT node, name, depth FROM chain WHERE depth > 0 ORDER BY depth, node
    """


def _walk(con, schema: str, table_name: str, code: str, domain: Optional[str], upward: bool):
    table = get_table(table_name)
    ref = table.self_reference
    if ref is None:
        raise SchemaError(f"Table '{table_name}' has no parent links")
    if ref.scope_column and domain is None:
        raise SchemaError(f"Table '{table_name}' requires a domain")

    params = [domain, code] if ref.scope_column else [code]
    rows = con.execute(_walk_sql(schema, table, upward), params).fetchall()
    return [{"code": node, "name": name, "depth": depth} for node, name, depth in rows]


def ancestors(con, schema: str, table_name: str, code: str, domain: Optional[str] = None) -> List[Dict[str, Any]]:
    """Parents of a row, nearest first."""
    return _walk(con, schema, table_name, code, domain, upward=True)


def descendants(con, schema: str, table_name: str, code: str, domain: Optional[str] = None) -> List[Dict[str, Any]]:
    """Children of a row, breadth first."""
    return _walk(con, schema, table_name, code, domain, upward=False)


def resolve_canonical_timezone(con, schema: str, tzid: str) -> Optional[str]:
    """Follow alias links to the zone that is not itself an alias.

    Returns None for unknown zones.
    """
    exists = con.execute(
        f"SELECT 1 FROM {qualified(schema, 'timezone')} WHERE tzid = ?", [tzid]
    ).fetchone()
    if not exists:
        return None

    chain = ancestors(con, schema, "timezone", tzid)
    return chain[-1]["code"] if chain else tzid
