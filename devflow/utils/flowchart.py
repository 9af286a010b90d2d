"""Flowchart grammar check — deterministic validation of the Architect's diagram.

The blueprint diagram is a Mermaid-style flowchart consumed by an external
renderer. Renderers are unforgiving, so the orchestrator enforces a strict
subset before handing it over:

1. Node ids are bare alphanumeric strings (``Step1``, ``DecisionA``).
2. The first occurrence of a node carries its label in double quotes.
3. Labels never contain line breaks (real or ``\\n`` escapes).
4. No node id is defined twice.

``check_flowchart`` returns a list of issues (empty = valid) and never raises.
"""

import re
from typing import Optional, TypedDict

_HEADER_RE = re.compile(r"^(?:graph|flowchart)\s+(TD|TB|BT|LR|RL)\s*;?\s*$")
_DIRECTIVES = ("subgraph", "end", "classDef", "class", "style", "linkStyle", "click", "direction")
_VALID_ID_RE = re.compile(r"^[A-Za-z0-9]+$")

# A node reference runs until whitespace, a shape opener, a separator or an edge operator.
_ID_RE = re.compile(r"""[^\s\[\](){}>|"&;:]+?(?=[\s\[\](){}>|&;:]|--|==|-\.|~~~|\Z)""")

_EDGE_RE = re.compile(
    r"""\s*(?:"""
    r"""(?:--|==|-\.)\s+(?P<text>"[^"\n]*"|[^\n"|]+?)\s*(?:-{2,}>|={2,}>|\.-+>|-{3,})"""
    r"""|<?(?:-{2,}|={2,}|-\.+-)[->ox]?"""
    r"""|~~~"""
    r""")(?:\|(?P<pipe>[^|\n]*)\|)?\s*"""
)

# Longest openers first so "([" wins over "(".
_SHAPES = [
    ("([", "])"),
    ("[[", "]]"),
    ("[(", ")]"),
    ("((", "))"),
    ("{{", "}}"),
    ("[/", "/]"),
    ("[\\", "\\]"),
    ("[", "]"),
    ("(", ")"),
    ("{", "}"),
    (">", "]"),
]
_CLOSER_CHARS = "])}/\\"


class Flowchart(TypedDict):
    direction: Optional[str]
    nodes: dict[str, str]  # id -> label, in definition order
    edges: list[tuple[str, str, str]]  # (source, target, edge label or "")
    issues: list[str]


def _split_statements(body: str) -> list[str]:
    """Split on newlines and ';' outside double quotes.

    A quoted label that spans a line break stays inside one statement so the
    newline can be reported against the node that owns it.
    """
    statements = []
    current = []
    in_quotes = False
    for ch in body:
        if ch == '"':
            in_quotes = not in_quotes
        if not in_quotes and ch in "\n;":
            statements.append("".join(current))
            current = []
            continue
        current.append(ch)
    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def _is_directive(statement: str) -> bool:
    if statement.startswith("%%"):
        return True
    word = statement.split(None, 1)[0]
    return word in _DIRECTIVES


def _parse_shape(statement: str, pos: int, node_id: str, issues: list[str]) -> tuple[Optional[str], bool, int]:
    """Parse a node shape starting at ``pos``.

    Returns (label, quoted, new_pos). ``label`` is None when no shape follows.
    """
    for opener, closer in _SHAPES:
        if statement.startswith(opener, pos):
            break
    else:
        return None, False, pos

    start = pos + len(opener)
    while start < len(statement) and statement[start] == " ":
        start += 1

    if statement.startswith('"', start):
        end = statement.find('"', start + 1)
        if end == -1:
            issues.append(f"Node '{node_id}' has an unterminated quoted label.")
            return statement[start + 1:], True, len(statement)
        label = statement[start + 1:end]
        pos = end + 1
        while pos < len(statement) and statement[pos] == " ":
            pos += 1
        close_start = pos
        while pos < len(statement) and statement[pos] in _CLOSER_CHARS:
            pos += 1
        if pos == close_start:
            issues.append(f"Node '{node_id}' has an unclosed shape.")
        return label, True, pos

    end = statement.find(closer, start)
    if end == -1:
        issues.append(f"Node '{node_id}' has an unclosed shape.")
        return statement[start:].strip(), False, len(statement)
    return statement[start:end].strip(), False, end + len(closer)


def _record_node(chart: Flowchart, node_id: str, label: Optional[str], quoted: bool, seen: set) -> None:
    issues = chart["issues"]
    if not _VALID_ID_RE.match(node_id):
        issues.append(f"Node id '{node_id}' must be a bare alphanumeric identifier.")

    if label is None:
        if node_id not in seen:
            issues.append(f"Node '{node_id}' is used before it is defined with a quoted label.")
            seen.add(node_id)
        return

    if node_id in chart["nodes"]:
        issues.append(f"Node id '{node_id}' is defined more than once.")
        return
    if not quoted:
        issues.append(f"Label of node '{node_id}' must be wrapped in double quotes.")
    if "\n" in label or "\\n" in label:
        issues.append(f"Label of node '{node_id}' contains a line break.")

    # A bare reference followed by a labelled one still records the label.
    chart["nodes"][node_id] = label
    seen.add(node_id)


def _parse_statement(statement: str, chart: Flowchart, seen: set) -> None:
    issues = chart["issues"]
    pos = 0
    previous_group: list[str] = []
    group: list[str] = []
    edge_label = ""

    while pos < len(statement):
        while pos < len(statement) and statement[pos].isspace():
            pos += 1
        match = _ID_RE.match(statement, pos)
        if not match:
            issues.append(f"Unexpected text in statement: '{statement[pos:pos + 30]}'.")
            return
        node_id = match.group(0)
        pos = match.end()

        label, quoted, pos = _parse_shape(statement, pos, node_id, issues)
        _record_node(chart, node_id, label, quoted, seen)
        group.append(node_id)

        if statement.startswith(":::", pos):
            pos += 3
            while pos < len(statement) and not statement[pos].isspace() and statement[pos] != "&":
                pos += 1
        while pos < len(statement) and statement[pos].isspace():
            pos += 1
        if pos >= len(statement):
            break

        if statement[pos] == "&":
            pos += 1
            continue

        edge = _EDGE_RE.match(statement, pos)
        if not edge or edge.end() == pos:
            issues.append(f"Unexpected text in statement: '{statement[pos:pos + 30]}'.")
            return
        for source in previous_group:
            for target in group:
                chart["edges"].append((source, target, edge_label))
        previous_group, group = group, []
        edge_label = (edge.group("pipe") or edge.group("text") or "").strip().strip('"')
        pos = edge.end()

    for source in previous_group:
        for target in group:
            chart["edges"].append((source, target, edge_label))


def parse_flowchart(text) -> Flowchart:
    """Parse a flowchart into nodes and edges, collecting grammar issues along the way."""
    chart: Flowchart = {"direction": None, "nodes": {}, "edges": [], "issues": []}

    if not isinstance(text, str):
        chart["issues"].append("Flowchart must be a string.")
        return chart
    if not text.strip():
        chart["issues"].append("Flowchart is empty.")
        return chart

    lines = text.strip().splitlines()
    header = _HEADER_RE.match(lines[0].strip())
    if header:
        chart["direction"] = header.group(1)
        body = "\n".join(lines[1:])
    else:
        chart["issues"].append("Flowchart must start with 'graph <direction>' (e.g. 'graph TD').")
        body = "\n".join(lines)

    seen: set = set()
    for statement in _split_statements(body):
        if _is_directive(statement):
            continue
        _parse_statement(statement, chart, seen)

    if not chart["nodes"] and not chart["issues"]:
        chart["issues"].append("Flowchart defines no nodes.")
    return chart


def check_flowchart(text) -> list[str]:
    """Return the grammar issues of a flowchart. Empty list = renderable."""
    return parse_flowchart(text)["issues"]


def render_flowchart(chart: Flowchart) -> str:
    """Serialize parsed nodes and edges back into canonical flowchart text."""
    lines = [f"graph {chart.get('direction') or 'TD'}"]
    for node_id, label in chart["nodes"].items():
        lines.append(f'    {node_id}["{label}"]')
    for source, target, label in chart["edges"]:
        if label:
            lines.append(f"    {source} -->|{label}| {target}")
        else:
            lines.append(f"    {source} --> {target}")
    return "\n".join(lines)


def strip_mermaid_fence(text: str) -> str:
    """Remove a ```mermaid fence wrapped around a diagram, if present."""
    if not text:
        return ""
    t = text.strip()
    m = re.search(r"```\s*mermaid\s*\n([\s\S]*?)```", t, re.I)
    if m:
        return m.group(1).strip()
    m2 = re.search(r"```\s*\n([\s\S]*?)```", t)
    if m2:
        return m2.group(1).strip()
    return t
