"""
Line-oriented text format for orders and the print queue.

orders.txt
    # Order Data Export
    # Format: orderID|username|email|role|materialName|...|estimatedPrintHours
    # Generated: 2026-10-18 10:15:30

    1000|alice|alice@example.com|customer|PLA|0.05|210|red|10x10x10cm|2|Handle with care|pending|normal|2.0

    One order per line, 14 pipe-separated fields. A missing user or
    material is written as empty fields. Comment lines (#) and blank lines
    are ignored on load.

order_queue.txt
    One order id per line, head of the queue first.

Escaping:
    Version 1 (default, same bytes as the legacy desktop tool):
        |  -> \\|      newline -> \\n      carriage return -> \\r
        Backslashes are NOT escaped. Text that already contains a literal
        "\\n", "\\r" or "\\|", or a field ending in a backslash, cannot be
        told apart from an escape on load.
    Version 2 (opt-in, header "# Format-Version: 2"):
        Backslash is escaped first (\\ -> \\\\), so every string decodes to
        exactly what was written.

Load policy:
    A bad line is skipped and counted in the LoadReport, never fatal.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from core.exceptions import PersistenceError
from logging_config import get_logger
from models.order import MaterialSnapshot, Order, UserSnapshot
from models.order_result import LoadReport


logger = get_logger(__name__)

FORMAT_V1 = 1
FORMAT_V2 = 2
SUPPORTED_VERSIONS = (FORMAT_V1, FORMAT_V2)

SEPARATOR = "|"
ESCAPE = "\\"
COMMENT_PREFIX = "#"
FIELD_COUNT = 14

FIELD_NAMES = (
    "orderID", "username", "email", "role",
    "materialName", "materialCostPerGram", "materialPrintTemp", "materialColor",
    "dimensions", "quantity", "specialInstructions", "status", "priority",
    "estimatedPrintHours",
)

_VERSION_HEADER = re.compile(r"^#\s*Format-Version:\s*(\d+)\s*$")

# v2 escape sequences -> character
_V2_UNESCAPES = {"\\": "\\", "|": "|", "n": "\n", "r": "\r"}


class OrderDecodeError(ValueError):
    """A single orders.txt line could not be turned into an Order."""


# =============================================================================
# FIELD ESCAPING
# =============================================================================

def escape_field(value: Optional[str], version: int = FORMAT_V1) -> str:
    """Escape one field so it contains no raw separator or line break."""
    if value is None:
        return ""
    text = str(value)
    if version == FORMAT_V2:
        text = text.replace(ESCAPE, ESCAPE * 2)
    return text.replace("|", "\\|").replace("\n", "\\n").replace("\r", "\\r")


def unescape_field(value: Optional[str], version: int = FORMAT_V1) -> str:
    """Reverse escape_field()."""
    if not value:
        return ""
    if version == FORMAT_V1:
        return value.replace("\\|", "|").replace("\\n", "\n").replace("\\r", "\r")

    out = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == ESCAPE and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(_V2_UNESCAPES.get(nxt, char + nxt))
            i += 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def split_fields(line: str, version: int = FORMAT_V1) -> List[str]:
    """
    Split a record on unescaped separators.

    Fields are returned still escaped; run unescape_field() on each.
    """
    fields = []
    buf = []
    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == ESCAPE and i + 1 < n and (version == FORMAT_V2 or line[i + 1] == SEPARATOR):
            buf.append(line[i:i + 2])
            i += 2
            continue
        if char == SEPARATOR:
            fields.append("".join(buf))
            buf = []
        else:
            buf.append(char)
        i += 1
    fields.append("".join(buf))
    return fields


# =============================================================================
# SINGLE RECORDS
# =============================================================================

def _number(value: float) -> str:
    return repr(float(value))


def encode_order(order: Order, version: int = FORMAT_V1) -> str:
    """Render one order as a single line (no trailing newline)."""
    esc = lambda text: escape_field(text, version)  # noqa: E731

    if order.user is not None:
        user_fields = [esc(order.user.username), esc(order.user.email), esc(order.user.role)]
    else:
        user_fields = ["", "", ""]

    if order.material is not None:
        material_fields = [
            esc(order.material.name),
            _number(order.material.cost_per_gram),
            str(int(order.material.print_temp)),
            esc(order.material.color),
        ]
    else:
        material_fields = ["", "", "", ""]

    hours = order.estimated_print_hours
    fields = (
        [str(order.order_id)]
        + user_fields
        + material_fields
        + [
            esc(order.dimensions),
            str(order.quantity),
            esc(order.special_instructions),
            esc(order.status),
            esc(order.priority),
            _number(hours) if hours is not None else "",
        ]
    )
    return SEPARATOR.join(fields)


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise OrderDecodeError(f"{name} is not an integer: {raw!r}") from None


def _parse_float(raw: str, name: str) -> float:
    try:
        return float(raw.strip())
    except ValueError:
        raise OrderDecodeError(f"{name} is not a number: {raw!r}") from None


def decode_order(line: str, version: int = FORMAT_V1) -> Order:
    """
    Parse one record line.

    Raises:
        OrderDecodeError: Wrong field count or an unparsable required number
    """
    fields = split_fields(line, version)

    # The legacy tool wrote only three empty fields for a missing material
    if len(fields) == FIELD_COUNT - 1 and fields[4] == fields[5] == fields[6] == "":
        fields.insert(7, "")

    if len(fields) != FIELD_COUNT:
        raise OrderDecodeError(f"expected {FIELD_COUNT} fields, found {len(fields)}")

    unesc = lambda raw: unescape_field(raw, version)  # noqa: E731

    order_id = _parse_int(fields[0], "orderID")

    user = None
    if any(fields[1:4]):
        user = UserSnapshot(
            username=unesc(fields[1]),
            email=unesc(fields[2]),
            role=unesc(fields[3]),
        )

    material = None
    if fields[4]:
        material = MaterialSnapshot(
            name=unesc(fields[4]),
            cost_per_gram=_parse_float(fields[5], "materialCostPerGram") if fields[5] else 0.0,
            print_temp=_parse_int(fields[6], "materialPrintTemp") if fields[6] else 0,
            color=unesc(fields[7]),
        )

    quantity = _parse_int(fields[9], "quantity")

    hours: Optional[float] = None
    if fields[13].strip():
        try:
            hours = float(fields[13])
        except ValueError:
            logger.debug(f"Order {order_id}: bad estimatedPrintHours {fields[13]!r}, recomputing")

    order = Order(
        order_id=order_id,
        user=user,
        material=material,
        dimensions=unesc(fields[8]),
        quantity=quantity,
        special_instructions=unesc(fields[10]),
        estimated_print_hours=hours,
    )

    # Saved state is restored as-is: statuses outside the enum are kept
    status = unesc(fields[11])
    if status:
        order.update_status(status, strict=False)
    priority = unesc(fields[12])
    if priority and not order.set_priority(priority):
        logger.warning(f"Order {order_id}: unknown priority {priority!r}, using normal")

    return order


# =============================================================================
# WHOLE FILES
# =============================================================================

def _timestamp(generated_at: Optional[datetime]) -> str:
    return (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def detect_version(text: str) -> int:
    """
    Read the format version from the header comments.

    Files without a version header are version 1.

    Raises:
        PersistenceError: The header names a version this code cannot read
    """
    for raw in text.split("\n"):
        line = raw.strip()
        if line and not line.startswith(COMMENT_PREFIX):
            break
        match = _VERSION_HEADER.match(line)
        if match:
            version = int(match.group(1))
            if version not in SUPPORTED_VERSIONS:
                raise PersistenceError(f"Unsupported orders file format version {version}")
            return version
    return FORMAT_V1


def dump_orders(
    orders: Iterable[Order],
    version: int = FORMAT_V1,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render a full orders.txt document."""
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"Unsupported format version: {version}")

    lines = [
        "# Order Data Export",
        "# Format: " + SEPARATOR.join(FIELD_NAMES),
        f"# Generated: {_timestamp(generated_at)}",
    ]
    if version != FORMAT_V1:
        lines.append(f"# Format-Version: {version}")
    lines.append("")
    lines.extend(encode_order(order, version) for order in orders)
    return "\n".join(lines) + "\n"


def parse_orders(text: str) -> Tuple[List[Order], LoadReport]:
    """
    Parse an orders.txt document.

    Returns:
        (orders in file order, LoadReport with loaded/skipped counts)
    """
    report = LoadReport()
    orders: List[Order] = []
    if not text or not text.strip():
        return orders, report

    version = detect_version(text)

    # Split on "\n" only: escaped content may still hold other line separators
    for line_number, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        try:
            orders.append(decode_order(line, version))
            report.loaded += 1
        except OrderDecodeError as e:
            logger.warning(f"Skipping orders line {line_number}: {e}")
            report.skip(f"line {line_number}: {e}")

    return orders, report


def dump_queue(order_ids: Iterable[int], generated_at: Optional[datetime] = None) -> str:
    """Render order_queue.txt, head of the queue first."""
    lines = [
        "# Order Queue Export",
        "# Format: orderID (one per line, head of the queue first)",
        f"# Generated: {_timestamp(generated_at)}",
        "",
    ]
    lines.extend(str(order_id) for order_id in order_ids)
    return "\n".join(lines) + "\n"


def parse_queue(text: str) -> Tuple[List[int], LoadReport]:
    """Parse order_queue.txt into ids in FIFO order."""
    report = LoadReport()
    order_ids: List[int] = []
    if not text:
        return order_ids, report

    for line_number, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        try:
            order_ids.append(int(line))
            report.loaded += 1
        except ValueError:
            logger.warning(f"Invalid order id in queue file, line {line_number}: {line!r}")
            report.skip(f"line {line_number}: invalid order id {line!r}")

    return order_ids, report
