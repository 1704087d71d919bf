# SPDX-License-Identifier: Apache-2.0

"""
Tabular grid import/export.

Rows are plain dictionaries keyed by column name, as produced by
``csv.DictReader``. Parsing a row either yields a Grid ready to persist or
raises a row-indexed ValidationError; deduplication against stored codes is
left to the caller, which owns the storage.
"""

import csv
import io
from typing import Dict, Iterable, List, MutableMapping, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.entities import Grid, SupplyLine
from ..models.enums import GridStatus, GridType
from .errors import ValidationError
from .geo import grid_bounds

GRID_COLUMNS = [
    "code",
    "grid_type",
    "disaster_area_id",
    "status",
    "center_lat",
    "center_lng",
    "volunteer_needed",
    "volunteer_registered",
    "meeting_point",
    "risk_notes",
    "contact_info",
    "supplies_needed",
]

REQUIRED_COLUMNS = ("code", "grid_type", "center_lat", "center_lng")

SUPPLY_SEPARATOR = "|"
SUPPLY_FIELD_SEPARATOR = ":"


def normalize_code(code: str) -> str:
    """Uniqueness key for grid codes: trimmed and case-folded."""
    return code.strip().casefold()


def normalize_header(name: str) -> str:
    """Header key without surrounding spaces, byte order mark or case."""
    return name.strip().lstrip("\ufeff").lower()


def normalize_row(row: MutableMapping[Optional[str], Optional[str]]) -> Dict[str, str]:
    """Lower-case headers, strip values, drop unnamed overflow columns."""
    cleaned: Dict[str, str] = {}
    for key, value in row.items():
        if key is None:
            continue
        normalized_key = normalize_header(key)
        if not normalized_key:
            continue
        cleaned[normalized_key] = value.strip() if isinstance(value, str) else ""
    return cleaned


def read_csv(content: str) -> List[Dict[str, str]]:
    """
    Split CSV text into normalized row dictionaries.

    Raises:
        ValidationError: if the header lacks a required column
    """
    reader = csv.DictReader(io.StringIO(content))
    header = [normalize_header(name) for name in reader.fieldnames or [] if name]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise ValidationError(f"CSV header is missing required column(s): {', '.join(missing)}")
    return [normalize_row(row) for row in reader]


def parse_supplies(value: str) -> List[SupplyLine]:
    """
    Parse the flattened supply column.

    Format: ``name:quantity[:unit[:received]]`` entries joined by ``|``.
    """
    lines: List[SupplyLine] = []
    if not value:
        return lines
    for entry in value.split(SUPPLY_SEPARATOR):
        entry = entry.strip()
        if not entry:
            continue
        parts = [part.strip() for part in entry.split(SUPPLY_FIELD_SEPARATOR)]
        if len(parts) < 2 or not parts[0]:
            raise ValueError(f'Malformed supply entry "{entry}"')
        try:
            quantity = float(parts[1])
            received = float(parts[3]) if len(parts) > 3 and parts[3] else 0.0
        except ValueError:
            raise ValueError(f'Supply entry "{entry}" has a non-numeric quantity')
        unit = parts[2] if len(parts) > 2 else ""
        lines.append(SupplyLine(name=parts[0], quantity=quantity, received=received, unit=unit))
    return lines


def format_supplies(lines: Iterable[SupplyLine]) -> str:
    return SUPPLY_SEPARATOR.join(
        SUPPLY_FIELD_SEPARATOR.join([
            line.name, _format_number(line.quantity), line.unit, _format_number(line.received)
        ])
        for line in lines
    )


def parse_grid_row(row: Dict[str, str], row_number: int, created_by: Optional[str] = None) -> Grid:
    """
    Validate one import row and build the Grid it describes.

    Bounds are always derived from the center. Row numbers are 1-based data
    rows (the header is not counted).

    Raises:
        ValidationError: with ``row`` set, listing every problem found
    """
    errors: List[str] = []

    for column in REQUIRED_COLUMNS:
        if not row.get(column):
            errors.append(f"Missing required field: {column}")

    grid_type = row.get("grid_type", "")
    if grid_type and grid_type not in {member.value for member in GridType}:
        errors.append(f"Unknown grid_type: {grid_type}")

    status = row.get("status") or GridStatus.OPEN.value
    if status not in {member.value for member in GridStatus}:
        errors.append(f"Unknown status: {status}")

    center_lat = _parse_float(row.get("center_lat"), "center_lat", errors)
    center_lng = _parse_float(row.get("center_lng"), "center_lng", errors)
    volunteer_needed = _parse_int(row.get("volunteer_needed"), "volunteer_needed", errors)
    volunteer_registered = _parse_int(row.get("volunteer_registered"), "volunteer_registered", errors)

    supplies: List[SupplyLine] = []
    try:
        supplies = parse_supplies(row.get("supplies_needed", ""))
    except (ValueError, PydanticValidationError) as e:
        errors.append(str(e))

    if errors:
        raise ValidationError("; ".join(errors), row=row_number)

    try:
        return Grid(
            code=row["code"],
            grid_type=grid_type,
            status=status,
            disaster_area_id=row.get("disaster_area_id") or None,
            center_lat=center_lat,
            center_lng=center_lng,
            bounds=grid_bounds(center_lat, center_lng),
            volunteer_needed=volunteer_needed or 0,
            volunteer_registered=volunteer_registered or 0,
            meeting_point=row.get("meeting_point") or None,
            risk_notes=row.get("risk_notes") or None,
            contact_info=row.get("contact_info") or None,
            supplies_needed=supplies,
            created_by=created_by,
            updated_by=created_by,
        )
    except PydanticValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ValidationError("; ".join(messages), row=row_number)


def grid_to_row(grid: Grid) -> Dict[str, str]:
    """Flatten a grid into export columns."""
    return {
        "code": grid.code,
        "grid_type": grid.grid_type,
        "disaster_area_id": grid.disaster_area_id or "",
        "status": grid.status,
        "center_lat": repr(grid.center_lat),
        "center_lng": repr(grid.center_lng),
        "volunteer_needed": str(grid.volunteer_needed),
        "volunteer_registered": str(grid.volunteer_registered),
        "meeting_point": grid.meeting_point or "",
        "risk_notes": grid.risk_notes or "",
        "contact_info": grid.contact_info or "",
        "supplies_needed": format_supplies(grid.supplies_needed),
    }


def render_csv(rows: Iterable[Dict[str, str]]) -> str:
    """Serialize row dictionaries with the export header."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=GRID_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def export_csv(grids: Iterable[Grid]) -> str:
    return render_csv(grid_to_row(grid) for grid in grids)


def template_csv() -> str:
    """Header plus one example row for operators preparing an import."""
    example = {
        "code": "A-1",
        "grid_type": GridType.MANPOWER.value,
        "disaster_area_id": "",
        "status": GridStatus.OPEN.value,
        "center_lat": "23.6700",
        "center_lng": "121.4300",
        "volunteer_needed": "10",
        "volunteer_registered": "0",
        "meeting_point": "",
        "risk_notes": "",
        "contact_info": "",
        "supplies_needed": "shovel:20:pcs:0|water:100:bottle:0",
    }
    return render_csv([example])


def _parse_float(value: Optional[str], field: str, errors: List[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        errors.append(f"{field} must be a number")
        return None


def _parse_int(value: Optional[str], field: str, errors: List[str]) -> Optional[int]:
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        errors.append(f"{field} must be an integer")
        return None
    if not number.is_integer() or number < 0:
        errors.append(f"{field} must be a non-negative integer")
        return None
    return int(number)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)
