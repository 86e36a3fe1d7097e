"""
Column detection for legacy khairat spreadsheets.

The old registers were kept by hand, so column order and header wording drift
between years. Everything here works on a plain grid of cell values (lists of
str / int / float / date / None) and has no database dependency.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Sequence

from openpyxl.utils.datetime import from_excel
from services.khairat_service.exceptions import HeaderNotFoundError
from services.khairat_service.models import LegacyMemberStatus, LegacyPaymentStatus
from services.khairat_service.services.validation import canonicalize_ic, clean_text

HEADER_SCAN_ROWS = 10
HEADER_MARKER = "kad pengenalan"

NOT_FOUND = -1

# Keyword sets per legacy field; the first column containing any keyword wins
COLUMN_KEYWORDS = {
    "ic_number": ("kad pengenalan", "k/p", "ic"),
    "member_number": ("no ahli",),
    "name": ("nama ahli",),
    "address": ("alamat",),
    "phone": ("hp", "telefon", "phone"),
    "email": ("email",),
    "registered_on": ("t.daftar", "tarikh daftar"),
    "spouse": ("isteri", "suami"),
    "father": ("bapa",),
    "mother": ("ibu",),
    "father_in_law": ("bapa mertua",),
    "mother_in_law": ("mak mertua",),
}

FIRST_CHILD_HEADER = "anak1"
CHILD_SLOTS = 8

# Matched against the upper-cased header
STATUS_MARKERS = {
    "deceased": "M/DUNIA",
    "moved": "PINDAH",
    "suspended": "GANTUNG",
}

RECEIPT_MOVED = "PINDAH"
RECEIPT_DECEASED = "M/ DUNIA"

YEAR_HEADER_PATTERN = re.compile(r"^20\d{2}$")


@dataclass(frozen=True)
class YearColumns:
    year: int
    receipt_col: int  # NOT_FOUND in column 0 or when the left column is a named field
    amount_col: int


@dataclass
class SheetLayout:
    header_row: int
    columns: dict[str, int]
    child_cols: list[int] = field(default_factory=list)
    years: list[YearColumns] = field(default_factory=list)
    status_cols: dict[str, int] = field(default_factory=dict)

    def column(self, name: str) -> int:
        return self.columns.get(name, NOT_FOUND)


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text. Integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def cell_at(row: Sequence[Any], col: int) -> Any:
    if col < 0 or col >= len(row):
        return None
    return row[col]


def text_at(row: Sequence[Any], col: int) -> Optional[str]:
    return clean_text(cell_text(cell_at(row, col)))


def header_year(value: Any) -> Optional[int]:
    """Return the year if the header cell is exactly a 4-digit 20xx year."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    text = str(value).strip()
    if YEAR_HEADER_PATTERN.match(text):
        return int(text)
    return None


def receipt_value(value: Any) -> Optional[str]:
    """Receipt number as text, or None for blanks and written notes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return cell_text(value)
    text = cell_text(value)
    return text if text.isdigit() else None


def numeric_amount(value: Any) -> Optional[float]:
    """Numeric, non-zero payment amount or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value == 0:
        return None
    return float(value)


def parse_registration_date(value: Any) -> Optional[date]:
    """Best-effort registration date.

    Spreadsheet serials, native date cells and ``d/m/y`` strings are accepted;
    anything else yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        if isinstance(converted, datetime):
            return converted.date()
        if isinstance(converted, date):
            return converted
        return None
    if isinstance(value, str):
        parts = value.strip().split("/")
        if len(parts) != 3:
            return None
        try:
            day, month, year = (int(part) for part in parts)
            return date(year, month, day)
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Layout detection
# ---------------------------------------------------------------------------


def find_header_row(rows: Sequence[Sequence[Any]]) -> int:
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if any(HEADER_MARKER in cell_text(cell).lower() for cell in row):
            return index
    raise HeaderNotFoundError(
        "Baris tajuk tidak dijumpai. Pastikan ada lajur \"No Kad Pengenalan\"."
    )


def find_column(headers: Sequence[str], keywords: Sequence[str]) -> int:
    for index, header in enumerate(headers):
        if any(keyword in header for keyword in keywords):
            return index
    return NOT_FOUND


def detect_layout(rows: Sequence[Sequence[Any]]) -> SheetLayout:
    header_index = find_header_row(rows)
    raw_headers = list(rows[header_index])
    headers = [cell_text(cell).lower() for cell in raw_headers]

    columns = {
        name: find_column(headers, keywords)
        for name, keywords in COLUMN_KEYWORDS.items()
    }

    child_cols: list[int] = []
    if FIRST_CHILD_HEADER in headers:
        first = headers.index(FIRST_CHILD_HEADER)
        child_cols = list(range(first, first + CHILD_SLOTS))

    # A field column never doubles as the receipt column of the year beside it
    field_cols = {col for col in columns.values() if col != NOT_FOUND}
    field_cols.update(child_cols)

    years = []
    for index, cell in enumerate(raw_headers):
        year = header_year(cell)
        if year is not None:
            receipt_col = index - 1
            if receipt_col < 0 or receipt_col in field_cols:
                receipt_col = NOT_FOUND
            years.append(YearColumns(year=year, receipt_col=receipt_col, amount_col=index))

    upper_headers = [cell_text(cell).upper() for cell in raw_headers]
    status_cols = {
        name: find_column(upper_headers, (marker,))
        for name, marker in STATUS_MARKERS.items()
    }

    return SheetLayout(
        header_row=header_index,
        columns=columns,
        child_cols=child_cols,
        years=years,
        status_cols=status_cols,
    )


# ---------------------------------------------------------------------------
# Row classification
# ---------------------------------------------------------------------------


def _marked(row: Sequence[Any], col: int) -> bool:
    if col == NOT_FOUND:
        return False
    value = cell_at(row, col)
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return bool(cell_text(value))


def classify_member_status(row: Sequence[Any], layout: SheetLayout) -> LegacyMemberStatus:
    """Marker columns win (deceased > moved > suspended), then year notes."""
    if _marked(row, layout.status_cols.get("deceased", NOT_FOUND)):
        return LegacyMemberStatus.DECEASED
    if _marked(row, layout.status_cols.get("moved", NOT_FOUND)):
        return LegacyMemberStatus.MOVED
    if _marked(row, layout.status_cols.get("suspended", NOT_FOUND)):
        return LegacyMemberStatus.SUSPENDED

    for year in layout.years:
        receipt = cell_text(cell_at(row, year.receipt_col)).upper()
        amount = cell_text(cell_at(row, year.amount_col)).upper()
        if RECEIPT_MOVED in receipt:
            return LegacyMemberStatus.MOVED
        if RECEIPT_DECEASED in receipt:
            return LegacyMemberStatus.DECEASED
        if RECEIPT_MOVED in amount:
            return LegacyMemberStatus.MOVED

    return LegacyMemberStatus.ACTIVE


def classify_payment_status(receipt: str) -> LegacyPaymentStatus:
    lowered = receipt.lower()
    if "tunggak" in lowered:
        return LegacyPaymentStatus.ARREARS
    if "p/bayar" in lowered:
        return LegacyPaymentStatus.PREPAID
    return LegacyPaymentStatus.PAID


@dataclass
class PaymentCell:
    year: int
    amount: float
    receipt_number: Optional[str]
    status: LegacyPaymentStatus


def extract_payments(row: Sequence[Any], layout: SheetLayout) -> list[PaymentCell]:
    payments = []
    for year in layout.years:
        amount = numeric_amount(cell_at(row, year.amount_col))
        if amount is None:
            continue
        receipt = cell_text(cell_at(row, year.receipt_col))
        upper = receipt.upper()
        if RECEIPT_MOVED in upper or RECEIPT_DECEASED in upper:
            continue
        payments.append(
            PaymentCell(
                year=year.year,
                amount=amount,
                receipt_number=receipt_value(cell_at(row, year.receipt_col)),
                status=classify_payment_status(receipt),
            )
        )
    return payments


def extract_member_fields(row: Sequence[Any], layout: SheetLayout) -> Optional[dict]:
    """Map one data row onto legacy member fields.

    Returns None when the row has no IC or no name.
    """
    ic_number = canonicalize_ic(cell_text(cell_at(row, layout.column("ic_number"))))
    name = text_at(row, layout.column("name"))
    if not ic_number or not name:
        return None

    fields = {
        "ic_number": ic_number,
        "name": name,
        "member_number": text_at(row, layout.column("member_number")),
        "address": text_at(row, layout.column("address")),
        "phone": text_at(row, layout.column("phone")),
        "email": text_at(row, layout.column("email")),
        "registered_on": parse_registration_date(
            cell_at(row, layout.column("registered_on"))
        ),
        "spouse": text_at(row, layout.column("spouse")),
        "father": text_at(row, layout.column("father")),
        "mother": text_at(row, layout.column("mother")),
        "father_in_law": text_at(row, layout.column("father_in_law")),
        "mother_in_law": text_at(row, layout.column("mother_in_law")),
        "status": classify_member_status(row, layout),
    }
    for slot in range(CHILD_SLOTS):
        col = layout.child_cols[slot] if slot < len(layout.child_cols) else NOT_FOUND
        fields[f"child_{slot + 1}"] = text_at(row, col)
    return fields
