"""Unit tests for legacy spreadsheet column detection and row mapping."""

from datetime import date, datetime

import pytest
from services.khairat_service.exceptions import HeaderNotFoundError
from services.khairat_service.models import LegacyMemberStatus, LegacyPaymentStatus
from services.khairat_service.services.sheet_layout import (
    NOT_FOUND,
    classify_member_status,
    detect_layout,
    extract_member_fields,
    extract_payments,
    parse_registration_date,
)

HEADER = [
    "No Ahli",
    "Nama Ahli",
    "No Kad Pengenalan",
    "Alamat",
    "No HP",
    "T.Daftar",
    "Isteri",
    "anak1",
    "anak2",
    "anak3",
    "anak4",
    "anak5",
    "anak6",
    "anak7",
    "anak8",
    "Bapa",
    "Ibu",
    "Resit",
    2022,
    "Resit",
    "2023",
    "M/DUNIA",
    "PINDAH",
]


def _row(**cells):
    row = [None] * len(HEADER)
    for index, value in cells.items():
        row[int(index.lstrip("c"))] = value
    return row


# ---------------------------------------------------------------------------
# Layout detection
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_header_found_below_title_rows():
    rows = [["DAFTAR AHLI KHAIRAT"], [], HEADER]
    layout = detect_layout(rows)

    assert layout.header_row == 2
    assert layout.column("name") == 1
    assert layout.column("ic_number") == 2
    assert layout.column("address") == 3
    assert layout.column("phone") == 4
    assert layout.column("registered_on") == 5
    assert layout.column("spouse") == 6
    assert layout.child_cols == list(range(7, 15))
    assert layout.column("email") == NOT_FOUND


@pytest.mark.unit
def test_missing_header_raises():
    rows = [["Nama", "Alamat"]] * 12 + [HEADER]
    with pytest.raises(HeaderNotFoundError):
        detect_layout(rows)


@pytest.mark.unit
def test_year_columns_pair_with_receipt_on_the_left():
    layout = detect_layout([HEADER])

    assert [(y.year, y.receipt_col, y.amount_col) for y in layout.years] == [
        (2022, 17, 18),
        (2023, 19, 20),
    ]


@pytest.mark.unit
def test_numeric_float_year_header_counts():
    layout = detect_layout([["No Kad Pengenalan", "Resit", 2024.0]])
    assert [y.year for y in layout.years] == [2024]


@pytest.mark.unit
def test_year_in_first_column_has_no_receipt():
    layout = detect_layout([["2023", "No Kad Pengenalan", "Nama Ahli"]])

    assert layout.years[0].receipt_col == NOT_FOUND
    payments = extract_payments([50, "800101125555", "Ali"], layout)
    assert payments[0].receipt_number is None
    assert payments[0].status == LegacyPaymentStatus.PAID


# ---------------------------------------------------------------------------
# Status classification
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_marker_columns_take_precedence():
    layout = detect_layout([HEADER])

    deceased = _row(c21="X", c22="X")
    moved = _row(c22="/")
    assert classify_member_status(deceased, layout) == LegacyMemberStatus.DECEASED
    assert classify_member_status(moved, layout) == LegacyMemberStatus.MOVED


@pytest.mark.unit
def test_receipt_notes_mark_status():
    layout = detect_layout([HEADER])

    assert (
        classify_member_status(_row(c17="PINDAH KE JB"), layout)
        == LegacyMemberStatus.MOVED
    )
    assert (
        classify_member_status(_row(c19="M/ DUNIA 2023"), layout)
        == LegacyMemberStatus.DECEASED
    )
    assert classify_member_status(_row(c18="PINDAH"), layout) == LegacyMemberStatus.MOVED
    assert classify_member_status(_row(c18=50), layout) == LegacyMemberStatus.ACTIVE


@pytest.mark.unit
def test_zero_marker_cells_are_unmarked():
    layout = detect_layout([HEADER])

    assert classify_member_status(_row(c21=0, c22=0.0), layout) == LegacyMemberStatus.ACTIVE
    assert classify_member_status(_row(c21=False), layout) == LegacyMemberStatus.ACTIVE
    assert classify_member_status(_row(c21=1), layout) == LegacyMemberStatus.DECEASED


@pytest.mark.unit
def test_suspended_marker_column():
    layout = detect_layout([["No Kad Pengenalan", "Nama Ahli", "GANTUNG"]])
    row = ["800101125555", "Ali", "Y"]
    assert classify_member_status(row, layout) == LegacyMemberStatus.SUSPENDED


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_payment_status_from_receipt_text():
    layout = detect_layout([HEADER])
    row = _row(c17="Tunggak 2021", c18=50, c19="P/Bayar", c20=100)

    payments = extract_payments(row, layout)

    assert [(p.year, p.amount, p.status) for p in payments] == [
        (2022, 50.0, LegacyPaymentStatus.ARREARS),
        (2023, 100.0, LegacyPaymentStatus.PREPAID),
    ]


@pytest.mark.unit
def test_non_numeric_zero_and_moved_amounts_are_skipped():
    layout = detect_layout([HEADER])

    assert extract_payments(_row(c18="50", c20=0), layout) == []
    assert extract_payments(_row(c17="PINDAH", c18=50), layout) == []
    assert extract_payments(_row(c18=True), layout) == []


@pytest.mark.unit
def test_integral_receipt_numbers_lose_float_suffix():
    layout = detect_layout([HEADER])
    payments = extract_payments(_row(c17=1234.0, c18=50), layout)
    assert payments[0].receipt_number == "1234"


@pytest.mark.unit
def test_written_receipt_notes_are_not_kept():
    layout = detect_layout([HEADER])
    row = _row(c17="Tunggak 2021", c18=50, c19=" 2001 ", c20=50)

    payments = extract_payments(row, layout)

    assert [(p.receipt_number, p.status) for p in payments] == [
        (None, LegacyPaymentStatus.ARREARS),
        ("2001", LegacyPaymentStatus.PAID),
    ]


@pytest.mark.unit
def test_field_column_is_not_a_receipt_column():
    layout = detect_layout([["Nama Ahli", "No Kad Pengenalan", "2023"]])

    assert layout.years[0].receipt_col == NOT_FOUND
    payments = extract_payments(["Ali", "900101-01-1234", 50], layout)
    assert [(p.year, p.receipt_number) for p in payments] == [(2023, None)]


# ---------------------------------------------------------------------------
# Member fields
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_member_fields_mapping():
    layout = detect_layout([HEADER])
    row = _row(
        c0="A0007",
        c1="  Ali bin Abu ",
        c2="900101-01-1234",
        c3="Kg Baru",
        c4="0123456789",
        c5="01/02/2015",
        c6="Aminah",
        c7="Anak Satu",
        c8="Anak Dua",
        c15="Abu",
    )

    fields = extract_member_fields(row, layout)

    assert fields["ic_number"] == "900101011234"
    assert fields["name"] == "Ali bin Abu"
    assert fields["member_number"] == "A0007"
    assert fields["registered_on"] == date(2015, 2, 1)
    assert fields["spouse"] == "Aminah"
    assert fields["child_1"] == "Anak Satu"
    assert fields["child_2"] == "Anak Dua"
    assert fields["child_3"] is None
    assert fields["father"] == "Abu"
    assert fields["status"] == LegacyMemberStatus.ACTIVE


@pytest.mark.unit
def test_rows_without_ic_or_name_are_skipped():
    layout = detect_layout([HEADER])
    assert extract_member_fields(_row(c1="Ali"), layout) is None
    assert extract_member_fields(_row(c2="900101011234"), layout) is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [
        (42005, date(2015, 1, 1)),
        ("5/3/2010", date(2010, 3, 5)),
        (datetime(2012, 7, 9, 0, 0), date(2012, 7, 9)),
        (date(2013, 1, 2), date(2013, 1, 2)),
        ("2010-03-05", None),
        ("31/02/2010", None),
        (None, None),
    ],
)
def test_registration_date_parsing(value, expected):
    assert parse_registration_date(value) == expected
