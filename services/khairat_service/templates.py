"""
Malay message templates for khairat approval and rejection notices.
"""

from services.khairat_service.schemas import NotificationPayload

FUND_NAME = "Khairat Kematian Masjid"

FEE_TYPE_LABELS = {
    "keahlian": "Yuran Keahlian",
    "tahunan": "Yuran Tahunan",
    "isteri_kedua": "Yuran Isteri Kedua",
}


def mask_ic(ic_number: str) -> str:
    """Show only the last four digits of an IC number."""
    if len(ic_number) <= 4:
        return ic_number
    return "*" * (len(ic_number) - 4) + ic_number[-4:]


def _fee_label(fee_type: str) -> str:
    return FEE_TYPE_LABELS.get(fee_type, fee_type)


def _details(payload: NotificationPayload) -> str:
    registered = (
        payload.registered_on.strftime("%d/%m/%Y") if payload.registered_on else "-"
    )
    return (
        f"No. Rujukan: KA-{payload.application_id:05d}\n"
        f"No. K/P: {mask_ic(payload.ic_number)}\n"
        f"Jenis Yuran: {_fee_label(payload.fee_type)}\n"
        f"No. Resit: {payload.receipt_number}\n"
        f"Amaun: RM{payload.amount:.2f}\n"
        f"Tarikh Daftar: {registered}\n"
        f"Bilangan Tanggungan: {payload.dependent_count}"
    )


def approval_whatsapp(payload: NotificationPayload) -> str:
    return (
        f"Assalamualaikum {payload.name},\n\n"
        f"Permohonan {FUND_NAME} anda telah *DILULUSKAN*.\n\n"
        f"{_details(payload)}\n\n"
        "Terima kasih kerana menyertai skim khairat ini."
    )


def rejection_whatsapp(payload: NotificationPayload, reason: str) -> str:
    return (
        f"Assalamualaikum {payload.name},\n\n"
        f"Harap maaf, permohonan {FUND_NAME} anda telah *DITOLAK*.\n\n"
        f"Sebab: {reason}\n\n"
        f"{_details(payload)}\n\n"
        "Sila hubungi pejabat masjid untuk maklumat lanjut."
    )


def approval_email(payload: NotificationPayload) -> tuple[str, str]:
    """Returns (subject, body)."""
    subject = f"Permohonan {FUND_NAME} Diluluskan"
    body = f"""Assalamualaikum {payload.name},

Dengan sukacitanya dimaklumkan bahawa permohonan {FUND_NAME} anda telah diluluskan.

{_details(payload)}

Terima kasih kerana menyertai skim khairat ini.

Pentadbir {FUND_NAME}
"""
    return subject, body


def rejection_email(payload: NotificationPayload, reason: str) -> tuple[str, str]:
    subject = f"Permohonan {FUND_NAME} Ditolak"
    body = f"""Assalamualaikum {payload.name},

Harap maaf, permohonan {FUND_NAME} anda tidak dapat diluluskan.

Sebab: {reason}

{_details(payload)}

Sila hubungi pejabat masjid untuk maklumat lanjut.

Pentadbir {FUND_NAME}
"""
    return subject, body
