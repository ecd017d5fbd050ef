import re

from tripfare.schemas.booking import PassengerIn

_NON_DIGITS = re.compile(r"\D")


def format_phone_number(phone: str | None) -> str:
    """Best-effort E.164 formatting of a phone number typed by a traveller."""
    if not phone:
        return ""

    phone = phone.strip()
    if phone.startswith("+"):
        # "+44" typed after a US-style "+1" prefix
        if phone.startswith("+144") and len(phone) > 12:
            return f"+44{phone[4:]}"
        return phone

    digits = _NON_DIGITS.sub("", phone)
    if digits.startswith("00"):
        return f"+{digits[2:]}"
    if digits.startswith("0"):
        if len(digits) > 10:
            return f"+44{digits[1:]}"
        return f"+1{digits[1:]}"
    if digits.startswith("44"):
        return f"+{digits}"
    if digits:
        return f"+1{digits}"
    return ""


def normalize_gender(gender: str | None) -> str | None:
    if not gender:
        return None
    value = gender.strip().lower()
    return {"male": "m", "female": "f"}.get(value, value)


def to_duffel_passenger(passenger: PassengerIn) -> dict:
    data = {
        "id": passenger.id,
        "title": passenger.title,
        "given_name": passenger.first_name,
        "family_name": passenger.last_name,
        "born_on": passenger.date_of_birth,
        "gender": normalize_gender(passenger.gender),
        "email": passenger.email,
        "phone_number": format_phone_number(passenger.phone),
    }
    if passenger.document_number:
        data["identity_documents"] = [{
            "type": passenger.document_type,
            "unique_identifier": passenger.document_number,
            "issuing_country_code": passenger.document_issuing_country_code,
            "expires_on": passenger.document_expiry_date,
        }]
    return {k: v for k, v in data.items() if v is not None}
