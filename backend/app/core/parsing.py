"""
Cell-level parsing for spreadsheet imports: dates, amounts, periods, payment
modes and place names. Every parser raises ValueError on bad input; the
importers turn that into a row error.
"""
import unicodedata
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from app.models.enums import ModePaiement

# Excel serial 0 is 1899-12-30 (1900 leap-year bug included)
EXCEL_EPOCH = date(1899, 12, 30)


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def pick(row: dict, names: list[str]):
    """First non-blank value among several possible column names."""
    for name in names:
        value = row.get(name)
        if not is_blank(value):
            return value
    return None


def clean_text(value) -> str | None:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"date invalide: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return EXCEL_EPOCH + timedelta(days=int(value))
        except (OverflowError, ValueError) as exc:
            raise ValueError(f"date invalide: {value!r}") from exc
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        try:
            return datetime.strptime(text, "%d/%m/%Y").date()
        except ValueError:
            pass
        try:
            return date_parser.parse(text, dayfirst=True).date()
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"date invalide: {value!r}") from exc
    raise ValueError(f"date invalide: {value!r}")


def parse_amount(value) -> Decimal:
    """Numbers or French-formatted strings ('1 050,50 €')."""
    if isinstance(value, bool):
        raise ValueError(f"montant invalide: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.replace("€", "").replace(" ", "").replace(" ", "").replace(",", ".")
        try:
            number = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"montant invalide: {value!r}") from exc
    else:
        raise ValueError(f"montant invalide: {value!r}")
    # NaN and Infinity are valid Decimals but not amounts
    if not number.is_finite():
        raise ValueError(f"montant invalide: {value!r}")
    return number


def parse_int(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"entier invalide: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"entier invalide: {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"entier invalide: {value!r}")
    return int(number)


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def normalize_mode(
    raw,
    aliases: dict[str, list[str]],
    fallback: ModePaiement,
    matching: str = "exact",
) -> ModePaiement:
    """
    Map a free-text payment mode to ModePaiement.

    matching='exact'    → the normalised text must equal a known alias
    matching='contains' → the first mode whose name appears in the text wins
    Anything unrecognised falls back to `fallback`.
    """
    if is_blank(raw):
        return fallback
    text = strip_accents(str(raw)).upper().strip()

    for mode, names in aliases.items():
        if matching == "contains":
            if mode in text:
                return ModePaiement(mode)
        elif text in (strip_accents(n).upper() for n in names):
            return ModePaiement(mode)
    return fallback


def validate_period(mois, annee, year_min: int, year_max: int) -> tuple[int, int]:
    """Parse and bound-check a (mois, annee) pair. Raises ValueError with the row message."""
    try:
        mois = parse_int(mois)
    except ValueError as exc:
        raise ValueError(f"Mois invalide ({mois})") from exc
    try:
        annee = parse_int(annee)
    except ValueError as exc:
        raise ValueError(f"Année invalide ({annee})") from exc

    if not 1 <= mois <= 12:
        raise ValueError(f"Mois invalide ({mois})")
    if not year_min <= annee <= year_max:
        raise ValueError(f"Année invalide ({annee})")
    return mois, annee


def normalize_city(ville, corrections: list[dict]) -> str:
    """Lower-case, hyphens → spaces, then known spelling corrections."""
    if is_blank(ville):
        return ""
    text = str(ville).strip().lower().replace("-", " ")
    for correction in corrections:
        if correction["match"] in text:
            return correction["replacement"]
    return text
