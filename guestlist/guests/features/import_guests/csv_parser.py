import io

import pandas as pd

from guestlist.errors import ValidationError
from guestlist.guests.dtos import CsvGuestRow

REQUIRED_COLUMNS = ("name", "email")


def _party_size(value: str | None) -> int:
    try:
        size = int((value or "").strip())
    except ValueError:
        return 1
    return size if size >= 1 else 1


def read_guest_frame(text: str) -> pd.DataFrame:
    """Load the CSV as strings with lower-cased, stripped column names."""
    try:
        df = pd.read_csv(
            io.StringIO(text.lstrip("\ufeff")),
            dtype=str,
            keep_default_na=False,
            index_col=False,
        ).fillna("")
    except pd.errors.EmptyDataError as e:
        raise ValidationError("CSV file is empty") from e
    except pd.errors.ParserError as e:
        raise ValidationError(f"CSV file could not be parsed: {e}") from e
    df.columns = df.columns.str.strip().str.lower()
    return df


def parse_guest_csv(text: str) -> list[CsvGuestRow]:
    """Read `name,email,party_size` rows.

    Only the header is checked here; per-row validation happens on import so one bad row
    does not reject the file. Blank lines are skipped.
    """
    df = read_guest_frame(text)
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValidationError(f"CSV header is missing: {', '.join(missing)}")

    rows = []
    for _, record in df.iterrows():
        if not any(str(value).strip() for value in record.values):
            continue
        rows.append(
            CsvGuestRow(
                name=record.get("name", "").strip() or None,
                email=record.get("email", "").strip() or None,
                party_size=_party_size(record.get("party_size")),
            )
        )
    return rows
