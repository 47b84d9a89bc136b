from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # naive datetimes are taken to already be UTC (SQLite drops the offset)
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# response fields: always serialized with an explicit UTC offset
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
