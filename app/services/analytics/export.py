"""
CSV export of a form's responses.

One row per response (newest first), one column per question in form order.
The file is written through a temporary file that only lives for the
duration of generate_csv(); the caller gets the finished bytes or an
ExportError, never a partial file.
"""

import csv
import logging
import re
import tempfile
from datetime import datetime
from typing import Iterator
from zoneinfo import ZoneInfo

from app.services.analytics.snapshot import FormSnapshot, ResponseSnapshot

logger = logging.getLogger(__name__)

EXPORT_FILENAME_SUFFIX = "_responses.csv"
EXPORT_MEDIA_TYPE = "text/csv; charset=utf-8"

RESPONSE_ID_HEADER = "Response ID"
SUBMITTED_AT_HEADER = "Submitted At"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


class ExportError(Exception):
    """Raised when the CSV file could not be produced."""


def export_filename(title: str) -> str:
    """'Q4 Survey!!' -> 'Q4_Survey___responses.csv'"""
    return _UNSAFE_FILENAME_CHARS.sub("_", title) + EXPORT_FILENAME_SUFFIX


def format_submitted_at(value: datetime, tz_name: str = "UTC") -> str:
    """US style date-time with a short zone name: '10/19/2026, 02:05:09 PM UTC'."""
    local = value.astimezone(ZoneInfo(tz_name))
    return f"{local:%m/%d/%Y, %I:%M:%S %p} {local.tzname()}"


def export_header(form: FormSnapshot) -> list[str]:
    return [RESPONSE_ID_HEADER, SUBMITTED_AT_HEADER] + [q.question_text for q in form.questions]


def _export_row(form: FormSnapshot, response: ResponseSnapshot, tz_name: str) -> list[str]:
    answers = {a.question_id: a.answer_text for a in response.answers}
    return [
        response.id,
        format_submitted_at(response.submitted_at, tz_name),
        *(answers.get(q.id, "") for q in form.questions),
    ]


def export_rows(form: FormSnapshot, tz_name: str = "UTC") -> Iterator[list[str]]:
    for response in form.responses_newest_first():
        yield _export_row(form, response, tz_name)


def generate_csv(form: FormSnapshot, tz_name: str = "UTC") -> bytes:
    """
    Render the form's responses as UTF-8 CSV bytes.

    Raises:
        ExportError: if writing or reading the temporary file fails, or an
            answer cannot be encoded as UTF-8
    """
    try:
        with tempfile.TemporaryFile(
            mode="w+", encoding="utf-8", newline="", prefix=f"form_{form.id}_", suffix=".csv"
        ) as tmp:
            writer = csv.writer(tmp, lineterminator="\n")
            writer.writerow(export_header(form))
            writer.writerows(export_rows(form, tz_name))
            tmp.flush()
            tmp.seek(0)
            content = tmp.read()
    except (OSError, ValueError, csv.Error) as e:
        logger.error(f"CSV export failed for form {form.id}: {type(e).__name__}")
        raise ExportError(f"Could not export responses for form {form.id}") from e

    logger.info(f"Exported {len(form.responses)} responses for form {form.id}")
    return content.encode("utf-8")
