"""
Response analytics engine.

Pure, synchronous functions over a FormSnapshot:

- sentiment: keyword sentiment classifier
- ratings: rating aggregation
- keywords: keyword frequency extraction
- question_summary: per-question answer tallies
- summarizer: per-response records and form-wide analytics
- export: CSV serialization
"""

from app.services.analytics.answers import (
    QuestionType,
    TextValue,
    ChoiceValue,
    RatingValue,
    interpret_answer,
    parse_rating,
)
from app.services.analytics.snapshot import (
    FormSnapshot,
    QuestionSnapshot,
    ResponseSnapshot,
    AnswerSnapshot,
    snapshot_form,
)
from app.services.analytics.sentiment import Sentiment, classify_text, classify_response
from app.services.analytics.ratings import average_rating
from app.services.analytics.keywords import extract_keywords
from app.services.analytics.question_summary import build_question_summaries
from app.services.analytics.summarizer import (
    Analytics,
    FormReport,
    ProcessedResponse,
    build_form_report,
    compute_analytics,
    filter_responses,
    format_time_ago,
    process_response,
)
from app.services.analytics.export import ExportError, export_filename, generate_csv

__all__ = [
    "QuestionType",
    "TextValue",
    "ChoiceValue",
    "RatingValue",
    "interpret_answer",
    "parse_rating",
    "FormSnapshot",
    "QuestionSnapshot",
    "ResponseSnapshot",
    "AnswerSnapshot",
    "snapshot_form",
    "Sentiment",
    "classify_text",
    "classify_response",
    "average_rating",
    "extract_keywords",
    "build_question_summaries",
    "Analytics",
    "FormReport",
    "ProcessedResponse",
    "build_form_report",
    "compute_analytics",
    "filter_responses",
    "format_time_ago",
    "process_response",
    "ExportError",
    "export_filename",
    "generate_csv",
]
