"""
Prompt Builder - turns a question and the current records into a prompt pair.

The system prompt carries the answering rules and the record data; the user
prompt carries the question. When there are more records than the cap, only
the first `record_limit` are embedded and the prompt says so, giving the
total so counts stay exact while listing questions are limited to what is
shown.

Building is pure: no I/O, and the same inputs always give the same prompts.
"""

import json
from typing import Sequence

from app.models.chat import PromptPair
from app.models.student import StudentRecord, STUDENT_FIELDS

DEFAULT_RECORD_LIMIT = 500

SYSTEM_RULES = """You are a data analysis assistant for a Student Information System.
You must answer strictly based on the student data provided below.
Rules:
- If a requested field is not part of the data (for example age, address or grades), say it is not available.
- For counts, averages or other aggregates, compute them exactly from the data. Never estimate.
- For lists, return only the exact matching records from the data, as short bulleted items.
- If the dataset is empty, say so.
- Treat program abbreviations as synonyms (BS Information Systems = BSIS, BS Computer Science = BSCS) only when the matching value is present in the data.
- Be concise and accurate. If the question is unclear, ask a brief clarifying question."""

PARTIAL_DATA_RULE = (
    "- Only {shown} of {total} records are included below. Use the total of {total} "
    "for questions about how many students there are. For any other count or list, "
    "say that the answer covers only the {shown} records shown."
)

EMPTY_DATASET_MESSAGE = (
    "There are no student records yet, so there is nothing to answer from. "
    "Add students first and then ask again."
)


def serialize_records(records: Sequence[StudentRecord]) -> str:
    """Render records as an indented JSON array with unset fields omitted."""
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def build_prompt(question: str, records: Sequence[StudentRecord],
                 record_limit: int = DEFAULT_RECORD_LIMIT) -> PromptPair:
    """
    Build the system/user prompt pair for a chat question.

    Args:
        question: The user's question, surrounding whitespace removed
        records: Current record snapshot, in store order
        record_limit: Maximum number of records embedded in the prompt

    Returns:
        PromptPair with the rules + data block and the question
    """
    total = len(records)
    shown = records[:max(record_limit, 0)]

    rules = [SYSTEM_RULES]
    if total == 0:
        header = "Student data: the dataset is empty (0 records)."
    elif len(shown) < total:
        rules.append(PARTIAL_DATA_RULE.format(shown=len(shown), total=total))
        header = "Student data (JSON array, showing the first {} of {} records):".format(len(shown), total)
    else:
        header = "Student data (JSON array, all {} records):".format(total)

    sections = [
        "\n".join(rules),
        "Available fields: {}".format(", ".join(STUDENT_FIELDS)),
        header,
    ]
    if shown:
        sections.append(serialize_records(shown))

    return PromptPair(
        system_prompt="\n\n".join(sections),
        user_prompt=question.strip(),
    )
