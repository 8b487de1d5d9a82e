"""
Validation of patient answers against a test version's questions.

Answers are keyed by the question's position in the version (``"0"``,
``"1"``, ...). The accepted shape depends on the question type:

* TEXT: a non-empty string
* MULTIPLE_CHOICE: one of the question's options
* SCALE: an integer within [minValue, maxValue], defaulting to [1, 5]
"""
import re
from typing import Any, Dict, List, Optional, Sequence

from clinic.core.exceptions import ValidationError
from clinic.db.models.enums import QuestionType
from clinic.schemas.test import Question

_INTEGER = re.compile(r"^-?\d+$")


def parse_questions(raw_questions: Sequence[dict]) -> List[Question]:
    return [Question.model_validate(question) for question in raw_questions]


def is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, dict)):
        return not answer
    return False


def parse_scale_value(answer: Any) -> Optional[int]:
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer
    if isinstance(answer, float) and answer.is_integer():
        return int(answer)
    if isinstance(answer, str) and _INTEGER.match(answer.strip()):
        return int(answer.strip())
    return None


def answer_error(question: Question, answer: Any) -> Optional[str]:
    """Describe why ``answer`` does not fit ``question``, or None when it does."""
    if question.type == QuestionType.TEXT:
        if not isinstance(answer, str) or not answer.strip():
            return "expected a non-empty text answer"
    elif question.type == QuestionType.MULTIPLE_CHOICE:
        if not isinstance(answer, str) or answer not in (question.options or []):
            return "answer must be one of the listed options"
    elif question.type == QuestionType.SCALE:
        value = parse_scale_value(answer)
        if value is None:
            return "expected a whole number"
        if not question.scale_min <= value <= question.scale_max:
            return f"value must be between {question.scale_min} and {question.scale_max}"
    return None


def validate_answers(questions: Sequence[Question], responses: Dict[str, Any]) -> None:
    known_keys = {str(index) for index in range(len(questions))}
    unknown = sorted(set(responses) - known_keys)
    if unknown:
        raise ValidationError(f"Unknown question keys: {', '.join(unknown)}")

    missing = [
        str(index)
        for index, question in enumerate(questions)
        if question.required and is_blank(responses.get(str(index)))
    ]
    if missing:
        raise ValidationError(f"Missing answers for required questions: {', '.join(missing)}")

    problems = []
    for index, question in enumerate(questions):
        answer = responses.get(str(index))
        if is_blank(answer):
            continue
        error = answer_error(question, answer)
        if error:
            problems.append(f"question {index}: {error}")
    if problems:
        raise ValidationError(f"Invalid answers for {'; '.join(problems)}")
