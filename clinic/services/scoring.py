"""
Initial psychological assessment: questionnaire definition and scoring.

Every question is answered on a four step frequency scale whose option value
is also its weight. Section scores are summed into subscales, each with a
maximum of ``questions * 3``, and the total is the sum of the subscales.
"""
from typing import Dict, List, Mapping, Union

from clinic.core.exceptions import ValidationError
from clinic.schemas.initial_form import (
    AssessmentForm,
    AssessmentScores,
    FormOption,
    FormQuestion,
    FormSection,
    SubscaleScore,
)

FORM_TYPE = "initial_assessment"

FREQUENCY_OPTIONS = [
    ("0", "Never"),
    ("1", "Sometimes"),
    ("2", "Often"),
    ("3", "Very often"),
]
WEIGHTS: Dict[str, int] = {value: int(value) for value, _ in FREQUENCY_OPTIONS}
MAX_WEIGHT = max(WEIGHTS.values())

BANDS = ("Low", "Moderate", "High", "Very High")

SECTIONS = [
    {
        "id": "section_1",
        "key": "anxious_experiences",
        "title": "I. Anxious Experiences",
        "description": "The patient reports the following states and experiences during the clinical interview:",
        "questions": [
            "Restlessness, nervousness, worry or fear not explained by life circumstances.",
            "Sudden, unexpected states of panic or agitation without a clear reason.",
            "Fear that something bad will happen, or that they or someone close is in danger.",
            "A constant state of tension and strain, feeling like a 'bundle of nerves'.",
            "Feeling of no longer being themselves, of inner emptiness (depersonalization).",
            "Feeling estranged from the outside world, 'lost in space' (derealization).",
            "Feeling detached from their own body, altered bodily sensations.",
        ],
    },
    {
        "id": "section_2",
        "key": "anxious_thoughts",
        "title": "II. Anxious Thoughts",
        "description": "The patient experiences the following anxious thoughts and ideas:",
        "questions": [
            "Difficulty concentrating, losing the thread of reading or activity.",
            "Racing thoughts at a tiring pace that disturbs mental activity.",
            "Unfounded suspicions and fears built on exaggerated everyday events or remarks.",
            "Thinking they are at their limit and might lose control or act rashly.",
            "Fear of a nervous breakdown or of becoming seriously mentally ill.",
            "Fear of fainting or losing consciousness.",
            "Fear of a serious physical illness, a heart attack, or death.",
            "Worry about behaving inappropriately or failing to meet expectations.",
            "Fear of loneliness or of being abandoned by those around them.",
            "Fear of criticism or disapproval of what they say or do.",
            "Fear that something terrible but undefined is about to happen.",
        ],
    },
    {
        "id": "section_3",
        "key": "psychosomatic_symptoms",
        "title": "III. Psychosomatic Symptoms",
        "description": "The patient experiences the following physical symptoms:",
        "questions": [
            "Rapid or strong heartbeats (palpitations).",
            "Pain or pressure in the chest.",
            "Tingling or numbness in the fingers, hands or feet.",
            "Tension or discomfort in the stomach area.",
            "Various digestive disorders.",
            "Insomnia.",
            "Muscle tension, global or localized.",
            "Chills or tremor, as if cold.",
            "Unsteady walking, legs feeling weak.",
            "Feeling hot or sweating regardless of the temperature.",
            "Dizziness, confusion and uncertainty.",
            "Shortness of breath or a feeling of suffocation.",
            "Headaches, back or neck pain.",
            "A 'lump in the throat', difficulty swallowing.",
            "Sudden alternating hot and cold sensations.",
            "Fatigue, lack of energy, tiring easily.",
        ],
    },
]


def question_ids(section: Mapping) -> List[str]:
    number = section["id"].split("_")[-1]
    return [f"q{number}_{index}" for index in range(1, len(section["questions"]) + 1)]


def build_form() -> AssessmentForm:
    options = [FormOption(value=value, label=label) for value, label in FREQUENCY_OPTIONS]
    return AssessmentForm(
        title="Initial Psychological Assessment",
        description="Questionnaire for evaluating anxiety states and symptoms",
        sections=[
            FormSection(
                id=section["id"],
                key=section["key"],
                title=section["title"],
                description=section["description"],
                questions=[
                    FormQuestion(id=question_id, text=text, options=options)
                    for question_id, text in zip(question_ids(section), section["questions"])
                ],
            )
            for section in SECTIONS
        ],
    )


def subscale_max(section: Mapping) -> int:
    return len(section["questions"]) * MAX_WEIGHT


def interpret_score(score: int, max_score: int) -> str:
    """Band ``score`` by its share of ``max_score``: <25%, <50%, <75%, rest."""
    if max_score <= 0:
        raise ValueError("max_score must be positive")
    if score * 4 < max_score:
        return BANDS[0]
    if score * 2 < max_score:
        return BANDS[1]
    if score * 4 < max_score * 3:
        return BANDS[2]
    return BANDS[3]


def normalize_responses(responses: Mapping[str, Union[int, str]]) -> Dict[str, str]:
    """Check every question has a valid option value; returns answers as strings."""
    expected = [question_id for section in SECTIONS for question_id in question_ids(section)]
    unknown = sorted(set(responses) - set(expected))
    if unknown:
        raise ValidationError(f"Unknown questions: {', '.join(unknown)}")

    missing = [question_id for question_id in expected if question_id not in responses]
    if missing:
        raise ValidationError(f"Missing answers for required questions: {', '.join(missing)}")

    normalized = {}
    invalid = []
    for question_id in expected:
        value = responses[question_id]
        value = str(value).strip() if not isinstance(value, bool) else ""
        if value not in WEIGHTS:
            invalid.append(question_id)
        normalized[question_id] = value
    if invalid:
        raise ValidationError(f"Invalid answers for questions: {', '.join(invalid)}")
    return normalized


def raw_scores(responses: Mapping[str, str]) -> Dict[str, int]:
    return {
        section["key"]: sum(WEIGHTS[responses[question_id]] for question_id in question_ids(section))
        for section in SECTIONS
    }


def score_responses(responses: Mapping[str, str]) -> AssessmentScores:
    return rescore(raw_scores(responses))


def scores_from_subscales(subscales: List[SubscaleScore]) -> AssessmentScores:
    total = sum(subscale.score for subscale in subscales)
    max_total = sum(subscale.max_score for subscale in subscales)
    return AssessmentScores(
        subscales=subscales,
        total_score=total,
        max_total_score=max_total,
        total_interpretation=interpret_score(total, max_total),
    )


def rescore(stored_scores: Mapping[str, int]) -> AssessmentScores:
    """Rebuild subscale results from the raw scores kept with a submission."""
    subscales = []
    for section in SECTIONS:
        score = int(stored_scores.get(section["key"], 0))
        max_score = subscale_max(section)
        subscales.append(
            SubscaleScore(
                key=section["key"],
                title=section["title"],
                score=score,
                max_score=max_score,
                interpretation=interpret_score(score, max_score),
            )
        )
    return scores_from_subscales(subscales)
