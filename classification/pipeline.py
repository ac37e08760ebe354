"""
Classification pipeline: prompt → model → parse → validate.

One external call per problem; nothing here touches the database.
"""

import json
import logging
import re
from typing import Optional, Tuple

from classification import gpt_client
from classification.prompt_builder import build_classification_prompt
from classification.result_validator import ModelResponseError, validate_classification
from classification.schemas import ClassificationMode, ValidatedClassification
from taxonomy.schemas import TaxonomySnapshot

log = logging.getLogger("classification.pipeline")

MAX_PROBLEM_CHARS = 6000


def parse_model_json(raw: str) -> dict:
    """Parse the model's reply into a dict, tolerating markdown fences around it."""
    text = (raw or "").strip()
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"\s*```$", "", text, flags=re.MULTILINE)
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end == 0:
        raise ModelResponseError("No JSON object in model response")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ModelResponseError(f"Malformed JSON in model response: {e}") from e
    if not isinstance(data, dict):
        raise ModelResponseError("Model response is not a JSON object")
    return data


async def classify_problem(
    content: str,
    snapshot: TaxonomySnapshot,
    mode: ClassificationMode = ClassificationMode.LIGHT,
    level_code: Optional[str] = None,
    advanced: bool = False,
) -> Tuple[ValidatedClassification, str]:
    """
    Classify one problem against the taxonomy.

    Args:
        content:    Problem text (LaTeX)
        snapshot:   Active taxonomy snapshot, read once for this request
        mode:       light | full
        level_code: Restrict the candidate table to one level
        advanced:   Use the advanced model

    Returns:
        (validated classification, model name)

    Raises:
        ModelResponseError: unparseable model output
        gpt_client.MissingApiKeyError: no API key configured
    """
    mode = ClassificationMode(mode)
    system = build_classification_prompt(snapshot, mode=mode, level_code=level_code)
    model = gpt_client.model_name(advanced)

    log.info(f"[CLASSIFY] mode={mode.value} level={level_code or '*'} model={model} candidates={len(snapshot.for_level(level_code))}")

    raw = await gpt_client.call_gpt_json(
        prompt=f"다음 수학 문제를 분석해주세요:\n\n{content[:MAX_PROBLEM_CHARS]}",
        system=system,
        model=model,
    )
    result = validate_classification(parse_model_json(raw), snapshot, mode)

    log.info(
        f"[CLASSIFY] OK — type={result.type_code or '-'} known={result.known_type} "
        f"difficulty={result.difficulty} issues={len(result.issues)}"
    )
    return result, model
