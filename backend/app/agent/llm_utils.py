"""Recovery of structured (JSON) data from free-form LLM responses."""

import json
import re
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage

from app.core.logging import get_logger

if TYPE_CHECKING:
    from app.agent.llm import TextGenerator

logger = get_logger(__name__)

# Characters of context shown to the repair call on each side of the failure
EXCERPT_RADIUS = 100

_CITATION_MARKER = re.compile(r"\[\d+\]")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_FENCED_BLOCK = re.compile(r"```[\w-]*\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

REPAIR_SYSTEM_PROMPT = (
    "You are a JSON repair expert. Return ONLY valid JSON without markdown, "
    "code blocks, or explanations."
)


class StructuredOutputError(ValueError):
    """Structured data could not be recovered from an LLM response.

    Attributes:
        raw_text: The response text as received
        diagnostics: Parser message, failure offset and surrounding excerpt
        repair_error: Why the repair attempt failed, if one was made
    """

    def __init__(
        self,
        message: str,
        *,
        raw_text: str,
        diagnostics: dict[str, Any],
        repair_error: str | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.diagnostics = diagnostics
        self.repair_error = repair_error


def remove_search_artifacts(text: str) -> str:
    """Drop citation markers and reduce markdown links to their label.

    Web-search augmented responses are sprinkled with ``[3]`` style markers
    and ``[label](url)`` links, including inside JSON string values.
    """
    cleaned = _CITATION_MARKER.sub("", text)
    return _MARKDOWN_LINK.sub(r"\1", cleaned)


def extract_structured_text(text: str) -> str:
    """Isolate the JSON payload of a response.

    Prefers the interior of a fenced code block; otherwise takes everything
    from the first ``{`` to the last ``}``. Returns the cleaned text itself
    when neither is found.
    """
    cleaned = remove_search_artifacts(text)

    match = _FENCED_BLOCK.search(cleaned)
    if match and match.group(1):
        return match.group(1).strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        return cleaned[start : end + 1].strip()

    return cleaned.strip()


def _diagnose(candidate: str, error: json.JSONDecodeError) -> dict[str, Any]:
    start = max(0, error.pos - EXCERPT_RADIUS)
    end = min(len(candidate), error.pos + EXCERPT_RADIUS)
    return {
        "message": str(error),
        "position": error.pos,
        "excerpt": candidate[start:end],
    }


def parse_structured_text(text: str | None) -> Any:
    """Clean, extract and strictly parse a response.

    Raises:
        json.JSONDecodeError: If the extracted text is not valid JSON
    """
    return json.loads(extract_structured_text(text or ""))


def _build_repair_prompt(candidate: str, diagnostics: dict[str, Any]) -> str:
    return f"""The following JSON is malformed: "{diagnostics["message"]}"
Error around position {diagnostics["position"]}. Context: "{diagnostics["excerpt"]}"

Fix the JSON syntax errors and return ONLY the corrected, valid JSON. No explanations, markdown, or code blocks.

Common issues to fix:
- Trailing commas
- Missing commas
- Unescaped quotes
- Unclosed brackets/braces

Malformed JSON:
{candidate}

Return the fixed JSON:"""


async def recover_structured_output(
    text: str | None,
    *,
    generator: "TextGenerator | None",
    context: str = "JSON data",
) -> Any:
    """Parse an LLM response, with at most one LLM-assisted repair.

    Args:
        text: Raw LLM response content
        generator: Generator used for the repair call; None disables repair
        context: What the payload is, for logs and error messages

    Returns:
        The parsed JSON value

    Raises:
        StructuredOutputError: If the response cannot be parsed and the
            single repair attempt (if any) also fails
    """
    raw_text = text or ""
    candidate = extract_structured_text(raw_text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as parse_error:
        diagnostics = _diagnose(candidate, parse_error)

    if generator is None:
        raise StructuredOutputError(
            f"JSON parse failed for {context} and no repair is available: {diagnostics['message']}",
            raw_text=raw_text,
            diagnostics=diagnostics,
        )

    logger.warning(
        "JSON parse failed, attempting repair",
        context=context,
        error=diagnostics["message"],
        position=diagnostics["position"],
    )

    try:
        repaired = await generator.generate(
            [
                SystemMessage(content=REPAIR_SYSTEM_PROMPT),
                HumanMessage(content=_build_repair_prompt(candidate, diagnostics)),
            ]
        )
        if not repaired or not repaired.strip():
            raise ValueError("Empty response from JSON repair attempt")
        result = parse_structured_text(repaired)
    except Exception as repair_error:
        logger.error("JSON repair failed", context=context, error=str(repair_error))
        raise StructuredOutputError(
            f"JSON parse failed for {context}: {diagnostics['message']}. "
            f"Repair error: {repair_error}",
            raw_text=raw_text,
            diagnostics=diagnostics,
            repair_error=str(repair_error),
        ) from repair_error

    logger.info("Repaired JSON response", context=context)
    return result
