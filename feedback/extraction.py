"""Tolerant extraction of structured feedback from raw model replies.

Replies are parsed directly first. If that fails, the reply is cleaned of
markdown, the object region is cut out, and a sequence of named repair passes
rewrites common formatting mistakes. When even that fails, the model is asked
(a bounded number of times) to restate its own output as a JSON object.
Extraction never raises; the worst case is an empty record.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from llm_gateway import LlmGatewayError, ModelInvoker

from .models import StructuredFeedback
from .prompts import build_repair_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_DOUBLE_QUOTED_RE = re.compile(r'("(?:[^"\\]|\\.)*")', re.DOTALL)
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")
_SINGLE_QUOTED_RE = re.compile(r"(?<=[\[{,:])(\s*)'((?:[^'\\]|\\.)*)'(?=\s*[,}\]:])")
_BARE_KEY_RE = re.compile(r"(?<=[{,])(\s*)([A-Za-z_$][\w$-]*)(\s*):")
_TRAILING_COMMA_RE = re.compile(r",(\s*)([}\]])")
_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORE_EMPHASIS_RE = re.compile(r"__")


def _map_unquoted(text: str, fn: Callable[[str], str]) -> str:  # Apply fn only outside double-quoted strings
    parts = _DOUBLE_QUOTED_RE.split(text)
    return "".join(part if index % 2 else fn(part) for index, part in enumerate(parts))


def strip_markup(text: str) -> str:
    """Remove code fences (keeping their body), backticks and bold markers.

    ``__`` markers are only dropped outside double-quoted strings.
    """

    cleaned = _FENCE_RE.sub("", text)
    cleaned = cleaned.replace("`", "").replace("**", "")
    return _map_unquoted(cleaned, lambda part: _UNDERSCORE_EMPHASIS_RE.sub("", part))


def locate_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` region, or first ``{`` to last ``}``."""

    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    end = text.rfind("}")
    return text[start : end + 1] if end > start else text[start:]


def quote_single_strings(text: str) -> str:
    """Rewrite ``'value'`` in key or value position as ``"value"``."""

    def _swap(match: re.Match[str]) -> str:
        body = match.group(2).replace("\\'", "'").replace('"', '\\"')
        return f'{match.group(1)}"{body}"'

    return _map_unquoted(text, lambda part: _SINGLE_QUOTED_RE.sub(_swap, part))


def quote_bare_keys(text: str) -> str:
    """Rewrite ``{key:`` and ``, key:`` as quoted keys."""

    return _map_unquoted(text, lambda part: _BARE_KEY_RE.sub(r'\1"\2"\3:', part))


def strip_trailing_commas(text: str) -> str:
    """Drop commas directly before a closing brace or bracket."""

    return _map_unquoted(text, lambda part: _TRAILING_COMMA_RE.sub(r"\1\2", part))


def collapse_whitespace(text: str) -> str:
    """Fold newlines and whitespace runs (raw newlines are illegal inside JSON strings)."""

    return _WHITESPACE_RE.sub(" ", text).strip()


# Whitespace is folded first so single-quoted values spanning lines are still matched.
REPAIR_PASSES: Sequence[Callable[[str], str]] = (
    collapse_whitespace,
    quote_single_strings,
    quote_bare_keys,
    strip_trailing_commas,
)


def repair_text(text: str) -> str:  # Full textual repair pipeline
    candidate = locate_object(strip_markup(text))
    if candidate is None:
        return text.strip()
    for repair in REPAIR_PASSES:
        candidate = repair(candidate)
    return candidate


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def _usable(data: Any, schema: Type[BaseModel]) -> bool:  # Object carrying at least one schema key
    return isinstance(data, dict) and any(key in schema.model_fields for key in data)


def parse_structured(text: str, schema: Type[T] = StructuredFeedback) -> Optional[T]:  # type: ignore[assignment]
    """Parse ``text`` directly, then after textual repair; ``None`` when neither yields a usable object."""

    if not text or not text.strip():
        return None
    for candidate in (text.strip(), repair_text(text)):
        data = _loads(candidate)
        if not _usable(data, schema):
            continue
        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            logger.info("Structured reply failed validation: %s", exc.errors()[:3])
    return None


class ResponseExtractor:  # Parse-repair-reprompt loop over a model invoker
    def __init__(self, invoker: ModelInvoker, model_name: Optional[str], *, max_repair_rounds: int = 2) -> None:
        self._invoker = invoker
        self._model_name = model_name
        self.max_repair_rounds = max(0, max_repair_rounds)
        self.last_repair_rounds = 0

    def extract(self, raw_reply: str, schema: Type[T] = StructuredFeedback) -> T:  # type: ignore[assignment]
        self.last_repair_rounds = 0
        parsed = parse_structured(raw_reply, schema)
        if parsed is not None:
            return parsed

        previous = raw_reply
        for round_index in range(1, self.max_repair_rounds + 1):
            self.last_repair_rounds = round_index
            prompt = build_repair_prompt(previous, schema)
            try:
                reply = self._invoker.invoke(self._model_name, prompt)
            except LlmGatewayError as exc:
                logger.warning("Repair round %d could not reach the model: %s", round_index, exc)
                break
            parsed = parse_structured(reply, schema)
            if parsed is not None:
                logger.info("Structured reply recovered after %d repair round(s)", round_index)
                return parsed
            if reply and reply.strip():
                previous = reply.strip()

        logger.warning(
            "Model reply unparsable after %d repair round(s); continuing with heuristics only",
            self.last_repair_rounds,
        )
        return schema()


__all__ = [
    "REPAIR_PASSES",
    "ResponseExtractor",
    "collapse_whitespace",
    "locate_object",
    "parse_structured",
    "quote_bare_keys",
    "quote_single_strings",
    "repair_text",
    "strip_markup",
    "strip_trailing_commas",
]
