# generated-by: codex-agent 2025-03-02T11:00:00Z
"""
Keyword-based intent detection and the local arithmetic shortcut.

Everything here is pure: text in, classification or number out.
"""

from __future__ import annotations

import ast
import math
import operator
import re
from typing import Optional

from app.models.chat import Intent

IMAGE_KEYWORDS = (
    "show",
    "image",
    "picture",
    "cover",
    "logo",
    "mockup",
    "design",
    "illustration",
)

_IMAGE_RE = re.compile(r"\b(?:" + "|".join(IMAGE_KEYWORDS) + r")\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_OPERATOR_RE = re.compile(r"[+\-*/×]|\bx\b|\d\s*x\s*\d|times|multiplied by|divided by|minus|plus", re.IGNORECASE)
_STEPS_RE = re.compile(r"show (?:the )?work|steps|explain|how do you|get that|solve it", re.IGNORECASE)
_MATH_ONLY_RE = re.compile(r"^[0-9+\-*/().\s]+$")
_MAX_MATH_LENGTH = 60
_TIME_RE = re.compile(r"\bwhat time is it\b|\btime\b", re.IGNORECASE)
_WEATHER_RE = re.compile(r"\b(?:weather|forecast|temperature|rain|snow)\b", re.IGNORECASE)
_LOCATION_RE = re.compile(r"\buse (?:my )?location\b|\blocation\b", re.IGNORECASE)
_LOOP_FATIGUE_RE = re.compile(
    r"tired of (?:this )?(?:argument|loop)|keep going in circles|same fight|same argument|this again",
    re.IGNORECASE,
)
_KEYWORD_INTENTS = (
    ("time", _TIME_RE),
    ("weather", _WEATHER_RE),
    ("location_request", _LOCATION_RE),
    ("loop_fatigue", _LOOP_FATIGUE_RE),
)

_WORD_OPERATORS = (
    ("multiplied by", "*"),
    ("divided by", "/"),
    ("times", "*"),
    ("plus", "+"),
    ("minus", "-"),
)

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def wants_image(text: str) -> bool:
    return bool(_IMAGE_RE.search(text or ""))


def looks_like_math(text: str) -> bool:
    stripped = (text or "").strip()
    if not stripped or len(stripped) > _MAX_MATH_LENGTH:
        return False
    return bool(_NUMBER_RE.search(stripped) and _OPERATOR_RE.search(stripped))


def wants_steps(text: str) -> bool:
    return bool(_STEPS_RE.search(text or ""))


def classify(text: str) -> Intent:
    """First match wins: image, math, time, weather, location, loop fatigue, chat."""

    if wants_image(text):
        return "image"
    if looks_like_math(text):
        return "math"
    for intent, pattern in _KEYWORD_INTENTS:
        if pattern.search(text or ""):
            return intent
    return "chat"


def _normalize_expression(text: str) -> str:
    expr = text.lower()
    for words, symbol in _WORD_OPERATORS:
        expr = expr.replace(words, symbol)
    return re.sub(r"[x×]", "*", expr)


def _evaluate_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate_node(node.left), _evaluate_node(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate_node(node.operand))
    raise ValueError(f"unsupported expression node: {type(node).__name__}")


def evaluate_math(text: str) -> Optional[float]:
    """Evaluate `+ - * / ( )` arithmetic; None when the text is not a plain expression."""

    expr = _normalize_expression(text).strip()
    if not expr or not _MATH_ONLY_RE.match(expr):
        return None
    if re.search(r"[*/]{2,}", expr):
        return None
    try:
        value = _evaluate_node(ast.parse(expr, mode="eval"))
    except (SyntaxError, ValueError, ZeroDivisionError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return str(round(value, 6))
