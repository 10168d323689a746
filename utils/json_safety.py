import json
import logging
import re

log = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"^```(?:json|html)?\s*|\s*```$", re.IGNORECASE | re.MULTILINE)
UNQUOTED_KEY_RE = re.compile(r"([,{]\s*)([A-Za-z0-9_]+)\s*:")
MISSING_VALUE_RE = re.compile(r":\s*(?=[,}])")
TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")

_CLOSERS = {"{": "}", "[": "]"}


def strip_fences(txt: str) -> str:
    return re.sub(CODE_FENCE_RE, "", txt or "").strip()


def _balanced_from(txt: str, start: int) -> str | None:
    stack: list[str] = []
    in_str = False
    esc = False
    for i in range(start, len(txt)):
        c = txt[i]
        if in_str:
            if esc:
                esc = False
            elif c == "\\":
                esc = True
            elif c == '"':
                in_str = False
            continue
        if c == '"':
            in_str = True
        elif c in _CLOSERS:
            stack.append(_CLOSERS[c])
        elif c in ("}", "]"):
            if not stack or stack[-1] != c:
                return None
            stack.pop()
            if not stack:
                return txt[start : i + 1]
    return None


def extract_balanced(txt: str) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` substring of *txt*.

    Brackets inside string literals are ignored.  An opener that is never
    closed, or meets a mismatched closer, is skipped and the scan restarts
    at the next one.  ``None`` is returned when no opener balances.
    """
    if not txt:
        return None
    for start, c in enumerate(txt):
        if c not in _CLOSERS:
            continue
        block = _balanced_from(txt, start)
        if block is not None:
            return block
    return None


def light_sanitize(txt: str) -> str:
    # Remove trailing commas before } or ]
    txt = re.sub(r",\s*([}\]])", r"\1", txt)
    # Replace smart quotes
    txt = txt.replace("“", '"').replace("”", '"').replace("’", "'")
    return txt


def auto_repair_json(txt: str) -> str:
    """Attempt lightweight structural fixes for common JSON issues."""
    if not isinstance(txt, str):
        return txt
    txt = TRAILING_COMMA_RE.sub(r"\1", txt)
    txt = UNQUOTED_KEY_RE.sub(lambda m: f'{m.group(1)}"{m.group(2)}":', txt)
    txt = MISSING_VALUE_RE.sub(": null", txt)
    return txt


def parse_json_loose(raw: str):
    """Coerce model text into a JSON value.

    Tries the fenced-stripped text, then the first balanced bracketed block,
    each as-is and after light repairs.  Raises ``ValueError`` when nothing
    parses.
    """
    if raw is None:
        raise ValueError("No model text to parse")
    stripped = strip_fences(raw)
    candidates = [stripped]
    block = extract_balanced(stripped) or extract_balanced(light_sanitize(stripped))
    if block:
        candidates.insert(0, block)
    last_err: Exception | None = None
    for c in candidates:
        for attempt in (c, light_sanitize(c), auto_repair_json(light_sanitize(c))):
            try:
                return json.loads(attempt)
            except ValueError as e:
                last_err = e
    log.debug("json_parse_failed head=%r", (raw or "")[:120])
    raise ValueError("Model JSON parse failed") from last_err
