# Copyright (c) Syntropy Systems
"""Extract a ``{pass, reason}`` verdict from free-form model text.

Model replies often wrap the JSON object in prose or break strict JSON inside
``reason`` (stray quotes, backslashes) while the structure is still
recoverable. Parsing is two-tier: strict ``json.loads`` on the outermost brace
span, then field-level regular expressions on the same span. Nothing here
raises.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Optional, cast

# Greedy: first "{" through last "}"
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_PASS_RE = re.compile(r'"pass"\s*:\s*(true|false)\b')
# Lazy capture that ends at a quote followed by the next key or the closing
# brace(s), so unescaped inner quotes stay inside the reason.
_REASON_RE = re.compile(
    r'"reason"\s*:\s*"(.*?)"(?=\s*(?:,\s*"[^"\n]*"\s*:|,?\s*\}[\s}]*$))',
    re.DOTALL,
)


@dataclass(frozen=True)
class Verdict:
    """A complete grading verdict."""

    pass_: bool
    reason: str


@dataclass(frozen=True)
class VerdictFields:
    """Whatever could be recovered from the reply; either field may be missing."""

    pass_: Optional[bool] = None
    reason: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.pass_ is not None and self.reason is not None

    def to_verdict(self) -> Optional[Verdict]:
        if self.pass_ is None or self.reason is None:
            return None
        return Verdict(pass_=self.pass_, reason=self.reason)


def find_json_candidate(text: str) -> Optional[str]:
    """Return the outermost brace-delimited span of ``text``, if any."""
    match = _OBJECT_RE.search(text or "")
    return match.group(0) if match else None


def _strict_fields(candidate: str) -> VerdictFields:
    try:
        data = cast("object", json.loads(candidate))
    except ValueError:
        return VerdictFields()
    if not isinstance(data, dict):
        return VerdictFields()
    obj = cast("dict[str, object]", data)
    pass_value = obj.get("pass")
    reason_value = obj.get("reason")
    return VerdictFields(
        pass_=pass_value if isinstance(pass_value, bool) else None,
        reason=reason_value.strip() if isinstance(reason_value, str) else None,
    )


def _regex_fields(candidate: str) -> VerdictFields:
    reason_match = _REASON_RE.search(candidate)
    # A "pass" key quoted inside the reason text is not the verdict
    start, end = reason_match.span(1) if reason_match else (0, 0)
    pass_match = next(
        (m for m in _PASS_RE.finditer(candidate) if not start <= m.start() < end),
        None,
    )
    reason = None
    if reason_match:
        reason = reason_match.group(1).replace('\\"', '"').strip()
    return VerdictFields(
        pass_=pass_match.group(1) == "true" if pass_match else None,
        reason=reason,
    )


def extract_verdict_fields(text: str) -> VerdictFields:
    """Recover as much of a verdict as possible from a model reply."""
    candidate = find_json_candidate(text)
    if candidate is None:
        return VerdictFields()

    strict = _strict_fields(candidate)
    if strict.complete:
        return strict

    fallback = _regex_fields(candidate)
    return VerdictFields(
        pass_=strict.pass_ if strict.pass_ is not None else fallback.pass_,
        reason=strict.reason if strict.reason is not None else fallback.reason,
    )


def parse_verdict(text: str) -> Optional[Verdict]:
    """Parse a model reply into a verdict, or None when it is not recoverable.

    >>> parse_verdict('{"pass": true, "reason": "ok"}')
    Verdict(pass_=True, reason='ok')
    >>> parse_verdict("no json here") is None
    True
    """
    return extract_verdict_fields(text).to_verdict()
