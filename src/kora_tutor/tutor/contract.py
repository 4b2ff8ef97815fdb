"""
Tutoring contract helpers.

Deterministic text post-processing applied to provider replies, plus the
literal-reuse diagnostic. Nothing here calls the provider or blocks a reply.
"""

import re

from kora_tutor.tutor.types import ContractViolationReport, SubmissionKind

NON_SOLVING = "non_solving"
CHALLENGE_SHAPE = "challenge_shape"
SINGLE_HINT = "single_hint"

# Closing characters that may follow a final question mark.
_TRAILING_DECORATION = " \t\r\n*_)]\"'»`"

# A heading line that starts a trailing solution section.
_SOLUTION_HEADING = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]*|\*\*|__)?[ \t]*"
    r"(?:solutions?|answers?|r[ée]ponses?|corrig[ée]s?)"
    r"(?:[ \t]*(?:\*\*|__))?[ \t]*(?::[^\n]*)?$",
    re.IGNORECASE | re.MULTILINE,
)

_NUMBER = re.compile(r"(?<![\d.,])\d+(?:[.,]\d+)?(?!\d)")


def ends_with_question(text: str) -> bool:
    return text.rstrip(_TRAILING_DECORATION).endswith("?")


def ensure_clarifying_question(text: str, clarifying_prompt: str) -> str:
    """Append ``clarifying_prompt`` unless the reply already ends with a question."""
    text = text.rstrip()
    if ends_with_question(text):
        return text
    return f"{text}\n\n{clarifying_prompt}"


def trim_solution_section(text: str) -> str:
    """
    Drop a trailing section headed Solution / Answer / Réponse / Corrigé.

    A heading on the very first line is left alone, since removing it
    would remove the whole reply.
    """
    for match in _SOLUTION_HEADING.finditer(text):
        head = text[: match.start()].rstrip()
        if head:
            return head
    return text.strip()


def numeric_literals(text: str) -> set[str]:
    """Standalone numeric literals in ``text`` ("3,5" is normalized to "3.5")."""
    return {m.group(0).replace(",", ".") for m in _NUMBER.finditer(text or "")}


def detect_literal_reuse(
    mode: SubmissionKind,
    student_text: str,
    reply: str,
) -> ContractViolationReport:
    """
    Compare the numeric literals of the student's instance with the reply.

    Only a diagnostic: a reply using the same numbers has probably worked the
    student's own problem instead of a different one.
    """
    reused = numeric_literals(student_text) & numeric_literals(reply)
    return ContractViolationReport(mode=mode, reused_literals=tuple(sorted(reused)))
