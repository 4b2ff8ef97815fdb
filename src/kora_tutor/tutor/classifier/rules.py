"""
Declarative rule tables for the content classifier.

Rules are evaluated on accent-folded, lower-cased text (see ``fold_text``),
so patterns are written without accents. Vocabulary covers English and French.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from kora_tutor.tutor.types import SubjectDomain


def fold_text(text: str) -> str:
    """Lower-case ``text`` and strip diacritics ("Résoudre" -> "resoudre")."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def _words(*stems: str) -> re.Pattern:
    """Pattern matching any of the word stems at a word boundary."""
    return re.compile(r"\b(?:" + "|".join(stems) + r")")


@dataclass(frozen=True)
class DomainRule:
    """Maps a pattern to a subject domain. First matching rule wins."""

    pattern: re.Pattern
    domain: SubjectDomain

    def matches(self, folded: str) -> bool:
        return self.pattern.search(folded) is not None


# Something like "3x + 8 = 9", "2(x-1) < 5" or "12 * 7".
EQUATION_SHAPE = re.compile(
    r"[0-9a-z)]\s*[+\-*/^]\s*[0-9a-z(][^=<>]*[=<>]"
    r"|\d\s*[a-z]?\s*=\s*-?\d"
    r"|\d\s*[+*/^×÷]\s*\d"
)

DOMAIN_RULES: tuple[DomainRule, ...] = (
    DomainRule(EQUATION_SHAPE, SubjectDomain.MATH),
    DomainRule(
        _words(
            "physi", "chemi", "chimi", "biolog", "photosynth", "atom", "molecul",
            "cell", "electron", "proton", "neutron", "energ", "velocit", "vitesse",
            "acceleration", "gravit", "newton", "force", "ecosystem", "dna", "adn",
            "mitos", "meios", "genet", "evolution", "reaction chimique", "chemical reaction",
            "circuit", "voltage", "tension electrique", "magnet",
        ),
        SubjectDomain.SCIENCE,
    ),
    DomainRule(
        _words(
            "math", "equation", "algebr", "arithmet", "fraction", "derivat", "derive",
            "integral", "polynom", "theorem", "pythagor", "thales", "geometr", "triangle",
            r"angles?\b", "function", "fonction", "percent", "pourcent", "probabilit",
            "statisti", "logarithm", "vector", "vecteur", "matri", "square root",
            "racine carree", "multipli", "divis", "calcul",
        ),
        SubjectDomain.MATH,
    ),
    DomainRule(
        _words(
            "grammar", "grammaire", "conjug", "verb", "tense", "subjunctive", "subjonctif",
            "imparfait", "passe compose", "adjecti", "adverb", "pronoun", "pronom",
            "spelling", "orthograph", "vocabular", "vocabulaire", "synonym", "punctuation",
            "ponctuation", "sentence", "essay", "dissertation", "poem", "poeme", "poesie",
            "metaphor", "litterat", "literat", "translat", "tradu",
        ),
        SubjectDomain.LANGUAGE,
    ),
    DomainRule(
        _words(
            "histor", "histoire", r"wars?\b", "guerre", "revolution", "empire", "century",
            "siecle", "medieval", "moyen age", "ancient", "antiquite", "napoleon",
            "coloni", "independen", "treaty", "renaissance", "dynast", "pharao",
            "civili[sz]ation", "monarch", "feodal", "feudal",
        ),
        SubjectDomain.HISTORY,
    ),
)

# Leading imperative problem-solving verb, optionally after a politeness word.
_LEADING_VERB = re.compile(
    r"^\W*(?:please\s+|s'il (?:te|vous) plait\s*,?\s*|peux-tu\s+|pouvez-vous\s+)?"
    r"(?:solve|calculate|compute|find|determine|evaluate|simplify|factori[sz]e|expand"
    r"|prove|show that|resou\w*|calcul\w*|trouv\w*|determin\w*|evalu\w*|simplifi\w*"
    r"|factoris\w*|developp\w*|demontr\w*|montrer que|montre que)\b"
)

# Nouns signalling an assignment the student wants solved.
_EXERCISE_NOUN = _words(
    r"exercises?\b", r"exercices?\b", r"problems?\b", r"problemes?\b", "homework",
    r"devoirs?\b", "worksheet", "assignment", r"fiche d'exercices", r"question \d",
)

DIRECT_PROBLEM_RULES: tuple[re.Pattern, ...] = (
    _LEADING_VERB,
    _EXERCISE_NOUN,
)

# Student-declared subjects (image form) mapped to domains.
SUBJECT_ALIASES: dict[str, SubjectDomain] = {
    "math": SubjectDomain.MATH,
    "maths": SubjectDomain.MATH,
    "mathematics": SubjectDomain.MATH,
    "mathematiques": SubjectDomain.MATH,
    "science": SubjectDomain.SCIENCE,
    "sciences": SubjectDomain.SCIENCE,
    "physics": SubjectDomain.SCIENCE,
    "physique": SubjectDomain.SCIENCE,
    "chemistry": SubjectDomain.SCIENCE,
    "chimie": SubjectDomain.SCIENCE,
    "biology": SubjectDomain.SCIENCE,
    "biologie": SubjectDomain.SCIENCE,
    "svt": SubjectDomain.SCIENCE,
    "language": SubjectDomain.LANGUAGE,
    "french": SubjectDomain.LANGUAGE,
    "francais": SubjectDomain.LANGUAGE,
    "english": SubjectDomain.LANGUAGE,
    "anglais": SubjectDomain.LANGUAGE,
    "literature": SubjectDomain.LANGUAGE,
    "history": SubjectDomain.HISTORY,
    "histoire": SubjectDomain.HISTORY,
    "geography": SubjectDomain.HISTORY,
    "histoire-geo": SubjectDomain.HISTORY,
}


def match_domain(folded: str) -> SubjectDomain:
    """First matching domain rule, or GENERAL."""
    for rule in DOMAIN_RULES:
        if rule.matches(folded):
            return rule.domain
    return SubjectDomain.GENERAL


def is_direct_problem(folded: str) -> bool:
    return any(rule.search(folded) for rule in DIRECT_PROBLEM_RULES)


def declared_domain(subject: Optional[str]) -> Optional[SubjectDomain]:
    """
    Domain named by a student-declared subject.

    Returns None for empty, "general" or unrecognized subjects so they never
    override a detected domain.
    """
    if not subject:
        return None
    return SUBJECT_ALIASES.get(fold_text(subject).strip())
