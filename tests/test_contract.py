"""Tests for the reply post-processing helpers."""

from kora_tutor.tutor.contract import (
    detect_literal_reuse,
    ends_with_question,
    ensure_clarifying_question,
    numeric_literals,
    trim_solution_section,
)
from kora_tutor.tutor.types import SubmissionKind

PROMPT = "Is this explanation clear?"


class TestClarifyingQuestion:
    """Tests for the closing question."""

    def test_appended_when_missing(self):
        result = ensure_clarifying_question("First isolate x.", PROMPT)
        assert result == f"First isolate x.\n\n{PROMPT}"

    def test_kept_when_present(self):
        text = "What would you do first?"
        assert ensure_clarifying_question(text, PROMPT) == text

    def test_question_in_markdown(self):
        """Emphasis around the last question still counts."""
        assert ends_with_question("Can you try the next step?**")
        assert ends_with_question("(What do you notice?)")
        assert not ends_with_question("Done.")


class TestTrimSolution:
    """Tests for removing solution sections from challenges."""

    def test_trailing_solution_removed(self):
        text = "Solve 4x + 1 = 17.\n\nApproach: isolate x.\n\n**Solution:**\nx = 4"
        assert trim_solution_section(text) == "Solve 4x + 1 = 17.\n\nApproach: isolate x."

    def test_markdown_heading(self):
        text = "Find the area of the triangle.\n\n### Answer\n12 cm²"
        assert trim_solution_section(text) == "Find the area of the triangle."

    def test_french_heading(self):
        text = "Conjugue « finir » au subjonctif.\n\nRéponse : que je finisse"
        assert trim_solution_section(text) == "Conjugue « finir » au subjonctif."

    def test_sentence_starting_with_answer_kept(self):
        text = "Compute 15% of 80.\nAnswers should be given as integers."
        assert trim_solution_section(text) == text

    def test_heading_on_first_line_kept(self):
        text = "Solution: find both roots of x² - 5x + 6 = 0."
        assert trim_solution_section(text) == text

    def test_no_heading(self):
        assert trim_solution_section("  Just a problem.  ") == "Just a problem."


class TestLiteralReuse:
    """Tests for the numeric-literal diagnostic."""

    def test_numeric_literals(self):
        assert numeric_literals("3x + 8 = 9") == {"3", "8", "9"}
        assert numeric_literals("3,5 kg et 12.25 m") == {"3.5", "12.25"}
        assert numeric_literals("") == set()

    def test_reuse_detected(self):
        report = detect_literal_reuse(
            SubmissionKind.ASK,
            "Résoudre 3x + 8 = 9",
            "Take 2x + 8 = 12 instead: subtract 8 first.",
        )
        assert report.is_violation
        assert report.reused_literals == ("8",)
        assert report.mode == SubmissionKind.ASK

    def test_different_example_is_clean(self):
        report = detect_literal_reuse(
            SubmissionKind.IMAGE,
            "Résoudre 3x + 8 = 9",
            "Take 2x + 4 = 10 instead.",
        )
        assert not report.is_violation
        assert report.reused_literals == ()
