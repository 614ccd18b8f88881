"""Tests for critique parsing and HTML extraction."""

from __future__ import annotations

import pytest

from clear_redesigner.errors import HtmlExtractionError
from clear_redesigner.parser import extract_html, parse_critique, sum_module_scores
from clear_redesigner.rubric import classify_score


def _module(letter: str, name: str, score_line: str, *body: str) -> str:
    lines = [f"## {letter} - {name}", score_line, *body]
    return "\n".join(lines)


def _five(score_line: str) -> str:
    return "\n\n".join(
        _module(letter, name, score_line, "• **Note:** fine")
        for letter, name in [
            ("C", "Copywriting"),
            ("L", "Layout"),
            ("E", "Emphasis"),
            ("A", "Accessibility"),
            ("R", "Reward"),
        ]
    )


class TestModules:
    def test_five_modules_in_order(self, scored_critique: str) -> None:
        report = parse_critique(scored_critique)
        assert report.is_structured
        assert [m.letter for m in report.modules] == ["C", "L", "E", "A", "R"]
        assert [m.display_name for m in report.modules] == [
            "Copywriting", "Layout", "Emphasis", "Accessibility", "Reward",
        ]
        assert [m.sub_score for m in report.modules] == [15, 12, 18, 8, 20]

    def test_preamble_kept(self, scored_critique: str) -> None:
        report = parse_critique(scored_critique)
        assert report.preamble == ["Here is the C.L.E.A.R. analysis."]

    def test_labelled_bullets(self, scored_critique: str) -> None:
        copy = parse_critique(scored_critique).module("C")
        assert copy is not None
        assert [b.label for b in copy.bullet_lines] == ["Clear Benefit", "Action Labels"]
        assert copy.bullet_lines[0].text == "The headline states what the product does."

    def test_score_line_removed_from_body(self, scored_critique: str) -> None:
        layout = parse_critique(scored_critique).module("L")
        assert all("Score" not in b.text for b in layout.bullet_lines)
        assert layout.notes == []

    def test_unlabelled_bullets(self) -> None:
        text = _module("E", "Emphasis", "Score: 12", "- The CTA is small", "* Too many fonts")
        emphasis = parse_critique(text).modules[0]
        assert [(b.label, b.text) for b in emphasis.bullet_lines] == [
            (None, "The CTA is small"),
            (None, "Too many fonts"),
        ]

    def test_header_requires_known_letter(self) -> None:
        text = "## X - Extra\nScore: 10\n\n### C - Copywriting\nScore: 10"
        report = parse_critique(text)
        assert not report.is_structured

    def test_repeated_letter_keeps_one_record(self) -> None:
        text = "\n".join([
            "## C - Copywriting",
            "Score: 14/20",
            "- **Clear Benefit:** ok",
            "## L - Layout",
            "Score: 10/20",
            "## C - Copywriting (continued)",
            "- **Human Voice:** stiff",
        ])
        report = parse_critique(text)
        assert [m.letter for m in report.modules] == ["C", "L"]
        assert [b.label for b in report.module("C").bullet_lines] == ["Clear Benefit", "Human Voice"]

    def test_bold_score_line(self) -> None:
        text = _module("A", "Accessibility", "**Score:** 11/20")
        assert parse_critique(text).modules[0].sub_score == 11

    def test_bare_fraction_score_line(self) -> None:
        text = _module("A", "Accessibility", "16/20")
        assert parse_critique(text).modules[0].sub_score == 16


class TestScoreClamping:
    @pytest.mark.parametrize("line,expected", [
        ("Score: 25", 20),
        ("Score: 25/20", 20),
        ("Score: -3", 0),
        ("Score: 0/20", 0),
        ("Score: 20", 20),
    ])
    def test_clamped_into_range(self, line: str, expected: int) -> None:
        assert parse_critique(_module("R", "Reward", line)).modules[0].sub_score == expected


class TestStatus:
    @pytest.mark.parametrize("score,status", [
        (20, "Pass"),
        (18, "Pass"),
        (17, "Needs Improvement"),
        (10, "Needs Improvement"),
        (9, "Critical Issue"),
        (0, "Critical Issue"),
        (None, "Unknown"),
    ])
    def test_thresholds(self, score, status: str) -> None:
        assert classify_score(score) == status

    def test_status_derived_from_score(self, scored_critique: str) -> None:
        report = parse_critique(scored_critique)
        assert [m.status for m in report.modules] == [
            "Needs Improvement", "Needs Improvement", "Pass", "Critical Issue", "Pass",
        ]

    def test_legacy_status_line(self, legacy_critique: str) -> None:
        report = parse_critique(legacy_critique)
        copy, layout = report.modules
        assert copy.sub_score is None
        assert copy.reported_status == "Needs Improvement"
        assert copy.status == "Needs Improvement"
        assert layout.status == "Pass"
        assert all("Status" not in b.text for b in copy.bullet_lines)

    def test_missing_score_is_unknown(self) -> None:
        report = parse_critique("## R - Reward\n- **Friction:** low")
        assert report.modules[0].sub_score is None
        assert report.modules[0].status == "Unknown"


class TestRedesignSuggestion:
    def test_extracted_per_module(self, scored_critique: str) -> None:
        report = parse_critique(scored_critique)
        assert report.module("C").redesign_suggestion == 'Rename the button to "Start free trial".'
        assert report.module("A").redesign_suggestion == "Darken body text to #333."
        assert all(
            "Redesign" not in (b.label or "") for m in report.modules for b in m.bullet_lines
        )

    def test_continues_across_unlabelled_lines(self) -> None:
        text = "\n".join([
            "## L - Layout",
            "Score: 11/20",
            "- **Proximity:** Labels drift from inputs.",
            "- **Redesign Suggestion:** Rebuild the form as a single column.",
            "Put each label directly above its field.",
            "- Use an 8px spacing scale.",
            "- **Custom Thing:** also part of the suggestion",
        ])
        layout = parse_critique(text).modules[0]
        assert layout.redesign_suggestion == "\n".join([
            "Rebuild the form as a single column.",
            "Put each label directly above its field.",
            "Use an 8px spacing scale.",
            "Custom Thing: also part of the suggestion",
        ])
        assert [b.label for b in layout.bullet_lines] == ["Proximity"]

    def test_known_label_ends_suggestion(self) -> None:
        text = "\n".join([
            "## L - Layout",
            "Score: 11/20",
            "• **Redesign Suggestion:** Single column.",
            "Stack the fields.",
            "• **Alignment:** Left edges wander.",
            "Trailing note.",
        ])
        layout = parse_critique(text).modules[0]
        assert layout.redesign_suggestion == "Single column.\nStack the fields."
        assert [b.label for b in layout.bullet_lines] == ["Alignment"]
        assert layout.notes == ["Trailing note."]

    def test_case_insensitive_marker(self) -> None:
        text = "## R - Reward\nScore: 15\n- REDESIGN SUGGESTION: add confetti"
        assert parse_critique(text).modules[0].redesign_suggestion == "REDESIGN SUGGESTION: add confetti"

    def test_stops_at_next_module(self, scored_critique: str) -> None:
        layout = parse_critique(scored_critique).module("L")
        assert layout.redesign_suggestion == "Tighten label spacing to 4px."


class TestOverallScore:
    def test_sum_of_five(self) -> None:
        assert parse_critique(_five("Score: 15/20")).overall_score == 75
        assert parse_critique(_five("Score: 15")).overall_score == 75

    def test_sum_from_fixture(self, scored_critique: str) -> None:
        assert parse_critique(scored_critique).overall_score == 73

    def test_explicit_marker_wins(self) -> None:
        text = "Overall Score: 73%\n\n" + _five("Score: 20/20")
        assert parse_critique(text).overall_score == 73

    def test_bold_marker_anywhere(self) -> None:
        text = _five("Score: 10") + "\n\n**Overall Score:** 42%"
        assert parse_critique(text).overall_score == 42

    def test_four_modules_is_undefined(self) -> None:
        text = "\n\n".join(
            _module(letter, name, "Score: 15/20")
            for letter, name in [("C", "Copywriting"), ("L", "Layout"), ("E", "Emphasis"), ("A", "Accessibility")]
        )
        report = parse_critique(text)
        assert len(report.modules) == 4
        assert report.overall_score is None

    def test_five_modules_one_missing_score_is_undefined(self) -> None:
        text = _five("Score: 15/20").replace("## R - Reward\nScore: 15/20", "## R - Reward")
        report = parse_critique(text)
        assert len(report.modules) == 5
        assert report.overall_score is None

    def test_legacy_format(self, legacy_critique: str) -> None:
        assert parse_critique(legacy_critique).overall_score == 73

    def test_sum_helper_requires_five(self, scored_critique: str) -> None:
        modules = parse_critique(scored_critique).modules
        assert sum_module_scores(modules) == 73
        assert sum_module_scores(modules[:4]) is None


class TestUnstructuredFallback:
    def test_generic_blocks(self) -> None:
        text = "# Review\n\nThe page is busy.\n- Too many colors\n* Tiny text\n### Verdict\nOverall Score: 55%"
        report = parse_critique(text)
        assert not report.is_structured
        assert report.modules == []
        assert [(b.kind, b.level, b.text) for b in report.blocks] == [
            ("heading", 1, "Review"),
            ("paragraph", 0, "The page is busy."),
            ("bullet", 0, "Too many colors"),
            ("bullet", 0, "Tiny text"),
            ("heading", 3, "Verdict"),
            ("paragraph", 0, "Overall Score: 55%"),
        ]
        assert report.overall_score == 55

    @pytest.mark.parametrize("text", [None, "", "   \n\n"])
    def test_empty_input_never_raises(self, text) -> None:
        report = parse_critique(text)
        assert report.modules == []
        assert report.blocks == []
        assert report.overall_score is None


class TestExtractHtml:
    def test_fenced_block_inside_prose(self) -> None:
        assert extract_html("Sure! ```html<p>hi</p>``` Hope that helps.") == "<p>hi</p>"

    def test_recovers_original_html(self, html_doc: str) -> None:
        response = f"Here is the redesign:\n\n```html\n  {html_doc}  \n```\n\nLet me know!"
        assert extract_html(response) == html_doc

    def test_first_fence_wins(self) -> None:
        response = "```html\n<p>one</p>\n```\ntext\n```html\n<p>two</p>\n```"
        assert extract_html(response) == "<p>one</p>"

    def test_unfenced_document_fallback(self) -> None:
        response = "  Redesign below\n<html><body>x</body></html>\n"
        assert extract_html(response) == "Redesign below\n<html><body>x</body></html>"

    def test_no_html_raises(self) -> None:
        with pytest.raises(HtmlExtractionError, match="Could not parse HTML"):
            extract_html("I could not produce a design, sorry.")

    def test_other_fence_language_is_not_html(self) -> None:
        with pytest.raises(HtmlExtractionError):
            extract_html("```css\nbody { color: red; }\n```")
