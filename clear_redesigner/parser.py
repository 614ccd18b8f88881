"""
Critique and Mockup Parsing

Turns model output into structured state. The model's output format is
a convention, not a schema, so ``parse_critique`` never raises: missing
structure degrades to a generic block rendering. ``extract_html`` is the
one strict parser here and raises when no HTML can be found.
"""

import logging
import re
from typing import Optional

from . import rubric
from .errors import HtmlExtractionError
from .models import BulletLine, CritiqueReport, MarkdownBlock, ModuleRecord

logger = logging.getLogger(__name__)

MODULE_HEADER_RE = re.compile(r"^##\s*([CLEAR])\s*-\s*(.*)$")
SCORE_LINE_RE = re.compile(
    r"^(?:\*\*)?score(?:\*\*)?\s*:?\s*(?:\*\*)?\s*(-?\d+)\s*(?:/\s*20)?\b",
    re.IGNORECASE,
)
BARE_SCORE_RE = re.compile(r"^(?:\*\*)?(-?\d+)\s*/\s*20(?:\*\*)?\s*$")
STATUS_LINE_RE = re.compile(
    r"^(?:\*\*)?status(?:\*\*)?\s*:?\s*(?:\*\*)?\s*\[?\s*"
    r"(critical issue|needs improvement|pass)\b",
    re.IGNORECASE,
)
OVERALL_SCORE_RE = re.compile(
    r"overall score(?:\*\*)?\s*:\s*(?:\*\*)?\s*(\d+)\s*%", re.IGNORECASE
)
BULLET_RE = re.compile(r"^[-*•]\s+(.*)$")
LABEL_RE = re.compile(r"^\*\*(.+?)(?::\*\*|\*\*\s*:)\s*(.*)$")
HEADING_RE = re.compile(r"^(#{1,3})\s+(.*)$")
HTML_FENCE_RE = re.compile(r"```html([\s\S]*?)```")

REDESIGN_MARKER = "redesign suggestion"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _parse_score_line(line: str) -> Optional[int]:
    match = SCORE_LINE_RE.match(line) or BARE_SCORE_RE.match(line)
    if match:
        return _clamp(int(match.group(1)), 0, rubric.MAX_SUB_SCORE)
    return None


def _parse_status_line(line: str) -> Optional[str]:
    match = STATUS_LINE_RE.match(line)
    if not match:
        return None
    found = match.group(1).lower()
    for status in rubric.STATUSES:
        if status.lower() == found:
            return status
    return None


def _split_bullet(line: str) -> Optional[BulletLine]:
    """Split ``- **Label:** text`` into a BulletLine; None if not a bullet."""
    match = BULLET_RE.match(line)
    if not match:
        return None
    body = match.group(1).strip()
    labelled = LABEL_RE.match(body)
    if labelled:
        return BulletLine(label=labelled.group(1).strip(), text=labelled.group(2).strip())
    return BulletLine(text=body)


def _build_module(letter: str, body: list[str]) -> ModuleRecord:
    """
    Build one ModuleRecord from the lines under its header.

    The first non-blank line may carry a numeric score or, in the older
    format, a status. Remaining lines are bullets, notes, or part of a
    redesign suggestion block.
    """
    lines = [line.strip() for line in body]
    sub_score = None
    reported_status = None

    first = next((i for i, line in enumerate(lines) if line), None)
    if first is not None:
        sub_score = _parse_score_line(lines[first])
        if sub_score is None:
            reported_status = _parse_status_line(lines[first])
        if sub_score is not None or reported_status is not None:
            lines = lines[:first] + lines[first + 1:]

    bullets: list[BulletLine] = []
    notes: list[str] = []
    suggestion: list[str] = []
    in_suggestion = False

    for line in lines:
        if not line:
            continue

        bullet = _split_bullet(line)

        if in_suggestion:
            if bullet is not None and rubric.is_known_label(bullet.label):
                in_suggestion = False
            else:
                suggestion.append(str(bullet) if bullet is not None else line)
                continue

        if bullet is None:
            notes.append(line)
        elif REDESIGN_MARKER in line.lower():
            in_suggestion = True
            if bullet.label and REDESIGN_MARKER not in bullet.label.lower():
                suggestion.append(str(bullet))
            elif bullet.text:
                suggestion.append(bullet.text)
        else:
            bullets.append(bullet)

    return ModuleRecord(
        letter=letter,
        display_name=rubric.display_name(letter),
        sub_score=sub_score,
        reported_status=reported_status,
        bullet_lines=bullets,
        notes=notes,
        redesign_suggestion="\n".join(suggestion) if suggestion else None,
    )


def parse_markdown_blocks(text: str) -> list[MarkdownBlock]:
    """Generic line-by-line rendering: headings, bullets and paragraphs."""
    blocks = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        heading = HEADING_RE.match(line)
        if heading:
            blocks.append(MarkdownBlock(
                kind="heading", level=len(heading.group(1)), text=heading.group(2).strip()
            ))
            continue
        bullet = BULLET_RE.match(line)
        if bullet:
            blocks.append(MarkdownBlock(kind="bullet", text=bullet.group(1).strip()))
            continue
        blocks.append(MarkdownBlock(kind="paragraph", text=line))
    return blocks


def parse_overall_score(text: str) -> Optional[int]:
    """Find an explicit ``Overall Score: XX%`` marker anywhere in the text."""
    match = OVERALL_SCORE_RE.search(text)
    if match:
        return _clamp(int(match.group(1)), 0, rubric.MAX_OVERALL_SCORE)
    return None


def sum_module_scores(modules: list[ModuleRecord]) -> Optional[int]:
    """
    Sum the five module sub-scores.

    Returns None unless exactly five modules were parsed and every one
    carries a numeric score. Partial sums are never reported.
    """
    if len(modules) != len(rubric.MODULE_LETTERS):
        return None
    scores = [m.sub_score for m in modules]
    if any(score is None for score in scores):
        return None
    return sum(scores)


def parse_critique(raw_text: Optional[str]) -> CritiqueReport:
    """
    Parse a round-1 critique into module records and an overall score.

    Algorithm:
    1. Lines matching ``## <C|L|E|A|R> -`` start a module group; a repeated
       letter continues its existing group, keeping one record per letter
    2. Each group's first line may be a ``Score: N[/20]`` (clamped to 0-20)
       or an older ``Status: ...`` line
    3. Body lines become labelled bullets, notes, or redesign suggestion text
    4. An explicit ``Overall Score: XX%`` wins; otherwise five complete
       sub-scores are summed; otherwise the overall score is None
    5. With no module headers at all, the whole text is returned as
       generic blocks

    Args:
        raw_text: Raw critique text (None or empty is allowed)

    Returns:
        CritiqueReport; never raises
    """
    text = raw_text or ""
    explicit_score = parse_overall_score(text)

    order: list[str] = []
    groups: dict[str, list[str]] = {}
    preamble: list[str] = []
    current: Optional[str] = None

    for line in text.splitlines():
        header = MODULE_HEADER_RE.match(line.strip())
        if header:
            current = header.group(1)
            if current not in groups:
                order.append(current)
                groups[current] = []
            continue
        if current is None:
            if line.strip():
                preamble.append(line.strip())
        else:
            groups[current].append(line)

    if not order:
        logger.debug("No module headers found; using unstructured fallback")
        return CritiqueReport(
            overall_score=explicit_score,
            blocks=parse_markdown_blocks(text),
        )

    modules = [_build_module(letter, groups[letter]) for letter in order]
    overall = explicit_score if explicit_score is not None else sum_module_scores(modules)

    return CritiqueReport(overall_score=overall, modules=modules, preamble=preamble)


def extract_html(response_text: str) -> str:
    """
    Pull the HTML mockup out of a model response.

    Rules:
    - A ```html fenced block wins; its trimmed interior is returned
    - Otherwise, if the text contains an ``<html`` tag, the trimmed text
      is returned as-is
    - Otherwise the response is rejected

    Raises:
        HtmlExtractionError: If no HTML can be found
    """
    match = HTML_FENCE_RE.search(response_text or "")
    if match and match.group(1).strip():
        return match.group(1).strip()

    if "<html" in (response_text or "").lower():
        logger.debug("No ```html fence found; using raw response as HTML")
        return response_text.strip()

    raise HtmlExtractionError()
