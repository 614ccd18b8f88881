"""
C.L.E.A.R. Rubric

The fixed five-module evaluation framework shared by the prompt builder
and the critique parser: module letters, display names, the labelled
checks each module is judged on, and the score-to-status thresholds.
"""

from typing import Optional

MODULE_LETTERS = ("C", "L", "E", "A", "R")

MODULE_NAMES = {
    "C": "Copywriting",
    "L": "Layout",
    "E": "Emphasis",
    "A": "Accessibility",
    "R": "Reward",
}

MODULE_FOCUS = {
    "C": "tone, clarity, and instructions",
    "L": "grouping, alignment, and whitespace (Gestalt cues)",
    "E": "visual hierarchy and focal points",
    "A": "contrast, touch targets, and readability",
    "R": "friction and user feedback",
}

# Each check is (label, question). Labels double as the bullet labels the
# parser recognises when it stops accumulating a redesign suggestion.
MODULE_CHECKS = {
    "C": (
        ("Clear Benefit", "Is the main benefit obvious at a glance?"),
        ("Concise Copy", "Is the copy lean, with fillers removed?"),
        ("Concrete Claims", "Are claims concrete instead of vague?"),
        ("Action Labels", "Do buttons use clear verbs with expected outcomes?"),
        ("Risk Reassure", 'Are doubts and risks answered (the "what if"s)?'),
        ("Remove Fluff", "Can anything be removed without losing meaning?"),
        ("Human Voice", "Does it read like a human speaking naturally?"),
    ),
    "L": (
        ("Proximity", "Are related items closer together than unrelated items?"),
        ("Similarity", "Do like elements share look and size so roles are obvious?"),
        ("Alignment", "Are edges on a consistent grid (especially left edges)?"),
        ("Common Region", "Are groups bounded or sectioned so they read as one?"),
        ("Continuity", "Is the scan path smooth, top-left to bottom, with no zig-zag?"),
        ("Simplicity", "Can you remove styling or variants and keep clarity?"),
        ("Clear Zones", "Can you tell header, main, sidebar and footer apart at a glance?"),
    ),
    "E": (
        ("Focal Point", "Is there one obvious place the eye lands first?"),
        ("Visual Weight", "Do size, color and weight match each element's importance?"),
        ("Primary Action", "Does the primary call to action stand out from secondary ones?"),
        ("Contrast Hierarchy", "Is contrast used to rank content rather than decorate it?"),
        ("Scannability", "Can headings and key facts be picked up in a quick scan?"),
    ),
    "A": (
        ("Color Contrast", "Does text meet WCAG AA contrast (4.5:1 for body text)?"),
        ("Touch Targets", "Are interactive targets at least 44x44px?"),
        ("Readability", "Are font sizes, line lengths and spacing comfortable to read?"),
        ("Non-Color Cues", "Is meaning conveyed by more than color alone?"),
        ("Focus States", "Are focus and active states visible?"),
    ),
    "R": (
        ("Friction", "How many steps, fields or decisions stand between the user and the goal?"),
        ("Feedback", "Does every action get a visible, timely response?"),
        ("Progress", "Does the user know where they are and what is left?"),
        ("Delight", "Is there a moment of satisfaction when the task is done?"),
    ),
}

KNOWN_LABELS = frozenset(
    label.lower() for checks in MODULE_CHECKS.values() for label, _ in checks
)

MAX_SUB_SCORE = 20
MAX_OVERALL_SCORE = 100

STATUS_PASS = "Pass"
STATUS_NEEDS_IMPROVEMENT = "Needs Improvement"
STATUS_CRITICAL = "Critical Issue"
STATUS_UNKNOWN = "Unknown"

STATUSES = (STATUS_CRITICAL, STATUS_NEEDS_IMPROVEMENT, STATUS_PASS)


def display_name(letter: str) -> str:
    """Return the module name for a letter, e.g. ``"L"`` -> ``"Layout"``."""
    return MODULE_NAMES[letter.upper()]


def is_known_label(label: Optional[str]) -> bool:
    """Check whether a bullet label is one of the rubric's check names."""
    return label is not None and label.strip().lower() in KNOWN_LABELS


def classify_score(sub_score: Optional[int]) -> str:
    """
    Map a 0-20 module sub-score to a display status.

    Thresholds:
    - 18 and above: Pass
    - 10 to 17: Needs Improvement
    - below 10: Critical Issue
    - no score: Unknown
    """
    if sub_score is None:
        return STATUS_UNKNOWN
    if sub_score >= 18:
        return STATUS_PASS
    elif sub_score >= 10:
        return STATUS_NEEDS_IMPROVEMENT
    else:
        return STATUS_CRITICAL
