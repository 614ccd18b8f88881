"""
Prompt Builder

Pure string construction for the three model tasks: critique (round 1),
code generation (round 2) and refinement. Inputs are embedded verbatim;
nothing is truncated or summarised.
"""

from . import rubric


def _rubric_section() -> str:
    lines = []
    for letter in rubric.MODULE_LETTERS:
        lines.append(
            f"- {letter} ({rubric.MODULE_NAMES[letter]}): "
            f"Evaluate {rubric.MODULE_FOCUS[letter]}."
        )
        for label, question in rubric.MODULE_CHECKS[letter]:
            lines.append(f"  - [{label}] {question}")
    return "\n".join(lines)


def _header_examples() -> str:
    return ", ".join(
        f"## {letter} - {rubric.MODULE_NAMES[letter]}" for letter in rubric.MODULE_LETTERS
    )


CRITIQUE_TEMPLATE = """You are an expert UI/UX Designer.
I will provide a screenshot of a user interface.

YOUR TASK:
1. Analyze the design using the C.L.E.A.R. UI framework:
{rubric}

2. For each letter of the framework, provide:
   - A score from 0 to 20 for that module (20 = flawless, 0 = unusable).
   - A detailed critique of the current design as bullet points, one per check,
     each starting with the bolded check name (e.g. • **Proximity:** ...).
   - At the end of each module, ALWAYS include:
     • **Redesign Suggestion:** [specific, actionable redesign recommendation for this module]

OUTPUT FORMAT:
- Provide the C.L.E.A.R. analysis in Markdown format.
- Use level-2 Markdown headers exactly like: {headers}
- Under EACH module section, include:
  1. Score line: "Score: XX/20" (on the first line after the header)
  2. Critique points as bullet points: • **Label:** text
  3. As the last bullet of EACH module: • **Redesign Suggestion:** text
- CRITICAL: Every module (C, L, E, A, R) must have a Score line and end with a
  "• **Redesign Suggestion:**" bullet point. Do not skip this for any module.
- Example format for R - Reward:
  ## R - Reward
  Score: 14/20
  • **Friction:** [analysis]
  • **Feedback:** [analysis]
  • **Redesign Suggestion:** [specific recommendation for the Reward module]
- Do NOT include an overall score line. The overall score is computed by
  summing the five module scores.
- Do NOT include any HTML code in this response.
- Do NOT create a separate "Redesign" section. All redesign suggestions must be
  under their respective C.L.E.A.R. modules.
"""

CODE_GENERATION_TEMPLATE = """You are an expert Frontend Developer.

CONTEXT:
Below is a C.L.E.A.R. framework analysis and improvement suggestions for a user interface.

ANALYSIS AND SUGGESTIONS:
{critique}
{context}
YOUR TASK:
Generate a complete redesign based on the analysis above.

REQUIREMENTS:
- Write a single, self-contained HTML file (with embedded CSS and JS).
- The redesign MUST address ALL the flaws and suggestions identified in the analysis.
- Use modern design principles (clean typography, generous whitespace, clear hierarchy).
- Make it fully responsive and beautiful.
- Ensure the design follows the C.L.E.A.R. framework principles.

OUTPUT FORMAT:
- Return ONLY the HTML code block wrapped in ```html ... ```.
- Do not include any markdown or explanations outside the code block.
"""

REFINE_TEMPLATE = """You are a frontend developer refining a UI.

CURRENT HTML CODE:
{html}

USER REQUEST:
{request}

TASK:
Update the HTML code to satisfy the user request.
Return ONLY the raw HTML code wrapped in ```html ... ```. Do not include markdown or explanations outside the code block.
"""


def build_critique_prompt(user_context: str = "") -> str:
    """
    Build the round-1 critique prompt.

    Args:
        user_context: Optional free text about the product or audience;
                      ignored when blank

    Returns:
        Prompt text defining the rubric and required output shape
    """
    prompt = CRITIQUE_TEMPLATE.format(rubric=_rubric_section(), headers=_header_examples())

    context = (user_context or "").strip()
    if context:
        prompt += (
            f'\n\nADDITIONAL CONTEXT FROM USER:\n"{context}"\n\n'
            "Please incorporate this context into your analysis."
        )

    return prompt


def build_code_generation_prompt(critique_text: str, user_context: str = "") -> str:
    """
    Build the round-2 prompt that turns a critique into an HTML mockup.

    Args:
        critique_text: Full round-1 output, embedded verbatim
        user_context: Optional free text; ignored when blank

    Returns:
        Prompt text asking for one fenced HTML block
    """
    context = (user_context or "").strip()
    context_block = f'\nADDITIONAL USER CONTEXT:\n"{context}"\n' if context else ""
    return CODE_GENERATION_TEMPLATE.format(critique=critique_text, context=context_block)


def build_refine_prompt(current_html: str, user_request: str) -> str:
    """Build the prompt for one free-text edit of the current mockup."""
    return REFINE_TEMPLATE.format(html=current_html, request=user_request)
