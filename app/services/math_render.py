"""
Split question text into plain text and LaTeX math segments so the review
page can hand each math piece to KaTeX.
"""
import re
from typing import Dict, List

# $$...$$ must be tried before $...$
MATH_PATTERN = re.compile(r"\$\$(.+?)\$\$|(?<!\\)\$(.+?)(?<!\\)\$", re.DOTALL)


def split_math_segments(text: str) -> List[Dict[str, str]]:
    """
    Returns segments of kind "text", "inline" or "block". An unmatched "$"
    stays in the text segment.
    """
    if not text:
        return []

    segments = []
    position = 0
    for match in MATH_PATTERN.finditer(text):
        if match.start() > position:
            segments.append({"kind": "text", "value": text[position:match.start()]})
        if match.group(1) is not None:
            segments.append({"kind": "block", "value": match.group(1).strip()})
        else:
            segments.append({"kind": "inline", "value": match.group(2).strip()})
        position = match.end()

    if position < len(text):
        segments.append({"kind": "text", "value": text[position:]})
    return segments


def question_view(question: Dict) -> Dict:
    """Question dict plus pre-split statement and options for the template."""
    view = dict(question)
    view["statement_segments"] = split_math_segments(question.get("question_statement") or "")
    view["option_segments"] = [split_math_segments(o) for o in (question.get("options") or [])]
    return view
