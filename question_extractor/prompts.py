"""
Extraction prompt for the vision model.
"""
from typing import List, Optional

from question_extractor.page_memory import PageMemory, recent_pages, DEFAULT_WINDOW


def build_context_prompt(
    page_number: int,
    previous_context: str = "",
    page_memory: Optional[PageMemory] = None,
    window: int = DEFAULT_WINDOW,
) -> str:
    context_prompt = ""
    if previous_context:
        context_prompt = f"Previous context: {previous_context}\n\n"

    lines = recent_pages(page_memory or {}, page_number, window)
    if lines:
        recent = "\n".join(lines)
        context_prompt += f"Recent pages context:\n{recent}\n\n"

    return context_prompt


def build_extraction_prompt(
    page_number: int,
    previous_context: str,
    page_memory: Optional[PageMemory],
    enabled_types: List[str],
    window: int = DEFAULT_WINDOW,
) -> str:
    context_prompt = build_context_prompt(page_number, previous_context, page_memory, window)
    types = ", ".join(enabled_types)

    return f"""{context_prompt}You are an expert at extracting questions from exam papers. Extract ALL questions from this image.

CRITICAL RULES:
1. IGNORE general instructions, exam rules, or non-question content
2. Extract ONLY numbered questions (1, 2, 3, etc.) or lettered questions (a, b, c, etc.)
3. Include shared descriptions DIRECTLY in question_statement for each applicable question
4. Include diagram/table descriptions DIRECTLY in question_statement (don't separate them)
5. Convert math to LaTeX: use $ for inline math, $$ for display math
6. Question types available in this paper: {types}
   - MCQ: Multiple Choice Questions (single correct answer)
   - MSQ: Multiple Select Questions (multiple correct answers)
   - NAT: Numerical Answer Type (numerical value)
   - Subjective: Descriptive/Essay type questions
7. For JSON: Use double backslashes (\\\\) for LaTeX commands, escape quotes as \\"
8. HANDLE IMAGES: If question has diagrams/images that cannot be described in text, mark has_image: true and provide detailed description

WHAT TO IGNORE:
- General exam instructions
- Page headers/footers
- Non-question text
- Instructions that don't relate to specific questions

QUESTION TYPE IDENTIFICATION:
- Look for patterns that indicate question type
- MCQ: Usually has 4 options (A), (B), (C), (D) with single correct answer
- MSQ: Multiple options with instruction like "select all correct" or "one or more correct"
- NAT: Asks for numerical value, no options provided
- Subjective: Descriptive questions asking for explanations, derivations, essays
- ONLY use question types that are enabled: {types}

JSON FORMAT REQUIREMENTS:
- Use \\\\ for all LaTeX backslashes
- Escape quotes as \\"

Return a JSON array of questions in this exact format:
[
  {{
    "question_number": "1",
    "question_statement": "Complete question text with LaTeX math",
    "question_type": "MCQ|MSQ|NAT|Subjective",
    "options": ["A) option text", "B) option text", "C) option text", "D) option text"],
    "has_image": false,
    "image_description": "detailed description if has_image is true",
    "marks": 4,
    "difficulty": "Easy|Medium|Hard",
    "subject": "Physics|Chemistry|Mathematics",
    "topic": "specific topic name"
  }}
]

IMPORTANT: Return ONLY the JSON array, no other text."""
