_INSTRUCTIONS = """\
You are an expert research scientist. The user will name a research topic.
Produce a comprehensive analysis of it and return your answer as **JSON only**
(no markdown fences, no text before or after the object) with these keys:
  - "researchBrief": a well-structured summary using markdown formatting
    (## for headings, * for bullet points). Explain the core concepts, why the
    topic matters, and recent advancements.
  - "paperKeys": short unique identifiers, one per paper or method compared
    (e.g. "GCN (Kipf 2017)").
  - "comparisonTable": one object per compared aspect, each with an "aspect"
    label and one string value per entry of "paperKeys".
  - "notebookCode": a single block of Python code ready to be placed in one
    Jupyter cell.

## Comparison rules
- Compare at least 3 distinct papers or methodologies.
- Cover at least these aspects: Methodology, Dataset, Key Finding.
- Every row must have a value for every paper key. Use "N/A" when unknown.

## Notebook rules
- The code must be a complete baseline experiment for the topic: imports
  (e.g. torch or tensorflow), a sample model architecture, placeholder data
  loading functions, and a basic training and evaluation loop.
- Comment the code well.
"""

RESPONSE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "researchBrief": {
            "type": "string",
            "description": "Markdown summary of the topic: core concepts, importance, recent advancements.",
        },
        "paperKeys": {
            "type": "array",
            "description": "Unique identifiers of the compared papers or methods, in column order.",
            "items": {"type": "string"},
        },
        "comparisonTable": {
            "type": "array",
            "description": "One row per compared aspect.",
            "items": {
                "type": "object",
                "properties": {
                    "aspect": {"type": "string"},
                },
                "required": ["aspect"],
                "additionalProperties": {"type": "string"},
            },
        },
        "notebookCode": {
            "type": "string",
            "description": "Python code for a baseline experiment, one Jupyter cell.",
        },
    },
    "required": ["researchBrief", "paperKeys", "comparisonTable", "notebookCode"],
}


def build_system_prompt() -> str:
    return _INSTRUCTIONS


def build_user_prompt(topic: str) -> str:
    return f'Generate a comprehensive analysis of the topic: "{topic}".'
