"""Notebook export: wrap generated code in a portable .ipynb document."""

import json
import re

NBFORMAT = 4
NBFORMAT_MINOR = 5
MEDIA_TYPE = "application/x-ipynb+json"

_FILENAME_MAX = 50
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]")

_INTRO = [
    "# Auto-Generated Research Baseline Notebook\n",
    "\n",
    "This notebook provides a starting point for experimentation based on the research topic. ",
    "It includes a basic model architecture and placeholder functions for the training pipeline.",
]

_NEXT_STEPS = [
    "## Next Steps\n",
    "\n",
    "1.  **Load Data:** Implement the `load_dataset` function to load your specific dataset.\n",
    "2.  **Customize Model:** Adjust the model architecture in the provided class to better suit your needs.\n",
    "3.  **Train Model:** Run the training loop and monitor the performance.\n",
    "4.  **Evaluate:** Use the evaluation function to test your model's performance on a test set.",
]

_METADATA = {
    "kernelspec": {
        "display_name": "Python 3",
        "language": "python",
        "name": "python3",
    },
    "language_info": {"name": "python"},
}


def _markdown_cell(cell_id: str, source: list[str]) -> dict:
    return {"cell_type": "markdown", "id": cell_id, "metadata": {}, "source": list(source)}


def _code_cell(cell_id: str, code: str) -> dict:
    return {
        "cell_type": "code",
        "execution_count": None,
        "id": cell_id,
        "metadata": {},
        "outputs": [],
        # keepends, so "".join(source) == code and "" -> []
        "source": code.splitlines(keepends=True),
    }


def build_notebook(code: str) -> dict:
    """Return the notebook as a JSON-ready dict: intro, code, next steps."""
    return {
        "cells": [
            _markdown_cell("intro", _INTRO),
            _code_cell("baseline-code", code),
            _markdown_cell("next-steps", _NEXT_STEPS),
        ],
        "metadata": _METADATA,
        "nbformat": NBFORMAT,
        "nbformat_minor": NBFORMAT_MINOR,
    }


def serialize_notebook(code: str) -> bytes:
    """Serialize ``code`` into UTF-8 .ipynb bytes. Same input, same bytes."""
    return json.dumps(build_notebook(code), indent=2, ensure_ascii=False).encode("utf-8")


def notebook_filename(topic: str) -> str:
    safe = _UNSAFE_FILENAME_CHARS.sub("_", topic.lower())[:_FILENAME_MAX]
    return f"{safe or 'research'}_baseline.ipynb"
