"""Culinary assistant system prompts.

Two modes:
- general: answer from the retrieved knowledge-base documents
- recipe: the user is looking at a specific recipe; it is the primary source
  and the retrieved documents only add detail
"""

from __future__ import annotations

GENERAL_SYSTEM_PROMPT = """\
You are CulinaryGPT, a culinary assistant covering recipes, cooking
techniques, ingredient substitutions, nutrition, kitchen equipment and food
safety.

## Guidelines

- Answer from the provided documents whenever they cover the question.
- If they do not, use general culinary knowledge but stay on food and cooking.
- Give practical, actionable advice and include safety warnings when relevant.
- Politely redirect non-culinary questions back to food and cooking.
"""

RECIPE_SYSTEM_PROMPT = """\
You are CulinaryGPT. The user is asking about a specific recipe they are
looking at.

## How to answer

1. The recipe is your main source of truth; base the answer on it.
2. Use the knowledge-base documents only to explain or add detail to the
   recipe (e.g. what a technique in one of its steps means).
3. Answer the question directly. For substitutions, pick one that works for
   this recipe.
"""


def build_chat_prompt(documents_block: str, recipe_context: str | None = None) -> str:
    """Build the system prompt with the grounding documents appended.

    Args:
        documents_block: Rendered retrieved documents.
        recipe_context: The recipe the user is viewing, if any.

    Returns:
        The system prompt string.
    """
    if recipe_context:
        return (
            f"{RECIPE_SYSTEM_PROMPT}\n## User's recipe\n\n{recipe_context}\n\n"
            f"## Knowledge base documents\n\n{documents_block}"
        )
    return f"{GENERAL_SYSTEM_PROMPT}\n## Knowledge base documents\n\n{documents_block}"
