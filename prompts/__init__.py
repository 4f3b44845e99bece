"""
Prompts package for the finance tracker.
Contains instruction templates for the local LLM.
"""

import os
from typing import Dict

# Cache for loaded prompts
_prompt_cache: Dict[str, str] = {}


def load_prompt(filename: str) -> str:
    """
    Load a prompt from a text file.

    Args:
        filename: Name of the prompt file (e.g., 'monthly_insight.txt')

    Returns:
        Prompt content as string
    """
    if filename in _prompt_cache:
        return _prompt_cache[filename]

    prompt_dir = os.path.dirname(os.path.abspath(__file__))
    filepath = os.path.join(prompt_dir, filename)

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
            _prompt_cache[filename] = content
            return content
    except FileNotFoundError:
        raise FileNotFoundError(f"Prompt file not found: {filepath}")
    except Exception as e:
        raise RuntimeError(f"Error loading prompt file {filename}: {e}")


def render_monthly_insight_prompt(month: str, total: float, top_category: str, merchants: str) -> str:
    """
    Fill the monthly insight template.

    Args:
        month: Month label, e.g. "2024-03"
        total: Month total, rendered with two decimals
        top_category: Category with the largest sum
        merchants: Comma-separated sample of merchant names

    Returns:
        Prompt text ready to send
    """
    template = load_prompt("monthly_insight.txt")
    return template.format(month=month, total=total, top_category=top_category, merchants=merchants)
