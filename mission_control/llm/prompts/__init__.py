"""
Prompt Management Module

Loads LLM prompts from the text files beside this module, so prompt wording
can change without touching code.
"""

from __future__ import annotations

from pathlib import Path

PROMPTS_DIR = Path(__file__).parent

HEALTH_SYSTEM_PROMPT_NAME = "project_health_system"
HEALTH_PROMPT_NAME = "project_health"


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self) -> None:
        self._cache: dict[str, str] = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        if prompt_name not in self._cache:
            prompt_path = PROMPTS_DIR / f"{prompt_name}.txt"

            if not prompt_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

            with open(prompt_path, encoding="utf-8") as f:
                self._cache[prompt_name] = f.read().rstrip("\n")

        return self._cache[prompt_name]

    def get_health_system_prompt(self) -> str:
        return self.load_prompt(HEALTH_SYSTEM_PROMPT_NAME)

    def get_health_prompt(self, **kwargs: str) -> str:
        """
        Get the project health prompt with variables injected.

        Args:
            name, client_name, status, timeline, budget, milestone,
            blocker_count, blockers, change_request_count,
            change_request_hours, events, modules

        Returns:
            Formatted prompt string
        """
        return self.load_prompt(HEALTH_PROMPT_NAME).format(**kwargs)


_loader = PromptLoader()


def get_health_system_prompt() -> str:
    return _loader.get_health_system_prompt()


def get_health_prompt(**kwargs: str) -> str:
    return _loader.get_health_prompt(**kwargs)
