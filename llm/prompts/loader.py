"""Prompt loading and rendering from YAML files."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from logger import get_logger

logger = get_logger()

_REQUIRED_KEYS = ("system_prompt", "user_prompt_template")


class PromptManager:
    """Loads prompt definitions (classification, refinement, conversation)
    from YAML files and renders them with request variables.

    Args:
        prompts_dir: Directory containing prompt YAML files. Defaults to the
            directory of this module.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = prompts_dir or Path(__file__).parent
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load_prompt(self, prompt_name: str) -> Dict[str, Any]:
        """Load a prompt configuration, caching it after the first read.

        Raises:
            FileNotFoundError: If prompt file doesn't exist.
            ValueError: If the file lacks a system prompt or user template.
            yaml.YAMLError: If YAML is invalid.
        """
        if prompt_name in self._cache:
            return self._cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"
        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        logger.info(f"Loading prompt from {prompt_file}")

        with open(prompt_file, "r") as f:
            prompt_config = yaml.safe_load(f) or {}

        missing = [key for key in _REQUIRED_KEYS if key not in prompt_config]
        if missing:
            raise ValueError(f"Prompt {prompt_name} is missing {', '.join(missing)}")

        self._cache[prompt_name] = prompt_config
        return prompt_config

    def render_prompt(
        self, prompt_name: str, variables: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Load and render a prompt with the given variables.

        Returns:
            Dictionary with keys system_prompt, user_prompt, parameters, version.
        """
        prompt_config = self.load_prompt(prompt_name)

        # Only the template is formatted; braces inside variables stay literal
        user_prompt = prompt_config["user_prompt_template"].format(**variables)

        return {
            "system_prompt": prompt_config["system_prompt"].strip(),
            "user_prompt": user_prompt.strip(),
            "parameters": prompt_config.get("parameters", {}),
            "version": prompt_config.get("version", "unknown"),
        }
