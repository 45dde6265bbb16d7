"""Prompt loading and rendering for the extraction provider."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from logger import get_logger

logger = get_logger()

_REQUIRED_KEYS = ("system_prompt", "user_prompt_template")


class PromptManager:
    """Loads prompt definitions from YAML files next to this module.

    A prompt file holds a system prompt, a user prompt template with
    ``{placeholders}``, model parameters and a version string that is logged
    with every call.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = prompts_dir or Path(__file__).parent
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load_prompt(self, prompt_name: str) -> Dict[str, Any]:
        """Load (and cache) a prompt definition.

        Raises:
            FileNotFoundError: If the prompt file doesn't exist.
            ValueError: If a required key is missing.
            yaml.YAMLError: If the YAML is invalid.
        """
        if prompt_name in self._cache:
            return self._cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"
        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        with open(prompt_file, "r") as f:
            prompt_config = yaml.safe_load(f) or {}

        missing = [key for key in _REQUIRED_KEYS if key not in prompt_config]
        if missing:
            raise ValueError(f"Prompt '{prompt_name}' is missing: {', '.join(missing)}")

        logger.debug(f"Loaded prompt {prompt_name} v{prompt_config.get('version', '?')}")
        self._cache[prompt_name] = prompt_config
        return prompt_config

    def render_prompt(
        self, prompt_name: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Load a prompt and fill in its user template.

        Returns:
            Dict with system_prompt, user_prompt, parameters and version.
        """
        prompt_config = self.load_prompt(prompt_name)
        return {
            "system_prompt": prompt_config["system_prompt"],
            "user_prompt": prompt_config["user_prompt_template"].format(
                **(variables or {})
            ),
            "parameters": prompt_config.get("parameters", {}),
            "version": prompt_config.get("version", "unknown"),
        }
