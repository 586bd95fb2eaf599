import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "gemini",  # gemini | anthropic | openai
    "model_name": None,  # None = the provider's default model id
    "project_kind": "kotlin",  # kotlin | blazor
    "branch": "main",
    "store": "sqlite",  # sqlite | gist | memory
    "store_path": ".repolens.db",
    "partition": "repolens",  # namespace the store keeps this tool's reviews under
    "gist_id": None,
}

# Environment variable holding the API key for each AI provider.
PROVIDER_KEY_ENV: dict = {
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def load_config(config_path: str = ".repolens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .repolens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    for provider, env_var in PROVIDER_KEY_ENV.items():
        config[f"{provider}_api_key"] = os.environ.get(env_var)

    return config


def provider_api_key(config: dict) -> Optional[str]:
    """Return the API key for the configured provider, or None if unset."""
    return config.get(f"{config['model']}_api_key")
