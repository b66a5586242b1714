from dataclasses import dataclass
from typing import Optional
import json
import os

from chartdesk.config.runtime import AppConfig


@dataclass
class ApiToken:
    """Bearer token used against the order service"""
    access_token: str

    @classmethod
    def from_file(cls, filepath: str) -> "ApiToken":
        """Load token from JSON file"""
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Token file not found: {filepath}")

        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls(access_token=str(data.get("access_token", "")))


def resolve_api_token(config: AppConfig) -> Optional[str]:
    if config.api_token:
        return config.api_token
    try:
        token = ApiToken.from_file(config.token_file)
    except FileNotFoundError:
        return None
    return token.access_token or None
