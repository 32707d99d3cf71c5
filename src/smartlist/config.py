"""Summary: Application configuration for SmartList.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for collaborators and the HTTP server.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    document_store: str
    identity_provider: str
    firebase_project_id: str
    firebase_credentials_path: str
    audio_root: str
    api_host: str
    api_port: int
    token_secret: str
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            document_store=os.getenv("SMARTLIST_DOCUMENT_STORE", defaults["document_store"]),
            identity_provider=os.getenv(
                "SMARTLIST_IDENTITY_PROVIDER", defaults["identity_provider"]
            ),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID", defaults["firebase_project_id"]),
            firebase_credentials_path=os.getenv(
                "GOOGLE_APPLICATION_CREDENTIALS", defaults["firebase_credentials_path"]
            ),
            audio_root=os.getenv("SMARTLIST_AUDIO_ROOT", defaults["audio_root"]),
            api_host=os.getenv("SMARTLIST_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("SMARTLIST_API_PORT", defaults["api_port"])),
            token_secret=os.getenv("SMARTLIST_TOKEN_SECRET", defaults["token_secret"]),
            log_level=os.getenv("SMARTLIST_LOG_LEVEL", defaults.get("log_level", "INFO")),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
