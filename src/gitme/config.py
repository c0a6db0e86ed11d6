"""gitme configuration management.

Handles persistent settings stored in ~/.gitme/config.json
"""

import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from gitme.exceptions import ConfigError


# Default configuration values
DEFAULT_THEME = "textual-dark"
DEFAULT_REFRESH_INTERVAL = 30.0  # seconds
DEFAULT_JUMP_SIZE = 10  # rows


@dataclass
class RepositoryConfig:
    """A repository whose pull requests are shown on the dashboard."""

    owner: str
    name: str

    # Local checkout used as working directory for the review command
    system_path: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Return owner/name format, also used as the store key."""
        return f"{self.owner}/{self.name}"

    @property
    def local_path(self) -> Optional[Path]:
        """The checkout path with ~ expanded, if one is configured."""
        if not self.system_path:
            return None
        return Path(self.system_path).expanduser()

    @classmethod
    def parse(cls, spec: str, system_path: Optional[str] = None) -> "RepositoryConfig":
        """Parse an "owner/name" string."""
        parts = spec.strip().strip("/").split("/")
        if len(parts) != 2 or not all(parts):
            raise ConfigError(f"Expected OWNER/NAME, got: {spec}")
        return cls(owner=parts[0], name=parts[1], system_path=system_path)


@dataclass
class GitmeConfig:
    """gitme application configuration."""

    # Credentials
    api_key: Optional[str] = None
    username: Optional[str] = None

    # Review command launched from the review panel
    command: Optional[str] = None
    command_args: list[str] = field(default_factory=list)

    repositories: list[RepositoryConfig] = field(default_factory=list)

    # Dashboard behaviour
    theme: str = DEFAULT_THEME
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    jump_size: int = DEFAULT_JUMP_SIZE

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file, honouring GITME_CONFIG."""
        override = os.environ.get("GITME_CONFIG")
        if override:
            return Path(override).expanduser()
        return Path.home() / ".gitme" / "config.json"

    @classmethod
    def exists(cls) -> bool:
        return cls.get_config_path().exists()

    @classmethod
    def load(cls) -> "GitmeConfig":
        """Load configuration from file, or return defaults if not found."""
        config_path = cls.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return cls.from_dict(data)
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError):
                # Invalid config, return defaults
                pass

        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> "GitmeConfig":
        """Build a config from decoded JSON, ignoring unknown keys."""
        # Only use known fields to avoid issues with old config versions
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        # Handle nested repositories
        repo_fields = {f.name for f in RepositoryConfig.__dataclass_fields__.values()}
        filtered_data["repositories"] = [
            RepositoryConfig(**{k: v for k, v in repo.items() if k in repo_fields})
            for repo in filtered_data.get("repositories") or []
        ]
        filtered_data["command_args"] = [str(arg) for arg in filtered_data.get("command_args") or []]

        return cls(**filtered_data)

    def save(self) -> None:
        """Save configuration to file."""
        config_path = self.get_config_path()

        # Ensure directory exists
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def resolve_token(self) -> Optional[str]:
        """The configured token, falling back to GITHUB_TOKEN."""
        return self.api_key or os.environ.get("GITHUB_TOKEN") or None

    @property
    def is_complete(self) -> bool:
        """Whether the dashboard has enough to show anything."""
        return bool(self.username and self.resolve_token() and self.repositories)

    def find_repository(self, full_name: str) -> Optional[RepositoryConfig]:
        for repo in self.repositories:
            if repo.full_name == full_name:
                return repo
        return None

    def add_repository(self, repo: RepositoryConfig) -> None:
        """Append a repository.

        Raises:
            ConfigError: If the repository is already configured
        """
        if self.find_repository(repo.full_name):
            raise ConfigError(
                f"The repository {repo.full_name} already exists in the config"
            )
        self.repositories.append(repo)

    def remove_repository(self, owner: str, name: str) -> RepositoryConfig:
        """Remove and return a repository.

        Raises:
            ConfigError: If the repository is not configured
        """
        repo = self.find_repository(f"{owner}/{name}")
        if repo is None:
            raise ConfigError(f"The repository {owner}/{name} is not in the config")
        self.repositories.remove(repo)
        return repo


# Available options for settings
AVAILABLE_THEMES = [
    ("textual-dark", "Textual Dark"),
    ("textual-light", "Textual Light"),
    ("nord", "Nord"),
    ("gruvbox", "Gruvbox"),
    ("catppuccin-mocha", "Catppuccin Mocha"),
    ("dracula", "Dracula"),
    ("tokyo-night", "Tokyo Night"),
    ("monokai", "Monokai"),
    ("solarized-light", "Solarized Light"),
]
