"""
Workspace manages inkwell project discovery and configuration loading.

The workspace is responsible for:
1. Finding inkwell.yml by walking up directories
2. Expanding ${VAR} and ${VAR:-default} environment references
3. Validating the result into an InkwellConfig
4. Resolving workspace-relative paths

Credentials normally live in the environment (DAYONE_EMAIL, DAYONE_PASSWORD)
and reach inkwell.yml through ${...} references, so the rest of inkwell only
ever sees explicit configuration values.
"""
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from inkwell.messages import get_logger
from inkwell.utility.exceptions import ConfigError
from inkwell.utility.settings import settings

from .exporter import BrowserConfig
from .models import Credentials
from .publisher import PublisherConfig
from .selectors import DEFAULT_SELECTORS, SelectorTable

CONFIG_FILENAME = "inkwell.yml"

DEFAULT_CONFIG_TEMPLATE = """name: "{name}"

# Login details come from the environment; never commit them.
source:
  login_url: "https://dayone.me/login"
  email: "${{DAYONE_EMAIL:-}}"
  password: "${{DAYONE_PASSWORD:-}}"

journals:
  draft: "${{DAYONE_JOURNAL_ID:-Blog Public}}"
  # published: "Blog Published"
  # export_published: true

browser:
  headless: true

paths:
  state_dir: "data"
  scratch_dir: "temp"
  diagnostics_dir: "diagnostics"
  reports_dir: "reports/migrations"

publisher:
  type: "markdown"
  posts_dir: "posts"
  categories: [hardware, software, hacking]

# Replace the built-in locator list for any step, in order of preference:
# selectors:
#   export:
#     - 'button:has-text("Export Journal")'
"""


class SourceConfig(BaseModel):
    """
    Journaling service login.

    Email and password may be left empty for runs that never log in
    (`inkwell go --archive`); asking for credentials then fails.
    """

    login_url: str = "https://dayone.me/login"
    email: Optional[str] = None
    password: Optional[SecretStr] = None

    @field_validator("email", "password", mode="before")
    @classmethod
    def empty_as_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def credentials(self) -> Credentials:
        """
        Raises:
            ConfigError: If the email or password is not configured
        """
        missing = [
            name for name in ("email", "password") if getattr(self, name) is None
        ]
        if missing:
            raise ConfigError(
                f"source.{missing[0]} is not set; export DAYONE_EMAIL and "
                "DAYONE_PASSWORD or set them in inkwell.yml"
            )
        return Credentials(
            email=self.email, password=self.password, login_url=self.login_url
        )


class JournalsConfig(BaseModel):
    """Which journals make up the draft -> published workflow."""

    draft: str = Field(..., min_length=1)
    published: Optional[str] = None
    export_published: bool = False

    @field_validator("export_published")
    @classmethod
    def validate_export_published(cls, v, info):
        if v and not info.data.get("published"):
            raise ValueError("export_published requires journals.published")
        return v


class PathsConfig(BaseModel):
    """Workspace-relative directories."""

    state_dir: str = settings.paths.state_dir
    scratch_dir: str = settings.paths.scratch_dir
    diagnostics_dir: str = settings.paths.diagnostics_dir
    reports_dir: str = settings.paths.reports_dir


class InkwellConfig(BaseModel):
    """Validated contents of inkwell.yml."""

    name: str = "inkwell"
    source: SourceConfig = Field(default_factory=SourceConfig)
    journals: JournalsConfig
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    publisher: PublisherConfig = Field(default_factory=PublisherConfig)
    selectors: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("selectors")
    @classmethod
    def validate_selectors(cls, v):
        for step, candidates in v.items():
            if not candidates:
                raise ValueError(f"selectors.{step} must list at least one locator")
            if step not in DEFAULT_SELECTORS:
                known = ", ".join(DEFAULT_SELECTORS)
                raise ValueError(f"Unknown selector step '{step}' (known: {known})")
        return v

    def selector_table(self) -> SelectorTable:
        return SelectorTable(self.selectors)


class Workspace:
    """
    Workspace represents an inkwell project directory.

    The workspace:
    - Discovers inkwell.yml by walking up directories
    - Reads and expands the configuration
    - Resolves state, scratch, diagnostics and report paths against its root
    """

    def __init__(self, inkwell_yml: Path, name: str):
        """
        Create a Workspace from an inkwell.yml path.

        Args:
            inkwell_yml: Path to inkwell.yml file
            name: Workspace name (from inkwell.yml)
        """
        self.inkwell_yml = inkwell_yml
        self.root = inkwell_yml.parent
        self.name = name
        self.config: Dict[str, Any] = {}
        self.logger = get_logger("inkwell.workspace")

    @staticmethod
    def find(start_path: Optional[Path] = None) -> "Workspace":
        """
        Find inkwell.yml by walking up directories from start_path.

        Args:
            start_path: Directory to start searching from (default: current directory)

        Returns:
            Workspace instance

        Raises:
            ConfigError: If inkwell.yml is not found
        """
        if start_path is None:
            start_path = Path.cwd()

        current = Path(start_path).resolve()
        searched_paths = []

        while True:
            project_file = current / CONFIG_FILENAME
            searched_paths.append(str(project_file))
            if project_file.exists():
                return Workspace.from_path(project_file)
            if current == current.parent:
                break
            current = current.parent

        error_msg = f"""
No {CONFIG_FILENAME} found in current path: {Path(start_path).resolve()}

Searched locations:
{chr(10).join(f"  - {path}" for path in searched_paths)}

To get started, run:
  inkwell init
"""
        raise ConfigError(error_msg)

    @classmethod
    def from_path(cls, inkwell_yml: Path) -> "Workspace":
        """
        Create a Workspace from an inkwell.yml path, reading its name.

        Raises:
            ConfigError: If the file is not valid YAML
        """
        data = cls._load_yaml(inkwell_yml)
        name = data.get("name") or inkwell_yml.parent.name
        return cls(inkwell_yml, str(name))

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")
        return data

    def _read_workspace_config(self) -> None:
        """Read and expand inkwell.yml."""
        self.config = self._expand_env_vars(self._load_yaml(self.inkwell_yml))
        self.logger.debug(f"Loaded workspace config: {self.name}")

    def _expand_env_vars(self, data: Any) -> Any:
        """
        Recursively expand environment variables in configuration data.

        Supports patterns like ${VAR_NAME} and ${VAR_NAME:-default_value}

        Raises:
            ConfigError: If environment variable is not set and no default provided
        """
        if isinstance(data, str):
            pattern = r"\$\{([^:}]+)(?::-([^}]*))?\}"

            def replace_env_var(match):
                var_name = match.group(1)
                has_default = match.group(2) is not None
                default_value = match.group(2) if has_default else ""

                env_value = os.getenv(var_name)
                if env_value is not None:
                    return env_value
                elif has_default:
                    return default_value
                else:
                    raise ConfigError(
                        f"Environment variable '{var_name}' is not set and no default"
                    )

            return re.sub(pattern, replace_env_var, data)

        elif isinstance(data, dict):
            return {key: self._expand_env_vars(value) for key, value in data.items()}

        elif isinstance(data, list):
            return [self._expand_env_vars(item) for item in data]

        else:
            return data

    def prepare(self) -> InkwellConfig:
        """
        Read, expand and validate inkwell.yml.

        Returns:
            InkwellConfig ready for a run

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        self._read_workspace_config()
        data = {"name": self.name, **self.config}
        try:
            config = InkwellConfig(**data)
        except ValidationError as e:
            # Locations and messages only, never input values
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigError(f"Invalid {CONFIG_FILENAME}: {problems}") from None

        self.logger.info(
            f"Prepared workspace '{config.name}' for journal '{config.journals.draft}'"
        )
        return config

    def path(self, relative: str) -> Path:
        """Resolve a configured path against the workspace root."""
        candidate = Path(relative)
        return candidate if candidate.is_absolute() else self.root / candidate

    def env_references(self) -> Dict[str, bool]:
        """Environment variables referenced by inkwell.yml and whether each is set."""
        with open(self.inkwell_yml, "r", encoding="utf-8") as f:
            text = f.read()
        names = re.findall(r"\$\{([^:}]+)(?::-[^}]*)?\}", text)
        return {name: os.getenv(name) is not None for name in dict.fromkeys(names)}
