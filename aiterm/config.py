"""
Configuration: model presets plus terminal-agent behaviour, per project.

Loading priority:
  1. Project dir .aiterm.yml
  2. Git root .aiterm.yml
  3. Global ~/.aiterm/config.yml (written with defaults on first run)

.env files in ~/.aiterm/ and the project dir are loaded first and never
override variables already set in the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

CONFIG_DIR = Path.home() / ".aiterm"
CONFIG_FILE = CONFIG_DIR / "config.yml"
HISTORY_FILE = CONFIG_DIR / "history.txt"
PROJECT_CONFIG_NAME = ".aiterm.yml"

CONTINUATION_MODES = {"always", "on-failure"}
UNMARKED_LINE_MODES = {"drop", "message"}
THEMES = {"dark", "no_color"}


# ── Configuration metadata and validation ──


@dataclass
class ConfigFieldSpec:
    """Configuration field specification with validation rules."""
    key: str
    field_name: str
    description: str
    value_type: str  # "str", "int", "bool"
    default: Any
    validator: Optional[Callable[[Any], tuple[bool, Any, str]]] = None  # (valid, coerced_value, error_msg)


def _validate_int_range(value: Any, min_val: int, max_val: int) -> tuple[bool, int, str]:
    """Validate integer within range."""
    if isinstance(value, bool):
        return False, 0, "Must be an integer"
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return False, 0, "Must be an integer"
    if parsed < min_val or parsed > max_val:
        return False, max(min_val, min(max_val, parsed)), f"Must be between {min_val} and {max_val}"
    return True, parsed, ""


def _validate_enum(value: Any, valid_values: set) -> tuple[bool, str, str]:
    """Validate value is in allowed set."""
    val_str = str(value).strip().lower().replace("_", "-")
    if val_str not in valid_values:
        # Theme names use underscores, so retry the raw spelling.
        raw = str(value).strip().lower()
        if raw in valid_values:
            return True, raw, ""
        return False, "", f"Must be one of: {', '.join(sorted(valid_values))}"
    return True, val_str, ""


def _validate_bool(value: Any) -> tuple[bool, bool, str]:
    """Validate boolean value."""
    if isinstance(value, bool):
        return True, value, ""
    if isinstance(value, str):
        val_lower = value.strip().lower()
        if val_lower in ("1", "true", "yes", "on"):
            return True, True, ""
        if val_lower in ("0", "false", "no", "off"):
            return True, False, ""
    return False, False, "Must be true/false, yes/no, on/off, or 1/0"


CONFIG_FIELDS: Dict[str, ConfigFieldSpec] = {
    "active-model": ConfigFieldSpec(
        key="active-model",
        field_name="active_model",
        description="Model preset used for the conversation",
        value_type="str",
        default="groq",
        validator=None,  # Validated against available models separately
    ),
    "vision-model": ConfigFieldSpec(
        key="vision-model",
        field_name="vision_model",
        description="Preset used to describe screenshots (empty disables)",
        value_type="str",
        default="",
        validator=None,
    ),
    "max-iterations": ConfigFieldSpec(
        key="max-iterations",
        field_name="max_iterations",
        description="Maximum model replies per user turn",
        value_type="int",
        default=10,
        validator=lambda v: _validate_int_range(v, 1, 50),
    ),
    "continue-after-command": ConfigFieldSpec(
        key="continue-after-command",
        field_name="continue_after_command",
        description="Re-ask the model after a command: always or on-failure",
        value_type="str",
        default="always",
        validator=lambda v: _validate_enum(v, CONTINUATION_MODES),
    ),
    "unmarked-lines": ConfigFieldSpec(
        key="unmarked-lines",
        field_name="unmarked_lines",
        description="Reply lines without MSG:/CMD: are dropped or shown as message",
        value_type="str",
        default="drop",
        validator=lambda v: _validate_enum(v, UNMARKED_LINE_MODES),
    ),
    "shell": ConfigFieldSpec(
        key="shell",
        field_name="shell",
        description="Interpreter invoked as <shell> -c <command>",
        value_type="str",
        default="sh",
        validator=None,
    ),
    "theme": ConfigFieldSpec(
        key="theme",
        field_name="theme",
        description="UI color theme",
        value_type="str",
        default="dark",
        validator=lambda v: _validate_enum(v, THEMES),
    ),
    "verbose": ConfigFieldSpec(
        key="verbose",
        field_name="verbose",
        description="Enable verbose debug output",
        value_type="bool",
        default=False,
        validator=_validate_bool,
    ),
    "log-file": ConfigFieldSpec(
        key="log-file",
        field_name="log_file",
        description="Log file path (empty disables file logging)",
        value_type="str",
        default=None,
        validator=None,
    ),
}


def validate_config_value(key: str, value: Any) -> tuple[bool, Any, str]:
    """
    Validate a configuration value.

    Returns:
        (is_valid, coerced_value, error_message)
    """
    if key not in CONFIG_FIELDS:
        return False, value, f"Unknown configuration key: {key}"

    spec = CONFIG_FIELDS[key]

    if spec.validator:
        return spec.validator(value)

    if spec.value_type == "str":
        return True, "" if value is None else str(value).strip(), ""
    elif spec.value_type == "int":
        try:
            return True, int(value), ""
        except (TypeError, ValueError):
            return False, spec.default, "Must be an integer"
    elif spec.value_type == "bool":
        return _validate_bool(value)

    return True, value, ""


@dataclass
class ModelPreset:
    name: str
    provider: str
    model: str
    api_base: Optional[str] = None
    api_key: Optional[str] = None
    api_key_env: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 512
    description: str = ""

    def resolve_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        env_map = {
            "groq": "GROQ_API_KEY", "openai": "OPENAI_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY", "gemini": "GEMINI_API_KEY",
        }
        env_var = env_map.get(self.provider)
        return os.environ.get(env_var) if env_var else None

    def get_llm_kwargs(self) -> dict:
        """Return kwargs dict for LLMAdapter constructor, no env vars."""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "api_base": self.api_base,
            "api_key": self.resolve_api_key(),
        }

    def to_yaml(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"provider": self.provider, "model": self.model}
        if self.api_base:
            entry["api-base"] = self.api_base
        if self.api_key_env:
            entry["api-key-env"] = self.api_key_env
        elif self.api_key:
            entry["api-key"] = self.api_key
        entry["temperature"] = self.temperature
        entry["max-tokens"] = self.max_tokens
        if self.description:
            entry["description"] = self.description
        return entry


@dataclass
class Config:
    active_model: str = "groq"
    vision_model: str = ""
    models: Dict[str, ModelPreset] = field(default_factory=dict)
    max_iterations: int = 10
    continue_after_command: str = "always"
    unmarked_lines: str = "drop"
    shell: str = "sh"
    theme: str = "dark"
    verbose: bool = False
    log_file: Optional[str] = None
    project_root: Optional[str] = None
    _config_source: str = ""

    @classmethod
    def load(cls, project_dir: str = ".") -> "Config":
        config = cls()
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        project_path = Path(project_dir).resolve()

        for env_path in [CONFIG_DIR / ".env", project_path / ".env"]:
            if env_path.exists():
                load_dotenv(env_path, override=False)

        git_root = cls._find_git_root(project_path)
        config_loaded = False
        for candidate in [
            project_path / PROJECT_CONFIG_NAME,
            (git_root / PROJECT_CONFIG_NAME) if git_root and git_root != project_path else None,
            CONFIG_FILE,
        ]:
            if candidate and candidate.exists():
                config._load_yaml(candidate)
                config._config_source = str(candidate)
                config_loaded = True
                break

        if not config_loaded:
            config._add_default_presets()
            config._config_source = str(CONFIG_FILE)
            config.save()

        config._apply_env()
        config.project_root = str(project_path)
        return config

    @classmethod
    def get_default_presets(cls) -> Dict[str, ModelPreset]:
        return {
            "groq": ModelPreset(
                name="groq", provider="groq",
                model="groq/llama-3.3-70b-versatile",
                api_key_env="GROQ_API_KEY",
                description="Llama 3.3 70B on Groq",
            ),
            "groq-vision": ModelPreset(
                name="groq-vision", provider="groq",
                model="groq/meta-llama/llama-4-scout-17b-16e-instruct",
                api_key_env="GROQ_API_KEY",
                description="Llama 4 Scout (vision) on Groq",
                max_tokens=1024,
            ),
            "openai": ModelPreset(
                name="openai", provider="openai", model="openai/gpt-4o-mini",
                api_key_env="OPENAI_API_KEY",
                description="GPT-4o mini",
            ),
            "local": ModelPreset(
                name="local", provider="local", model="openai/model",
                api_base="http://localhost:8080/v1", api_key="not-needed",
                description="Local model (vLLM / llama.cpp on :8080)",
            ),
        }

    def _add_default_presets(self):
        self.models = self.get_default_presets()
        self.active_model = "groq"

    def _load_yaml(self, filepath: Path):
        try:
            with open(filepath, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            self._add_default_presets()
            return
        if not isinstance(data, dict):
            self._add_default_presets()
            return

        self.active_model = str(data.get("active-model", "groq"))
        self.vision_model = str(data.get("vision-model") or "")
        self.max_iterations = self._coerce("max-iterations", data, self.max_iterations)
        self.continue_after_command = self._coerce(
            "continue-after-command", data, self.continue_after_command
        )
        self.unmarked_lines = self._coerce("unmarked-lines", data, self.unmarked_lines)
        self.shell = str(data.get("shell") or "sh")
        self.theme = self._coerce("theme", data, self.theme)
        self.verbose = self._coerce("verbose", data, self.verbose)
        self.log_file = data.get("log-file")

        self.models = {}
        for name, m in (data.get("models") or {}).items():
            if not isinstance(m, dict):
                continue
            self.models[name] = ModelPreset(
                name=name, provider=m.get("provider", "openai"),
                model=m.get("model", "openai/gpt-4o-mini"),
                api_base=m.get("api-base"), api_key=m.get("api-key"),
                api_key_env=m.get("api-key-env"),
                temperature=m.get("temperature", 0.7),
                max_tokens=m.get("max-tokens", 512),
                description=m.get("description", ""),
            )
        if not self.models:
            self._add_default_presets()

    @staticmethod
    def _coerce(key: str, data: Dict[str, Any], default: Any) -> Any:
        """Validate ``data[key]``; invalid or missing values keep ``default``."""
        if key not in data:
            return default
        valid, value, _ = validate_config_value(key, data[key])
        return value if valid else default

    def _apply_env(self):
        env_map = {
            "AITERM_MODEL": "active-model",
            "AITERM_VERBOSE": "verbose",
            "AITERM_CONTINUE": "continue-after-command",
        }
        for env_var, key in env_map.items():
            val = os.environ.get(env_var)
            if not val:
                continue
            valid, value, _ = validate_config_value(key, val)
            if valid:
                setattr(self, CONFIG_FIELDS[key].field_name, value)

    def save(self, filepath: Optional[str] = None):
        target = Path(filepath) if filepath else (
            Path(self._config_source) if self._config_source else CONFIG_FILE
        )
        target.parent.mkdir(parents=True, exist_ok=True)

        data: Dict[str, Any] = {
            spec.key: getattr(self, spec.field_name) for spec in CONFIG_FIELDS.values()
        }
        if data["log-file"] is None:
            del data["log-file"]
        data["models"] = {name: preset.to_yaml() for name, preset in self.models.items()}

        with open(target, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        self._config_source = str(target)

    def get_active_preset(self) -> ModelPreset:
        if self.active_model in self.models:
            return self.models[self.active_model]
        if self.models:
            return next(iter(self.models.values()))
        return self.get_default_presets()["groq"]

    def get_vision_preset(self) -> Optional[ModelPreset]:
        if self.vision_model and self.vision_model in self.models:
            return self.models[self.vision_model]
        return None

    def set_active_model(self, name: str) -> bool:
        if name in self.models:
            self.active_model = name
            self.save()
            return True
        return False

    def list_models(self) -> List[Dict]:
        return [
            {"name": n, "active": n == self.active_model, "provider": m.provider,
             "model": m.model, "api_base": m.api_base or "-",
             "key": "✓" if m.resolve_api_key() else "✗", "desc": m.description}
            for n, m in self.models.items()
        ]

    def summary(self) -> dict:
        p = self.get_active_preset()
        return {
            "Active model": f"{self.active_model} → {p.model}",
            "Provider": p.provider,
            "API base": p.api_base or "(provider default)",
            "API key": "✓" if p.resolve_api_key() else "✗ not set",
            "Vision model": self.vision_model or "(off)",
            "Max iterations": self.max_iterations,
            "Continue after command": self.continue_after_command,
            "Unmarked lines": self.unmarked_lines,
            "Shell": self.shell,
            "Theme": self.theme,
            "Project": self.project_root,
            "Config": self._config_source or "(defaults)",
        }

    def get_config_value(self, key: str) -> Any:
        if key not in CONFIG_FIELDS:
            raise ConfigError(key, "unknown configuration key")
        return getattr(self, CONFIG_FIELDS[key].field_name)

    def set_config_value(self, key: str, value: Any) -> tuple[bool, str]:
        """Validate, apply and persist one value. Returns (ok, message)."""
        valid, coerced, error = validate_config_value(key, value)
        if not valid:
            return False, error
        if key == "active-model" and coerced not in self.models:
            return False, f"Unknown model preset: {coerced or '(empty)'}"
        if key == "vision-model" and coerced and coerced not in self.models:
            return False, f"Unknown model preset: {coerced}"

        setattr(self, CONFIG_FIELDS[key].field_name, coerced)
        self.save()
        return True, f"{key} = {coerced}"

    @staticmethod
    def _find_git_root(path: Path) -> Optional[Path]:
        current = path
        while current != current.parent:
            if (current / ".git").exists():
                return current
            current = current.parent
        return None
