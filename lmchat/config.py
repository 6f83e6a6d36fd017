"""
Configuration: model presets plus session settings.

Loading priority:
  1. Project dir .lmchat.conf.yml
  2. Git root .lmchat.conf.yml
  3. Global ~/.lmchat/config.yml (written with defaults on first run)

.env files in ~/.lmchat/ and the project dir are loaded first, without
overriding variables already set.  LMCHAT_MODEL and LMCHAT_VERBOSE are
applied last.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .llm import DEFAULT_SYSTEM_PROMPT
from .themes import list_themes

CONFIG_DIR = Path.home() / ".lmchat"
CONFIG_FILE = CONFIG_DIR / "config.yml"
PROJECT_CONFIG_NAME = ".lmchat.conf.yml"
DEFAULT_PRESET = "lmstudio"

THEMES = frozenset(list_themes())

# (valid, coerced value, error message)
Validation = Tuple[bool, Any, str]

_PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


# ── Field registry ──


def _validate_enum(value: Any, allowed) -> Validation:
    choice = str(value).strip().lower()
    if choice in allowed:
        return True, choice, ""
    return False, None, f"Must be one of: {', '.join(sorted(allowed))}"


def _validate_bool(value: Any) -> Validation:
    if isinstance(value, bool):
        return True, value, ""
    word = str(value).strip().lower()
    if word in ("1", "true", "yes", "on"):
        return True, True, ""
    if word in ("0", "false", "no", "off"):
        return True, False, ""
    return False, None, "Must be true/false, yes/no, on/off, or 1/0"


def _validate_keyword(value: Any) -> Validation:
    """The exit keyword is one word, matched against the whole input line."""
    word = str(value or "").strip()
    if not word or len(word.split()) != 1:
        return False, None, "Must be a single non-blank word"
    return True, word, ""


def _validate_text(value: Any) -> Validation:
    text = "" if value is None else str(value)
    if not text.strip():
        return False, None, "Must not be blank"
    return True, text, ""


@dataclass(frozen=True)
class ConfigFieldSpec:
    """One user-settable key: its YAML name, Config attribute and validator."""
    key: str
    field_name: str
    description: str
    default: Any
    validator: Optional[Callable[[Any], Validation]] = None


def _field(key: str, default: Any, description: str, validator=None) -> ConfigFieldSpec:
    return ConfigFieldSpec(key, key.replace("-", "_"), description, default, validator)


CONFIG_FIELDS: Dict[str, ConfigFieldSpec] = {
    spec.key: spec
    for spec in (
        # Checked against the loaded presets by set_config_value().
        _field("active-model", DEFAULT_PRESET, "Model preset used for the session"),
        _field("system-prompt", DEFAULT_SYSTEM_PROMPT,
               "System message sent first in every conversation", _validate_text),
        _field("exit-command", "exit",
               "Keyword that ends the session when typed as the whole line", _validate_keyword),
        _field("prompt", "> ", "Input prompt text", _validate_text),
        _field("theme", "github_dark", "UI color theme",
               lambda value: _validate_enum(value, THEMES)),
        _field("verbose", False, "Show INFO logs on stderr", _validate_bool),
        _field("log-file", str(CONFIG_DIR / "logs" / "chat.log"),
               "Log file path (empty disables file logging)"),
    )
}


def validate_config_value(key: str, value: Any) -> Validation:
    spec = CONFIG_FIELDS.get(key)
    if spec is None:
        return False, None, f"Unknown configuration key: {key}"
    if spec.validator is None:
        return True, value, ""
    return spec.validator(value)


# ── Model presets ──


@dataclass
class ModelPreset:
    name: str
    provider: str
    model: str
    api_base: Optional[str] = None
    api_key: Optional[str] = None
    api_key_env: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 4096
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Optional[dict]) -> "ModelPreset":
        data = data or {}
        return cls(
            name=name,
            provider=data.get("provider", "openai"),
            model=data.get("model", "openai/gpt-4o-mini"),
            api_base=data.get("api-base"),
            api_key=data.get("api-key"),
            api_key_env=data.get("api-key-env"),
            temperature=data.get("temperature", 0.7),
            max_tokens=data.get("max-tokens", 4096),
            description=data.get("description", ""),
        )

    def to_dict(self) -> dict:
        data = {
            "provider": self.provider,
            "model": self.model,
            "description": self.description,
            "temperature": self.temperature,
            "max-tokens": self.max_tokens,
        }
        optional = {"api-base": self.api_base, "api-key": self.api_key, "api-key-env": self.api_key_env}
        data.update({k: v for k, v in optional.items() if v})
        return data

    def resolve_api_key(self) -> Optional[str]:
        """Explicit key, then the named env var, then the provider's usual one."""
        if self.api_key:
            return self.api_key
        env_var = self.api_key_env or _PROVIDER_KEY_ENV.get(self.provider)
        return os.environ.get(env_var) if env_var else None

    def get_llm_kwargs(self) -> dict:
        """Keyword arguments for ``LLMAdapter``; credentials are passed, not exported."""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "api_base": self.api_base,
            "api_key": self.resolve_api_key(),
        }


def default_presets() -> Dict[str, ModelPreset]:
    return {
        "lmstudio": ModelPreset(
            name="lmstudio", provider="local", model="openai/gpt-oss-20b",
            api_base="http://localhost:1234/v1", api_key="lm-studio",
            description="LM Studio server on :1234",
        ),
        "ollama": ModelPreset(
            name="ollama", provider="local", model="ollama_chat/llama3.1",
            api_base="http://localhost:11434", api_key="not-needed",
            description="Ollama server on :11434",
        ),
        "openai": ModelPreset(
            name="openai", provider="openai", model="openai/gpt-4o-mini",
            api_key_env="OPENAI_API_KEY", description="OpenAI GPT-4o mini",
        ),
    }


# ── Config ──


@dataclass
class Config:
    active_model: str = DEFAULT_PRESET
    models: Dict[str, ModelPreset] = field(default_factory=dict)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    exit_command: str = "exit"
    prompt: str = "> "
    theme: str = "github_dark"
    verbose: bool = False
    log_file: str = CONFIG_FIELDS["log-file"].default
    project_root: Optional[str] = None
    _config_source: str = ""

    @property
    def config_source(self) -> str:
        """Path of the file this config was loaded from or last saved to."""
        return self._config_source

    @classmethod
    def load(cls, project_dir: str = ".") -> "Config":
        project_path = Path(project_dir).resolve()
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        for env_file in (CONFIG_DIR / ".env", project_path / ".env"):
            if env_file.exists():
                load_dotenv(env_file, override=False)

        config = cls(project_root=str(project_path))
        source = next((p for p in cls._candidate_files(project_path) if p.exists()), None)
        if source is None:
            config._use_default_presets()
            config._config_source = str(CONFIG_FILE)
            config.save()
        else:
            config._apply_yaml(source)
            config._config_source = str(source)

        config._apply_env()
        return config

    @classmethod
    def _candidate_files(cls, project_path: Path) -> Iterator[Path]:
        yield project_path / PROJECT_CONFIG_NAME
        git_root = cls._find_git_root(project_path)
        if git_root is not None and git_root != project_path:
            yield git_root / PROJECT_CONFIG_NAME
        yield CONFIG_FILE

    @staticmethod
    def _find_git_root(path: Path) -> Optional[Path]:
        for candidate in (path, *path.parents):
            if (candidate / ".git").exists():
                return candidate
        return None

    def _use_default_presets(self):
        self.models = default_presets()
        self.active_model = DEFAULT_PRESET

    def _apply_yaml(self, path: Path):
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            data = None
        if not isinstance(data, dict):
            data = {}

        # A bad value falls back to its default rather than failing the load.
        for key, spec in CONFIG_FIELDS.items():
            if key in data:
                valid, value, _ = validate_config_value(key, data[key])
                setattr(self, spec.field_name, value if valid else spec.default)

        self.models = {
            name: ModelPreset.from_dict(name, entry)
            for name, entry in (data.get("models") or {}).items()
        }
        if not self.models:
            self._use_default_presets()

    def _apply_env(self):
        model = os.environ.get("LMCHAT_MODEL")
        if model:
            self.active_model = model
        valid, verbose, _ = _validate_bool(os.environ.get("LMCHAT_VERBOSE", ""))
        if valid:
            self.verbose = verbose

    def save(self, filepath: Optional[str] = None):
        if filepath:
            target = Path(filepath)
        else:
            target = Path(self._config_source) if self._config_source else CONFIG_FILE
        target.parent.mkdir(parents=True, exist_ok=True)

        data: Dict[str, Any] = {
            key: getattr(self, spec.field_name) for key, spec in CONFIG_FIELDS.items()
        }
        data["models"] = {name: preset.to_dict() for name, preset in self.models.items()}
        with open(target, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        self._config_source = str(target)

    def get_active_preset(self) -> ModelPreset:
        """The selected preset, else the first configured one, else LM Studio."""
        if self.active_model in self.models:
            return self.models[self.active_model]
        return next(iter(self.models.values()), None) or default_presets()[DEFAULT_PRESET]

    def set_config_value(self, key: str, value: Any) -> Tuple[bool, str]:
        """Validate, assign and persist one field. Returns (ok, error message)."""
        if key == "active-model":
            if value not in self.models:
                return False, f"Model '{value}' not found. Available: {', '.join(self.models)}"
            coerced = value
        else:
            valid, coerced, error = validate_config_value(key, value)
            if not valid:
                return False, error
        setattr(self, CONFIG_FIELDS[key].field_name, coerced)
        self.save()
        return True, ""

    def summary(self) -> Dict[str, str]:
        preset = self.get_active_preset()
        return {
            "Active model": f"{self.active_model} → {preset.model}",
            "Provider": preset.provider,
            "API base": preset.api_base or "(provider default)",
            "API key": "✓" if preset.resolve_api_key() else "✗ not set",
            "Exit command": self.exit_command,
            "Theme": self.theme,
            "Verbose": "ON" if self.verbose else "OFF",
            "Log file": self.log_file or "(disabled)",
            "Project": self.project_root or "",
            "Config": self.config_source or "(defaults)",
        }
