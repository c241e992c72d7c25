"""Configuration management.

``Settings`` is a **metaclass-based singleton**: the first call to
``Settings.load()`` creates the instance; every later call returns
the same object.  Use ``update()`` to change values at runtime, or
``reload()`` to re-read everything from disk.

All user-editable configuration lives under ``.metadata/``:

* ``settings.yaml``  – AI mode, DOI resolver, artificial delays, server
* ``api_keys.yaml``  – hosted LLM API keys (relay mode)

On first run, missing files are copied from ``.metadata.example/``.
Environment variables ``ANTHROPIC_API_KEY``, ``OPENAI_API_KEY`` and
``RESEARCHFLOW_AI_MODE`` override the YAML values.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

AI_MODES = ("mock", "relay")
DOI_RESOLVERS = ("mock", "crossref")


# ---------------------------------------------------------------------------
# Provider registry dataclass
# ---------------------------------------------------------------------------

@dataclass
class LLMModel:
    """A single model entry from the built-in provider registry."""

    id: str
    name: str
    provider_id: str
    provider_name: str
    family: str
    base_url: str
    key_env: str = ""
    context_window: int = 0
    max_output: int = 0


# ---------------------------------------------------------------------------
# Singleton metaclass
# ---------------------------------------------------------------------------

class _SettingsMeta(type):
    """Metaclass that enforces a process-wide singleton for *Settings*.

    * First ``Settings(...)`` creates and caches the instance.
    * Later ``Settings(...)`` calls return the cached instance (args ignored).
    """

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# ---------------------------------------------------------------------------
# Settings dataclass (singleton)
# ---------------------------------------------------------------------------

@dataclass
class Settings(metaclass=_SettingsMeta):
    """Application settings — singleton with runtime-mutable fields.

    Usage::

        settings = Settings.load()              # first call → create
        settings = Settings.load()              # later → same object
        settings.update(ai_mode="relay")        # runtime change
        settings = Settings.reload()            # re-read from disk
    """

    db_path: Path = Path("researchflow.db")
    metadata_dir: Path = Path(".metadata")

    # AI routes
    ai_mode: str = "mock"
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    ai_timeout: float = 60.0

    # Citations
    doi_resolver: str = "mock"
    contact_email: Optional[str] = None

    # Artificial latency of the mock routes (seconds)
    mock_delay: tuple[float, float] = (1.0, 2.5)
    resolve_delay: float = 1.5
    export_delay: float = 1.2

    # Editor
    autosave_delay: float = 0.8
    seed_samples: bool = True

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    # ── Computed properties ────────────────────────────────────────────

    @property
    def server_url(self) -> str:
        """Base URL of the local server (used by the CLI client)."""
        return f"http://{self.host}:{self.port}"

    def api_key_for(self, provider_id: str) -> Optional[str]:
        """Return the configured API key for *provider_id*, or None."""
        if provider_id == "anthropic":
            return self.anthropic_api_key
        if provider_id == "openai":
            return self.openai_api_key
        return None

    # ── Runtime helpers ───────────────────────────────────────────────

    def update(self, **kwargs: Any) -> None:
        """Mutate settings fields at runtime.

        >>> Settings.load().update(mock_delay=(0.0, 0.0))
        """
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no field '{key}'")
            setattr(self, key, value)

    # ── Factory / lifecycle ───────────────────────────────────────────

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Load or return the singleton Settings instance.

        On first call the singleton is created; subsequent calls return
        the cached instance.  Pass *base_dir* to override the project
        root (defaults to the repository root one level above ``researchflow/``).
        """
        if cls in _SettingsMeta._instances:
            return _SettingsMeta._instances[cls]  # type: ignore[return-value]

        if base_dir is None:
            base_dir = Path(__file__).resolve().parent.parent
        base_dir = Path(base_dir)

        metadata_dir = base_dir / ".metadata"
        cls._ensure_default_files(base_dir, metadata_dir)

        values = _load_app_settings(metadata_dir / "settings.yaml")
        anthropic_key, openai_key = _load_api_keys(metadata_dir / "api_keys.yaml")

        # Environment wins over YAML
        anthropic_key = os.environ.get("ANTHROPIC_API_KEY") or anthropic_key
        openai_key = os.environ.get("OPENAI_API_KEY") or openai_key
        env_mode = os.environ.get("RESEARCHFLOW_AI_MODE")
        if env_mode in AI_MODES:
            values["ai_mode"] = env_mode

        return cls(
            db_path=base_dir / "researchflow.db",
            metadata_dir=metadata_dir,
            anthropic_api_key=anthropic_key,
            openai_api_key=openai_key,
            **values,
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Discard the current singleton and re-load from disk."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next ``load()`` re-creates it."""
        _SettingsMeta._instances.pop(cls, None)

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _ensure_default_files(base_dir: Path, metadata_dir: Path) -> None:
        """Copy ``.metadata.example/`` templates when real files are missing."""
        metadata_dir.mkdir(parents=True, exist_ok=True)

        example_dir = base_dir / ".metadata.example"
        if not example_dir.exists():
            return

        for example_file in example_dir.iterdir():
            if example_file.is_file():
                target = metadata_dir / example_file.name
                if not target.exists():
                    shutil.copy2(example_file, target)
                    logger.info("Created .metadata/%s from template", example_file.name)


# ---------------------------------------------------------------------------
# YAML loaders
# ---------------------------------------------------------------------------

def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping; anything unreadable counts as empty."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable %s: %s", path.name, e)
        return {}
    return data if isinstance(data, dict) else {}


def _load_app_settings(path: Path) -> dict[str, Any]:
    """Load ``settings.yaml`` into keyword arguments for :class:`Settings`.

    Unknown keys and values of the wrong shape are dropped so that a
    hand-edited file never prevents startup.
    """
    data = _read_yaml(path)
    values: dict[str, Any] = {}

    if data.get("ai_mode") in AI_MODES:
        values["ai_mode"] = data["ai_mode"]
    if data.get("doi_resolver") in DOI_RESOLVERS:
        values["doi_resolver"] = data["doi_resolver"]
    if data.get("contact_email"):
        values["contact_email"] = str(data["contact_email"])

    delay = data.get("mock_delay")
    if isinstance(delay, (list, tuple)) and len(delay) == 2:
        try:
            low, high = float(delay[0]), float(delay[1])
            values["mock_delay"] = (min(low, high), max(low, high))
        except (TypeError, ValueError):
            pass

    for key in ("resolve_delay", "export_delay", "autosave_delay", "ai_timeout"):
        if key in data:
            try:
                values[key] = max(0.0, float(data[key]))
            except (TypeError, ValueError):
                pass

    if isinstance(data.get("seed_samples"), bool):
        values["seed_samples"] = data["seed_samples"]
    if data.get("host"):
        values["host"] = str(data["host"])
    if "port" in data:
        try:
            values["port"] = int(data["port"])
        except (TypeError, ValueError):
            pass
    if data.get("log_level"):
        values["log_level"] = str(data["log_level"]).upper()

    return values


def _load_api_keys(path: Path) -> tuple[Optional[str], Optional[str]]:
    """Load ``api_keys.yaml``.

    Returns:
        Tuple of (anthropic key, openai key); blank entries become None
    """
    data = _read_yaml(path)
    anthropic = str(data.get("anthropic_api_key") or "").strip() or None
    openai = str(data.get("openai_api_key") or "").strip() or None
    return anthropic, openai


def save_api_keys(
    path: Path,
    anthropic_api_key: Optional[str],
    openai_api_key: Optional[str],
) -> None:
    """Persist API keys to ``api_keys.yaml``."""
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Hosted LLM API keys (relay mode only)\n")
        f.write("# Environment variables ANTHROPIC_API_KEY / OPENAI_API_KEY take precedence.\n")
        yaml.dump(
            {
                "anthropic_api_key": anthropic_api_key or "",
                "openai_api_key": openai_api_key or "",
            },
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )


def load_llm_models() -> list[LLMModel]:
    """Load the built-in provider registry from ``researchflow/data/llm_models.yaml``.

    This is **application data** (ships with the package), not user config.
    The relay variant of the AI route picks its provider from this list.
    """
    registry_path = Path(__file__).resolve().parent / "data" / "llm_models.yaml"
    data = _read_yaml(registry_path)

    models: list[LLMModel] = []
    for provider in data.get("providers") or []:
        pid = provider.get("id", "")
        pname = provider.get("name", "")
        for m in provider.get("models") or []:
            models.append(
                LLMModel(
                    id=str(m["id"]),
                    name=str(m.get("name", m["id"])),
                    provider_id=pid,
                    provider_name=pname,
                    family=provider.get("family", ""),
                    base_url=provider.get("base_url", ""),
                    key_env=provider.get("key_env", ""),
                    context_window=int(m.get("context_window", 0)),
                    max_output=int(m.get("max_output", 0)),
                )
            )
    return models


def model_for_family(family: str) -> Optional[LLMModel]:
    """Return the first registry model serving *family*, or None."""
    return next((m for m in load_llm_models() if m.family == family), None)
