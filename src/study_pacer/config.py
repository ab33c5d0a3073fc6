"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
            flattened['allowed_origins'] = data['server'].get('allowed_origins')
        if 'storage' in data:
            flattened['data_dir'] = data['storage'].get('data_dir')
        if 'pacing' in data:
            pacing = data['pacing']
            flattened['default_daily_minutes'] = pacing.get('default_daily_minutes')
            flattened['baseline_skill_level'] = pacing.get('baseline_skill_level')
            flattened['missed_days_window'] = pacing.get('missed_days_window')
            flattened['recovery_threshold'] = pacing.get('recovery_threshold')
            flattened['projection_lookahead_weeks'] = pacing.get('projection_lookahead_weeks')
            flattened['completion_history_limit'] = pacing.get('completion_history_limit')
            flattened['max_progress_retries'] = pacing.get('max_progress_retries')
        if 'content' in data:
            flattened['question_bank_path'] = data['content'].get('question_bank_path')
            flattened['content_question_count'] = data['content'].get('question_count')
            flattened['content_seed'] = data['content'].get('seed')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_prefix="STUDY_PACER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://127.0.0.1:8000"]
    )

    # Storage (relative paths resolve against project_root)
    data_dir: Path | None = Field(default=None)

    # Pacing
    default_daily_minutes: int = Field(default=30, gt=0)
    baseline_skill_level: int = Field(default=50, ge=0, le=100)
    missed_days_window: int = Field(default=30, gt=0)
    recovery_threshold: int = Field(default=3, gt=0)
    projection_lookahead_weeks: int = Field(default=4, ge=0)
    completion_history_limit: int = Field(default=20, gt=0)
    max_progress_retries: int = Field(default=3, gt=0)

    # Content bank
    question_bank_path: Path | None = Field(default=None)
    content_question_count: int = Field(default=5, gt=0)
    content_seed: int | None = Field(default=None)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def users_dir(self) -> Path:
        base = self.data_dir or Path("data")
        if not base.is_absolute():
            base = self.project_root / base
        d = base / "users"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def question_bank_file(self) -> Path:
        path = self.question_bank_path or Path("config") / "question_bank.yaml"
        if not path.is_absolute():
            path = self.project_root / path
        return path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
