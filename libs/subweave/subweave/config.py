"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subweave.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class ASRConfig(BaseSettings):
    """Transcription provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ASR_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openai_whisper"
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "whisper-1"
    timeout: float = Field(default=600.0, gt=0)  # 单个请求超时（秒）


class LLMConfig(BaseSettings):
    """Translation/refinement provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openai"
    base_url: str | None = None
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    translation_batch_size: int = Field(default=20, ge=1)
    request_timeout_s: float = Field(
        default=600.0,
        gt=0,
        description="Deadline (seconds) for one translation request, retries included.",
    )


class ConcurrencyConfig(BaseSettings):
    """Concurrency limits per pipeline resource."""

    model_config = SettingsConfigDict(
        env_prefix="CONCURRENCY_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pipeline: int = Field(default=5, ge=1)
    # None -> follow `pipeline` (cloud transcription); set to 1-2 for local models.
    transcription: int | None = Field(default=None, ge=1)
    # Local forced alignment loads a full model per process.
    alignment: int = Field(default=1, ge=1)

    @property
    def transcription_limit(self) -> int:
        if self.transcription is None:
            return int(self.pipeline)
        return int(self.transcription)


class AlignmentConfig(BaseSettings):
    """Timestamp alignment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ALIGNMENT_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mode: str = "none"  # "none" | "ctc"
    aligner_path: str = ""
    model_path: str = ""
    batch_size: int | None = Field(default=None, ge=1)
    timeout_s: float = Field(default=600.0, gt=0)

    @field_validator("mode")
    @classmethod
    def _normalize_mode(cls, value: str) -> str:
        return str(value or "none").strip().lower() or "none"


class ChunkingConfig(BaseSettings):
    """Timeline chunking configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHUNK_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    duration_s: float = Field(default=300.0, gt=0)
    sample_minutes: int | Literal["all"] = "all"

    @field_validator("sample_minutes")
    @classmethod
    def _validate_sample_minutes(cls, value: int | str) -> int | str:
        if value != "all" and int(value) <= 0:
            raise ValueError("CHUNK_SAMPLE_MINUTES must be a positive integer or 'all'")
        return value


class SnapshotConfig(BaseSettings):
    """Snapshot history configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_snapshots: int = Field(default=20, ge=1)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)
    http_level: str = "WARNING"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"
    settings_file: str = "settings.json"
    ffmpeg_bin: str = "ffmpeg"

    asr: ASRConfig = ASRConfig()
    llm: LLMConfig = LLMConfig()
    concurrency: ConcurrencyConfig = ConcurrencyConfig()
    alignment: AlignmentConfig = AlignmentConfig()
    chunking: ChunkingConfig = ChunkingConfig()
    snapshots: SnapshotConfig = SnapshotConfig()
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        self.data_dir = _resolve_repo_path(self.data_dir)
        self.log_dir = _resolve_repo_path(self.log_dir)
        return self

    def model_post_init(self, __context: Any) -> None:
        for p in (self.data_dir, self.log_dir):
            Path(p).mkdir(parents=True, exist_ok=True)

    @property
    def settings_path(self) -> Path:
        path = Path(self.settings_file)
        if path.is_absolute():
            return path
        return Path(self.data_dir) / path

    def asr_config(self) -> dict[str, Any]:
        """Return an ASR config dict for the provider registry."""
        return self.asr.model_dump()

    def llm_config(self) -> dict[str, Any]:
        """Return an LLM config dict for the provider registry."""
        cfg = self.llm.model_dump()
        provider = str(cfg.get("provider") or "").strip().lower()
        if not provider:
            raise ConfigurationError("LLM provider is not configured")
        base_url = str(cfg.get("base_url") or "").strip()
        if provider in {"openai", "openai_compat"}:
            cfg["base_url"] = base_url or "https://api.openai.com/v1"
        elif base_url:
            cfg["base_url"] = base_url
        else:
            cfg.pop("base_url", None)
        return cfg
