"""Server-level configuration from environment variables.

Every field has a default, so no .env file is required. Variables are
prefixed with ``MARQUEE_`` (e.g. ``MARQUEE_LIBRARY_PATH``).

There is no database: the library index lives in memory and is rebuilt
from the directory tree on every start.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from marquee.core.errors import ConfigurationError


def _default_data_dir() -> Path:
    """Return ~/.marquee, the home of logs and default media directories."""
    return Path.home() / ".marquee"


class Settings(BaseSettings):
    """Server infrastructure settings. Loaded from environment variables; optionally from .env."""

    model_config = SettingsConfigDict(
        env_prefix="MARQUEE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    env: str = "dev"
    host: str = "127.0.0.1"
    port: int = 1338
    debug: bool = False
    app_url: str = ""  # Public base URL used to build subtitle links
    auth_code: str = ""

    # Library
    library_path: Path = _default_data_dir() / "movies"
    subtitles_path: Path = _default_data_dir() / "subs"
    log_dir: Path = _default_data_dir()

    # Subtitle archive (subdl.com)
    subdl_api_key: str = ""
    subtitle_languages: str = "en"
    subdl_page_size: int = 30
    subtitle_download_timeout: float = 10.0

    # Identification / catalog
    request_timeout: float = 30.0

    # Transcription fallback (faster-whisper)
    whisper_model: str = "base"
    whisper_device: str = "auto"  # "auto", "cpu" or "cuda"
    whisper_translate: bool = True  # Translate non-English speech to English

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


def ensure_paths_exist(config: Settings) -> None:
    """Create the library and subtitle directories if they don't exist.

    Raises:
        ConfigurationError: If a configured directory can't be created
    """
    for path in (config.library_path, config.subtitles_path):
        try:
            Path(path).expanduser().mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as e:
            raise ConfigurationError(f"{path} exists and is not a directory") from e


settings = Settings()
