"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class UpliftSettings(BaseSettings):
    workspace_dir: Path = Path(".uplift")
    # Relative paths are resolved under workspace_dir
    db_path: Path = Path("store.db")
    log_level: str = "INFO"

    # Module path of the package holding u_NNN_*.py update modules
    updates_package: str = "uplift.updates.builtin"

    # A lock file older than this is considered left behind by a crashed process
    lock_stale_seconds: int = 600

    model_config = {"env_prefix": "UPLIFT_"}

    @property
    def store_path(self) -> Path:
        if self.db_path.is_absolute():
            return self.db_path
        return self.workspace_dir / self.db_path


settings = UpliftSettings()
