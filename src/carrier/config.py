"""Runtime configuration for file-backed carriers.

`storage_dir` is the directory holding one `<name>.json` blob per carrier.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CarrierSettings(BaseSettings):
    """Settings loaded from constructor kwargs and `CARRIER_*` environment variables.

    Invariant:
        `storage_dir` is normalized to an absolute path at init time.
        `limit` is never negative; `0` means unlimited.
    """

    model_config = SettingsConfigDict(env_prefix="CARRIER_")

    storage_dir: Path = Path("~/.carrier")
    limit: int = 0
    based_on_second: bool = False
    encoding: str = "utf-8"

    @field_validator("storage_dir")
    @classmethod
    def _normalize_storage_dir(cls, value: Path) -> Path:
        """Normalize the storage directory to an absolute path."""

        return value.expanduser().resolve()

    @field_validator("limit")
    @classmethod
    def _validate_limit(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"limit must be >= 0; got {value}")
        return value
