"""
Build configuration from the environment.
"""
import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Toolchain and output settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Toolchain overrides
    CC: Optional[str] = None
    CXX: Optional[str] = None
    PKG_CONFIG: str = "pkg-config"

    # Object cache + artifact root
    NATIVE_MAKE_TARGET_DIR: str = "./target"

    # Worker pool size (defaults to hardware parallelism)
    NATIVE_MAKE_JOBS: Optional[int] = None

    @property
    def jobs(self) -> int:
        """Number of parallel compile workers"""
        return self.NATIVE_MAKE_JOBS or os.cpu_count() or 4
