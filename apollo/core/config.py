# apollo/core/config.py

import os
from pathlib import Path
from typing import Dict, Optional

from msgspec import Struct, field

from ..types import Chain
from .logging import ApolloLogger, log_with_context, DEBUG


SCHEMA_FILE = "schema.yaml"
ENV_PREFIX = "APOLLO_"


class RunOptions(Struct):
    realtime: bool = False


class ApolloSettings(Struct):
    config_dir: Path
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    rpc_urls: Dict[Chain, str] = field(default_factory=dict)

    @property
    def schema_path(self) -> Path:
        return self.config_dir / SCHEMA_FILE

    @classmethod
    def from_env(cls, env_vars: dict = None, **overrides) -> 'ApolloSettings':
        logger = ApolloLogger.get_logger('core.config')

        from dotenv import load_dotenv
        load_dotenv()
        env = env_vars if env_vars is not None else os.environ

        config_dir = Path(env.get(f"{ENV_PREFIX}CONFIG_DIR",
                                  Path.home() / ".config" / "apollo")).expanduser()
        log_dir = env.get(f"{ENV_PREFIX}LOG_DIR")

        rpc_urls = {}
        for chain in Chain:
            url = env.get(f"{ENV_PREFIX}RPC_{chain.name}")
            if url:
                rpc_urls[chain] = url

        settings = cls(
            config_dir=config_dir,
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir) if log_dir else None,
            rpc_urls=rpc_urls,
        )
        for name, value in overrides.items():
            if value is not None:
                setattr(settings, name, value)

        log_with_context(logger, DEBUG, "Settings loaded from environment",
                         path=str(settings.config_dir),
                         chain=",".join(str(c) for c in settings.rpc_urls))
        return settings
