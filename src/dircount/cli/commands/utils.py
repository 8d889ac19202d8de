import logging

from configmanager import Config

import dircount.config
from dircount.cli.cli_config import CliConfig
from dircount.config import get_defaults
from dircount.db.connection import make_engine, make_session_factory
from dircount.toolkit.logging import setup_logging
from dircount.types.db_session import DbSessionFactory


def load_config(cli_config: CliConfig) -> Config:
    config = Config(schema=get_defaults())

    config_file_path = cli_config.config_file_path
    if config_file_path.is_file():
        user_config_raw = config_file_path.read_text()
        # Allow empty config files
        if user_config_raw:
            config.yaml.loads(user_config_raw)

    dircount.config.app_config = config

    setup_logging(
        loglevel=logging.DEBUG if cli_config.verbose else config.logging.level.value
    )
    return config


def make_cli_session_factory(config: Config) -> DbSessionFactory:
    engine = make_engine(config=config, application_name="dircount-cli")
    return make_session_factory(engine)
