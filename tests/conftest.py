import contextlib
import logging
import os
from pathlib import Path

import alembic.command
import alembic.config
import pytest
from configmanager import Config
from sqlalchemy import text

import dircount.config
from dircount.db.connection import make_db_url, make_engine, make_session_factory
from dircount.types.db_session import DbSessionFactory

PROJECT_DIR = Path(__file__).parent.parent


@contextlib.contextmanager
def change_dir(directory: Path):
    current_directory = Path.cwd()
    try:
        os.chdir(directory)
        yield
    finally:
        os.chdir(current_directory)


def run_db_migrations(config: Config):
    db_url = make_db_url(driver="psycopg2", config=config)

    with change_dir(PROJECT_DIR):
        alembic_cfg = alembic.config.Config("alembic.ini")
        alembic_cfg.attributes["configure_logger"] = False
        alembic_cfg.attributes["db_url"] = db_url
        logging.getLogger("alembic").setLevel(logging.CRITICAL)

        alembic.command.upgrade(alembic_cfg, "head")


@pytest.fixture
def mock_config() -> Config:
    config: Config = Config(dircount.config.get_defaults())

    config_file_path: Path = Path.cwd() / "config.yml"

    # The postgres host uses a Docker network name in the default config.
    # We always use localhost for tests.
    config.postgres.host.value = os.environ.get("DIRCOUNT_TEST_DB_HOST", "127.0.0.1")

    if config_file_path.exists():
        user_config_raw: str = config_file_path.read_text()

        # Little trick to allow empty config files
        if user_config_raw:
            config.yaml.loads(user_config_raw)

    # We set the global variable directly instead of patching it because
    # mocker.patch does not work well with configmanager Config objects.
    dircount.config.app_config = config
    return config


@pytest.fixture
def session_factory(mock_config: Config) -> DbSessionFactory:
    engine = make_engine(
        config=mock_config, echo=False, application_name="dircount-tests"
    )

    with engine.begin() as conn:
        conn.execute(text("drop schema public cascade"))
        conn.execute(text("create schema public"))

    run_db_migrations(config=mock_config)
    yield make_session_factory(engine)

    engine.dispose()
