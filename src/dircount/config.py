import logging

from configmanager import Config


def get_defaults():
    return {
        "logging": {
            # Logging level.
            "level": logging.WARNING,
            # Max log file size for each process.
            "max_log_file_size": 50_000_000,  # 50MB
        },
        "postgres": {
            # Hostname of the PostgreSQL database.
            "host": "postgres",
            # Port of the PostgreSQL database.
            "port": 5432,
            # Name of the database.
            "database": "dircount",
            # Username for the PostgreSQL database.
            "user": "dircount",
            # Password for the PostgreSQL database.
            "password": "dircount",
            # Maximum number of concurrent connections to the PostgreSQL database.
            "pool_size": 50,
        },
        "counters": {
            # Table whose row insertions/deletions are counted per directory.
            "table": "objects",
            # Name of the trigger maintaining the counts. Stable across versions.
            "hook_name": "trg_directory_counts",
            # Version of the counter trigger function to install.
            # Defaults to the latest version shipped with the package.
            "version": None,
            # Safety bound on the create/update loop of the counter functions.
            "max_create_attempts": 50,
        },
        "installer": {
            # Number of times a conflicting hook installation is retried.
            "max_install_attempts": 10,
        },
    }


app_config = Config(schema=get_defaults())


def get_config() -> Config:
    return app_config
