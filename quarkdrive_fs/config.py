import configparser
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_BASE_URL = "https://drive-pc.quark.cn"
COOKIE_ENV_VAR = "QUARK_COOKIE"


@dataclass
class DriveConfig:
    cookie: str
    api_base_url: str = DEFAULT_API_BASE_URL
    root: str = "/"  # Remote directory exposed as "/"


@dataclass
class CacheConfig:
    max_entries: int = 1000
    ttl_seconds: int = 600
    page_size: int = 50
    refresh_interval_seconds: int = 3600  # Full invalidation timer, 0 disables


@dataclass
class ConnectionConfig:
    timeout_seconds: int = 30
    connect_timeout_seconds: int = 10
    retry_attempts: int = 3
    retry_delay_seconds: int = 1


@dataclass
class LogConfig:
    level: str = "INFO"
    file: str = "quarkdrive-fs.log"
    console: bool = True


@dataclass
class AppConfig:
    drive: DriveConfig
    cache: CacheConfig
    connection: ConnectionConfig
    logging: LogConfig


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_int(section: configparser.SectionProxy, key: str, target: dict) -> None:
    """Copy an integer option from an INI section into `target` if set."""
    raw = section.get(key)
    if not raw:
        return
    try:
        target[key] = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {key} value in config: '{raw}' - must be an integer"
        ) from None


def load_config(config_path: str | None = None, **cli_args) -> AppConfig:
    """
    Load configuration from an INI file and/or CLI arguments.
    CLI arguments take precedence over the config file, and the config file
    over the QUARK_COOKIE environment variable.

    Args:
        config_path: Path to the INI configuration file.
        **cli_args: Key-value pairs from command line arguments
            (cookie, root, api_base_url, cache_ttl, cache_size, page_size,
            refresh_interval, debug).

    Returns:
        AppConfig: The populated configuration object.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If the cookie is missing or a value is invalid.
    """
    # Initialize with defaults
    drive_config = {
        "cookie": os.environ.get(COOKIE_ENV_VAR) or None,
        "api_base_url": DEFAULT_API_BASE_URL,
        "root": "/",
    }
    cache_config = {
        "max_entries": 1000,
        "ttl_seconds": 600,
        "page_size": 50,
        "refresh_interval_seconds": 3600,
    }
    connection_config = {
        "timeout_seconds": 30,
        "connect_timeout_seconds": 10,
        "retry_attempts": 3,
        "retry_delay_seconds": 1,
    }
    log_config = {
        "level": "INFO",
        "file": "quarkdrive-fs.log",
        "console": True,
    }

    # Parse INI file if provided
    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_file, encoding="utf-8")

        # Load [drive] section
        if parser.has_section("drive"):
            drive_section = parser["drive"]
            for key in ("cookie", "api_base_url", "root"):
                if drive_section.get(key):
                    drive_config[key] = drive_section.get(key)

        # Load [cache] section
        if parser.has_section("cache"):
            for key in cache_config:
                _parse_int(parser["cache"], key, cache_config)

        # Load [connection] section
        if parser.has_section("connection"):
            for key in connection_config:
                _parse_int(parser["connection"], key, connection_config)

        # Load [logging] section
        if parser.has_section("logging"):
            log_section = parser["logging"]
            if log_section.get("level"):
                log_config["level"] = log_section.get("level")
            if log_section.get("file") is not None:
                log_config["file"] = log_section.get("file")
            if log_section.get("console"):
                log_config["console"] = _parse_bool(log_section.get("console"))

    # Override with CLI arguments (cli_args take precedence)
    if cli_args.get("cookie") is not None:
        drive_config["cookie"] = cli_args["cookie"]
    if cli_args.get("root") is not None:
        drive_config["root"] = cli_args["root"]
    if cli_args.get("api_base_url") is not None:
        drive_config["api_base_url"] = cli_args["api_base_url"]
    if cli_args.get("cache_size") is not None:
        cache_config["max_entries"] = int(cli_args["cache_size"])
    if cli_args.get("cache_ttl") is not None:
        cache_config["ttl_seconds"] = int(cli_args["cache_ttl"])
    if cli_args.get("page_size") is not None:
        cache_config["page_size"] = int(cli_args["page_size"])
    if cli_args.get("refresh_interval") is not None:
        cache_config["refresh_interval_seconds"] = int(cli_args["refresh_interval"])
    if cli_args.get("debug"):
        log_config["level"] = "DEBUG"
        log_config["console"] = True

    # Validate
    if not drive_config["cookie"]:
        raise ValueError(
            f"Missing required configuration field: cookie (set [drive] cookie or {COOKIE_ENV_VAR})"
        )
    if cache_config["max_entries"] <= 0:
        raise ValueError(f"Invalid max_entries: {cache_config['max_entries']} - must be positive")
    if cache_config["page_size"] <= 0:
        raise ValueError(f"Invalid page_size: {cache_config['page_size']} - must be positive")

    root = drive_config["root"].replace("\\", "/")
    if not root.startswith("/"):
        root = "/" + root
    drive_config["root"] = root

    return AppConfig(
        drive=DriveConfig(**drive_config),
        cache=CacheConfig(**cache_config),
        connection=ConnectionConfig(**connection_config),
        logging=LogConfig(**log_config),
    )
