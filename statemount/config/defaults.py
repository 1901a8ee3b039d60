"""Default configuration parameters for the lifecycle engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters passed to configure_logging."""
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True
    include_caller: bool = False


@dataclass(frozen=True)
class SessionParams:
    """Parameters for threads spawned by with_session."""
    thread_name_prefix: str = "statemount-session"
    daemon: bool = False                 # Session threads keep the process alive


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    logging: LoggingParams
    session: SessionParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        logging=LoggingParams(),
        session=SessionParams(),
    )
