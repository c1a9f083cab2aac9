"""
Streaming configuration using Pydantic Settings.

This module provides configuration management for the streaming channels,
allowing environment-based configuration with type validation and defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionConfig(BaseSettings):
    """WebSocket connection configuration."""

    model_config = SettingsConfigDict(env_prefix="STREAM_CONNECTION_")

    # Endpoints
    market_url: str = "wss://ws-subscriptions-clob.polymarket.com/ws/market"
    user_url: str = "wss://ws-subscriptions-clob.polymarket.com/ws/user"
    sports_url: str = "wss://ws-subscriptions-clob.polymarket.com/ws/sports"
    feed_url: str = "wss://rtds.polymarket.com/ws"

    # Resilience settings
    reconnect_delay: float = Field(
        default=5.0,
        ge=0.0,
        description="Fixed delay between reconnect attempts in seconds",
    )
    heartbeat_interval: float = Field(
        default=15.0,
        gt=0.0,
        description="Interval between PING probes in seconds",
    )
    handshake_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Upper bound for dial plus opening handshake in seconds",
    )
    close_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Upper bound for closing a connection in seconds",
    )
    prefer_ipv4: bool = Field(
        default=True, description="Resolve and dial IPv4 addresses only"
    )

    # Observability
    outage_warning_after: float = Field(
        default=60.0,
        ge=0.0,
        description="Outage length after which failed dials log a warning",
    )
    stats_interval: float = Field(
        default=0.0,
        ge=0.0,
        description="Interval for subscription-count debug logs (0 = off)",
    )


class DispatchConfig(BaseSettings):
    """Inbound message dispatch configuration."""

    model_config = SettingsConfigDict(env_prefix="STREAM_DISPATCH_")

    report_dropped: bool = Field(
        default=False,
        description="Forward dropped frames and messages to the drop callback",
    )


class StreamConfig(BaseSettings):
    """Root configuration combining all sub-configs."""

    model_config = SettingsConfigDict(env_prefix="STREAM_")

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "StreamConfig":
        """
        Load configuration from environment variables.

        Returns:
            Configured StreamConfig instance

        """
        return cls(
            connection=ConnectionConfig(),
            dispatch=DispatchConfig(),
        )
