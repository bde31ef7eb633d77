"""
Configuration module for the Lightsail control API.

Settings come from environment variables and are validated once, when the
configuration object is first requested.
"""
import os
from dataclasses import dataclass
from typing import Optional

CREDENTIAL_SOURCES = {"profile", "static"}

DEFAULT_SECRET_TOLERANCE_SECONDS = 3600
DEFAULT_CLOUDFLARE_API_URL = "https://api.cloudflare.com/client/v4"


@dataclass
class Config:
    """Type-safe configuration object with validated environment variables."""

    credential_source: str = "profile"
    lightsail_config_file: str = "aws/config"
    lightsail_credentials_file: str = "aws/credentials"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    secret_tolerance_seconds: int = DEFAULT_SECRET_TOLERANCE_SECONDS
    dns_config_file: str = "./config.json"
    dns_secret_name: Optional[str] = None
    cloudflare_api_url: str = DEFAULT_CLOUDFLARE_API_URL
    aws_region: str = "us-east-1"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config instance from environment variables.

        Raises:
            ValueError: If a variable is missing or has an invalid value.
        """
        credential_source = os.environ.get("CREDENTIAL_SOURCE", "profile").lower()
        if credential_source not in CREDENTIAL_SOURCES:
            raise ValueError(
                f"CREDENTIAL_SOURCE must be one of {CREDENTIAL_SOURCES}, "
                f"got: {credential_source}"
            )

        aws_access_key_id = os.environ.get("AWS_ACCESS_KEY_ID")
        aws_secret_access_key = os.environ.get("AWS_SECRET_ACCESS_KEY")
        if credential_source == "static" and not (
            aws_access_key_id and aws_secret_access_key
        ):
            raise ValueError(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment "
                "variables are required when CREDENTIAL_SOURCE=static"
            )

        raw_tolerance = os.environ.get(
            "SECRET_TOLERANCE_SECONDS", str(DEFAULT_SECRET_TOLERANCE_SECONDS)
        )
        try:
            secret_tolerance_seconds = int(raw_tolerance)
        except ValueError:
            raise ValueError(
                f"SECRET_TOLERANCE_SECONDS must be an integer, got: {raw_tolerance}"
            )
        if secret_tolerance_seconds < 0:
            raise ValueError(
                f"SECRET_TOLERANCE_SECONDS must not be negative, got: {raw_tolerance}"
            )

        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_log_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {valid_log_levels}, got: {log_level}"
            )

        return cls(
            credential_source=credential_source,
            lightsail_config_file=os.environ.get("LIGHTSAIL_CONFIG_FILE", "aws/config"),
            lightsail_credentials_file=os.environ.get(
                "LIGHTSAIL_CREDENTIALS_FILE", "aws/credentials"
            ),
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            secret_tolerance_seconds=secret_tolerance_seconds,
            dns_config_file=os.environ.get("DNS_CONFIG_FILE", "./config.json"),
            dns_secret_name=os.environ.get("DNS_SECRET_NAME") or None,
            cloudflare_api_url=os.environ.get(
                "CLOUDFLARE_API_URL", DEFAULT_CLOUDFLARE_API_URL
            ).rstrip("/"),
            aws_region=os.environ.get("AWS_REGION", "us-east-1"),
            log_level=log_level,
        )


# Cached per process; reset by tests through ``config._config = None``
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the process-wide configuration instance.

    Returns:
        Config: The validated configuration object

    Raises:
        ValueError: If environment variables are invalid.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
