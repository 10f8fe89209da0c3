"""Settings for subscriberq collections and adapters."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class SubscriberQuerySettings(BaseSettings):
    """subscriberq configuration settings."""

    # Database
    DB_DIALECT: Literal["postgres", "mysql", "sqlite"] = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_NAME: Optional[str] = None
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    SQLITE_PATH: str = ":memory:"

    # Tables
    TABLE_PREFIX: str = ""
    SUBSCRIBER_TABLE: str = "newsletter_subscriber"
    QUEUE_LINK_TABLE: str = "newsletter_queue_link"
    STORE_TABLE: str = "store"
    EAV_ATTRIBUTE_TABLE: str = "eav_attribute"
    EAV_ENTITY_TYPE_TABLE: str = "eav_entity_type"
    CUSTOMER_ENTITY_TYPE: str = "customer"

    # Logging
    LOG_LEVEL: str = "INFO"
    SQL_LOG: bool = False  # log compiled statements at DEBUG

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = SubscriberQuerySettings()
