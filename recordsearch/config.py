"""
Configuration settings for Record Search.

Uses Pydantic Settings to load environment variables for the PostgreSQL
system-of-record, the OpenSearch index, and the pipeline tunables (page-size
limits, index retry policy, match mode). Components never read settings
themselves: the composition root derives one frozen config model per component
and passes it in at construction.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from recordsearch.domain.models import MatchMode


class StoreConfig(BaseModel):
    dsn: str
    pool_min_size: int = 1
    pool_max_size: int = 10
    pool_timeout_s: float = 5.0
    statement_timeout_ms: int = 5_000

    model_config = {"frozen": True}


class SearchConfig(BaseModel):
    hosts: Tuple[str, ...] = ("http://localhost:9200",)
    index: str = "records"
    username: Optional[str] = None
    password: Optional[str] = None
    verify_certs: bool = True
    request_timeout_s: float = 5.0
    refresh: bool = False
    exact_total_hits: bool = False
    total_hits_bound: int = 10_000

    model_config = {"frozen": True}


class QueryConfig(BaseModel):
    default_page_size: int = 10
    max_page_size: int = 100
    max_result_window: int = 10_000
    match_mode: MatchMode = MatchMode.ANY

    model_config = {"frozen": True}


class RetryPolicy(BaseModel):
    """Bounded exponential backoff for index upserts."""

    attempts: int = Field(3, ge=1)
    backoff_s: float = Field(0.2, ge=0)
    max_backoff_s: float = Field(2.0, ge=0)

    model_config = {"frozen": True}


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("records", alias="DB_NAME")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_pool_timeout_s: float = Field(5.0, alias="DB_POOL_TIMEOUT_S")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Search index
    search_hosts: str = Field("http://localhost:9200", alias="SEARCH_HOSTS")
    search_index: str = Field("records", alias="SEARCH_INDEX")
    search_username: Optional[str] = Field(None, alias="SEARCH_USERNAME")
    search_password: Optional[str] = Field(None, alias="SEARCH_PASSWORD")
    search_verify_certs: bool = Field(True, alias="SEARCH_VERIFY_CERTS")
    search_request_timeout_s: float = Field(5.0, alias="SEARCH_REQUEST_TIMEOUT_S")
    search_refresh: bool = Field(False, alias="SEARCH_REFRESH")
    search_exact_total_hits: bool = Field(False, alias="SEARCH_EXACT_TOTAL_HITS")
    search_total_hits_bound: int = Field(10_000, alias="SEARCH_TOTAL_HITS_BOUND")

    # Query
    page_size_default: int = Field(10, alias="PAGE_SIZE_DEFAULT")
    page_size_max: int = Field(100, alias="PAGE_SIZE_MAX")
    max_result_window: int = Field(10_000, alias="MAX_RESULT_WINDOW")
    match_mode: MatchMode = Field(MatchMode.ANY, alias="MATCH_MODE")

    # Index write retries
    index_retry_attempts: int = Field(3, alias="INDEX_RETRY_ATTEMPTS")
    index_retry_backoff_s: float = Field(0.2, alias="INDEX_RETRY_BACKOFF_S")
    index_retry_max_backoff_s: float = Field(2.0, alias="INDEX_RETRY_MAX_BACKOFF_S")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    reindex_batch_size: int = Field(1_000, alias="REINDEX_BATCH_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def dsn(self) -> str:
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    def search_host_list(self) -> List[str]:
        return [host.strip() for host in self.search_hosts.split(",") if host.strip()]

    def store_config(self) -> StoreConfig:
        return StoreConfig(
            dsn=self.dsn,
            pool_min_size=self.db_pool_min_size,
            pool_max_size=self.db_pool_max_size,
            pool_timeout_s=self.db_pool_timeout_s,
            statement_timeout_ms=self.db_statement_timeout_ms,
        )

    def search_config(self) -> SearchConfig:
        return SearchConfig(
            hosts=tuple(self.search_host_list()),
            index=self.search_index,
            username=self.search_username,
            password=self.search_password,
            verify_certs=self.search_verify_certs,
            request_timeout_s=self.search_request_timeout_s,
            refresh=self.search_refresh,
            exact_total_hits=self.search_exact_total_hits,
            total_hits_bound=self.search_total_hits_bound,
        )

    def query_config(self) -> QueryConfig:
        return QueryConfig(
            default_page_size=self.page_size_default,
            max_page_size=self.page_size_max,
            max_result_window=self.max_result_window,
            match_mode=self.match_mode,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=self.index_retry_attempts,
            backoff_s=self.index_retry_backoff_s,
            max_backoff_s=self.index_retry_max_backoff_s,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "MatchMode",
    "QueryConfig",
    "RetryPolicy",
    "SearchConfig",
    "Settings",
    "StoreConfig",
    "get_settings",
]
