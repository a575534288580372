"""
OpenSearch client factory for Record Search.

OpenSearch (v2+) shares the Elasticsearch query DSL; the synchronous
``opensearch-py`` client is thread-safe and reused across requests.
"""

from __future__ import annotations

from typing import Any, Dict

from opensearchpy import OpenSearch

from recordsearch.config import SearchConfig
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)


def create_search_client(config: SearchConfig, **kwargs: Any) -> OpenSearch:
    """
    Build an ``OpenSearch`` client from explicit configuration.

    Extra keyword arguments are forwarded to the client constructor.
    """
    client_kwargs: Dict[str, Any] = {
        "hosts": list(config.hosts),
        "verify_certs": config.verify_certs,
        "ssl_show_warn": False,
        "timeout": config.request_timeout_s,
    }
    if config.username and config.password:
        client_kwargs["http_auth"] = (config.username, config.password)
    client_kwargs.update(kwargs)

    log.debug("Creating OpenSearch client", extra={"hosts": list(config.hosts), "index": config.index})
    return OpenSearch(**client_kwargs)


__all__ = ["create_search_client"]
