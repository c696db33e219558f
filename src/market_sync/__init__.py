"""Market dashboard data-synchronization layer."""

import os
from importlib.metadata import PackageNotFoundError, version


def get_server_version() -> str:
    """SERVER_VERSION env override, then the installed distribution, then "dev"."""
    override = os.environ.get("SERVER_VERSION")
    if override:
        return override
    try:
        return version("market-sync")
    except PackageNotFoundError:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when tool output schema changes materially
# v1: Initial schema
# v2: history_source on stock snapshots; unread/online on the dashboard;
#     market_state/generated_at in meta
SCHEMA_VERSION = "2"
