"""Services composed from the data layer and the source adapters."""

from market_sync.services.aggregator import DataAggregator
from market_sync.services.chat import ChatService
from market_sync.services.connectivity import ConnectivityMonitor
from market_sync.services.container import Services, build_services
from market_sync.services.scheduler import PollingScheduler, SchedulerState
from market_sync.services.state import DashboardState, apply_poll_result, mark_news_seen
from market_sync.services.unread import UnreadTracker, compute_unread

__all__ = [
    "ChatService",
    "ConnectivityMonitor",
    "DashboardState",
    "DataAggregator",
    "PollingScheduler",
    "SchedulerState",
    "Services",
    "UnreadTracker",
    "apply_poll_result",
    "build_services",
    "compute_unread",
    "mark_news_seen",
]
