"""cruiser - Minimal framework-agnostic application state store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycruiser")
except PackageNotFoundError:
    __version__ = "0+local"
from cruiser.config import StoreOptions
from cruiser.exceptions import (
    CruiserError,
    InvalidArgumentError,
    InvalidMiddlewareError,
    NonObjectResultError,
    SchedulerUnavailableError,
)
from cruiser.scheduling import AsyncioScheduler, ManualScheduler, Scheduler
from cruiser.state.middleware import MiddlewareChain, compose, is_object_shaped
from cruiser.state.store import Store, create_store
from cruiser.state.subscribers import SubscriberRegistry

__all__ = [
    "__version__",
    "AsyncioScheduler",
    "CruiserError",
    "InvalidArgumentError",
    "InvalidMiddlewareError",
    "ManualScheduler",
    "MiddlewareChain",
    "NonObjectResultError",
    "Scheduler",
    "SchedulerUnavailableError",
    "Store",
    "StoreOptions",
    "SubscriberRegistry",
    "compose",
    "create_store",
    "is_object_shaped",
]
