"""
Admission control for outbound catalog requests.
"""

from movie_curator.dispatch.dispatcher import (
    AuthorizationError,
    DispatchEvent,
    DispatcherConfig,
    DispatcherState,
    DispatcherStatus,
    InvalidTransitionError,
    RequestDispatcher,
    WindowState,
    classify_failure,
    next_state,
)

__all__ = [
    "AuthorizationError",
    "DispatchEvent",
    "DispatcherConfig",
    "DispatcherState",
    "DispatcherStatus",
    "InvalidTransitionError",
    "RequestDispatcher",
    "WindowState",
    "classify_failure",
    "next_state",
]
