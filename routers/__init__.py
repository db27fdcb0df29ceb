"""Routers package."""

from . import (
    comments,
    dashboard,
    healthcheck,
    likes,
    playlists,
    subscriptions,
    tweets,
    users,
    videos,
)
