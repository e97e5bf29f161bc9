"""Policy artifact generators."""

from .artifacts import generate_all, render_all
from .naming import pool_name, source_name
from .policy_lua import generate_init_lua
from .toml_files import (
    generate_dkim_data,
    generate_listener_domains,
    generate_queues,
    generate_sources,
)


__all__ = [
    "generate_all",
    "render_all",
    "pool_name",
    "source_name",
    "generate_init_lua",
    "generate_dkim_data",
    "generate_listener_domains",
    "generate_queues",
    "generate_sources",
]
