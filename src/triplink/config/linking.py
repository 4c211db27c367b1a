"""Limits for link graph scans and orphan reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_int_env

DEFAULT_SUMMARY_SAFETY_LIMIT = 10_000
DEFAULT_ORPHAN_DELETE_BATCH_SIZE = 500


@dataclass(frozen=True, slots=True)
class LinkGraphConfig:
    summary_safety_limit: int = DEFAULT_SUMMARY_SAFETY_LIMIT
    orphan_delete_batch_size: int = DEFAULT_ORPHAN_DELETE_BATCH_SIZE


def get_link_graph_config() -> LinkGraphConfig:
    return LinkGraphConfig(
        summary_safety_limit=positive_int_env(
            "TRIPLINK_SUMMARY_SAFETY_LIMIT", DEFAULT_SUMMARY_SAFETY_LIMIT
        ),
        orphan_delete_batch_size=positive_int_env(
            "TRIPLINK_ORPHAN_DELETE_BATCH_SIZE", DEFAULT_ORPHAN_DELETE_BATCH_SIZE
        ),
    )
