"""Harvest v2 REST API access."""

from harvest_mcp.harvest.client import HarvestClient
from harvest_mcp.harvest.models import (
    ProjectAssignment,
    ResponseDecodeError,
    TaskAssignment,
    TimeEntry,
)
from harvest_mcp.harvest.pagination import collect_pages

__all__ = [
    "HarvestClient",
    "ProjectAssignment",
    "ResponseDecodeError",
    "TaskAssignment",
    "TimeEntry",
    "collect_pages",
]
