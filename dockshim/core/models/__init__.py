"""
Domain models — Pydantic types for execution results and records.

All models are re-exported here for convenient access:

    from dockshim.core.models import ExecutionResult, ContainerRecord, Settings
"""

from dockshim.core.models.execution import ExecutionResult, Invocation, OutputLine
from dockshim.core.models.records import (
    BuilderStatus,
    ContainerRecord,
    ImageRecord,
    SystemStatus,
)
from dockshim.core.models.settings import Settings

__all__ = [
    # records.py
    "BuilderStatus",
    "ContainerRecord",
    # execution.py
    "ExecutionResult",
    "ImageRecord",
    "Invocation",
    "OutputLine",
    # settings.py
    "Settings",
    "SystemStatus",
]
