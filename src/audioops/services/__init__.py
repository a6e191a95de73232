"""Services layer for engine orchestration."""

from audioops.services.batch import BatchOrchestrator
from audioops.services.engine_lifecycle import EngineHandle, EngineLifecycleService
from audioops.services.executor import OperationExecutor
from audioops.services.progress import EngineLogCollector, ProgressTranslator

__all__ = [
    "BatchOrchestrator",
    "EngineHandle",
    "EngineLifecycleService",
    "EngineLogCollector",
    "OperationExecutor",
    "ProgressTranslator",
]
