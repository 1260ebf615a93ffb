"""
Pipeline stage handlers.

Each handler owns one hop of the fixed pipeline and is bound to its queue by
``apps.orchestration.runner.PipelineRunner``.
"""

from apps.orchestration.handlers.base import StageHandler
from apps.orchestration.handlers.enrichment import EnrichmentHandler, SimulatedEnricher
from apps.orchestration.handlers.finalization import FinalizationHandler
from apps.orchestration.handlers.processing import ProcessingHandler

# Registry of stage handlers by stage name
_STAGE_HANDLERS: dict[str, type[StageHandler]] = {}


def register_stage_handler(stage: str, handler_class: type[StageHandler]) -> None:
    """Register a handler class for a stage."""
    _STAGE_HANDLERS[stage] = handler_class


def get_stage_handler_class(stage: str) -> type[StageHandler]:
    """
    Get a stage handler class by stage name.

    Raises:
        KeyError: If the stage is not registered.
    """
    if stage not in _STAGE_HANDLERS:
        raise KeyError(f"Unknown stage: {stage}. Available: {list(_STAGE_HANDLERS.keys())}")
    return _STAGE_HANDLERS[stage]


def list_stages() -> list[str]:
    """List all registered stages in pipeline order."""
    return list(_STAGE_HANDLERS.keys())


register_stage_handler(ProcessingHandler.stage, ProcessingHandler)
register_stage_handler(EnrichmentHandler.stage, EnrichmentHandler)
register_stage_handler(FinalizationHandler.stage, FinalizationHandler)


__all__ = [
    "EnrichmentHandler",
    "FinalizationHandler",
    "ProcessingHandler",
    "SimulatedEnricher",
    "StageHandler",
    "get_stage_handler_class",
    "list_stages",
    "register_stage_handler",
]
