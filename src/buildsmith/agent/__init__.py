from buildsmith.agent.orchestrator import GenerationOrchestrator
from buildsmith.agent.planner import ProjectPlanner
from buildsmith.agent.quality_validator import QualityValidator, ValidationContext, ValidationReport
from buildsmith.agent.state import GenerationPlan, GenerationResult

__all__ = [
    "GenerationOrchestrator",
    "GenerationPlan",
    "GenerationResult",
    "ProjectPlanner",
    "QualityValidator",
    "ValidationContext",
    "ValidationReport",
]
