"""Task scheduling suggestion engine."""
from app.services.scheduling.service import SchedulingDataError, analyze, generate_suggestions

__all__ = ["SchedulingDataError", "analyze", "generate_suggestions"]
