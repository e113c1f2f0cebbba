"""Intake pipeline lifespan event."""

from app.core.lifespan import BaseEvent
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.intake.pipeline import IntakePipeline


class PipelineEvent(BaseEvent[IntakePipeline]):
    """Builds the intake pipeline once, before any request is accepted."""

    name = "pipeline"

    async def startup(self) -> IntakePipeline:
        pipeline = IntakePipeline.from_settings(st)
        logger.info(
            "Intake pipeline ready",
            icon=LogIcon.VALIDATION,
            field=pipeline.receiver.field,
            max_file_size=pipeline.receiver.max_file_size,
            allowed=len(pipeline.gate.allowed),
            signatures=len(pipeline.sniffer.signatures),
        )
        return pipeline
