"""Print job orchestration"""

from storyprint.production.models import ConversionArtifactSet, PrintJobRequest, PrintJobResult
from storyprint.production.service import PrintProductionService

__all__ = [
    "ConversionArtifactSet",
    "PrintJobRequest",
    "PrintJobResult",
    "PrintProductionService",
]
