from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from .rows import Row
from .sinks import OutputSink, audio_filename
from .synthesizer import SpeechSynthesizer

logger = logging.getLogger(__name__)

__all__ = ["ExportSummary", "run_export"]


@dataclass
class ExportSummary:
    stored: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.stored)


def run_export(
    rows: Iterable[Row],
    sink: OutputSink,
    synthesizer: SpeechSynthesizer,
) -> ExportSummary:
    """
    Synthesize and store each row in order.

    Rows are handled one at a time. The first synthesis or storage failure is
    re-raised and no further rows are touched; clips already stored stay where
    they are.
    """
    summary = ExportSummary()
    for row in rows:
        name = audio_filename(row.id)
        try:
            audio = synthesizer.synthesize(row.text)
            sink.store(audio, name)
        except Exception:
            logger.error(
                "Export stopped at row %s after %d stored clips.", row.id, summary.count
            )
            raise
        summary.stored.append(name)
        logger.debug("Exported row %s to %s (%d bytes)", row.id, sink.describe(name), len(audio))

    logger.info("Exported %d clips using %s", summary.count, synthesizer.descriptor())
    return summary
