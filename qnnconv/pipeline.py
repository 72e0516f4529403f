import logging
from dataclasses import dataclass
from pathlib import Path

from qnnconv.components.converter import ConverterRunner, ConvertOutputs
from qnnconv.components.generator import LibGeneratorRunner
from qnnconv.components.overrides import QuantOverridesFile
from qnnconv.components.summary import report_configuration, report_summary
from qnnconv.config import ConversionJob


@dataclass(frozen=True, slots=True)
class PipelineResult:
    outputs: ConvertOutputs
    library: Path | None
    overrides_path: Path | None


class Pipeline:
    """
    convert -> generate, strictly in order. Any ConversionError raised by a step
    propagates after the overrides file has been released.
    """

    def __init__(self, *, job: ConversionJob, log: logging.Logger, tmp_dir: Path | None = None):
        self.job = job
        self.log = log
        self.tmp_dir = tmp_dir
        self.converter = ConverterRunner(job=job, log=log)
        self.generator = LibGeneratorRunner(job=job, log=log)

    def run(self) -> PipelineResult:
        job = self.job
        report_configuration(job, self.log)

        with QuantOverridesFile(job.quant, cleanup=job.cleanup, log=self.log, tmp_dir=self.tmp_dir) as overrides:
            outputs = self.converter.run(overrides_path=overrides.path, overrides_text=overrides.text)
            self.log.info("")
            library = self.generator.run(outputs)

        report_summary(job, self.log, library=library)
        return PipelineResult(
            outputs=outputs,
            library=library,
            overrides_path=None if job.cleanup else overrides.path,
        )
