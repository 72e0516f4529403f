import logging
from dataclasses import dataclass
from pathlib import Path

from qnnconv.config import ConversionJob
from qnnconv.errors import OutputMissing
from qnnconv.util.fs import find_first
from qnnconv.util.log import NOTE, STEP, SUCCESS
from qnnconv.util.processes import render_argv, run_tool, tool_argv


@dataclass(frozen=True, slots=True)
class ConvertOutputs:
    cpp: Path
    bin: Path | None
    net_json: Path | None


class ConverterRunner:
    """Step 1: ONNX model -> QNN model source (.cpp) plus weights (.bin)."""

    name = "qnn-onnx-converter"

    def __init__(self, *, job: ConversionJob, log: logging.Logger):
        self.job = job
        self.log = log

    def build_argv(self, overrides_path: Path) -> list[str]:
        job = self.job
        argv = tool_argv(job.converter) + [
            "--input_network",
            str(job.input_model),
            "--output_path",
            str(job.cpp_path),
            "--quantization_overrides",
            str(overrides_path),
        ]
        if job.quant.input_list is not None:
            argv += ["--input_list", str(job.quant.input_list)]
        if job.quant.per_channel:
            argv.append("--use_per_channel_quantization")
        if job.op_packages:
            argv += ["--op_packages", job.op_packages]
        return argv

    def run(self, *, overrides_path: Path, overrides_text: str = "") -> ConvertOutputs:
        job = self.job
        self.log.info(
            "Step 1: Converting ONNX model to QNN format (FP16 for HTP with is_symmetric=true)...",
            extra=STEP,
        )
        if job.quant.percentile is not None and job.quant.input_list is None:
            self.log.info(
                "Note: Percentile calibration typically requires --input-list for proper calibration.",
                extra=NOTE,
            )

        argv = self.build_argv(overrides_path)
        if job.verbose:
            self.log.info("Executing command:", extra=NOTE)
            self.log.info(render_argv(argv))
            self.log.info("")
            self.log.info("Quantization overrides JSON content:", extra=NOTE)
            self.log.info(overrides_text.rstrip("\n"))
            self.log.info("")

        run_tool(self.name, argv, log=self.log, failure="ONNX to QNN conversion failed!")
        self.log.info("ONNX to QNN conversion completed successfully!", extra=SUCCESS)
        return self.collect_outputs()

    def collect_outputs(self) -> ConvertOutputs:
        job = self.job
        if not job.cpp_path.is_file():
            raise OutputMissing(job.cpp_path)

        # The converter may name the weights file differently; any .bin will do.
        bin_file = find_first(job.output_dir, "*.bin")
        net_json = job.net_json_path if job.net_json_path.is_file() else None

        self.log.info("Generated files:", extra=NOTE)
        for p in (job.cpp_path, bin_file, net_json):
            if p is not None:
                self.log.info("  - %s", p)
        return ConvertOutputs(cpp=job.cpp_path, bin=bin_file, net_json=net_json)
