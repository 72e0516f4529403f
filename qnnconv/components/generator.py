import logging
from pathlib import Path

from qnnconv.components.converter import ConvertOutputs
from qnnconv.config import ConversionJob
from qnnconv.errors import ConfigError
from qnnconv.util.fs import ensure_dir, file_size, find_first
from qnnconv.util.log import NOTE, STEP, SUCCESS
from qnnconv.util.processes import render_argv, run_tool, tool_argv


class LibGeneratorRunner:
    """Step 2: model source + weights -> shared library for the target platform."""

    name = "qnn-model-lib-generator"

    def __init__(self, *, job: ConversionJob, log: logging.Logger):
        self.job = job
        self.log = log

    def build_argv(self, outputs: ConvertOutputs) -> list[str]:
        job = self.job
        argv = tool_argv(job.generator) + ["-c", str(outputs.cpp)]
        if outputs.bin is not None:
            argv += ["-b", str(outputs.bin)]
        argv += ["-o", str(job.model_libs_dir), "-t", job.target]
        return argv

    def run(self, outputs: ConvertOutputs) -> Path | None:
        job = self.job
        self.log.info("Step 2: Generating QNN model library...", extra=STEP)
        if outputs.bin is None:
            self.log.info("No .bin file found, generating library without binary weights...", extra=NOTE)

        try:
            ensure_dir(job.model_libs_dir)
        except OSError as e:
            raise ConfigError(f"Failed to create model library directory: {job.model_libs_dir} ({e})") from e
        argv = self.build_argv(outputs)
        if job.verbose:
            self.log.info("Executing command:", extra=NOTE)
            self.log.info(render_argv(argv))
            self.log.info("")

        run_tool(self.name, argv, log=self.log, failure="Model library generation failed!")
        self.log.info("Model library generation completed successfully!", extra=SUCCESS)
        return self.locate_library()

    def locate_library(self) -> Path | None:
        """
        The conventional `<model_libs>/<target>/libqnn_model.so`, else the first
        `.so` anywhere under model_libs. A miss is only a warning.
        """
        lib = self.job.expected_library
        if not lib.is_file():
            lib = find_first(self.job.model_libs_dir, "*.so")
        if lib is None:
            self.log.warning("Model library generation completed, but .so file location may vary.")
            return None
        self.log.info("Model library created: %s", lib, extra=SUCCESS)
        self.log.info("Library size: %s", file_size(lib), extra=NOTE)
        return lib
