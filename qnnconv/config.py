import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from qnnconv.errors import ConfigError
from qnnconv.util.log import NOTE
from qnnconv.util.processes import resolve_tool


DEFAULT_OUTPUT_DIR = Path("./output")
DEFAULT_MODEL_NAME = "qnn_model"
DEFAULT_TARGET = "aarch64-android"
ANDROID_TARGET = "aarch64-android"

SDK_ENV_VAR = "QNN_SDK_ROOT"
# Host tools live under <sdk>/bin/x86_64-linux-clang; also the marker for auto-detection.
HOST_TOOLS_DIR = Path("bin") / "x86_64-linux-clang"
CONVERTER_TOOL = "qnn-onnx-converter"
GENERATOR_TOOL = "qnn-model-lib-generator"

MODEL_LIBS_DIRNAME = "model_libs"
MODEL_LIB_NAME = "libqnn_model.so"

# Root of the checkout / install that holds the `qnnconv` package.
ORCHESTRATOR_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True, slots=True)
class QuantOptions:
    per_channel: bool = False
    percentile: float | None = None
    input_list: Path | None = None

    # Symmetric encodings are a fixed policy of this tool.
    @property
    def symmetric(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ConversionJob:
    input_model: Path
    sdk_root: Path
    converter: Path
    generator: Path
    output_dir: Path = DEFAULT_OUTPUT_DIR
    model_name: str = DEFAULT_MODEL_NAME
    target: str = DEFAULT_TARGET
    op_packages: str | None = None
    quant: QuantOptions = field(default_factory=QuantOptions)
    verbose: bool = False
    cleanup: bool = True

    # -------- Derived paths (read-only) --------
    @property
    def cpp_path(self) -> Path:
        return self.output_dir / f"{self.model_name}.cpp"

    @property
    def net_json_path(self) -> Path:
        return self.output_dir / f"{self.model_name}_net.json"

    @property
    def model_libs_dir(self) -> Path:
        return self.output_dir / MODEL_LIBS_DIRNAME

    @property
    def target_libs_dir(self) -> Path:
        return self.model_libs_dir / self.target

    @property
    def expected_library(self) -> Path:
        return self.target_libs_dir / MODEL_LIB_NAME

    @property
    def is_android(self) -> bool:
        return self.target == ANDROID_TARGET


def _path_arg(s: str | None) -> Path | None:
    if not s:
        return None
    return Path(os.path.expanduser(s))


def parse_percentile(raw: str | None) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        if "_" in raw:
            raise ValueError(raw)
        value = float(raw)
    except ValueError:
        raise ConfigError(f"Invalid percentile value: {raw!r} (expected a decimal number, e.g. 99.99)") from None
    if not math.isfinite(value):
        raise ConfigError(f"Invalid percentile value: {raw!r} (expected a decimal number, e.g. 99.99)")
    return value


def format_percentile(value: float) -> str:
    """99.99 -> "99.99", 100.0 -> "100"."""
    text = repr(value)
    return text[:-2] if text.endswith(".0") else text


class ConfigResolver:
    """
    Turns parsed CLI options into a fully validated `ConversionJob`.

    `env` and `search_root` default to the process environment and the
    orchestrator's own install root; both are injectable for tests.
    """

    def __init__(
        self,
        *,
        env: dict[str, str] | None = None,
        search_root: Path | None = None,
        log: logging.Logger | None = None,
    ):
        self.env = os.environ if env is None else env
        self.search_root = search_root or ORCHESTRATOR_ROOT
        self.log = log or logging.getLogger("qnnconv")

    def resolve(self, args) -> ConversionJob:
        input_model = _path_arg(getattr(args, "input", None))
        if input_model is None:
            raise ConfigError("Input ONNX model path is required. Use -i or --input option.")
        if not input_model.is_file():
            raise ConfigError(f"Input ONNX model file not found: {input_model}")

        sdk_root = self.resolve_sdk_root(getattr(args, "sdk_root", None))

        converter = self._resolve_tool(
            getattr(args, "converter", None), sdk_root / HOST_TOOLS_DIR / CONVERTER_TOOL, CONVERTER_TOOL, "-c"
        )
        generator = self._resolve_tool(
            getattr(args, "generator", None), sdk_root / HOST_TOOLS_DIR / GENERATOR_TOOL, GENERATOR_TOOL, "-g"
        )

        input_list = _path_arg(getattr(args, "input_list", None))
        if input_list is not None and not input_list.is_file():
            raise ConfigError(f"Input list file not found: {input_list}")

        percentile = parse_percentile(getattr(args, "percentile", None))

        output_dir = _path_arg(getattr(args, "output_dir", None)) or DEFAULT_OUTPUT_DIR
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create output directory: {output_dir} ({e})") from e

        job = ConversionJob(
            input_model=input_model,
            sdk_root=sdk_root,
            converter=converter,
            generator=generator,
            output_dir=output_dir,
            model_name=getattr(args, "model_name", None) or DEFAULT_MODEL_NAME,
            target=getattr(args, "target", None) or DEFAULT_TARGET,
            op_packages=getattr(args, "op_packages", None) or None,
            quant=QuantOptions(
                per_channel=bool(getattr(args, "per_channel", False)),
                percentile=percentile,
                input_list=input_list,
            ),
            verbose=bool(getattr(args, "verbose", False)),
            cleanup=not bool(getattr(args, "no_cleanup", False)),
        )
        self.log.debug("resolved job: %s", job)
        return job

    def resolve_sdk_root(self, explicit: str | None) -> Path:
        sdk = _path_arg(explicit) or _path_arg(self.env.get(SDK_ENV_VAR))
        if sdk is not None:
            return sdk
        if (self.search_root / HOST_TOOLS_DIR).is_dir():
            self.log.info("Auto-detected %s: %s", SDK_ENV_VAR, self.search_root, extra=NOTE)
            return self.search_root
        raise ConfigError(
            f"{SDK_ENV_VAR} not set and cannot be auto-detected. "
            f"Please set -s option or {SDK_ENV_VAR} environment variable."
        )

    @staticmethod
    def _resolve_tool(explicit: str | None, default: Path, name: str, flag: str) -> Path:
        candidate = explicit or str(default)
        found = resolve_tool(os.path.expanduser(candidate))
        if found is None:
            raise ConfigError(
                f"{name} tool not found: {candidate}\n"
                f"Please ensure the tool exists or specify the full path with {flag} option"
            )
        return found
