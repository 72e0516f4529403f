import argparse
import sys
from pathlib import Path
from typing import TextIO

from qnnconv.config import DEFAULT_MODEL_NAME, DEFAULT_OUTPUT_DIR, DEFAULT_TARGET, ConfigResolver
from qnnconv.errors import ConversionError
from qnnconv.pipeline import Pipeline
from qnnconv.util.log import open_console_log


_EXAMPLES = """\
Example:
  qnnconv -i model.onnx -o ./models -n my_model
  qnnconv -i model.onnx -s /path/to/qnn/sdk
  qnnconv -i model.onnx --per-channel --percentile 99.99 --input-list input_list.txt
  qnnconv -i model.onnx -t x86_64-linux-clang  # For x86_64 target
"""


class _ArgumentParser(argparse.ArgumentParser):
    # Usage errors share the exit status of every other validation failure.
    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"ERROR: {message}\n")


class App:
    def build_parser(self) -> argparse.ArgumentParser:
        p = _ArgumentParser(
            prog="qnnconv",
            description=(
                "Convert ONNX model to QNN FP16 format for HTP devices (Android)\n"
                "with is_symmetric=true, percentile quantization, and per-channel quantization"
            ),
            epilog=_EXAMPLES,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        p.add_argument("-i", "--input", metavar="PATH", help="Input ONNX model file path (required)")
        p.add_argument("-o", "--output-dir", metavar="PATH", default=str(DEFAULT_OUTPUT_DIR), help="Output directory for QNN model files (default: ./output)")
        p.add_argument("-n", "--model-name", metavar="NAME", default=DEFAULT_MODEL_NAME, help=f"Base name for output model files (default: {DEFAULT_MODEL_NAME})")
        p.add_argument("-s", "--sdk-root", metavar="PATH", default=None, help="QNN SDK root directory (default: $QNN_SDK_ROOT env var)")
        p.add_argument("-c", "--converter", metavar="PATH", default=None, help="Path to qnn-onnx-converter tool (default: ${QNN_SDK_ROOT}/bin/x86_64-linux-clang/qnn-onnx-converter)")
        p.add_argument("-g", "--generator", metavar="PATH", default=None, help="Path to qnn-model-lib-generator tool (default: ${QNN_SDK_ROOT}/bin/x86_64-linux-clang/qnn-model-lib-generator)")
        p.add_argument("-t", "--target", metavar="TARGET", default=DEFAULT_TARGET, help=f"Target platform (default: {DEFAULT_TARGET}); e.g. aarch64-android, x86_64-linux-clang")
        p.add_argument("-p", "--op-packages", metavar="PATHS", default=None, help="Comma-separated list of op package paths")
        p.add_argument("--input-list", metavar="PATH", default=None, help="Path to input list file for quantization calibration")
        p.add_argument("--per-channel", action="store_true", help="Enable per-channel quantization for convolution weights")
        p.add_argument("--percentile", metavar="VALUE", default=None, help="Percentile calibration value (e.g., 99.99)")
        p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
        p.add_argument("--no-cleanup", action="store_true", help="Keep temporary files after conversion")
        p.add_argument("--log-file", metavar="PATH", default=None, help="Also append timestamped log records to this file")
        return p

    def run(
        self,
        argv: list[str] | None = None,
        *,
        env: dict[str, str] | None = None,
        search_root: Path | None = None,
        tmp_dir: Path | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> int:
        args = self.build_parser().parse_args(argv)

        console = open_console_log(
            verbose=args.verbose,
            log_file=Path(args.log_file).expanduser() if args.log_file else None,
            stdout=stdout,
            stderr=stderr,
        )
        log = console.logger
        try:
            job = ConfigResolver(env=env, search_root=search_root, log=log).resolve(args)
            Pipeline(job=job, log=log, tmp_dir=tmp_dir).run()
            return 0
        except ConversionError as e:
            log.error("%s", e.message)
            return e.exit_code
        except KeyboardInterrupt:
            log.error("interrupted")
            return 130
        finally:
            console.close()


def main(argv: list[str] | None = None) -> int:
    return App().run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
