import logging
from pathlib import Path

from qnnconv.config import ConversionJob, format_percentile
from qnnconv.util.log import NOTE, SUCCESS


_RULE = "=" * 42


def report_configuration(job: ConversionJob, log: logging.Logger) -> None:
    log.info(_RULE, extra=NOTE)
    log.info("QNN ONNX to HTP FP16 Model Conversion", extra=NOTE)
    log.info("with is_symmetric=true", extra=NOTE)
    log.info(_RULE, extra=NOTE)

    rows = [
        ("Input ONNX Model", job.input_model),
        ("Output Directory", job.output_dir),
        ("Model Name", job.model_name),
        ("QNN SDK Root", job.sdk_root),
        ("Converter Tool", job.converter),
        ("Generator Tool", job.generator),
        ("Target Platform", job.target),
        ("Backend", "HTP"),
        ("Precision", "FP16"),
        ("Symmetric", "true"),
    ]
    if job.quant.per_channel:
        rows.append(("Per-Channel Quant", "Enabled"))
    if job.quant.percentile is not None:
        rows.append(("Percentile Calibration", format_percentile(job.quant.percentile)))
    if job.quant.input_list is not None:
        rows.append(("Input List", job.quant.input_list))
    if job.op_packages:
        rows.append(("Op Packages", job.op_packages))

    width = max(len(k) for k, _ in rows) + 2
    for key, value in rows:
        log.info("%s %s", f"{key}:".ljust(width), value)
    log.info("")


def run_instructions(job: ConversionJob, library: Path | None = None) -> list[str]:
    if job.is_android:
        lib = job.expected_library
        return [
            "  1. Push the model library to Android device:",
            f"     adb push {lib} /data/local/tmp/",
            "  2. Run on device using qnn-net-run:",
            "     adb shell /data/local/tmp/qnn-net-run --backend libQnnHtp.so "
            "--model /data/local/tmp/libqnn_model.so --input_list <input_list.txt>",
        ]
    model = str(library) if library is not None else "<path_to_libqnn_model.so>"
    return [f"  qnn-net-run --backend libQnnHtp.so --model {model} --input_list <input_list.txt>"]


def report_summary(job: ConversionJob, log: logging.Logger, *, library: Path | None = None) -> None:
    log.info("")
    log.info(_RULE, extra=SUCCESS)
    log.info("Conversion completed successfully!", extra=SUCCESS)
    log.info(_RULE, extra=SUCCESS)
    log.info("Output directory: %s", job.output_dir, extra=NOTE)
    log.info("Model library location: %s/", job.target_libs_dir, extra=NOTE)
    log.info("")
    log.info("Quantization settings:", extra=NOTE)
    log.info("  - Precision: FP16", extra=NOTE)
    log.info("  - is_symmetric: True", extra=NOTE)
    if job.quant.per_channel:
        log.info("  - Per-channel quantization: Enabled", extra=NOTE)
    if job.quant.percentile is not None:
        log.info("  - Percentile calibration: %s", format_percentile(job.quant.percentile), extra=NOTE)
    log.info("")
    log.info("To run the model on %s:", "Android device" if job.is_android else job.target, extra=NOTE)
    for line in run_instructions(job, library):
        log.info(line, extra=NOTE)
    log.info("Done!", extra=SUCCESS)
