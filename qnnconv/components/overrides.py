import json
import logging
import os
import tempfile
from pathlib import Path

from qnnconv.config import QuantOptions
from qnnconv.errors import ConfigError
from qnnconv.util.log import NOTE


TEMP_PREFIX = "qnn_quant_overrides_symmetric_"
QUANT_SCHEME = "float16"


def render_overrides(*, per_channel: bool = False, percentile: float | None = None) -> dict:
    """
    Quantization overrides for an FP16 HTP model.

    `is_symmetric` is always true. Percentile calibration and per-channel weights
    only add their keys when requested.
    """
    activation = {
        "quantization_scheme": QUANT_SCHEME,
        "is_symmetric": True,
    }
    if percentile is not None:
        activation["calibration_method"] = "percentile"
        activation["percentile_value"] = percentile

    weight = {
        "quantization_scheme": QUANT_SCHEME,
        "is_symmetric": True,
    }
    if per_channel:
        weight["per_channel_quantization"] = True

    return {
        "default_activation_quantization": activation,
        "default_weight_quantization": weight,
        "activation_encodings": {},
        "param_encodings": {},
    }


def dumps_overrides(doc: dict) -> str:
    return json.dumps(doc, indent=2) + "\n"


class QuantOverridesFile:
    """
    Owns the temporary overrides JSON for one run.

    Used as a context manager: the file is written on enter and removed on exit
    (success, failure or interrupt) unless cleanup is disabled, in which case its
    path is reported instead.
    """

    def __init__(self, quant: QuantOptions, *, cleanup: bool = True, log: logging.Logger | None = None, tmp_dir: Path | None = None):
        self.quant = quant
        self.cleanup = cleanup
        self.log = log or logging.getLogger("qnnconv")
        self.tmp_dir = tmp_dir
        self.path: Path | None = None
        self.text: str = ""

    def write(self) -> Path:
        doc = render_overrides(per_channel=self.quant.per_channel, percentile=self.quant.percentile)
        self.text = dumps_overrides(doc)
        try:
            fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".json", dir=self.tmp_dir)
            self.path = Path(name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.text)
        except OSError as e:
            if self.path is not None:
                self.path.unlink(missing_ok=True)
                self.path = None
            raise ConfigError(f"Failed to write quantization overrides file ({e})") from e
        return self.path

    def release(self) -> None:
        if self.path is None:
            return
        if self.cleanup:
            self.path.unlink(missing_ok=True)
        else:
            self.log.info("Quantization overrides file kept at: %s", self.path, extra=NOTE)

    def __enter__(self) -> "QuantOverridesFile":
        self.write()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
