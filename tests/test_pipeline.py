import logging

from qnnconv.config import ConversionJob, QuantOptions
from qnnconv.pipeline import Pipeline


def _job(sdk, model, out, **kw):
    return ConversionJob(
        input_model=model,
        sdk_root=sdk.root,
        converter=sdk.converter,
        generator=sdk.generator,
        output_dir=out,
        **kw,
    )


def test_result_lists_artifacts(tmp_path, make_sdk, model, overrides_tmp):
    sdk = make_sdk()
    out = tmp_path / "out"
    out.mkdir()
    result = Pipeline(job=_job(sdk, model, out), log=logging.getLogger("qnnconv.tests"), tmp_dir=overrides_tmp).run()
    assert result.outputs.cpp == out / "qnn_model.cpp"
    assert result.outputs.bin == out / "qnn_model.bin"
    assert result.outputs.net_json is None
    assert result.library == out / "model_libs" / "aarch64-android" / "libqnn_model.so"
    assert result.overrides_path is None


def test_result_keeps_overrides_path_without_cleanup(tmp_path, make_sdk, model, overrides_tmp):
    sdk = make_sdk()
    out = tmp_path / "out"
    out.mkdir()
    job = _job(sdk, model, out, cleanup=False, quant=QuantOptions(per_channel=True))
    result = Pipeline(job=job, log=logging.getLogger("qnnconv.tests"), tmp_dir=overrides_tmp).run()
    assert result.overrides_path is not None
    assert result.overrides_path.is_file()
    assert list(overrides_tmp.iterdir()) == [result.overrides_path]
