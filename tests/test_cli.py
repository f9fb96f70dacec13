import json

import pytest
from aioresponses import aioresponses
from typer.testing import CliRunner

from grib_fetch.cli.app import app

from .conftest import GRIB_URL, IDX_URL, SAMPLE_IDX, make_grib_bytes, range_callback

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "idx_url": IDX_URL,
                "parameters": {"TMP": ["850 mb"], "UGRD": []},
                "output_dir": str(tmp_path / "out"),
            }
        )
    )
    return path


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "grib-fetch" in result.output


def test_validate_ok(config_file):
    result = runner.invoke(app, ["validate", str(config_file)])
    assert result.exit_code == 0
    assert "Validated Settings" in result.output


def test_validate_invalid(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"idx_url": "http://x/file.grib2", "parameters": {}}))
    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1


def test_init_writes_config(tmp_path):
    path = tmp_path / "config.json"
    result = runner.invoke(app, ["init", str(path), IDX_URL])
    assert result.exit_code == 0
    assert json.loads(path.read_text())["idx_url"] == IDX_URL


def test_inventory_local_file(tmp_path):
    path = tmp_path / "sample.idx"
    path.write_text(SAMPLE_IDX)
    result = runner.invoke(app, ["inventory", str(path), "--param", "TMP"])
    assert result.exit_code == 0
    assert "850 mb" in result.output
    assert "PRMSL" not in result.output


def test_inventory_remote(tmp_path):
    with aioresponses() as mock:
        mock.get(IDX_URL, status=200, body=SAMPLE_IDX)
        result = runner.invoke(app, ["inventory", IDX_URL])
    assert result.exit_code == 0
    assert "VGRD" in result.output


def test_dry_run_prints_plan_without_writing(tmp_path, config_file):
    with aioresponses() as mock:
        mock.get(IDX_URL, status=200, body=SAMPLE_IDX)
        result = runner.invoke(app, ["download", str(config_file), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "2600" in result.output
    assert "Total download size" in result.output
    assert not (tmp_path / "out").exists()


def test_download_end_to_end(tmp_path, config_file):
    data = make_grib_bytes(4000)
    with aioresponses() as mock:
        mock.get(IDX_URL, status=200, body=SAMPLE_IDX)
        mock.get(GRIB_URL, callback=range_callback(data), repeat=True)
        result = runner.invoke(app, ["download", str(config_file), "--keep-index"])

    assert result.exit_code == 0, result.output
    grib = (tmp_path / "out" / "gfs.t00z.pgrb2.0p25.f000").read_bytes()
    # TMP 850 mb is 2600-3499, UGRD is 3500-4199, merged into one range.
    assert len(grib) == 4200
    assert grib[2600:4000] == data[2600:4000]
    assert grib[:2600] == b"\x00" * 2600
    assert (tmp_path / "out" / "gfs.t00z.pgrb2.0p25.f000.idx").read_text() == SAMPLE_IDX


def test_download_no_match_is_not_an_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "idx_url": IDX_URL,
                "parameters": {"HGT": []},
                "output_dir": str(tmp_path / "out"),
            }
        )
    )
    with aioresponses() as mock:
        mock.get(IDX_URL, status=200, body=SAMPLE_IDX)
        result = runner.invoke(app, ["download", str(path)])

    assert result.exit_code == 0
    assert not (tmp_path / "out").exists()


def test_download_index_not_found(config_file):
    with aioresponses() as mock:
        mock.get(IDX_URL, status=404)
        result = runner.invoke(app, ["download", str(config_file)])

    assert result.exit_code == 1
    assert "IndexDownloadError" in result.output


def test_download_range_failure_exits_non_zero(tmp_path, config_file):
    data = make_grib_bytes(4000)
    with aioresponses() as mock:
        mock.get(IDX_URL, status=200, body=SAMPLE_IDX)
        mock.get(
            GRIB_URL, callback=range_callback(data, failing_starts={2600}), repeat=True
        )
        result = runner.invoke(app, ["download", str(config_file)])

    assert result.exit_code == 1
    assert "TransferError" in result.output
    assert (tmp_path / "out" / "gfs.t00z.pgrb2.0p25.f000").exists()


def test_inventory_missing_file_shows_error_panel(tmp_path):
    result = runner.invoke(app, ["inventory", str(tmp_path / "missing.idx")])

    assert result.exit_code == 1
    assert "IndexParseError" in result.output
    assert "Suggestions" in result.output
    assert "rich.panel.Panel object" not in result.output


def test_invalid_config_shows_error_panel(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    result = runner.invoke(app, ["download", str(path)])

    assert result.exit_code == 1
    assert "ConfigurationError" in result.output
    assert "Panel object" not in result.output
