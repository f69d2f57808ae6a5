"""
Tests for retention_preview script.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

# Add script directory to path for imports
_SCRIPT_DIR = Path(__file__).parent.parent / "scripts"
if str(_SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR))

from retention_preview import main, parse_now, preview  # noqa: E402


@pytest.fixture
def temperature_dir(tmp_path):
    directory = tmp_path / "berlin_temperature"
    directory.mkdir()
    for name in (
        "berlin_20230629T0500Z.tif",
        "berlin_20230627T0400Z.tif",
        "berlin_20230627T0300Z.tif",
        "berlin_20230627T0300Z.tif.aux.xml",
        "berlin_latest.tif",
    ):
        (directory / name).write_bytes(b"x")
    return directory


class TestParseNow:
    def test_accepts_z_suffix(self):
        assert parse_now("2023-06-29T05:30:00Z") == datetime(2023, 6, 29, 5, 30, tzinfo=timezone.utc)

    def test_accepts_offset(self):
        value = parse_now("2023-06-29T07:30:00+02:00")
        assert value.astimezone(timezone.utc) == datetime(2023, 6, 29, 5, 30, tzinfo=timezone.utc)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_now("yesterday")


class TestPreview:
    def test_returns_expired_and_unparseable(self, temperature_dir):
        expired, unparseable = preview(
            temperature_dir,
            datetime(2023, 6, 29, 5, 30, tzinfo=timezone.utc),
            timedelta(hours=49),
        )

        assert expired == ["berlin_20230627T0300Z.tif", "berlin_20230627T0300Z.tif.aux.xml"]
        assert unparseable == ["berlin_latest.tif"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Directory not found"):
            preview(tmp_path / "missing", datetime.now(timezone.utc), timedelta(hours=49))


class TestMain:
    def test_prints_files_and_deletes_nothing(self, temperature_dir, capsys):
        exit_code = main([str(temperature_dir), "--now", "2023-06-29T05:30:00Z"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "2 file(s) would be deleted" in out
        assert "berlin_20230627T0300Z.tif.aux.xml" in out
        assert "berlin_latest.tif" in out
        assert "2023-06-27 04:00:00" in out
        assert len(list(temperature_dir.iterdir())) == 5

    def test_nothing_to_delete(self, temperature_dir, capsys):
        exit_code = main([str(temperature_dir), "--now", "2023-06-28T00:00:00Z"])

        assert exit_code == 0
        assert "Nothing to delete" in capsys.readouterr().out

    def test_custom_retention(self, temperature_dir, capsys):
        exit_code = main([str(temperature_dir), "--now", "2023-06-29T05:30:00Z", "--retention-hours", "1"])

        assert exit_code == 0
        assert "3 file(s) would be deleted" in capsys.readouterr().out

    def test_missing_directory_returns_error(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing")]) == 1
        assert "Directory not found" in capsys.readouterr().err

    def test_unlistable_directory_returns_error(self, temperature_dir, capsys):
        with patch.object(Path, "iterdir", side_effect=PermissionError("permission denied")):
            assert main([str(temperature_dir), "--now", "2023-06-29T05:30:00Z"]) == 1
        assert "Could not list" in capsys.readouterr().err

    def test_invalid_now_returns_error(self, temperature_dir, capsys):
        assert main([str(temperature_dir), "--now", "yesterday"]) == 1
        assert "Invalid --now" in capsys.readouterr().err

    def test_non_positive_retention_returns_error(self, temperature_dir, capsys):
        assert main([str(temperature_dir), "--retention-hours", "0"]) == 1
        assert "Retention must be positive" in capsys.readouterr().err
