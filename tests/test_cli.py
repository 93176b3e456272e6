import csv
import os

import pytest

from traffic_gen.cli import main
from traffic_gen.utils.logger import LOG_FOLDER_ENV

CONFIG = """\
TrafficPercentage=40
Name=/example/A
NameAppendSequenceNumber=1
ExpectedContent=hello

TrafficPercentage=60
Name=/example/B
NameAppendBytes=4
"""

FAST_RUN = ["--interval", "10", "--virtual-time", "--delay", "1", "--delay-model", "constant"]


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(LOG_FOLDER_ENV, raising=False)


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["traffic.conf", "-q", "-v"],
        ["traffic.conf", "--mode", "3"],
        ["traffic.conf", "--count", "-1"],
        ["traffic.conf", "--interval", "0"],
        ["traffic.conf", "--loss", "101"],
    ],
)
def test_bad_arguments_exit_with_usage_error(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2


def test_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])
    assert excinfo.value.code == 0
    assert "TRAFFIC_LOGFOLDER" in capsys.readouterr().out


def test_missing_configuration_file(capsys):
    assert main(["does-not-exist.conf", "--count", "1", "--virtual-time"]) == 2
    out = capsys.readouterr().out
    assert "Unable to open traffic configuration file" in out
    assert "Traffic configuration provided is not proper" in out


def test_invalid_configuration_file(write_config, capsys):
    path = write_config("TrafficPercentage=100\nName=/a\nInterestLifetime=-1\n")
    assert main([path, "--count", "1", "--virtual-time"]) == 2
    assert "InterestLifetime" in capsys.readouterr().out


def test_bounded_run_writes_summary(write_config, tmp_path, capsys):
    path = write_config(CONFIG)
    summary = tmp_path / "summary.csv"

    assert main([path, "--count", "5", "--summary", str(summary)] + FAST_RUN) == 0

    out = capsys.readouterr().out
    assert out.count("Sending Request") == 5
    assert "== Traffic Report ==" in out
    assert "Total Request Loss          = 0" in out

    with open(summary, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "PatternID"
    assert [row[0] for row in rows[1:]] == ["Overall", "1", "2"]
    assert rows[1][1] == "5"


def test_default_summary_path(write_config, tmp_path):
    path = write_config(CONFIG)
    assert main([path, "--count", "2", "--quiet"] + FAST_RUN) == 0
    assert (tmp_path / "log.csv").exists()


def test_lossy_forwarder_fails_the_run(write_config, tmp_path):
    path = write_config(CONFIG)
    argv = [path, "--count", "3", "--loss", "100", "--summary", str(tmp_path / "s.csv")]
    assert main(argv + FAST_RUN) == 1


def test_log_folder_receives_log_and_summary(write_config, tmp_path, monkeypatch, capsys):
    folder = tmp_path / "logs"
    monkeypatch.setenv(LOG_FOLDER_ENV, str(folder))
    path = write_config(CONFIG)

    assert main([path, "--count", "3", "--seed", "7"] + FAST_RUN) == 0

    files = sorted(os.listdir(folder))
    assert len(files) == 2
    log_name, csv_name = sorted(files, key=lambda name: name.endswith(".csv"))
    assert log_name.endswith(".log")
    assert csv_name == log_name[: -len(".log")] + ".csv"

    with open(folder / log_name) as f:
        text = f.read()
    assert "Sending Request" in text
    assert "== Traffic Report ==" in text

    # only the report reaches the console when logging to a folder
    err = capsys.readouterr().err
    assert "== Traffic Report ==" in err
    assert "Sending Request" not in err


def test_plot_saves_chart(write_config, tmp_path):
    path = write_config(CONFIG)
    charts = tmp_path / "charts"
    argv = [path, "--count", "4", "--quiet", "--plot", str(charts)] + FAST_RUN
    assert main(argv) == 0
    assert (charts / "traffic_report.png").exists()


def test_unknown_parameter_is_only_a_warning(write_config, capsys):
    path = write_config("TrafficPercentage=100\nFoo=Bar\nName=/a\n")
    assert main([path, "--count", "2", "--quiet"] + FAST_RUN) == 0
    assert "Ignoring unknown parameter: Foo" in capsys.readouterr().out


def test_zipf_mode_run(write_config):
    path = write_config(CONFIG)
    argv = [path, "--count", "20", "--quiet", "--mode", "2", "--zipffactor", "1.2"]
    assert main(argv + FAST_RUN) == 0


def test_undecodable_configuration_file(tmp_path, capsys):
    path = tmp_path / "binary.conf"
    path.write_bytes(b"TrafficPercentage=100\nName=/a\nExpectedContent=\xff\xfe\n")
    assert main([str(path), "--count", "1", "--virtual-time"]) == 2
    assert "Traffic configuration provided is not proper" in capsys.readouterr().out


def test_unwritable_summary_fails_the_run(write_config, tmp_path, capsys):
    path = write_config(CONFIG)
    argv = [path, "--count", "2", "--quiet", "--summary", str(tmp_path)] + FAST_RUN
    assert main(argv) == 1
    assert "ERROR: Unable to write summary file" in capsys.readouterr().out
