# Standard Library
import json
import math

# Third Party Library
import pytest
from click.testing import CliRunner

# First Party Library
from cres import __version__
from cres.cli import cli
from cres.io import JSONLinesReader
from cres.partition import PartitionDescriptor


def weight_sum(path):
    return math.fsum(event.weight for event in JSONLinesReader(str(path)).read())


@pytest.fixture
def runner():
    return CliRunner()


class TestResample:
    def test_resample(self, runner, sample_path, tmp_path):
        out_path = tmp_path / "out.jsonl"

        result = runner.invoke(cli, ["resample", str(sample_path), str(out_path)])

        assert result.exit_code == 0, result.output
        assert "negative weight fraction:" in result.output
        assert "cells:" in result.output
        assert "events in capped cells: 0" in result.output

        assert len(JSONLinesReader(str(out_path)).read()) == 60
        assert weight_sum(out_path) == pytest.approx(weight_sum(sample_path))

    def test_options(self, runner, sample_path, tmp_path):
        out_path = tmp_path / "out.jsonl"
        summary_path = tmp_path / "summary.org"
        cells_path = tmp_path / "cells.json"

        result = runner.invoke(
            cli,
            [
                "resample",
                "--ptweight", "2.0",
                "--max-cell-size", "100.0",
                "--num-partitions", "2",
                "--seed-strategy", "random",
                "--rng-seed", "3",
                "--search", "naive",
                "--summary", str(summary_path),
                "--dump-cells", str(cells_path),
                str(sample_path),
                str(out_path),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Number of partitions: 2" in summary_path.read_text()

        with open(cells_path) as rf:
            assert "largest_by_radius" in json.load(rf)

        assert weight_sum(out_path) == pytest.approx(weight_sum(sample_path))

    def test_unweight_and_discard(self, runner, sample_path, tmp_path):
        out_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            cli,
            [
                "resample",
                "--minweight", "2.0",
                "--rng-seed", "0",
                "--discard-weightless",
                str(sample_path),
                str(out_path),
            ],
        )

        assert result.exit_code == 0, result.output

        events = JSONLinesReader(str(out_path)).read()

        assert 0 < len(events) < 60
        assert all(event.weight != 0.0 for event in events)

    def test_invalid_configuration(self, runner, sample_path, tmp_path):
        result = runner.invoke(
            cli,
            ["resample", "--num-partitions", "3", str(sample_path), str(tmp_path / "out.jsonl")],
        )

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_malformed_input(self, runner, tmp_path):
        in_path = tmp_path / "events.jsonl"
        in_path.write_text("not json\n")

        result = runner.invoke(cli, ["resample", str(in_path), str(tmp_path / "out.jsonl")])

        assert result.exit_code == 1
        assert "EventReadError" in result.output

    def test_missing_input(self, runner, tmp_path):
        result = runner.invoke(
            cli, ["resample", str(tmp_path / "missing.jsonl"), str(tmp_path / "out.jsonl")]
        )

        assert result.exit_code == 2


class TestPartitionCommands:
    def test_make_partition_and_classify(self, runner, sample_path, tmp_path):
        partition_path = tmp_path / "partition.json"

        result = runner.invoke(
            cli,
            ["make-partition", "--num-partitions", "4", str(sample_path), str(partition_path)],
        )

        assert result.exit_code == 0, result.output
        assert "Wrote partition with 4 parts" in result.output
        assert PartitionDescriptor.load(str(partition_path)).num_partitions == 4

        result = runner.invoke(cli, ["classify", str(partition_path), str(sample_path)])

        assert result.exit_code == 0, result.output

        lines = result.output.splitlines()
        assert len(lines) == 60
        for idx, line in enumerate(lines):
            event_id, partition_idx = line.split()
            assert int(event_id) == idx
            assert 0 <= int(partition_idx) < 4

    def test_resample_with_stored_partition(self, runner, sample_path, tmp_path):
        partition_path = tmp_path / "partition.json"
        out_path = tmp_path / "out.jsonl"

        runner.invoke(cli, ["make-partition", str(sample_path), str(partition_path)])

        result = runner.invoke(
            cli,
            ["resample", "--partition", str(partition_path), str(sample_path), str(out_path)],
        )

        assert result.exit_code == 0, result.output

    def test_invalid_partition_count(self, runner, sample_path, tmp_path):
        result = runner.invoke(
            cli,
            [
                "make-partition",
                "--num-partitions", "6",
                str(sample_path),
                str(tmp_path / "partition.json"),
            ],
        )

        assert result.exit_code == 1
        assert "PartitionError" in result.output


class TestUnweight:
    def test_unweight(self, runner, sample_path, tmp_path):
        out_path = tmp_path / "out.jsonl"

        result = runner.invoke(
            cli, ["unweight", "--minweight", "1.0", "--rng-seed", "1", str(sample_path), str(out_path)]
        )

        assert result.exit_code == 0, result.output
        assert "Wrote 60 events" in result.output
        assert weight_sum(out_path) == pytest.approx(weight_sum(sample_path))

    def test_minweight_required(self, runner, sample_path, tmp_path):
        result = runner.invoke(cli, ["unweight", str(sample_path), str(tmp_path / "out.jsonl")])

        assert result.exit_code == 2


class TestGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_log_level(self, runner, sample_path, tmp_path):
        result = runner.invoke(
            cli, ["--log", "LOUD", "unweight", "--minweight", "1.0", str(sample_path),
                  str(tmp_path / "out.jsonl")]
        )

        assert result.exit_code == 2
