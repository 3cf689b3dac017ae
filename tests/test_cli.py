"""Tests for the linked-heatmap command line."""

import pytest

from linked_heatmap.cli import build_parser, main


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["events.tsv"])
        assert args.input == "events.tsv"
        assert args.no_cluster is False
        assert args.verbose is False


class TestMain:
    def test_writes_html(self, tmp_path, events_tsv):
        out = tmp_path / "out.html"
        assert main([str(events_tsv), "-o", str(out), "--id-column", "event"]) == 0
        assert out.exists()

    def test_config_file(self, tmp_path, events_tsv):
        out = tmp_path / "from_config.html"
        config = tmp_path / "config.yaml"
        config.write_text(
            f"input:\n  path: '{events_tsv}'\n"
            f"output:\n  path: '{out}'\n  title: From config\n",
            encoding="utf-8",
        )
        assert main(["--config", str(config)]) == 0
        assert "From config" in out.read_text(encoding="utf-8")

    def test_flags_override_config(self, tmp_path, events_tsv):
        out = tmp_path / "override.html"
        config = tmp_path / "config.yaml"
        config.write_text("cluster:\n  method: average\n", encoding="utf-8")
        code = main([
            str(events_tsv), "-o", str(out), "-c", str(config),
            "--method", "complete", "--category-order", "t1,t0", "--no-cluster",
        ])
        assert code == 0
        assert out.exists()

    def test_missing_input_file(self, tmp_path):
        assert main([str(tmp_path / "missing.tsv"), "-o", str(tmp_path / "x.html")]) == 1

    def test_pipeline_error_exit_code(self, tmp_path, events_tsv):
        code = main([
            str(events_tsv), "-o", str(tmp_path / "x.html"), "--metric", "bogus",
        ])
        assert code == 1

    def test_malformed_descriptor_exit_code(self, tmp_path):
        path = tmp_path / "bad.tsv"
        path.write_text("event\tposition\tt0\tt1\nE1\tchr1\t1\t2\nE2\tchr2:3-4\t3\t4\n", encoding="utf-8")
        assert main([str(path), "-o", str(tmp_path / "x.html")]) == 1

    def test_bad_config(self, tmp_path, events_tsv):
        config = tmp_path / "bad.yaml"
        config.write_text("nonsense: {}\n", encoding="utf-8")
        assert main([str(events_tsv), "-c", str(config)]) == 2

    def test_requires_input(self):
        with pytest.raises(SystemExit):
            main([])
