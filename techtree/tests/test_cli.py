"""Test suite for the command line interface."""

import orjson
from click.testing import CliRunner

from techtree.cli.process import cli


class TestRunCommand:
    """Test the ingestion command."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_explicit_packages(self, make_package, tmp_path):
        first = make_package(
            "first",
            descriptor='name="First"\n',
            technologies={"t.txt": "tech_a = { cost = 10 start_tech = yes }\n"},
            localisations={"l_english.yml": 'l_english:\n tech_a:0 "Alpha"\n'},
        )
        second = make_package(
            "second",
            technologies={"t.txt": "tech_b = { cost = 20 prerequisites = { tech_a } }\n"},
        )
        output = tmp_path / "out"

        result = self.runner.invoke(cli, [
            "run",
            "--package", str(first),
            "--package", str(second),
            "--output", str(output),
            "--workers", "2",
        ])

        assert result.exit_code == 0, result.output
        assert "Ingestion Summary" in result.output
        assert "Artifacts written to" in result.output
        technologies = orjson.loads((output / "all_technologies.json").read_bytes())
        assert [t["id"] for t in technologies] == ["tech_a", "tech_b"]
        assert (output / "tech_tree.txt").read_text().startswith("tech_a [start]\n")

    def test_missing_corpus_exits_nonzero(self, tmp_path):
        result = self.runner.invoke(cli, [
            "run",
            "--workshop", str(tmp_path / "missing"),
            "--output", str(tmp_path / "out"),
        ])

        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()

    def test_irony_requires_collection(self, tmp_path):
        export = tmp_path / "irony.json"
        export.write_text("[]")
        result = self.runner.invoke(cli, ["run", "--irony-db", str(export)])

        assert result.exit_code == 2
        assert "--collection" in result.output


class TestLocalisationCommand:
    """Test single-file localisation checks."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_valid_file(self, tmp_path):
        path = tmp_path / "a_l_english.yml"
        path.write_text('l_english:\n tech_a:0 "Alpha"\n tech_a_desc:0 "[First]"\n', encoding="utf-8")

        result = self.runner.invoke(cli, ["localisation", str(path), "--folded"])

        assert result.exit_code == 0, result.output
        assert "Language: english" in result.output
        assert "Entries: 2" in result.output
        assert "[First]" in result.output

    def test_broken_file(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text('l_english:\n key:0 "open\n', encoding="utf-8")

        result = self.runner.invoke(cli, ["localisation", str(path)])

        assert result.exit_code == 1
        assert "unterminated string" in result.output


class TestLexCommand:

    def test_tokens(self):
        result = CliRunner().invoke(cli, ["lex", "§Ghi§! $name$"])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "ColorStart(color=<Color.GREEN: 'G'>)",
            "PlainText(text='hi')",
            "ColorEnd()",
            "PlainText(text=' ')",
            "VariableRef(name='name')",
        ]
