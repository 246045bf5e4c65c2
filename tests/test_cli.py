# tests/test_cli.py
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from consistent_suspense.config import Config
from consistent_suspense_cli.main import app

runner = CliRunner()

SHELL = '<div><template id="B:0"><script data-suspense-id="a:a" data-count="1"></script></template></div>'
COMPLETE = '<div hidden id="S:0">Done</div><script>$RC("B:0","S:0")</script>'


class TestLettersCommand(unittest.TestCase):
    def test_prints_letters(self):
        result = runner.invoke(app, ["letters", "3"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.split(), ["a", "b", "c"])

    def test_start_option(self):
        result = runner.invoke(app, ["letters", "2", "--start", "Z"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.split(), ["aa", "ab"])


class TestAnalyzeCommand(unittest.TestCase):
    def setUp(self):
        Config.reset_instance()
        self.addCleanup(Config.reset_instance)
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = Path(self.tmp.name)

    def write(self, name: str, text: str) -> str:
        path = self.dir / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_analyze_chunks(self):
        shell = self.write("0-shell.html", SHELL)
        chunk = self.write("1-chunk.html", COMPLETE)
        callbacks = self.write("markup.yaml", '"a:a": "<script>window.AA = true;</script>"\n')

        result = runner.invoke(app, ["analyze", shell, chunk, "--callbacks", callbacks])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(SHELL, result.output)
        self.assertIn(
            '<div hidden id="S:0">Done</div><script>window.AA = true;</script><script>$RC("B:0","S:0");</script>',
            result.output,
        )

    def test_analyze_error_markup(self):
        shell = self.write("0-shell.html", SHELL)
        chunk = self.write("1-chunk.html", '<script>$RX("B:0","S:0","boom")</script>')
        callbacks = self.write("markup.yaml", 'error:\n  "a:a": "<p>failed</p>"\n')

        result = runner.invoke(app, ["analyze", shell, chunk, "-c", callbacks])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('<p>failed</p><script>$RX("B:0","S:0","boom");</script>', result.output)

    def test_analyze_with_config(self):
        shell = self.write("0-shell.html", SHELL)
        chunk = self.write("1-chunk.html", '<script>REVEAL("B:0","S:0")</script>')
        config = self.write("suspense.yaml", "stream:\n  reveal_function: REVEAL\n")

        result = runner.invoke(app, ["analyze", shell, chunk, "--config", config])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('<script>REVEAL("B:0","S:0");</script>', result.output)

    def test_debug_prints_config_summary(self):
        shell = self.write("0-shell.html", SHELL)
        config = self.write("suspense.yaml", "debug: false\n")

        result = runner.invoke(app, ["analyze", shell, "--config", config, "--debug"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("[Config] source=file", result.output)
        self.assertIn("[Config] keys=['debug']", result.output)
        self.assertIn("[StreamSuspense] registered slot 'B:0'", result.output)

    def test_missing_file(self):
        result = runner.invoke(app, ["analyze", str(self.dir / "nope.html")])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("❌ Error: File not found", result.output)

    def test_bad_callbacks_file(self):
        shell = self.write("0-shell.html", SHELL)
        callbacks = self.write("markup.yaml", "- not\n- a mapping\n")

        result = runner.invoke(app, ["analyze", shell, "--callbacks", callbacks])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("❌ Error: Could not read callbacks", result.output)

    def test_error_section_must_be_a_mapping(self):
        shell = self.write("0-shell.html", SHELL)
        callbacks = self.write("markup.yaml", "error: not a mapping\n")

        result = runner.invoke(app, ["analyze", shell, "--callbacks", callbacks])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("❌ Error: Could not read callbacks", result.output)
        self.assertNotIsInstance(result.exception, AttributeError)


if __name__ == "__main__":
    unittest.main()
