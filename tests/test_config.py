# tests/test_config.py
import os
import sys
import tempfile
import types
import unittest
from pathlib import Path

from consistent_suspense.config import Config, get_config
from consistent_suspense.store import SuspenseStore
from consistent_suspense.stream import StreamSuspense


class ConfigTestCase(unittest.TestCase):
    def setUp(self):
        Config.reset_instance()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.addCleanup(Config.reset_instance)

    def write_config(self, text: str) -> Path:
        path = Path(self.tmp.name) / "suspense.yaml"
        path.write_text(text, encoding="utf-8")
        return path


class TestConfig(ConfigTestCase):
    def test_defaults_without_any_source(self):
        cfg = Config(config_file=str(Path(self.tmp.name) / "missing.yaml"))

        self.assertIsNone(cfg.source)
        self.assertEqual(cfg.as_dict(), {})
        self.assertFalse(cfg.get("debug"))
        self.assertEqual(cfg.get_nested("stream.reveal_function"), "$RC")
        self.assertEqual(cfg.get_nested("stream.reveal_error_function"), "$RX")
        self.assertEqual(cfg.get_nested("stream.suspense_attribute"), "data-suspense-id")
        self.assertEqual(cfg.get_nested("stream.count_attribute"), "data-count")
        self.assertEqual(cfg.get_nested("stream.unknown", "fallback"), "fallback")
        self.assertEqual(cfg.get_nested("", "fallback"), "fallback")

    def test_singleton(self):
        self.assertIs(get_config(), get_config())
        self.assertIs(Config(), get_config())

    def test_loads_yaml_file(self):
        path = self.write_config(
            "debug: true\n"
            "stream:\n"
            "  reveal_function: REVEAL\n"
        )

        cfg = Config(config_file=str(path), prefer_embedded=False)

        self.assertEqual(cfg.source, "file")
        self.assertEqual(cfg.resolved_config_path, path.resolve())
        self.assertTrue(cfg.get("debug"))
        self.assertEqual(cfg.get_nested("stream.reveal_function"), "REVEAL")
        # keys missing from the file still come from the defaults
        self.assertEqual(cfg.get_nested("stream.reveal_error_function"), "$RX")

    def test_relative_path_resolves_against_cwd(self):
        self.write_config("debug: true\n")
        cwd = os.getcwd()
        os.chdir(self.tmp.name)
        self.addCleanup(os.chdir, cwd)

        cfg = Config(prefer_embedded=False)

        self.assertEqual(cfg.source, "file")
        self.assertTrue(cfg.get("debug"))

    def test_non_mapping_yaml(self):
        path = self.write_config("- just\n- a list\n")

        cfg = Config(config_file=str(path), prefer_embedded=False)

        self.assertEqual(cfg.get("__root__"), ["just", "a list"])

    def test_invalid_yaml_is_ignored(self):
        path = self.write_config("stream: [unclosed\n")

        cfg = Config(config_file=str(path), prefer_embedded=False)

        self.assertIsNone(cfg.source)
        self.assertEqual(cfg.get_nested("stream.reveal_function"), "$RC")

    def test_embedded_module_preferred(self):
        module = types.ModuleType("_test_embedded_suspense_config")
        module.CONFIG = {"stream": {"reveal_function": "EMBEDDED"}}
        sys.modules[module.__name__] = module
        self.addCleanup(sys.modules.pop, module.__name__, None)
        path = self.write_config("stream:\n  reveal_function: FILE\n")

        cfg = Config(config_file=str(path), embedded_module_name=module.__name__)

        self.assertTrue(cfg.is_embedded)
        self.assertEqual(cfg.get_nested("stream.reveal_function"), "EMBEDDED")

        cfg.reload(prefer_embedded=False)

        self.assertEqual(cfg.source, "file")
        self.assertEqual(cfg.get_nested("stream.reveal_function"), "FILE")


class TestConfigDrivesComponents(ConfigTestCase):
    def test_stream_uses_configured_protocol(self):
        path = self.write_config(
            "stream:\n"
            "  reveal_function: REVEAL\n"
            "  reveal_error_function: REVEAL_ERROR\n"
            "  suspense_attribute: data-context-id\n"
        )
        get_config(config_file=str(path), prefer_embedded=False)
        calls = []

        stream = StreamSuspense(lambda suspense_id, extra: calls.append((suspense_id, extra)), debug=False)
        stream.analyze('<template id="B:0"><script data-context-id="a"></script></template>')
        stream.analyze('<script>REVEAL_ERROR("B:0","S:0","failed")</script>')

        self.assertEqual(stream.reveal_function, "REVEAL")
        self.assertEqual(calls, [("a", "failed")])

    def test_explicit_arguments_win(self):
        path = self.write_config("debug: true\nstream:\n  reveal_function: REVEAL\n")
        get_config(config_file=str(path), prefer_embedded=False)

        stream = StreamSuspense(lambda suspense_id, extra: None, reveal_function="$RC", debug=False)

        self.assertEqual(stream.reveal_function, "$RC")
        self.assertFalse(stream.debug)
        self.assertTrue(SuspenseStore().debug)


if __name__ == "__main__":
    unittest.main()
