# consistent_suspense/config.py
from __future__ import annotations
import importlib
import sys
from pathlib import Path
from typing import Any, Dict, Optional
import yaml


DEFAULTS: Dict[str, Any] = {
    "debug": False,
    "stream": {
        "reveal_function": "$RC",
        "reveal_error_function": "$RX",
        "suspense_attribute": "data-suspense-id",
        "count_attribute": "data-count",
    },
}


class Config:
    """
    Singleton config loader that supports:
      - an embedded config module (default name: _embedded_suspense_config, attribute: CONFIG)
      - a fallback YAML file (suspense.yaml)

    Usage:
        cfg = Config()  # prefers embedded if available, else loads suspense.yaml
        debug = cfg.get("debug", False)
        fn = cfg.get_nested("stream.reveal_function", "$RC")
        cfg.reload()    # re-read embedded/file (useful in dev)

    Anything missing from the loaded data falls back to DEFAULTS, so a project
    without any config file still gets the stock stream protocol.
    """

    _instance: Optional["Config"] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
        return cls._instance

    def __init__(
        self,
        config_file: str = "suspense.yaml",
        prefer_embedded: bool = True,
        embedded_module_name: str = "_embedded_suspense_config",
    ):
        # initialize only once
        if getattr(self, "_initialized", False):
            return

        self._initialized = True
        self.config_file_arg = config_file
        self.prefer_embedded = bool(prefer_embedded)
        self.embedded_module_name = embedded_module_name

        self._config: Dict[str, Any] = {}
        self._source: Optional[str] = None  # 'embedded' or 'file' or None

        self._resolved_config_path: Optional[Path] = self._resolve_config_path(config_file)

        self.reload()

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the shared instance so the next Config() reads its sources again."""
        cls._instance = None

    # ----- public API -----
    def reload(self, prefer_embedded: Optional[bool] = None) -> None:
        """
        Reload the configuration. If prefer_embedded is provided, it overrides the instance preference
        just for this reload.
        """
        prefer = self.prefer_embedded if prefer_embedded is None else bool(prefer_embedded)

        if prefer:
            loaded = self._try_load_embedded() or self._try_load_file()
        else:
            loaded = self._try_load_file() or self._try_load_embedded()

        if not loaded:
            self._source = None
            self._config = {}

    def as_dict(self) -> Dict[str, Any]:
        """Return the loaded configuration as a dict (may be empty)."""
        return dict(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """Shallow lookup in the top-level config dict, then in DEFAULTS."""
        if key in self._config:
            return self._config[key]
        return DEFAULTS.get(key, default)

    def get_nested(self, path: str, default: Any = None, sep: str = ".") -> Any:
        """
        Lookup nested keys using dot-path (e.g. "stream.reveal_function").
        Loaded values win over DEFAULTS; returns default if neither has the key.
        """
        if not path:
            return default
        for source in (self._config, DEFAULTS):
            found, value = self._lookup(source, path.split(sep))
            if found:
                return value
        return default

    @property
    def is_embedded(self) -> bool:
        """True if the currently loaded config came from the embedded module."""
        return self._source == "embedded"

    @property
    def source(self) -> Optional[str]:
        """Return 'embedded'|'file'|None depending on where config came from."""
        return self._source

    @property
    def resolved_config_path(self) -> Optional[Path]:
        """If a filesystem config was resolved, return its Path, otherwise None."""
        return self._resolved_config_path

    # ----- internal helpers -----
    @staticmethod
    def _lookup(source: Dict[str, Any], parts) -> tuple:
        cur: Any = source
        for part in parts:
            if not isinstance(cur, dict) or part not in cur:
                return False, None
            cur = cur[part]
        return True, cur

    def _resolve_config_path(self, config_file: str) -> Optional[Path]:
        """
        Try to resolve the YAML config path:
          1. If config_file is absolute and exists -> return it
          2. If config_file relative to the directory of the running script exists -> return it
          3. If config_file relative to cwd exists -> return it
          4. else return None
        """
        candidate = Path(config_file)
        if candidate.is_absolute():
            return candidate.resolve() if candidate.exists() else None

        main_module = sys.modules.get("__main__")
        main_file = getattr(main_module, "__file__", None)
        if main_file:
            p1 = (Path(main_file).resolve().parent / config_file).resolve()
            if p1.exists():
                return p1

        p2 = (Path.cwd() / config_file).resolve()
        if p2.exists():
            return p2

        return None

    def _try_load_embedded(self) -> bool:
        """
        Try to import the embedded module and fetch CONFIG. Returns True on success.
        """
        try:
            module = importlib.import_module(self.embedded_module_name)
        except ImportError:
            return False

        cfg = getattr(module, "CONFIG", None)
        if isinstance(cfg, dict):
            self._config = dict(cfg)
            self._source = "embedded"
            return True
        return False

    def _try_load_file(self) -> bool:
        """
        Try to load YAML file from resolved path. Returns True on success.
        """
        if not self._resolved_config_path:
            return False
        try:
            with self._resolved_config_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            print(f"[Config] could not read {self._resolved_config_path}: {e}")
            return False

        if isinstance(data, dict):
            self._config = data
        else:
            # YAML parsed but not dict -> store raw under a key
            self._config = {"__root__": data}
        self._source = "file"
        return True

    def debug_print(self) -> None:
        print(f"[Config] source={self._source}; embedded_module={self.embedded_module_name}; config_file_arg={self.config_file_arg}")
        if self._resolved_config_path:
            print(f"[Config] resolved_config_path={self._resolved_config_path}")
        print(f"[Config] keys={list(self._config.keys())}")


def get_config(*args, **kwargs) -> Config:
    """
    Convenience factory that returns the singleton Config instance.
    Arguments forwarded to Config() only on the first call.
    """
    return Config(*args, **kwargs)
