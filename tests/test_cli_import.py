"""Regression tests for importing the console without the server stack."""

from __future__ import annotations

import importlib
import sys
import types
import unittest


class CLIImportTests(unittest.TestCase):
    def tearDown(self) -> None:
        self._clear_modules()

    @staticmethod
    def _clear_modules() -> None:
        for name in [m for m in list(sys.modules.keys()) if m in {"userhub", "main"} or m.startswith("userhub.")]:
            sys.modules.pop(name, None)

    def test_import_console_without_server_packages(self) -> None:
        """The admin console only needs httpx; fastapi and jwt stay server-side."""

        self._clear_modules()

        saved: dict[str, types.ModuleType | None] = {
            name: sys.modules.pop(name, None) for name in ("fastapi", "jwt")
        }
        sys.modules["fastapi"] = None  # type: ignore[assignment]
        sys.modules["jwt"] = None  # type: ignore[assignment]
        try:
            main_module = importlib.import_module("main")
            self.assertTrue(hasattr(main_module, "_run_admin_cli"))

            package = sys.modules.get("userhub")
            self.assertIsNotNone(package)
            self.assertTrue(hasattr(package, "UserDirectory"))
            self.assertNotIn("userhub.service", sys.modules)
        finally:
            for name, module in saved.items():
                sys.modules.pop(name, None)
                if module is not None:
                    sys.modules[name] = module


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
