import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from utils.config_loader import dump_config, load_config


class LoadConfigTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.base = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_defaults_when_file_missing(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LICIT_PRO_CONFIG_JSON", None)
            os.environ.pop("LICIT_PRO_CONFIG_PATH", None)
            config = load_config(self.base / "config.json")
        self.assertEqual("file", config["storage"]["backend"])
        self.assertEqual("licit_pro_db", config["storage"]["key"])
        self.assertEqual(25, config["records"]["default_meta_dias"])

    def test_base_and_custom_files_merge_over_defaults(self) -> None:
        dump_config(self.base / "config.json", {"storage": {"key": "outra_base"}})
        dump_config(self.base / "custom.json", {"logging": {"level": "DEBUG"}})
        config = load_config(self.base / "config.json")
        self.assertEqual("outra_base", config["storage"]["key"])
        self.assertEqual("file", config["storage"]["backend"])
        self.assertEqual("DEBUG", config["logging"]["level"])

    def test_environment_json_override(self) -> None:
        override = json.dumps({"export": {"backup_prefix": "BACKUP"}})
        with mock.patch.dict(os.environ, {"LICIT_PRO_CONFIG_JSON": override}):
            config = load_config(self.base / "config.json")
        self.assertEqual("BACKUP", config["export"]["backup_prefix"])
        self.assertEqual("relatorio_licitacoes", config["export"]["report_prefix"])

    def test_rejects_non_json_files(self) -> None:
        with self.assertRaises(ValueError):
            dump_config(self.base / "config.yml", {})


if __name__ == "__main__":
    unittest.main()
