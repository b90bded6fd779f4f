from __future__ import annotations

from copy import deepcopy

DEFAULT_CONFIG = {
    "storage": {
        "backend": "file",
        "key": "licit_pro_db",
    },
    "database": {
        "url": None,
        "path": "data/licit_pro.sqlite",
        "echo": False,
    },
    "records": {
        "default_meta_dias": 25,
        "default_status": "PUBLICADA",
        "entities": ["SESI", "SENAI", "SESI SENAI"],
    },
    "export": {
        "export_dir": "data/exports",
        "backup_prefix": "LICIT_PRO_BACKUP",
        "report_prefix": "relatorio_licitacoes",
    },
    "paths": {
        "data_dir": "data",
        "log_dir": "data/logs",
    },
    "logging": {"level": "INFO"},
}


def default_config_copy() -> dict:
    return deepcopy(DEFAULT_CONFIG)
