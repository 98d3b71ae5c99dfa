from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    """
    On-disk layout under one root directory:

        <root>/config/prefs.json
        <root>/config/backups/
        <root>/logs/
    """

    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, "logs")

    @property
    def prefs(self) -> str:
        return os.path.join(self.config_dir, "prefs.json")

    def ensure(self) -> "ConfigFsPaths":
        for d in (self.config_dir, self.backups_dir, self.logs_dir):
            os.makedirs(d, exist_ok=True)
        return self
