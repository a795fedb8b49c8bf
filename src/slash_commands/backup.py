"""Backup manager used by the reset and restore commands.

Each category keeps a ``latest`` copy plus at most one previous,
timestamped copy. ``manifest.json`` in the backup root records when and
from where each category was last backed up.
"""
from __future__ import annotations

import json
import os
import shutil
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from slash_commands.errors import HandlerError


MANIFEST_VERSION = "1.0"
LATEST_DIR = "latest"
PREVIOUS_PREFIX = "backup-"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dir_size(path: str) -> int:
    if os.path.isfile(path):
        return os.path.getsize(path)
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            total += os.path.getsize(os.path.join(root, name))
    return total


class BackupManager:
    def __init__(self, backup_root: str):
        self.backup_root = backup_root
        self.manifest_path = os.path.join(backup_root, "manifest.json")

    def _ensure_root(self) -> None:
        os.makedirs(self.backup_root, exist_ok=True)
        gitignore = os.path.join(self.backup_root, ".gitignore")
        if not os.path.exists(gitignore):
            with open(gitignore, "w", encoding="utf-8") as fh:
                fh.write("*\n!.gitignore\n")

    def load_manifest(self) -> Dict[str, Any]:
        if os.path.exists(self.manifest_path):
            try:
                with open(self.manifest_path, encoding="utf-8") as fh:
                    return json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                print(f"Failed to load backup manifest, starting a new one: {exc}", file=sys.stderr)
        return {"version": MANIFEST_VERSION, "backups": {}}

    def _save_manifest(self, manifest: Dict[str, Any]) -> None:
        with open(self.manifest_path, "w", encoding="utf-8") as fh:
            json.dump(manifest, fh, indent=2)

    def create_backup(self, category: str, source: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Copy ``source`` into ``<root>/<category>/latest``.

        Returns:
            Path of the new backup.

        Raises:
            HandlerError: if the source does not exist.
        """
        if not os.path.exists(source):
            raise HandlerError(f"Source path does not exist: {source}")
        self._ensure_root()

        category_dir = os.path.join(self.backup_root, category)
        os.makedirs(category_dir, exist_ok=True)
        latest = os.path.join(category_dir, LATEST_DIR)

        if os.path.exists(latest):
            # Keep only one previous copy
            for name in os.listdir(category_dir):
                if name.startswith(PREVIOUS_PREFIX):
                    shutil.rmtree(os.path.join(category_dir, name))
            stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
            os.rename(latest, os.path.join(category_dir, f"{PREVIOUS_PREFIX}{stamp}"))

        if os.path.isdir(source):
            shutil.copytree(source, latest)
        else:
            os.makedirs(latest)
            shutil.copy2(source, latest)

        manifest = self.load_manifest()
        manifest.setdefault("backups", {})[category] = {
            "latest": {
                "timestamp": _now_iso(),
                "sourcePath": os.path.abspath(source),
                "kind": "directory" if os.path.isdir(source) else "file",
                "size": _dir_size(latest),
                "metadata": metadata or {},
            }
        }
        self._save_manifest(manifest)
        return latest

    def restore_backup(self, category: str, target: Optional[str] = None) -> str:
        """Replace ``target`` (default: the recorded source) with the latest backup.

        Raises:
            HandlerError: if no backup exists for the category.
        """
        latest = os.path.join(self.backup_root, category, LATEST_DIR)
        entry = self.load_manifest().get("backups", {}).get(category)
        if not os.path.isdir(latest) or entry is None:
            raise HandlerError(f"No backup found for {category}")

        target = target or entry["latest"]["sourcePath"]
        if entry["latest"].get("kind") == "file":
            name = os.path.basename(entry["latest"]["sourcePath"])
            shutil.copy2(os.path.join(latest, name), target)
            return target
        if os.path.isdir(target):
            shutil.rmtree(target)
        shutil.copytree(latest, target)
        return target

    def list_backups(self) -> List[Dict[str, Any]]:
        backups = self.load_manifest().get("backups", {})
        return [
            {"category": category, **info["latest"]}
            for category, info in sorted(backups.items())
        ]


__all__ = ["BackupManager"]
