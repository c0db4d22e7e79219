"""
Saved-graph history.

A save takes a snapshot of the scene (compiled forms stripped, they are not
serialisable) together with the view, and pushes it to the front of a JSON
list on disk. Loading a snapshot back into a live scene is not supported.
"""
from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from graphcalc import config
from graphcalc.scene import Scene
from graphcalc.view import ViewTransform

logger = logging.getLogger(__name__)


def snapshot(scene: Scene, view: ViewTransform) -> dict:
    return {"objects": scene.to_list(), "view_transform": view.to_dict()}


class HistoryStore:
    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else config.HISTORY_PATH

    def items(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to read history from %s: %s", self.path, exc)
            return []
        return data if isinstance(data, list) else []

    def _write(self, items: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items, indent=2), encoding="utf-8")

    def add(self, kind: str, data: dict, name: str) -> dict:
        item = {
            "id": datetime.now().isoformat(),
            "type": kind,
            "data": data,
            "timestamp": int(time.time() * 1000),
            "name": name,
        }
        self._write([item] + self.items())
        logger.info("Saved '%s' to %s", name, self.path)
        return item

    def save_graph(self, scene: Scene, view: ViewTransform,
                   name: str = "Saved Interactive Graph") -> dict:
        return self.add("graph", snapshot(scene, view), name)

    def get(self, item_id: str) -> Optional[dict]:
        for item in self.items():
            if item.get("id") == item_id:
                return item
        return None

    def delete(self, item_id: str) -> List[dict]:
        remaining = [i for i in self.items() if i.get("id") != item_id]
        self._write(remaining)
        return remaining

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
