# modeforge/registries.py

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

import commentjson

from modeforge.base_utils import BaseUtils
from modeforge.entities import MODE_CATEGORIES, SAVED_MODE_STATUSES, Mode, SavedMode, utc_now_iso
from modeforge.errors import NotFoundError

logger = logging.getLogger("modeforge")


class JsonFileStore(BaseUtils):
    """
    A list of pydantic records persisted as one JSON document.

    - Every read-modify-write runs under a single lock.
    - Write-through: the whole collection is saved (atomically) before a mutation returns.
    - Callers get copies; the in-memory list is never handed out.
    - The file may be a bare list or a versioned envelope {"version": n, "<items_key>": [...]};
      the envelope's other keys are written back untouched.
    """

    model = None
    items_key = "items"
    log_tag = "STORE"

    def __init__(self, path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._envelope: Optional[dict] = None
        self._items: list = self._load()

    # -----------------------
    # persistence
    # -----------------------

    def _load(self) -> list:
        if not self.path.is_file():
            logger.warning(f"[{self.log_tag}] No {self.path.name} found, starting with an empty collection")
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = commentjson.load(f)
        except Exception as e:
            logger.warning(f"[{self.log_tag}] Cannot read {self.path}: {e}. Starting with an empty collection")
            return []

        if isinstance(data, dict):
            self._envelope = {k: v for k, v in data.items() if k != self.items_key}
            data = data.get(self.items_key) or []

        items = []
        for raw in data:
            try:
                items.append(self.model.model_validate(raw))
            except Exception as e:
                logger.warning(f"[{self.log_tag}] Skipping invalid record {raw!r}: {e}")
        logger.info(f"[{self.log_tag}] Loaded {len(items)} records from {self.path}")
        return items

    def _persist_unlocked(self) -> None:
        records = [item.to_json_dict() for item in self._items]
        if self._envelope is not None:
            data = dict(self._envelope)
            data[self.items_key] = records
        else:
            data = records
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, self.path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

    # -----------------------
    # list / get / upsert / delete
    # -----------------------

    def _index_unlocked(self, item_id: str) -> int:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        raise NotFoundError(f"Mode not found: {item_id}")

    def list(self) -> list:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items]

    def get(self, item_id: str):
        with self._lock:
            return self._items[self._index_unlocked(item_id)].model_copy(deep=True)

    def find(self, predicate: Callable) -> Optional[object]:
        with self._lock:
            for item in self._items:
                if predicate(item):
                    return item.model_copy(deep=True)
        return None

    def upsert(self, item):
        with self._lock:
            try:
                self._items[self._index_unlocked(item.id)] = item
            except NotFoundError:
                self._items.append(item)
            self._persist_unlocked()
            return item.model_copy(deep=True)

    def delete(self, item_id: str):
        with self._lock:
            removed = self._items.pop(self._index_unlocked(item_id))
            self._persist_unlocked()
            return removed

    def mutate(self, item_id: str, fn: Callable):
        """
        Apply fn(item) in place under the lock, then persist. Returns a copy.
        """
        with self._lock:
            item = self._items[self._index_unlocked(item_id)]
            fn(item)
            self._persist_unlocked()
            return item.model_copy(deep=True)


class ModeCatalog(JsonFileStore):
    """
    The verified catalog (modes.json). Read-only except for download counts.
    """

    model = Mode
    items_key = "modes"
    log_tag = "MODES"

    def filter(self, category: str | None = None, featured: bool | None = None, search: str | None = None) -> List[Mode]:
        modes = self.list()
        if category:
            modes = [m for m in modes if m.category == category]
        if featured:
            modes = [m for m in modes if m.featured]
        if search:
            needle = search.lower()
            modes = [m for m in modes if needle in m.name.lower() or needle in (m.description or "").lower()]
        return modes

    def record_activation(self, mode_id: str) -> Mode:
        def _bump(mode: Mode) -> None:
            mode.downloads += 1
        return self.mutate(mode_id, _bump)

    @staticmethod
    def categories() -> List[str]:
        return list(MODE_CATEGORIES)


class MyModesLibrary(JsonFileStore):
    """
    The user's saved modes (my_modes.json).

    Invariant: at most one entry has status == "active".
    """

    model = SavedMode
    items_key = "modes"
    log_tag = "MY MODES"

    def __init__(self, path) -> None:
        super().__init__(path)
        self._last_id = 0

    def _new_id_unlocked(self) -> str:
        stamp = int(time.time() * 1000)
        if stamp <= self._last_id:
            stamp = self._last_id + 1
        self._last_id = stamp
        existing = {m.id for m in self._items}
        while f"mode-{stamp}" in existing:
            stamp += 1
        return f"mode-{stamp}"

    def find_by_smart_name(self, smart_name: str) -> Optional[SavedMode]:
        return self.find(lambda m: m.smart_name == smart_name)

    def upsert_generated(
        self,
        *,
        name: str,
        smart_name: str,
        original_prompt: str,
        cpp_file: str,
        widget_file: str,
    ) -> SavedMode:
        """
        Create or refresh the entry for `smart_name` after a successful generation.
        Regenerating keeps id, createdAt, activationCount and tags, and bumps version.
        """
        now = utc_now_iso()
        with self._lock:
            existing = next((m for m in self._items if m.smart_name == smart_name), None)
            if existing is not None:
                existing.name = name
                existing.original_prompt = original_prompt
                existing.version += 1
                # the new sources are not built yet; a favorite stays a favorite
                existing.status = "favorite" if existing.status == "favorite" else "draft"
                existing.trashed_at = None
                existing.last_modified = now
                existing.cpp_file = cpp_file
                existing.widget_file = widget_file
                saved = existing
            else:
                saved = SavedMode(
                    id=self._new_id_unlocked(),
                    name=name,
                    smart_name=smart_name,
                    original_prompt=original_prompt,
                    version=1,
                    status="draft",
                    created_at=now,
                    last_modified=now,
                    cpp_file=cpp_file,
                    widget_file=widget_file,
                )
                self._items.append(saved)
            self._persist_unlocked()
            return saved.model_copy(deep=True)

    def list_modes(self, status: str | None = None, search: str | None = None, tag: str | None = None) -> List[SavedMode]:
        modes = self.list()
        if status:
            modes = [m for m in modes if m.status == status]
        else:
            modes = [m for m in modes if m.status != "trash"]
        if tag:
            modes = [m for m in modes if tag in m.tags]
        if search:
            needle = search.lower()
            modes = [
                m for m in modes
                if needle in m.name.lower() or needle in (m.original_prompt or "").lower()
            ]
        return modes

    def counts(self) -> Dict[str, int]:
        modes = self.list()
        return {
            "all": sum(1 for m in modes if m.status != "trash"),
            "drafts": sum(1 for m in modes if m.status == "draft"),
            "active": sum(1 for m in modes if m.status == "active"),
            "favorites": sum(1 for m in modes if m.status == "favorite"),
            "trash": sum(1 for m in modes if m.status == "trash"),
        }

    def _activate_unlocked(self, target: SavedMode) -> None:
        now = utc_now_iso()
        for m in self._items:
            if m is target:
                continue
            if m.status == "active":
                m.status = "draft"
                m.last_modified = now
        target.status = "favorite" if target.status == "favorite" else "active"
        target.trashed_at = None
        target.activation_count += 1
        target.last_activated = now

    def activate(self, mode_id: str) -> SavedMode:
        """
        Mark `mode_id` as the running mode and demote any other active entry to draft.
        Favorites keep their status (both the target and the demoted one).
        """
        with self._lock:
            target = self._items[self._index_unlocked(mode_id)]
            self._activate_unlocked(target)
            self._persist_unlocked()
            return target.model_copy(deep=True)

    def update(self, mode_id: str, *, status: str | None = None, tags: List[str] | None = None,
               name: str | None = None) -> SavedMode:
        if status is not None and status not in SAVED_MODE_STATUSES:
            raise ValueError(f"Invalid status '{status}'. Expected one of {list(SAVED_MODE_STATUSES)}")
        with self._lock:
            target = self._items[self._index_unlocked(mode_id)]
            now = utc_now_iso()
            if status == "active":
                for m in self._items:
                    if m is not target and m.status == "active":
                        m.status = "draft"
                        m.last_modified = now
            if status:
                target.status = status
                target.trashed_at = now if status == "trash" else None
            if tags is not None:
                target.tags = list(tags)
            if name:
                target.name = name
            target.last_modified = now
            self._persist_unlocked()
            return target.model_copy(deep=True)

    def remove(self, mode_id: str, permanent: bool = False) -> SavedMode:
        """
        Soft delete (status -> trash, trashedAt stamped) unless `permanent`.
        """
        if permanent:
            return self.delete(mode_id)
        with self._lock:
            target = self._items[self._index_unlocked(mode_id)]
            now = utc_now_iso()
            target.status = "trash"
            target.trashed_at = now
            target.last_modified = now
            self._persist_unlocked()
            return target.model_copy(deep=True)
