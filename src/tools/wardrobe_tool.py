"""
Wardrobe catalog: built-in sample garments plus user-added items.

The sample tuple is never mutated. Deleting a sample records its id in a
persisted deleted-ids set; custom items are persisted as a list in the
key-value store.
"""
import os
from pathlib import PurePosixPath
from typing import Any, List, Optional, Union
from urllib.parse import urljoin, urlparse

from src.media.ingestion import ingest_user_reference
from src.shared.kv_store import select_store
from src.shared.logging_utils import info as log_info
from src.specs.common.enums import GarmentType
from src.specs.common.errors import InputValidationError, ResourceNotFoundError
from src.specs.models.domain import ImagePayload, WardrobeItem

_UNSPLASH = "https://images.unsplash.com/{}?auto=format&fit=crop&w=600&q=80"

SAMPLE_CLOTHES = (
    WardrobeItem(id=1, type=GarmentType.TOP, url="/clothes/red-shirt-1.png", label="Red Long Sleeve"),
    WardrobeItem(id=2, type=GarmentType.TOP, url="/clothes/red-shirt-2.png", label="Red Crewneck"),
    WardrobeItem(id=3, type=GarmentType.TOP, url="/clothes/black-dress-1.png", label="Black Dress"),
    WardrobeItem(id=4, type=GarmentType.TOP, url="/clothes/black-dress-2.png", label="Black Flare Dress"),
    WardrobeItem(id=5, type=GarmentType.TOP, url="/clothes/grey-coat-1.png", label="Grey Wool Coat"),
    WardrobeItem(id=6, type=GarmentType.TOP, url="/clothes/grey-coat-2.png", label="Grey Long Coat"),
    WardrobeItem(id=7, type=GarmentType.BOTTOM, url=_UNSPLASH.format("photo-1542272454315-4c01d7abdf4a"), label="Dark Wash Jeans"),
    WardrobeItem(id=8, type=GarmentType.BOTTOM, url=_UNSPLASH.format("photo-1582552938357-32b906df40cb"), label="Denim Shorts"),
    WardrobeItem(id=9, type=GarmentType.SHOE, url=_UNSPLASH.format("photo-1542291026-7eec264c27ff"), label="Red Sneakers"),
    WardrobeItem(id=10, type=GarmentType.SHOE, url=_UNSPLASH.format("photo-1560769629-975e13f01b35"), label="Leather Shoes"),
    WardrobeItem(id=11, type=GarmentType.SHOE, url=_UNSPLASH.format("photo-1595950653106-6c9ebd614d3a"), label="Sport Runners"),
)

CUSTOM_KEY = "wardrobe_custom_items"
DELETED_KEY = "wardrobe_deleted_sample_ids"
NEXT_ID_KEY = "wardrobe_next_custom_id"
LABEL_MAX = 20


def label_from_filename(name: str) -> str:
    """File name without extension, cut to the label limit."""
    stem = PurePosixPath(urlparse(name).path or name).name
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    return stem[:LABEL_MAX]


def _as_type(value: Union[GarmentType, str]) -> GarmentType:
    try:
        return GarmentType(value)
    except ValueError:
        raise InputValidationError(
            f"Unknown garment type '{value}'",
            details={"allowed": [t.value for t in GarmentType]},
        )


class WardrobeCatalog:
    def __init__(self, store: Any = None) -> None:
        self._store = store if store is not None else select_store()

    def _custom(self) -> List[WardrobeItem]:
        return [WardrobeItem.model_validate(raw) for raw in (self._store.get(CUSTOM_KEY) or [])]

    def _deleted(self) -> set:
        return set(self._store.get(DELETED_KEY) or [])

    def _allocate_id(self, custom: List[WardrobeItem]) -> int:
        # Ids only move forward; a deleted custom id is never handed out again
        floor = max([item.id for item in SAMPLE_CLOTHES] + [item.id for item in custom]) + 1
        next_id = max(int(self._store.get(NEXT_ID_KEY) or 0), floor)
        self._store.set(NEXT_ID_KEY, next_id + 1)
        return next_id

    def list_items(self, garment_type: Optional[Union[GarmentType, str]] = None) -> List[WardrobeItem]:
        deleted = self._deleted()
        items = [item for item in SAMPLE_CLOTHES if item.id not in deleted] + self._custom()
        if garment_type is not None:
            wanted = _as_type(garment_type)
            items = [item for item in items if item.type is wanted]
        return items

    def get(self, item_id: int) -> WardrobeItem:
        for item in self.list_items():
            if item.id == item_id:
                return item
        raise ResourceNotFoundError("wardrobe item", str(item_id))

    def add_custom(self, garment_type: Union[GarmentType, str], url: str, label: Optional[str] = None) -> WardrobeItem:
        if not url or not url.strip():
            raise InputValidationError("Wardrobe item needs an image url")
        wanted = _as_type(garment_type)
        custom = self._custom()
        item = WardrobeItem(
            id=self._allocate_id(custom),
            type=wanted,
            url=url.strip(),
            label=(label or "").strip()[:LABEL_MAX] or label_from_filename(url.strip()),
            custom=True,
        )
        custom.append(item)
        self._store.set(CUSTOM_KEY, [i.model_dump(mode="json") for i in custom])
        log_info(None, "wardrobe:added", id=item.id, type=item.type.value)
        return item

    def delete(self, item_id: int) -> WardrobeItem:
        item = self.get(item_id)
        if item.custom:
            remaining = [i for i in self._custom() if i.id != item_id]
            self._store.set(CUSTOM_KEY, [i.model_dump(mode="json") for i in remaining])
        else:
            deleted = self._deleted()
            deleted.add(item_id)
            self._store.set(DELETED_KEY, sorted(deleted))
        log_info(None, "wardrobe:deleted", id=item_id, custom=item.custom)
        return item

    def restore_samples(self) -> None:
        self._store.delete(DELETED_KEY)

    def load_image(self, item_id: int) -> ImagePayload:
        """Fetch the item's picture. Site-relative sample urls resolve against WARDROBE_BASE_URL."""
        item = self.get(item_id)
        url = item.url
        if url.startswith("/"):
            base = os.getenv("WARDROBE_BASE_URL")
            if not base:
                raise InputValidationError(
                    f"Wardrobe item {item_id} has a relative url and WARDROBE_BASE_URL is not set",
                    details={"url": url},
                )
            url = urljoin(base.rstrip("/") + "/", url.lstrip("/"))
        return ingest_user_reference(url)
