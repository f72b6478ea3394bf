"""
Turns restaurant records into the rows and detail views shown to users.
"""
import asyncio
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from restaurant_guide.data_collection.reference_resolver import ReferenceKind, ReferenceResolver
from restaurant_guide.processing.rating import normalize_rating

# Restaurant fields as named in the base
NAME_FIELD = "Name"
COST_FIELD = "Cost"
RATING_FIELD = "My Rating"
NOTES_FIELD = "Notes"
PICTURES_FIELD = "Pictures"
MENU_FIELD = "Menu"

TAB_DETAILS = "Details"
TAB_PHOTOS = "Photos"
TAB_MENU = "Menu"


class ListRow(BaseModel):
    index: int
    record_id: str
    name: str
    subtitle: str


class DetailView(BaseModel):
    record_id: str
    name: str
    notes: str
    cost: str
    rating: str
    district: str
    cuisine: str
    photo_url: Optional[str] = None
    tabs: List[str]


def _text(fields: Mapping[str, Any], name: str, default: str) -> str:
    value = fields.get(name)
    if value is None or value == "":
        return default
    return str(value)


def _attachments(fields: Mapping[str, Any], name: str) -> List[Dict[str, Any]]:
    value = fields.get(name)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def photo_thumbnails(fields: Mapping[str, Any]) -> List[str]:
    """Large thumbnail URL of every picture, falling back to the full-size URL."""
    urls = []
    for picture in _attachments(fields, PICTURES_FIELD):
        thumbnails = picture.get("thumbnails")
        large = thumbnails.get("large") if isinstance(thumbnails, dict) else None
        url = (large.get("url") if isinstance(large, dict) else None) or picture.get("url")
        if url:
            urls.append(url)
    return urls


def photo_url(fields: Mapping[str, Any], position: int) -> str:
    """Full-size URL of the picture at `position`."""
    pictures = _attachments(fields, PICTURES_FIELD)
    if position < 0 or position >= len(pictures) or not pictures[position].get("url"):
        raise IndexError(f"No picture at position {position}")
    return pictures[position]["url"]


def menu_url(fields: Mapping[str, Any]) -> Optional[str]:
    """URL of the first scanned menu document (PDF or image)."""
    menus = _attachments(fields, MENU_FIELD)
    if not menus:
        return None
    return menus[0].get("url")


def visible_tabs(fields: Mapping[str, Any]) -> List[str]:
    tabs = [TAB_DETAILS]
    if PICTURES_FIELD in fields:
        tabs.append(TAB_PHOTOS)
    if MENU_FIELD in fields:
        tabs.append(TAB_MENU)
    return tabs


class RecordPresenter:
    """Builds list rows and detail views, resolving linked fields through the resolver."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def list_row(self, index: int, record: Mapping[str, Any]) -> ListRow:
        fields = record.get("fields") or {}
        rating = normalize_rating(fields.get(RATING_FIELD))
        cost = _text(fields, COST_FIELD, "?")
        return ListRow(
            index=index,
            record_id=record.get("id", ""),
            name=_text(fields, NAME_FIELD, ""),
            subtitle=f"{rating} • {cost}",
        )

    def detail_view(self, record: Mapping[str, Any]) -> DetailView:
        """Detail view with whatever reference names are known right now.

        Unknown names show a placeholder and are fetched in the background.
        """
        fields = record.get("fields") or {}
        pictures = _attachments(fields, PICTURES_FIELD)
        return DetailView(
            record_id=record.get("id", ""),
            name=_text(fields, NAME_FIELD, ""),
            notes=_text(fields, NOTES_FIELD, "None."),
            cost=_text(fields, COST_FIELD, "Unknown"),
            rating=normalize_rating(fields.get(RATING_FIELD)),
            district=self.resolver.display_field(fields, ReferenceKind.DISTRICT),
            cuisine=self.resolver.display_field(fields, ReferenceKind.CUISINE),
            photo_url=pictures[0].get("url") if pictures else None,
            tabs=visible_tabs(fields),
        )

    async def resolve_references(self, record: Mapping[str, Any]):
        """Resolve both linked fields of a record concurrently."""
        fields = record.get("fields") or {}
        await asyncio.gather(
            self.resolver.resolve_field(fields, ReferenceKind.DISTRICT),
            self.resolver.resolve_field(fields, ReferenceKind.CUISINE),
        )
