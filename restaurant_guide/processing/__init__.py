"""
Presentation of restaurant records: ratings, list rows and detail views.
"""
from .rating import NOT_RATED, normalize_rating
from .record_presenter import (
    DetailView,
    ListRow,
    RecordPresenter,
    menu_url,
    photo_thumbnails,
    photo_url,
    visible_tabs,
)

__all__ = [
    'NOT_RATED',
    'normalize_rating',
    'DetailView',
    'ListRow',
    'RecordPresenter',
    'menu_url',
    'photo_thumbnails',
    'photo_url',
    'visible_tabs'
]
