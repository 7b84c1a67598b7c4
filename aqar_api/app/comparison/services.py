"""
Per-browser property comparison tray.

The list lives in the signed session cookie under 'property-comparison' and
holds small snapshots of each property, in the order they were added.
"""
from flask import current_app

STORAGE_KEY = 'property-comparison'
MAX_COMPARISONS = 4
SNAPSHOT_FIELDS = (
    'id', 'title', 'price', 'location', 'area', 'bedrooms', 'bathrooms',
    'size', 'property_type', 'thumbnail_url',
)


class ComparisonError(ValueError):
    DUPLICATE = 'duplicate'
    FULL = 'full'

    def __init__(self, code, message):
        super().__init__(message)
        self.code = code


def snapshot(prop):
    card = prop.to_card_dict()
    return {field: card.get(field) for field in SNAPSHOT_FIELDS}


class ComparisonList:
    def __init__(self, storage, max_items=MAX_COMPARISONS):
        self.storage = storage
        self.max_items = max_items

    @property
    def items(self):
        stored = self.storage.get(STORAGE_KEY)
        if not isinstance(stored, list):
            if stored is not None:
                current_app.logger.warning("Discarding unreadable comparison list from session")
            return []
        return [item for item in stored if isinstance(item, dict) and 'id' in item]

    def _save(self, items):
        self.storage[STORAGE_KEY] = items
        # session.modified is only tracked for top-level assignment
        if hasattr(self.storage, 'modified'):
            self.storage.modified = True

    @property
    def count(self):
        return len(self.items)

    @property
    def can_add_more(self):
        return self.count < self.max_items

    def is_in_comparison(self, property_id):
        return any(item['id'] == property_id for item in self.items)

    def add(self, item):
        items = self.items
        if any(existing['id'] == item['id'] for existing in items):
            raise ComparisonError(ComparisonError.DUPLICATE, "Property already in comparison")
        if len(items) >= self.max_items:
            raise ComparisonError(
                ComparisonError.FULL, f"Maximum {self.max_items} properties can be compared"
            )
        items.append(item)
        self._save(items)
        return items

    def remove(self, property_id):
        items = [item for item in self.items if item['id'] != property_id]
        self._save(items)
        return items

    def clear(self):
        self._save([])
