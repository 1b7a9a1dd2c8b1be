"""Collection store collaborators."""

from apiparity.collection.postman import (
    CollectionEntry,
    CollectionStore,
    PostmanCollectionStore,
    StaticCollectionStore,
    collection_items,
    entry_id,
    key_value_list_to_map,
    load_collection_file,
    parse_collection,
    parse_entry,
    parse_item,
)

__all__ = [
    "CollectionEntry",
    "CollectionStore",
    "PostmanCollectionStore",
    "StaticCollectionStore",
    "collection_items",
    "entry_id",
    "key_value_list_to_map",
    "load_collection_file",
    "parse_collection",
    "parse_entry",
    "parse_item",
]
