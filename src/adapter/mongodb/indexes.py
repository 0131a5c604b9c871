"""MongoDB index management for the users collection."""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def _is_conflict(error: PyMongoError) -> bool:
    message = str(error)
    return "already exists" in message or "Conflict" in message


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create an index, replacing an existing one that clashes with it.

    An index clashes when it shares the name or the key pattern but was
    built with a different definition.
    """
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if not _is_conflict(e):
            raise
        return _replace_clashing_index(collection, keys, name, **kwargs)


def _replace_clashing_index(collection, keys: list, name: str, **kwargs) -> bool:
    wanted_keys = dict(keys)
    clashing = next(
        (
            existing for existing, info in collection.index_information().items()
            if existing != '_id_' and (existing == name or dict(info.get('key', [])) == wanted_keys)
        ),
        None,
    )
    if clashing is None:
        logger.error("No clashing index found", extra={"index": name})
        return False

    logger.warning("Replacing index", extra={"index": name, "replaced": clashing})
    collection.drop_index(clashing)
    collection.create_index(keys, name=name, **kwargs)
    return True


def ensure_all_indexes(db) -> bool:
    """Called at app startup."""
    from adapter.mongodb.user_repository import MongoUserRepository

    return MongoUserRepository(db).ensure_indexes()
