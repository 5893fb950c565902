from kdm_tracker.catalogs.loader import CatalogLoadError, build_catalogs, load_catalogs
from kdm_tracker.catalogs.models import CatalogEntry, MonsterCatalog, ReferenceCatalogs
from kdm_tracker.catalogs.resolver import UNRESOLVED_ID, Resolution, resolve_reference

__all__ = [
    "CatalogLoadError",
    "build_catalogs",
    "load_catalogs",
    "CatalogEntry",
    "MonsterCatalog",
    "ReferenceCatalogs",
    "UNRESOLVED_ID",
    "Resolution",
    "resolve_reference",
]
