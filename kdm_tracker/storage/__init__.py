from kdm_tracker.storage.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore
from kdm_tracker.storage.persistence import (
    CampaignLoadError,
    LoadOutcome,
    export_backup,
    load_campaign,
)

__all__ = [
    "BlobStore",
    "FileBlobStore",
    "InMemoryBlobStore",
    "CampaignLoadError",
    "LoadOutcome",
    "export_backup",
    "load_campaign",
]
