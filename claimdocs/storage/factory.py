from pathlib import Path

from claimdocs.config.settings import Settings
from claimdocs.storage.base import BaseObjectStorage
from claimdocs.storage.local_adapter import LocalFileStorage
from claimdocs.storage.router import SchemeRouter
from claimdocs.storage.s3_adapter import S3Storage


class StorageFactory:
    """Builds a SchemeRouter with the configured backend as write target."""

    BACKENDS = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> SchemeRouter:
        backend = settings.storage_backend.lower()
        if backend not in cls.BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
            )

        local = LocalFileStorage(
            root=Path(settings.storage_root),
            public_base_url=settings.storage_public_base_url,
            signing_secret=settings.storage_signing_secret,
        )
        if backend == "local":
            return SchemeRouter(local)

        s3: BaseObjectStorage = S3Storage(
            bucket=settings.s3_bucket,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
        return SchemeRouter(s3, local)
