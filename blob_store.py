"""
Key-value blob storage

JSON blobs addressed by key within a namespace. Production uses Cloudflare R2
through its S3-compatible API; local development uses one JSON file per key.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config import PortalConfig

logger = logging.getLogger(__name__)


class BlobStore:
    """Interface shared by the storage backends."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def list(self) -> List[Tuple[str, Any]]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryBlobStore(BlobStore):
    """In-process store, used by tests."""

    def __init__(self, namespace: str = "test", data: Optional[Dict[str, Any]] = None):
        super().__init__(namespace)
        self._data: Dict[str, str] = {}
        for key, value in (data or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def list(self) -> List[Tuple[str, Any]]:
        return [(key, json.loads(raw)) for key, raw in sorted(self._data.items())]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBlobStore(BlobStore):
    """One JSON file per key under {root}/{namespace}/."""

    def __init__(self, namespace: str, root: str):
        super().__init__(namespace)
        self.directory = Path(root) / namespace
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = key.replace('/', '_')
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def list(self) -> List[Tuple[str, Any]]:
        items = []
        for path in sorted(self.directory.glob('*.json')):
            with open(path, 'r', encoding='utf-8') as f:
                items.append((path.stem, json.load(f)))
        return items

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix('.json.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(value, f, indent=2)
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class R2BlobStore(BlobStore):
    """Cloudflare R2 bucket, objects stored as {namespace}/{key}.json."""

    def __init__(self, namespace: str, config: Optional[PortalConfig] = None):
        super().__init__(namespace)
        config = config or PortalConfig.from_environment()
        self.account_id = config.r2_account_id
        self.access_key = config.r2_access_key_id
        self.secret_key = config.r2_secret_access_key
        self.bucket = config.r2_bucket

        if self.account_id:
            self.endpoint = f"https://{self.account_id}.r2.cloudflarestorage.com"
        else:
            self.endpoint = None
        self._client = None

    def is_configured(self) -> Tuple[bool, Optional[str]]:
        """Check if R2 is properly configured.

        Returns:
            Tuple of (is_configured, error_message)
        """
        if not self.account_id:
            return False, "R2_ACCOUNT_ID not set"
        if not self.access_key:
            return False, "R2_ACCESS_KEY_ID not set"
        if not self.secret_key:
            return False, "R2_SECRET_ACCESS_KEY not set"
        return True, None

    def _get_client(self):
        """Get boto3 S3 client configured for R2."""
        if self._client is None:
            import boto3
            from botocore.config import Config

            self._client = boto3.client(
                's3',
                endpoint_url=self.endpoint,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                config=Config(signature_version='s3v4'),
                region_name='auto'  # R2 uses 'auto' region
            )
        return self._client

    def _object_key(self, key: str) -> str:
        return f"{self.namespace}/{key}.json"

    def get(self, key: str) -> Optional[Any]:
        from botocore.exceptions import ClientError

        try:
            response = self._get_client().get_object(Bucket=self.bucket, Key=self._object_key(key))
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return None
            logger.error(f"Failed to read {self._object_key(key)} from R2: {e}")
            raise
        return json.loads(response['Body'].read().decode('utf-8'))

    def list(self) -> List[Tuple[str, Any]]:
        client = self._get_client()
        prefix = f"{self.namespace}/"
        items = []
        paginator = client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get('Contents', []):
                object_key = obj['Key']
                if not object_key.endswith('.json'):
                    continue
                key = object_key[len(prefix):-len('.json')]
                value = self.get(key)
                if value is not None:
                    items.append((key, value))
        return items

    def set(self, key: str, value: Any) -> None:
        self._get_client().put_object(
            Bucket=self.bucket,
            Key=self._object_key(key),
            Body=json.dumps(value).encode('utf-8'),
            ContentType='application/json',
            CacheControl='no-cache'
        )
        logger.info(f"Stored {self._object_key(key)} in R2")

    def delete(self, key: str) -> None:
        self._get_client().delete_object(Bucket=self.bucket, Key=self._object_key(key))
        logger.info(f"Deleted {self._object_key(key)} from R2")


def get_blob_store(namespace: str, config: Optional[PortalConfig] = None) -> BlobStore:
    """
    Pick the storage backend for a namespace.

    Args:
        namespace: Store namespace (e.g. 'insurance-data', 'plan-edits')
        config: Portal configuration (default: from environment)

    Returns:
        R2BlobStore when R2 credentials are set, otherwise FileBlobStore
    """
    config = config or PortalConfig.from_environment()
    if config.r2_configured:
        return R2BlobStore(namespace, config)
    logger.info(f"R2 not configured, storing '{namespace}' under {config.blob_data_dir}")
    return FileBlobStore(namespace, config.blob_data_dir)


if __name__ == "__main__":
    config = PortalConfig.from_environment()
    store = R2BlobStore("insurance-data", config)
    is_configured, error = store.is_configured()

    if is_configured:
        print("R2 is configured!")
        print(f"  Endpoint: {store.endpoint}")
        print(f"  Bucket: {store.bucket}")
        print(f"  Keys: {[key for key, _ in store.list()]}")
    else:
        print(f"R2 not configured: {error}")
        print("\nRequired environment variables:")
        print("  R2_ACCOUNT_ID")
        print("  R2_ACCESS_KEY_ID")
        print("  R2_SECRET_ACCESS_KEY")
        print("  R2_BUCKET (optional, defaults to 'insurance-data')")
