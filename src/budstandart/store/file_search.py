"""Ask Gemini questions about downloaded documents.

Files are uploaded with the Gemini Files API and grouped into named "stores"
recorded in a local manifest (see ``StoreManifest``). A search sends the
question together with every file of the store to ``generate_content``.
"""

import logging
import mimetypes
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from budstandart.errors import StoreError, StoreNotFound
from budstandart.store.manifest import StoreManifest

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"

_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".html": "text/html",
    ".htm": "text/html",
    ".txt": "text/plain",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def guess_mime_type(path: Path) -> str:
    mime = _MIME_TYPES.get(path.suffix.lower())
    if mime:
        return mime
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


@dataclass
class FileRecord:
    """An uploaded file as kept in the manifest (camelCase keys on disk)."""

    name: str
    displayName: str
    uri: str
    mimeType: str
    sizeBytes: int
    uploadedAt: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StoreSummary:
    name: str
    created: str
    filesCount: int
    totalSize: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Answer:
    query: str
    store: str
    filesCount: int
    response: str

    def to_dict(self) -> dict:
        return asdict(self)


class FileSearchStore:
    """Named collections of Gemini-uploaded files.

    Args:
        client: A ``google.genai.Client``.
        manifest: Where store records are kept.
        model: Model used for ``search``.
    """

    def __init__(self, client, manifest: StoreManifest, model: str = DEFAULT_MODEL):
        self.client = client
        self.manifest = manifest
        self.model = model

    @classmethod
    def from_api_key(
        cls, api_key: str, manifest: StoreManifest, model: str = DEFAULT_MODEL
    ) -> "FileSearchStore":
        return cls(genai.Client(api_key=api_key), manifest, model)

    def _require(self, name: str) -> dict:
        record = self.manifest.get(name)
        if record is None:
            raise StoreNotFound(name)
        return record

    def create_store(self, name: str) -> dict:
        """Create an empty store; an existing store is returned unchanged."""
        existing = self.manifest.get(name)
        if existing is not None:
            logger.info(f'Store "{name}" already exists')
            return existing

        record = {"name": name, "created": _now(), "files": []}
        self.manifest.put(name, record)
        logger.info(f'Created store "{name}"')
        return record

    def upload_file(
        self, path: Path, store: str, display_name: Optional[str] = None
    ) -> FileRecord:
        """Upload ``path`` to Gemini and add it to ``store``.

        Raises:
            FileNotFoundError: ``path`` does not exist.
            StoreNotFound: ``store`` has not been created.
            StoreError: The upload was refused by the API.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        self._require(store)

        display_name = display_name or path.name
        mime_type = guess_mime_type(path)
        logger.info(f"Uploading {path} ({mime_type})...")
        try:
            uploaded = self.client.files.upload(
                file=str(path),
                config={"mime_type": mime_type, "display_name": display_name},
            )
        except genai_errors.APIError as e:
            raise StoreError(f"Upload of {path} failed: {e}") from e

        record = FileRecord(
            name=uploaded.name,
            displayName=display_name,
            uri=uploaded.uri,
            mimeType=uploaded.mime_type or mime_type,
            sizeBytes=uploaded.size_bytes or path.stat().st_size,
            uploadedAt=_now(),
        )

        # Reload so files uploaded concurrently by another run are kept
        current = self._require(store)
        current.setdefault("files", []).append(record.to_dict())
        self.manifest.put(store, current)
        logger.info(f"Uploaded {record.name} to store {store}")
        return record

    def list_stores(self) -> list[StoreSummary]:
        summaries = []
        for name, record in self.manifest.load().items():
            files = record.get("files", [])
            summaries.append(
                StoreSummary(
                    name=name,
                    created=record.get("created", ""),
                    filesCount=len(files),
                    totalSize=sum(int(f.get("sizeBytes") or 0) for f in files),
                )
            )
        return summaries

    def list_files(self, store: str) -> list[dict]:
        return list(self._require(store).get("files", []))

    def search(self, query: str, store: str) -> Answer:
        """Answer ``query`` using every file in ``store`` as context.

        Raises:
            StoreNotFound: Unknown store.
            StoreError: The store has no files, or the API call failed.
        """
        files = self._require(store).get("files", [])
        if not files:
            raise StoreError(f'Store "{store}" has no files')

        logger.info(f'Searching {len(files)} files in "{store}" for: {query}')
        contents = [query] + [
            types.Part.from_uri(file_uri=f["uri"], mime_type=f["mimeType"]) for f in files
        ]
        try:
            response = self.client.models.generate_content(model=self.model, contents=contents)
        except genai_errors.APIError as e:
            raise StoreError(f"Search in store {store} failed: {e}") from e

        return Answer(query=query, store=store, filesCount=len(files), response=response.text or "")

    def delete_store(self, store: str, delete_files: bool = True) -> list[str]:
        """Forget ``store``; optionally delete its uploaded files from Gemini.

        Returns:
            Names of remote files that could not be deleted (already expired
            uploads are common, Gemini keeps files for 48 hours).
        """
        files = self._require(store).get("files", [])
        leftovers = []
        if delete_files:
            for f in files:
                try:
                    self.client.files.delete(name=f["name"])
                except genai_errors.APIError as e:
                    logger.warning(f"Could not delete remote file {f['name']}: {e}")
                    leftovers.append(f["name"])
        self.manifest.remove(store)
        logger.info(f'Deleted store "{store}"')
        return leftovers
