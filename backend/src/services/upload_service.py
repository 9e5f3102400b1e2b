"""
Upload service for user files (avatars, documents, attachments).

Files are stored on local disk under the configured upload directory,
partitioned by the multipart field name they arrived in:

    avatar     → <upload_dir>/avatars/
    document   → <upload_dir>/documents/
    attachment → <upload_dir>/attachments/
    (other)    → <upload_dir>/general/

Stored names are ``{uuid4}-{epoch_ms}{ext}``. Images are shrunk to fit
inside 1200x1200 (never enlarged) and re-encoded as JPEG quality 85; the
stored name keeps the original extension.

Security:
- Extension and MIME type must both be on the allow-list
- Lookup and deletion accept bare stored names only (no path components)
"""

import io
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from backend.src.config.settings import AppSettings
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

FIELD_FOLDERS: Dict[str, str] = {
    "avatar": "avatars",
    "document": "documents",
    "attachment": "attachments",
}
DEFAULT_FOLDER = "general"

# Extension → accepted MIME types
ALLOWED_TYPES: Dict[str, FrozenSet[str]] = {
    ".jpeg": frozenset({"image/jpeg"}),
    ".jpg": frozenset({"image/jpeg"}),
    ".png": frozenset({"image/png"}),
    ".gif": frozenset({"image/gif"}),
    ".webp": frozenset({"image/webp"}),
    ".pdf": frozenset({"application/pdf"}),
    ".doc": frozenset({"application/msword"}),
    ".docx": frozenset({"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}),
    ".xls": frozenset({"application/vnd.ms-excel"}),
    ".xlsx": frozenset({"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}),
    ".ppt": frozenset({"application/vnd.ms-powerpoint"}),
    ".pptx": frozenset({"application/vnd.openxmlformats-officedocument.presentationml.presentation"}),
    ".txt": frozenset({"text/plain"}),
    ".csv": frozenset({"text/csv", "application/vnd.ms-excel"}),
}

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})

MAX_FILES_PER_REQUEST = 10
IMAGE_MAX_DIMENSIONS = (1200, 1200)
IMAGE_JPEG_QUALITY = 85

STORED_NAME_PATTERN = re.compile(r"^[0-9a-f-]{36}-\d+\.[a-z0-9]+$")


@dataclass
class StoredFile:
    """
    A file written to the upload directory.

    Attributes:
        field_name: Multipart field the file arrived in
        original_name: Client-supplied file name
        filename: Stored name ({uuid4}-{epoch_ms}{ext})
        folder: Storage partition (avatars, documents, attachments, general)
        size: Bytes on disk after processing
        mime_type: Declared MIME type
        processed: True when the image was resized and re-encoded
    """

    field_name: str
    original_name: str
    filename: str
    folder: str
    size: int
    mime_type: str
    processed: bool = False

    @property
    def url(self) -> str:
        return f"/api/upload/{self.filename}"


class UploadService:
    """
    Validates, processes and stores uploaded files.

    Usage:
        >>> service = UploadService.from_settings(get_settings())
        >>> stored = service.store("avatar", "me.png", "image/png", content)
        >>> service.resolve(stored.filename)
        PosixPath('uploads/avatars/...png')
    """

    def __init__(self, upload_dir: Path, max_file_size: int):
        self.upload_dir = Path(upload_dir)
        self.max_file_size = max_file_size

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "UploadService":
        return cls(Path(settings.upload_dir), settings.max_file_size)

    @staticmethod
    def folder_for(field_name: str) -> str:
        return FIELD_FOLDERS.get(field_name, DEFAULT_FOLDER)

    @staticmethod
    def make_filename(extension: str) -> str:
        return f"{uuid.uuid4()}-{int(time.time() * 1000)}{extension}"

    def validate(self, filename: str, content_type: Optional[str], size: int) -> str:
        """
        Check a file against the allow-list and size ceiling.

        Returns:
            Lower-cased extension including the dot

        Raises:
            ValidationError: Disallowed type or oversize file
        """
        extension = Path(filename or "").suffix.lower()
        mime_type = (content_type or "").split(";")[0].strip().lower()
        allowed_mimes = ALLOWED_TYPES.get(extension)
        if not allowed_mimes or mime_type not in allowed_mimes:
            raise ValidationError(
                "Only image files and documents are allowed!", field="file"
            )
        if size > self.max_file_size:
            raise ValidationError(
                f"File '{filename}' exceeds the maximum size of {self.max_file_size} bytes",
                field="file",
            )
        if size == 0:
            raise ValidationError(f"File '{filename}' is empty", field="file")
        return extension

    @staticmethod
    def process_image(content: bytes) -> bytes:
        """
        Shrink an image to fit 1200x1200 and re-encode it as JPEG.

        Raises:
            ValidationError: If the bytes are not a readable image
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img = img.convert("RGB")
                img.thumbnail(IMAGE_MAX_DIMENSIONS)
                buffer = io.BytesIO()
                img.save(buffer, format="JPEG", quality=IMAGE_JPEG_QUALITY)
                return buffer.getvalue()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ValidationError(f"Invalid image file: {e}", field="file")

    def prepare(
        self,
        field_name: str,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> Tuple[StoredFile, bytes]:
        """
        Validate and process one file without touching the disk.

        Returns:
            (record describing the file once stored, bytes to write)

        Raises:
            ValidationError: Disallowed type, oversize or unreadable image
        """
        extension = self.validate(filename, content_type, len(content))
        processed = False
        if extension in IMAGE_EXTENSIONS:
            content = self.process_image(content)
            processed = True

        stored = StoredFile(
            field_name=field_name,
            original_name=filename,
            filename=self.make_filename(extension),
            folder=self.folder_for(field_name),
            size=len(content),
            mime_type=content_type or "",
            processed=processed,
        )
        return stored, content

    def _write(self, stored: StoredFile, content: bytes) -> Path:
        target_dir = self.upload_dir / stored.folder
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / stored.filename
        path.write_bytes(content)
        logger.info(
            f"Stored upload {stored.folder}/{stored.filename} ({stored.size} bytes) "
            f"from '{stored.original_name}'"
        )
        return path

    def store(
        self,
        field_name: str,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> StoredFile:
        """
        Validate, process and write one file.

        Raises:
            ValidationError: Disallowed type, oversize or unreadable image
        """
        stored, data = self.prepare(field_name, filename, content_type, content)
        self._write(stored, data)
        return stored

    def store_many(self, files: List[Tuple[str, str, Optional[str], bytes]]) -> List[StoredFile]:
        """
        Store several files from one request.

        Every file is validated and processed before any is written, and a
        failed write removes the files already written, so a request stores
        either all of its files or none.

        Args:
            files: (field_name, filename, content_type, content) tuples

        Raises:
            ValidationError: No files, too many files, or any file invalid
        """
        if not files:
            raise ValidationError("No files uploaded", field="file")
        if len(files) > MAX_FILES_PER_REQUEST:
            raise ValidationError(
                f"Too many files: at most {MAX_FILES_PER_REQUEST} per request",
                field="file",
            )

        prepared = [self.prepare(*f) for f in files]

        written: List[Path] = []
        try:
            for stored, data in prepared:
                written.append(self._write(stored, data))
        except OSError:
            for path in written:
                path.unlink(missing_ok=True)
            logger.error(f"Upload batch failed after {len(written)} file(s); removed partial writes")
            raise

        return [stored for stored, _ in prepared]

    def resolve(self, filename: str) -> Path:
        """
        Find a stored file by name across all partitions.

        Raises:
            NotFoundError: Unknown name or a name with path components
        """
        if not STORED_NAME_PATTERN.match(filename or ""):
            raise NotFoundError("File", filename)
        for folder in list(FIELD_FOLDERS.values()) + [DEFAULT_FOLDER]:
            candidate = self.upload_dir / folder / filename
            if candidate.is_file():
                return candidate
        raise NotFoundError("File", filename)

    def delete(self, filename: str) -> None:
        path = self.resolve(filename)
        path.unlink()
        logger.info(f"Deleted upload {path.parent.name}/{filename}")
