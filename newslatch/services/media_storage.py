"""
Media storage cho ảnh AI: nén JPEG (Pillow) rồi lưu với tên duy nhất.
Key: {folder}/{owner_id}/{YYYY-MM-DD}_{uuid}.jpg (PNG nếu JPEG encode lỗi).
Content image: folder = campaign_id, owner = content_id. Landing page: folder = "landing-pages", owner = page_id.
"""
import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from newslatch.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class EncodedImage:
    data: bytes
    extension: str
    content_type: str


def compress_image(raw: bytes, quality: int = 70) -> EncodedImage:
    """
    Re-encode sang JPEG (RGB, optimize, quality). Ảnh không đọc được => ValueError.
    Lỗi khi encode JPEG => giữ PNG gốc.
    """
    try:
        with Image.open(BytesIO(raw)) as img:
            img.load()
            try:
                rgb = img.convert("RGB")
                buf = BytesIO()
                rgb.save(buf, format="JPEG", quality=quality, optimize=True)
                return EncodedImage(buf.getvalue(), "jpg", "image/jpeg")
            except OSError as e:
                logger.warning("media.jpeg_encode_failed", error=str(e))
                buf = BytesIO()
                img.save(buf, format="PNG")
                return EncodedImage(buf.getvalue(), "png", "image/png")
    except UnidentifiedImageError as e:
        raise ValueError("invalid_image_data") from e


def build_image_key(
    folder: Union[str, uuid.UUID],
    owner_id: uuid.UUID,
    extension: str,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{folder}/{owner_id}/{now.strftime('%Y-%m-%d')}_{uuid.uuid4()}.{extension}"


class MediaStorage(ABC):
    """Interface lưu ảnh; trả về public URL."""

    @abstractmethod
    async def save(self, key: str, data: bytes, content_type: str) -> str:
        """Lưu bytes tại key, trả về public URL."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Xóa object; True nếu có xóa."""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> list[str]:
        """Xóa mọi object có key bắt đầu bằng prefix (một "folder"); trả về các key đã xóa."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Public URL của key (không kiểm tra tồn tại)."""


class LocalMediaStorage(MediaStorage):
    """Filesystem storage: MEDIA_STORAGE_DIR, public qua MEDIA_PUBLIC_BASE_URL."""

    def __init__(self, root_dir: str, public_base_url: str) -> None:
        self.root_dir = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root_dir / key).resolve()
        if self.root_dir.resolve() not in path.parents:
            raise ValueError("invalid_storage_key")
        return path

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def save(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.info("media.saved", key=key, size=len(data), content_type=content_type)
        return self.public_url(key)

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        await asyncio.to_thread(path.unlink)
        logger.info("media.deleted", key=key)
        return True

    async def delete_prefix(self, prefix: str) -> list[str]:
        folder = self._path(prefix.rstrip("/"))

        def _unlink_all() -> list[str]:
            if not folder.is_dir():
                return []
            deleted = []
            for path in sorted(p for p in folder.rglob("*") if p.is_file()):
                path.unlink()
                deleted.append(path.relative_to(self.root_dir.resolve()).as_posix())
            return deleted

        deleted = await asyncio.to_thread(_unlink_all)
        logger.info("media.deleted_prefix", prefix=prefix, count=len(deleted))
        return deleted
