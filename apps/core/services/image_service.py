# apps/core/services/image_service.py
"""
Image Service

Attaches uploaded images to rooms and services. The remote object is
uploaded before the row is written and deleted before the row is
removed.
"""

import logging

from django.db import DatabaseError

from apps.core.models import Image, Room, Service
from .storage import ImageStorage

logger = logging.getLogger(__name__)


class ImageService:
    """Service for room and service images."""

    def __init__(self, storage: ImageStorage = None):
        self._storage = storage

    @property
    def storage(self) -> ImageStorage:
        if self._storage is None:
            self._storage = ImageStorage()
        return self._storage

    def add_room_image(self, room_id: int, content: bytes, filename: str, alt_text: str = None) -> Image:
        from . import NotFoundError

        room = Room.objects.filter(id=room_id).first()
        if room is None:
            raise NotFoundError('Room', room_id)
        return self._add(content, filename, f"rooms/{room.id}", alt_text, room=room)

    def add_service_image(self, service_id: int, content: bytes, filename: str, alt_text: str = None) -> Image:
        from . import NotFoundError

        service = Service.objects.filter(id=service_id).first()
        if service is None:
            raise NotFoundError('Service', service_id)
        return self._add(content, filename, f"services/{service.id}", alt_text, service=service)

    def delete_image(self, image_id: int) -> None:
        from . import NotFoundError

        image = Image.objects.filter(id=image_id).first()
        if image is None:
            raise NotFoundError('Image', image_id)

        self.storage.delete(image.public_id)
        image.delete()
        logger.info(f"Deleted image {image_id}")

    def _add(self, content: bytes, filename: str, folder: str, alt_text: str = None, **owner) -> Image:
        from . import ValidationFailedError, PersistenceError

        if not content:
            raise ValidationFailedError(["image file is required"])

        uploaded = self.storage.upload(content, folder, filename)
        try:
            image = Image.objects.create(
                url=uploaded['url'],
                public_id=uploaded['public_id'],
                alt_text=(alt_text or '')[:255] or None,
                **owner
            )
        except DatabaseError as exc:
            logger.exception("Failed to store image row", extra={'public_id': uploaded['public_id']})
            self.storage.delete(uploaded['public_id'])
            raise PersistenceError() from exc

        logger.info(f"Stored image {image.id} in {folder}")
        return image
