"""
Product image storage on local disk.
"""
import logging
import os
import shutil
import uuid
from typing import Optional

from fastapi import UploadFile

import config
from errors import ValidationError

logger = logging.getLogger(__name__)


def upload_image(directory: str, image: UploadFile) -> str:
    """Copy an uploaded image into `directory` under a random name and return that name."""
    if not image.filename:
        raise ValidationError("Image file is required")
    if image.content_type and not image.content_type.startswith("image/"):
        raise ValidationError(f"Unsupported file type: {image.content_type}")

    _, extension = os.path.splitext(image.filename)
    file_name = f"{uuid.uuid4()}{extension}"

    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, file_name), "wb") as out:
        shutil.copyfileobj(image.file, out)
    logger.info("Stored image %s as %s", image.filename, file_name)
    return file_name


def delete_image(directory: str, image_name: Optional[str]) -> None:
    if not image_name or image_name == config.DEFAULT_IMAGE:
        return
    path = os.path.join(directory, image_name)
    if os.path.exists(path):
        os.remove(path)
