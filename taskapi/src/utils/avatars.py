"""
Avatar upload helpers: image sniffing with Pillow and storage on disk.
"""

import os
import uuid

from PIL import Image, UnidentifiedImageError

DEFAULT_IMAGE_FORMATS = {'png', 'jpeg', 'gif', 'webp'}
DEFAULT_MAX_PIXELS = 20_000_000

FORMAT_TO_EXTENSION = {'jpeg': 'jpg', 'png': 'png', 'gif': 'gif', 'webp': 'webp'}

AVATAR_SUBDIR = 'avatars'


def file_size(file_storage) -> int:
    """Size in bytes of an uploaded file, without reading it into memory."""
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def detect_image_format(file_storage, allowed_formats=DEFAULT_IMAGE_FORMATS,
                        max_pixels=DEFAULT_MAX_PIXELS):
    """
    Return the lower-cased Pillow format name of a valid image upload, or None.

    The file is verified first (structural check), then re-opened to read
    its format and dimensions; the stream is rewound either way.
    """
    stream = file_storage.stream
    stream.seek(0)
    try:
        with Image.open(stream) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    finally:
        stream.seek(0)

    try:
        with Image.open(stream) as image:
            image_format = (image.format or '').lower()
            width, height = image.size
    except (UnidentifiedImageError, OSError):
        return None
    finally:
        stream.seek(0)

    if image_format not in allowed_formats or image_format not in FORMAT_TO_EXTENSION:
        return None
    if width * height > max_pixels:
        return None
    return image_format


def store_avatar(file_storage, upload_folder: str) -> str:
    """
    Save an already-validated avatar under upload_folder/avatars.

    Returns:
        str: Path relative to upload_folder, as stored on the user record
    """
    image_format = detect_image_format(file_storage, allowed_formats=set(FORMAT_TO_EXTENSION))
    extension = FORMAT_TO_EXTENSION.get(image_format, 'bin')
    relative_path = f'{AVATAR_SUBDIR}/{uuid.uuid4().hex}.{extension}'

    target_dir = os.path.join(upload_folder, AVATAR_SUBDIR)
    os.makedirs(target_dir, exist_ok=True)
    file_storage.save(os.path.join(upload_folder, relative_path))
    return relative_path


def delete_avatar(relative_path, upload_folder: str) -> None:
    """Remove a previously stored avatar; a missing file is not an error."""
    if not relative_path:
        return
    try:
        os.remove(os.path.join(upload_folder, relative_path))
    except FileNotFoundError:
        pass
