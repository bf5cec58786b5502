"""
Access to the hosted image store.

Post images and profile pictures live on Cloudinary.  ``ImageStore``
wraps the ``cloudinary`` uploader with the credentials from settings
and exposes the two calls the services need: ``upload``, which returns
the public ``secure_url`` of the stored image, and ``destroy``, which
removes an image by its public id.  SDK failures surface as
``ImageStoreError``.

The service layer receives an ``ImageStore`` through the
``get_image_store`` dependency so tests can replace it with a fake.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlparse

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from .config import settings


logger = logging.getLogger(__name__)


class ImageStoreError(Exception):
    """Raised when the image store cannot be reached or rejects a request."""


def public_id_from_url(url: str) -> str:
    """Derive the storage key of a hosted image from its URL.

    The key is the last path segment with its extension removed, e.g.
    ``https://res.cloudinary.com/demo/image/upload/v1312461204/sample.jpg``
    gives ``sample``.
    """
    last_segment = urlparse(url).path.rstrip("/").split("/")[-1]
    return last_segment.split(".")[0]


def discard_image(image_store: "ImageStore", url: str) -> None:
    """Destroy a hosted image, logging instead of raising on failure."""
    public_id = public_id_from_url(url)
    try:
        image_store.destroy(public_id)
    except ImageStoreError as exc:
        logger.warning("Could not remove image %s: %s", public_id, exc)


class ImageStore:
    """Cloudinary uploader bound to one account."""

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str, timeout: float = 15) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    def _options(self) -> Dict[str, Any]:
        if not self.cloud_name or not self.api_key:
            raise ImageStoreError("Image store is not configured")
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "secure": True,
            "timeout": self.timeout,
        }

    def upload(self, file: str) -> str:
        """Upload an image and return its hosted HTTPS URL.

        ``file`` may be a remote URL or a base64 data URI; the uploader
        accepts both as is.
        """
        options = self._options()
        try:
            result = cloudinary.uploader.upload(file, **options)
        except CloudinaryError as exc:
            raise ImageStoreError(str(exc)) from exc
        secure_url = result.get("secure_url")
        if not secure_url:
            raise ImageStoreError("Image store did not return a URL")
        logger.info("Uploaded image %s", result.get("public_id"))
        return secure_url

    def destroy(self, public_id: str) -> None:
        """Delete the image stored under ``public_id``."""
        options = self._options()
        try:
            result = cloudinary.uploader.destroy(public_id, **options)
        except CloudinaryError as exc:
            raise ImageStoreError(str(exc)) from exc
        if result.get("result") not in ("ok", "not found"):
            raise ImageStoreError(f"Unexpected destroy result: {result.get('result')}")
        logger.info("Destroyed image %s (%s)", public_id, result.get("result"))


def get_image_store() -> ImageStore:
    """FastAPI dependency returning an image store built from settings."""
    return ImageStore(
        cloud_name=settings.image_store_cloud_name,
        api_key=settings.image_store_api_key,
        api_secret=settings.image_store_api_secret,
        timeout=settings.image_store_timeout,
    )
