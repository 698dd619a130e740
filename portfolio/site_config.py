"""
Site configuration: the singleton record of global text and the profile image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from portfolio.db import SiteConfig, StoreClient
from portfolio.files import generate_storage_key
from portfolio.session_guard import OwnerContext
from portfolio.storage import StorageClient

logger = logging.getLogger(__name__)

PROFILE_IMAGE_PREFIX = "profile"

# Shown on public pages when the record or a field is missing.
FALLBACK_HERO_TITLE = "Crafting Digital Masterpieces."
FALLBACK_HERO_SUBTITLE = (
    "I build scalable web applications and intuitive user experiences."
)
FALLBACK_ABOUT_TEXT = (
    "I am a passionate developer with a keen eye for design and a drive for "
    "creating seamless user experiences."
)
FALLBACK_CONTACT_EMAIL = "contact@example.com"
FALLBACK_PROFILE_IMAGE_URL = "https://github.com/shadcn.png"


@dataclass
class ImageUpload:
    file_name: str
    data: bytes
    content_type: Optional[str] = None


def with_fallbacks(config: Optional[SiteConfig]) -> SiteConfig:
    """Fill every empty field with its public default."""
    config = config or SiteConfig()
    return replace(
        config,
        hero_title=config.hero_title or FALLBACK_HERO_TITLE,
        hero_subtitle=config.hero_subtitle or FALLBACK_HERO_SUBTITLE,
        about_text=config.about_text or FALLBACK_ABOUT_TEXT,
        contact_email=config.contact_email or FALLBACK_CONTACT_EMAIL,
        profile_image_url=config.profile_image_url or FALLBACK_PROFILE_IMAGE_URL,
    )


class SiteConfigService:
    def __init__(self, store: StoreClient, storage: StorageClient):
        self.store = store
        self.storage = storage

    def fetch(self) -> Optional[SiteConfig]:
        return self.store.get_site_config()

    def update(
        self,
        owner: OwnerContext,
        *,
        hero_title: str,
        hero_subtitle: str,
        about_text: str,
        contact_email: str,
        image: Optional[ImageUpload] = None,
    ) -> Optional[SiteConfig]:
        if image is not None:
            key = generate_storage_key(image.file_name, prefix=PROFILE_IMAGE_PREFIX)
            self.storage.upload(
                key, image.data, content_type=image.content_type, overwrite=True
            )
            profile_image_url = self.storage.get_public_url(key)
            logger.info("Uploaded new profile image %s", key)
        else:
            current = self.store.get_site_config()
            profile_image_url = current.profile_image_url if current else None

        updated = self.store.update_site_config(
            requester_id=owner.user_id,
            hero_title=hero_title or "",
            hero_subtitle=hero_subtitle or "",
            about_text=about_text or "",
            contact_email=contact_email or "",
            profile_image_url=profile_image_url,
        )
        logger.info("Site configuration updated by %s", owner.user_id)
        return updated
