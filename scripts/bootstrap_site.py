"""
Create the owner account and seed the singleton site configuration row.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.db import SiteConfig
from portfolio.dependencies import get_auth_client, get_store_client
from portfolio.errors import ValidationFailure
from portfolio.site_config import (
    FALLBACK_ABOUT_TEXT,
    FALLBACK_HERO_SUBTITLE,
    FALLBACK_HERO_TITLE,
)

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Bootstrap the portfolio backend")
    parser.add_argument("--email", type=str, help="Owner account email")
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Owner password (prompted when omitted)",
    )
    parser.add_argument(
        "--contact-email",
        type=str,
        default="",
        help="Contact email shown on the landing page",
    )
    parser.add_argument(
        "--skip-config",
        action="store_true",
        help="Do not seed the site_config row",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    if args.email:
        password = args.password or getpass.getpass("Owner password: ")
        try:
            user = get_auth_client().create_user(args.email, password)
            logger.info("Created owner %s (%s)", user.email, user.id)
        except ValidationFailure as exc:
            logger.warning("Owner not created: %s", exc.message)

    if not args.skip_config:
        store = get_store_client()
        if store.get_site_config() is not None:
            logger.info("site_config already seeded, leaving it untouched")
        else:
            store.insert_site_config(
                SiteConfig(
                    hero_title=FALLBACK_HERO_TITLE,
                    hero_subtitle=FALLBACK_HERO_SUBTITLE,
                    about_text=FALLBACK_ABOUT_TEXT,
                    contact_email=args.contact_email or (args.email or ""),
                )
            )
            logger.info("Seeded site_config")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
