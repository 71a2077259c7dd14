import sys
from pathlib import Path
import os

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.tourcms.models import User
from app.tourcms.modules.catalog.models import ProductType
from app.tourcms.modules.homepage.models import HeroStat
from app.tourcms.modules.site_settings.models import Setting
from app.tourcms.modules.site_settings.service import DEFAULT_SETTINGS
from app.tourcms.modules.social_media.models import SocialMedia
from scripts._db_utils import script_session

HERO_STATS = [
    {"label": "Pengalaman", "value": "10+", "suffix": "Tahun", "icon": "Award", "order": 1},
    {"label": "Jamaah Terlayani", "value": "5000+", "suffix": None, "icon": "Users", "order": 2},
    {"label": "Kepuasan", "value": "100%", "suffix": None, "icon": "ThumbsUp", "order": 3},
]

PRODUCT_TYPES = [
    {
        "name": "Haji",
        "slug": "HAJI",
        "description": "Paket perjalanan ibadah haji ke tanah suci",
        "icon": "Plane",
        "color": "#10b981",
        "order": 1,
    },
    {
        "name": "Umroh",
        "slug": "UMROH",
        "description": "Paket perjalanan umroh sepanjang tahun",
        "icon": "Home",
        "color": "#3b82f6",
        "order": 2,
    },
]

SOCIAL_MEDIA = [
    {"name": "WhatsApp", "icon": "MessageCircle", "url": "https://wa.me/6281234567890", "bg_color": "bg-green-500", "hover_color": "bg-green-600", "order": 0},
    {"name": "Instagram", "icon": "Instagram", "url": "https://instagram.com/khairotour", "bg_color": "bg-pink-500", "hover_color": "bg-pink-600", "order": 1},
    {"name": "Facebook", "icon": "Facebook", "url": "https://facebook.com/khairotour", "bg_color": "bg-blue-600", "hover_color": "bg-blue-700", "order": 2},
    {"name": "Phone", "icon": "Phone", "url": "tel:+6281234567890", "bg_color": "bg-teal-500", "hover_color": "bg-teal-600", "order": 3},
]


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the admin user and default site content in an idempotent way.
    Does NOT overwrite an existing admin password or edited settings.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@khairo.com").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "admin123"
    admin_name = (os.environ.get("ADMIN_NAME") or "Admin").strip()

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///tourcms.db").strip()

    # Use direct engine/session so this can run in release without importing app.wsgi (avoids recursion).
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                email=admin_email,
                name=admin_name,
                password_hash=generate_password_hash(admin_password),
                role="admin",
                is_active=True,
            )
            s.add(user)

        # Settings (only missing keys)
        existing_keys = {k for (k,) in s.query(Setting.key).all()}
        for key, value, description in DEFAULT_SETTINGS:
            if key not in existing_keys:
                s.add(Setting(key=key, value=value, description=description))

        # Collections are seeded only when empty so admin deletions stick.
        if s.query(HeroStat.id).first() is None:
            for row in HERO_STATS:
                s.add(HeroStat(is_active=True, **row))

        if s.query(ProductType.id).first() is None:
            for row in PRODUCT_TYPES:
                s.add(ProductType(is_active=True, **row))

        if s.query(SocialMedia.id).first() is None:
            for row in SOCIAL_MEDIA:
                s.add(SocialMedia(is_active=True, **row))

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
