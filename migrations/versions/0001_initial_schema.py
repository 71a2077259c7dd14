"""initial schema: users, audit trail, catalog and site content

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create every table the app uses."""
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("name", sa.String(255), nullable=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("role", sa.String(32), nullable=False, server_default="admin"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("actor_user_email", sa.String(320), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.Column("client_ip", sa.String(64), nullable=True),
        )
        op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])

    # Catalog
    if "product_types" not in existing_tables:
        op.create_table(
            "product_types",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(128), nullable=False, unique=True),
            sa.Column("slug", sa.String(64), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("icon", sa.String(64), nullable=True),
            sa.Column("color", sa.String(32), nullable=True),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "products" not in existing_tables:
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column("slug", sa.String(200), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("price", sa.Numeric(14, 2), nullable=False),
            sa.Column("discount_price", sa.Numeric(14, 2), nullable=True),
            sa.Column("duration", sa.String(100), nullable=False),
            sa.Column("type", sa.String(64), nullable=False),
            sa.Column("departure", sa.DateTime(), nullable=False),
            sa.Column("quota", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("quota_filled", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("features", sa.JSON(), nullable=False),
            sa.Column("itinerary", sa.JSON(), nullable=False),
            sa.Column("images", sa.Text(), nullable=False, server_default=""),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
        )
        op.create_index("idx_products_type", "products", ["type"])
        op.create_index("idx_products_active_featured", "products", ["is_active", "is_featured"])

    # Blog and gallery
    if "blogs" not in existing_tables:
        op.create_table(
            "blogs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("slug", sa.String(255), nullable=False, unique=True),
            sa.Column("content", sa.Text(), nullable=False, server_default=""),
            sa.Column("excerpt", sa.Text(), nullable=True),
            sa.Column("cover_image", sa.Text(), nullable=True),
            sa.Column("author", sa.String(255), nullable=True),
            sa.Column("category", sa.String(128), nullable=True),
            sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("published_at", sa.DateTime(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_blogs_published", "blogs", ["is_published", "published_at"])
        op.create_index("idx_blogs_category", "blogs", ["category"])

    if "galleries" not in existing_tables:
        op.create_table(
            "galleries",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("image_url", sa.Text(), nullable=False),
            sa.Column("category", sa.String(128), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    # Home page
    if "hero_sections" not in existing_tables:
        op.create_table(
            "hero_sections",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=True),
            sa.Column("subtitle", sa.String(255), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("button_text", sa.String(128), nullable=True),
            sa.Column("button_link", sa.Text(), nullable=True),
            sa.Column("image_url", sa.Text(), nullable=True),
            sa.Column("background_url", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "hero_buttons" not in existing_tables:
        op.create_table(
            "hero_buttons",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "hero_section_id",
                sa.Integer(),
                sa.ForeignKey("hero_sections.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("text", sa.String(128), nullable=False),
            sa.Column("link", sa.Text(), nullable=False),
            sa.Column("variant", sa.String(32), nullable=False, server_default="primary"),
            sa.Column("bg_color", sa.String(64), nullable=True),
            sa.Column("text_color", sa.String(64), nullable=True),
            sa.Column("icon", sa.String(64), nullable=True),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )
        op.create_index("ix_hero_buttons_hero_section_id", "hero_buttons", ["hero_section_id"])

    if "hero_stats" not in existing_tables:
        op.create_table(
            "hero_stats",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("label", sa.String(128), nullable=False),
            sa.Column("value", sa.String(64), nullable=False),
            sa.Column("suffix", sa.String(64), nullable=True),
            sa.Column("icon", sa.String(64), nullable=True),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "testimonials" not in existing_tables:
        op.create_table(
            "testimonials",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("role", sa.String(255), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("rating", sa.Integer(), nullable=False, server_default="5"),
            sa.Column("image_url", sa.Text(), nullable=True),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "why_choose_us" not in existing_tables:
        op.create_table(
            "why_choose_us",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("icon", sa.String(64), nullable=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    # Partners and social links
    if "partners" not in existing_tables:
        op.create_table(
            "partners",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("logo_url", sa.Text(), nullable=False),
            sa.Column("website_url", sa.Text(), nullable=True),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "partner_sections" not in existing_tables:
        op.create_table(
            "partner_sections",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if "social_media" not in existing_tables:
        op.create_table(
            "social_media",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(128), nullable=False),
            sa.Column("icon", sa.String(64), nullable=False),
            sa.Column("url", sa.Text(), nullable=False),
            sa.Column("bg_color", sa.String(64), nullable=False, server_default="bg-blue-500"),
            sa.Column("hover_color", sa.String(64), nullable=False, server_default="bg-blue-600"),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    # Settings, media library, visitor counters
    if "settings" not in existing_tables:
        op.create_table(
            "settings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("key", sa.String(128), nullable=False, unique=True),
            sa.Column("value", sa.Text(), nullable=False, server_default=""),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
        )

    if "media" not in existing_tables:
        op.create_table(
            "media",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("filename", sa.String(512), nullable=False),
            sa.Column("filepath", sa.Text(), nullable=False, unique=True),
            sa.Column("filesize", sa.Integer(), nullable=False),
            sa.Column("mimetype", sa.String(128), nullable=False),
            sa.Column("media_type", sa.String(16), nullable=False),
            sa.Column("width", sa.Integer(), nullable=True),
            sa.Column("height", sa.Integer(), nullable=True),
            sa.Column("duration", sa.Float(), nullable=True),
            sa.Column("alt", sa.Text(), nullable=True),
            sa.Column("title", sa.String(512), nullable=True),
            sa.Column("uploaded_by", sa.String(320), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_media_type_created", "media", ["media_type", "created_at"])

    if "visitor_stats" not in existing_tables:
        op.create_table(
            "visitor_stats",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("date", sa.Date(), nullable=False, unique=True),
            sa.Column("page_views", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("product_views", sa.Integer(), nullable=False, server_default="0"),
            *_timestamps(),
        )


def downgrade() -> None:
    for table in (
        "visitor_stats",
        "media",
        "settings",
        "social_media",
        "partner_sections",
        "partners",
        "why_choose_us",
        "testimonials",
        "hero_stats",
        "hero_buttons",
        "hero_sections",
        "galleries",
        "blogs",
        "products",
        "product_types",
        "audit_events",
        "users",
    ):
        op.drop_table(table)
