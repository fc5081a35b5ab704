# This file declares every admin-managed entity and how its list, write, and bulk endpoints behave.
# It exists so one generic service and router can serve skills, projects, experience, and the rest.
# Each definition carries the sort allow-list, search columns, and bilingual column pair for filters.
# Bulk action maps live here too, so an entity only accepts the actions its table can represent.

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.api.bulk import DELETE_ACTION, BulkAction, set_column_action
from src.api.list_query import SortDir

TESTIMONIAL_STATUSES: frozenset[str] = frozenset({"pending", "approved", "rejected"})


@dataclass(frozen=True)
class LinkTable:
    """Many-to-many rows copied or replaced alongside the owning record."""

    table: str
    owner_column: str
    target_column: str
    payload_key: str


@dataclass(frozen=True)
class EntityDefinition:
    slug: str
    table: str
    label: str
    sort_fields: tuple[str, ...]
    default_sort_by: str
    default_sort_dir: SortDir = "asc"
    search_columns: tuple[str, ...] = ()
    translation_columns: tuple[str, str] | None = None
    required_fields: tuple[str, ...] = ()
    writable_fields: tuple[str, ...] = ()
    duplicate_fields: tuple[str, ...] | None = None
    bulk_actions: Mapping[str, BulkAction] = field(default_factory=lambda: {"delete": DELETE_ACTION})
    month_date_fields: tuple[str, ...] = ()
    choice_fields: Mapping[str, frozenset[str]] = field(default_factory=dict)
    create_defaults: Mapping[str, Any] = field(default_factory=dict)
    public_filters: Mapping[str, Any] = field(default_factory=dict)
    admin_filter_params: Mapping[str, frozenset[str]] = field(default_factory=dict)
    admin_only_list: bool = False
    allows_create: bool = True
    public_create: bool = False
    has_order: bool = True
    revalidates: bool = True
    link: LinkTable | None = None

    @property
    def supports_duplicate(self) -> bool:
        return self.duplicate_fields is not None and self.has_order


SKILLS = EntityDefinition(
    slug="skills",
    table="skills",
    label="skill",
    sort_fields=("order", "name_en", "name_fr", "created_at"),
    default_sort_by="order",
    search_columns=("name_en", "name_fr"),
    translation_columns=("name_en", "name_fr"),
    required_fields=("name_en", "name_fr"),
    writable_fields=("name_en", "name_fr", "category_id", "order"),
    duplicate_fields=("name_en", "name_fr", "category_id"),
)

PROJECTS = EntityDefinition(
    slug="projects",
    table="projects",
    label="project",
    sort_fields=("order", "title_en", "title_fr", "featured", "start_date", "created_at"),
    default_sort_by="order",
    search_columns=("title_en", "title_fr", "description_en", "description_fr"),
    translation_columns=("title_en", "title_fr"),
    required_fields=("title_en", "title_fr"),
    writable_fields=(
        "title_en",
        "title_fr",
        "description_en",
        "description_fr",
        "image_url",
        "project_url",
        "github_url",
        "start_date",
        "end_date",
        "featured",
        "order",
    ),
    duplicate_fields=(
        "title_en",
        "title_fr",
        "description_en",
        "description_fr",
        "image_url",
        "project_url",
        "github_url",
        "start_date",
        "end_date",
        "featured",
    ),
    month_date_fields=("start_date", "end_date"),
    create_defaults={"featured": False},
    link=LinkTable(
        table="project_skills",
        owner_column="project_id",
        target_column="skill_id",
        payload_key="skill_ids",
    ),
)

EXPERIENCE = EntityDefinition(
    slug="experience",
    table="experience",
    label="experience",
    sort_fields=("order", "company", "start_date", "end_date", "created_at"),
    default_sort_by="order",
    search_columns=("company", "position_en", "position_fr", "location"),
    translation_columns=("position_en", "position_fr"),
    required_fields=("company", "position_en", "position_fr", "start_date"),
    writable_fields=(
        "company",
        "position_en",
        "position_fr",
        "description_en",
        "description_fr",
        "location",
        "start_date",
        "end_date",
        "order",
    ),
    duplicate_fields=(
        "company",
        "position_en",
        "position_fr",
        "description_en",
        "description_fr",
        "location",
        "start_date",
        "end_date",
    ),
    month_date_fields=("start_date", "end_date"),
)

EDUCATION = EntityDefinition(
    slug="education",
    table="education",
    label="education",
    sort_fields=("order", "institution", "start_date", "end_date", "created_at"),
    default_sort_by="order",
    search_columns=("institution", "degree_en", "degree_fr", "location"),
    translation_columns=("degree_en", "degree_fr"),
    required_fields=("institution", "degree_en", "degree_fr", "start_date"),
    writable_fields=(
        "institution",
        "degree_en",
        "degree_fr",
        "location",
        "start_date",
        "end_date",
        "order",
    ),
    duplicate_fields=(
        "institution",
        "degree_en",
        "degree_fr",
        "location",
        "start_date",
        "end_date",
    ),
    month_date_fields=("start_date", "end_date"),
)

HOBBIES = EntityDefinition(
    slug="hobbies",
    table="hobbies",
    label="hobby",
    sort_fields=("order", "name_en", "name_fr", "created_at"),
    default_sort_by="order",
    search_columns=("name_en", "name_fr", "short_description_en", "short_description_fr"),
    translation_columns=("name_en", "name_fr"),
    required_fields=("name_en", "name_fr"),
    writable_fields=(
        "name_en",
        "name_fr",
        "short_description_en",
        "short_description_fr",
        "icon",
        "order",
    ),
    duplicate_fields=("name_en", "name_fr", "short_description_en", "short_description_fr", "icon"),
)

SOCIAL_LINKS = EntityDefinition(
    slug="social-links",
    table="social_links",
    label="social link",
    sort_fields=("order", "platform", "created_at"),
    default_sort_by="order",
    search_columns=("platform", "url"),
    required_fields=("platform", "url"),
    writable_fields=("platform", "url", "icon", "order"),
    duplicate_fields=("platform", "url", "icon"),
)

TESTIMONIALS = EntityDefinition(
    slug="testimonials",
    table="testimonials",
    label="testimonial",
    sort_fields=("created_at", "author_name", "status"),
    default_sort_by="created_at",
    default_sort_dir="desc",
    search_columns=("author_name", "author_company", "content_en", "content_fr"),
    translation_columns=("content_en", "content_fr"),
    required_fields=("author_name", "content_en"),
    writable_fields=(
        "author_name",
        "author_title",
        "author_company",
        "content_en",
        "content_fr",
        "status",
    ),
    bulk_actions={
        "approve": set_column_action("approve", "status", "approved"),
        "reject": set_column_action("reject", "status", "rejected"),
        "delete": DELETE_ACTION,
    },
    choice_fields={"status": TESTIMONIAL_STATUSES},
    create_defaults={"status": "pending"},
    public_create=True,
    public_filters={"status": "approved"},
    admin_filter_params={"status": TESTIMONIAL_STATUSES},
    has_order=False,
)

MESSAGES = EntityDefinition(
    slug="messages",
    table="contact_messages",
    label="message",
    sort_fields=("created_at", "name", "email", "read"),
    default_sort_by="created_at",
    default_sort_dir="desc",
    search_columns=("name", "email", "subject", "message"),
    writable_fields=("read",),
    bulk_actions={
        "mark_read": set_column_action("mark_read", "read", True),
        "mark_unread": set_column_action("mark_unread", "read", False),
        "delete": DELETE_ACTION,
    },
    allows_create=False,
    admin_filter_params={"read": frozenset({"true", "false"})},
    admin_only_list=True,
    has_order=False,
    revalidates=False,
)

ENTITY_DEFINITIONS: tuple[EntityDefinition, ...] = (
    SKILLS,
    PROJECTS,
    EXPERIENCE,
    EDUCATION,
    HOBBIES,
    SOCIAL_LINKS,
    TESTIMONIALS,
    MESSAGES,
)

ENTITIES_BY_SLUG: dict[str, EntityDefinition] = {entity.slug: entity for entity in ENTITY_DEFINITIONS}
