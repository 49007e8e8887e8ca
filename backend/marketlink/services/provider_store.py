import json
import logging
import os
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from marketlink.models import (
    AdminActionRecord,
    AdminProvider,
    AdminProviderPage,
    AdminStats,
    ListingMeta,
    ProviderDetail,
    ProviderPage,
    ProviderSummary,
    User,
)
from marketlink.services import visibility
from marketlink.services.emails import require_email
from marketlink.services.errors import ConflictError, NotFoundError, ValidationError
from marketlink.services.listing_query import ListingQuery, PublicListingQuery

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Owner-editable columns; admins may additionally change the moderation fields.
DESCRIPTIVE_FIELDS = ("business_name", "city", "state", "zip", "tagline", "logo", "services")
REQUIRED_TEXT_FIELDS = {"business_name": "businessName", "city": "city", "state": "state"}
OPTIONAL_TEXT_FIELDS = ("zip", "tagline", "logo", "notes")

API_FIELD_NAMES = {
    "business_name": "businessName",
    "disabled_reason": "disabledReason",
}

SEED_PROVIDERS: List[Dict[str, Any]] = [
    {
        "email": "contact@windycitygrowth.com",
        "business_name": "Windy City Growth",
        "tagline": "Meta + Google Ads for local",
        "city": "Chicago",
        "state": "IL",
        "rating": 4.7,
        "verified": True,
        "logo": "https://placehold.co/80x80",
        "services": ["seo", "ads", "social"],
    },
    {
        "email": "hello@napervilledigitalboost.com",
        "business_name": "Naperville Digital Boost",
        "tagline": "SEO & content that compounds",
        "city": "Naperville",
        "state": "IL",
        "rating": 4.5,
        "verified": False,
        "logo": "https://placehold.co/80x80",
        "services": ["seo"],
    },
    {
        "email": "team@evanstonsociallab.com",
        "business_name": "Evanston Social Lab",
        "tagline": "Short-form video + socials",
        "city": "Evanston",
        "state": "IL",
        "rating": 4.2,
        "verified": True,
        "logo": "https://placehold.co/80x80",
        "services": ["social", "video"],
    },
    {
        "email": "print@oakparkprintco.com",
        "business_name": "Oak Park Print Co.",
        "tagline": "Flyers, menus, window wraps",
        "city": "Oak Park",
        "state": "IL",
        "rating": 4.0,
        "verified": False,
        "logo": "https://placehold.co/80x80",
        "services": ["print"],
    },
]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").strip().lower())
    return slug.strip("-")


def normalize_services(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        raw_items: Iterable[Any] = value.split(",")
    else:
        raw_items = value
    services: List[str] = []
    for item in raw_items:
        tag = str(item).strip().lower()
        if tag and tag not in services:
            services.append(tag)
    return services


@dataclass
class ProviderStore:
    db_path: str
    seed_demo: bool = True

    def __post_init__(self) -> None:
        self._lock = Lock()
        path = Path(self.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = str(path)
        self._init_db()
        if self.seed_demo:
            self._seed_if_needed()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS providers (
                        id TEXT PRIMARY KEY,
                        slug TEXT NOT NULL UNIQUE,
                        email TEXT NOT NULL UNIQUE,
                        business_name TEXT NOT NULL,
                        tagline TEXT,
                        city TEXT NOT NULL,
                        state TEXT NOT NULL,
                        zip TEXT,
                        logo TEXT,
                        notes TEXT,
                        rating REAL NOT NULL DEFAULT 0,
                        verified INTEGER NOT NULL DEFAULT 0,
                        status TEXT NOT NULL DEFAULT 'pending',
                        disabled_reason TEXT,
                        user_id TEXT,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS provider_services (
                        provider_id TEXT NOT NULL,
                        tag TEXT NOT NULL,
                        PRIMARY KEY (provider_id, tag)
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS admin_actions (
                        id TEXT PRIMARY KEY,
                        admin_user_id TEXT,
                        provider_id TEXT NOT NULL,
                        type TEXT NOT NULL,
                        metadata_json TEXT NOT NULL DEFAULT '{}',
                        created_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_providers_status ON providers (status)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_providers_user ON providers (user_id)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_provider_services_tag ON provider_services (tag)")
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_admin_actions_provider ON admin_actions (provider_id, created_at)"
                )
                conn.commit()

    def _seed_if_needed(self) -> None:
        with self._connect() as conn:
            existing = conn.execute("SELECT COUNT(*) FROM providers").fetchone()[0]
        if existing:
            return
        self.seed(SEED_PROVIDERS)

    def seed(self, providers: Iterable[Dict[str, Any]]) -> int:
        created = 0
        for item in providers:
            try:
                self.create_provider(status="active", **item)
            except ConflictError:
                continue
            created += 1
        logger.info("Seeded %d demo providers", created)
        return created

    # -- row mapping -----------------------------------------------------

    def _load_services(self, conn: sqlite3.Connection, provider_ids: List[str]) -> Dict[str, List[str]]:
        services: Dict[str, List[str]] = {provider_id: [] for provider_id in provider_ids}
        if not provider_ids:
            return services
        placeholders = ", ".join("?" for _ in provider_ids)
        rows = conn.execute(
            f"SELECT provider_id, tag FROM provider_services WHERE provider_id IN ({placeholders}) ORDER BY tag",
            provider_ids,
        ).fetchall()
        for row in rows:
            services[row["provider_id"]].append(row["tag"])
        return services

    def _row_to_provider(self, row: sqlite3.Row, services: List[str]) -> AdminProvider:
        return AdminProvider(
            id=row["id"],
            slug=row["slug"],
            business_name=row["business_name"],
            tagline=row["tagline"],
            city=row["city"],
            state=row["state"],
            zip=row["zip"],
            logo=row["logo"],
            notes=row["notes"],
            services=services,
            rating=float(row["rating"] or 0),
            verified=bool(row["verified"]),
            status=row["status"],
            disabled_reason=row["disabled_reason"],
            email=row["email"],
            owner_id=row["user_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _rows_to_providers(self, conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[AdminProvider]:
        services = self._load_services(conn, [row["id"] for row in rows])
        return [self._row_to_provider(row, services[row["id"]]) for row in rows]

    def _fetch_provider(self, conn: sqlite3.Connection, column: str, value: str) -> Optional[AdminProvider]:
        row = conn.execute(f"SELECT * FROM providers WHERE {column} = ?", (value,)).fetchone()
        if not row:
            return None
        return self._rows_to_providers(conn, [row])[0]

    @staticmethod
    def to_summary(provider: AdminProvider) -> ProviderSummary:
        return ProviderSummary(**provider.model_dump(include=set(ProviderSummary.model_fields)))

    @staticmethod
    def to_detail(provider: AdminProvider) -> ProviderDetail:
        return ProviderDetail(**provider.model_dump(include=set(ProviderDetail.model_fields)))

    # -- helpers ---------------------------------------------------------

    def _unique_slug(self, conn: sqlite3.Connection, base: str) -> str:
        slug = base
        suffix = 2
        while conn.execute("SELECT 1 FROM providers WHERE slug = ?", (slug,)).fetchone():
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def _replace_services(self, conn: sqlite3.Connection, provider_id: str, services: List[str]) -> None:
        conn.execute("DELETE FROM provider_services WHERE provider_id = ?", (provider_id,))
        conn.executemany(
            "INSERT INTO provider_services (provider_id, tag) VALUES (?, ?)",
            [(provider_id, tag) for tag in services],
        )

    def _record_action(
        self,
        conn: sqlite3.Connection,
        *,
        admin_user_id: Optional[str],
        provider_id: str,
        action_type: str,
        metadata: Dict[str, Any],
    ) -> None:
        conn.execute(
            """
            INSERT INTO admin_actions (id, admin_user_id, provider_id, type, metadata_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (f"act_{uuid4().hex}", admin_user_id, provider_id, action_type, json.dumps(metadata), _utc_now()),
        )

    def _clean_descriptive(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize descriptive fields present in ``changes``; absent keys are left alone."""
        cleaned: Dict[str, Any] = {}
        for key, label in REQUIRED_TEXT_FIELDS.items():
            if key not in changes:
                continue
            value = (changes[key] or "").strip()
            if not value:
                raise ValidationError(f"{label} cannot be empty")
            cleaned[key] = value
        if "state" in cleaned and len(cleaned["state"]) < 2:
            raise ValidationError("state must be at least 2 characters")
        for key in OPTIONAL_TEXT_FIELDS:
            if key in changes:
                cleaned[key] = (changes[key] or "").strip() or None
        if "services" in changes:
            cleaned["services"] = normalize_services(changes["services"])
        return cleaned

    # -- create / owner paths --------------------------------------------

    def create_provider(
        self,
        *,
        business_name: str,
        city: str,
        state: str,
        email: str,
        owner_user_id: Optional[str] = None,
        zip: Optional[str] = None,
        tagline: Optional[str] = None,
        logo: Optional[str] = None,
        notes: Optional[str] = None,
        services: Any = None,
        rating: float = 0.0,
        verified: bool = False,
        status: Optional[str] = None,
        disabled_reason: Optional[str] = None,
    ) -> AdminProvider:
        if not (business_name or "").strip():
            raise ValidationError("businessName is required")
        if not (city or "").strip():
            raise ValidationError("city is required")
        if not (state or "").strip():
            raise ValidationError("state is required")
        fields = self._clean_descriptive(
            {
                "business_name": business_name,
                "city": city,
                "state": state,
                "zip": zip,
                "tagline": tagline,
                "logo": logo,
                "notes": notes,
                "services": services,
            }
        )
        contact_email = require_email(email)
        start_status, start_reason = visibility.initial_status(status, disabled_reason)
        base_slug = slugify(fields["business_name"]) or f"provider-{uuid4().hex[:8]}"
        provider_id = f"prv_{uuid4().hex}"
        now = _utc_now()

        with self._lock:
            with self._connect() as conn:
                if owner_user_id is not None:
                    owned = conn.execute("SELECT id FROM providers WHERE user_id = ?", (owner_user_id,)).fetchone()
                    if owned:
                        raise ConflictError("You already have a provider profile.")
                slug = self._unique_slug(conn, base_slug)
                try:
                    conn.execute(
                        """
                        INSERT INTO providers (
                            id, slug, email, business_name, tagline, city, state, zip, logo, notes,
                            rating, verified, status, disabled_reason, user_id, created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            provider_id,
                            slug,
                            contact_email,
                            fields["business_name"],
                            fields["tagline"],
                            fields["city"],
                            fields["state"],
                            fields["zip"],
                            fields["logo"],
                            fields["notes"],
                            float(rating or 0),
                            1 if verified else 0,
                            start_status,
                            start_reason,
                            owner_user_id,
                            now,
                            now,
                        ),
                    )
                    self._replace_services(conn, provider_id, fields["services"])
                    conn.commit()
                except sqlite3.IntegrityError as exc:
                    conn.rollback()
                    raise ConflictError("A provider with this email or slug already exists.") from exc
                created = self._fetch_provider(conn, "id", provider_id)
        assert created is not None
        logger.info("Provider created id=%s slug=%s status=%s", created.id, created.slug, created.status)
        return created

    def create_owned_provider(self, *, user: User, **fields: Any) -> AdminProvider:
        """Onboarding: the signed-in user becomes the owner and the contact email."""
        return self.create_provider(owner_user_id=user.id, email=user.email, **fields)

    def get_owned_provider(self, user_id: str) -> Optional[AdminProvider]:
        with self._connect() as conn:
            return self._fetch_provider(conn, "user_id", user_id)

    def update_owned_provider(self, *, user_id: str, changes: Dict[str, Any]) -> AdminProvider:
        descriptive = {key: value for key, value in changes.items() if key in DESCRIPTIVE_FIELDS}
        with self._lock:
            with self._connect() as conn:
                current = self._fetch_provider(conn, "user_id", user_id)
                if current is None:
                    raise NotFoundError("You don't have a provider profile yet.")
                cleaned = self._clean_descriptive(descriptive)
                if not cleaned:
                    raise ValidationError("No fields to update")
                self._write_columns(conn, current.id, cleaned)
                conn.commit()
                updated = self._fetch_provider(conn, "id", current.id)
        assert updated is not None
        return updated

    def link_owner(self, *, provider_id: str, user_id: str) -> AdminProvider:
        with self._lock:
            with self._connect() as conn:
                owned = conn.execute(
                    "SELECT id FROM providers WHERE user_id = ? AND id != ?",
                    (user_id, provider_id),
                ).fetchone()
                if owned:
                    raise ConflictError("User already owns a provider profile")
                cursor = conn.execute(
                    "UPDATE providers SET user_id = ?, updated_at = ? WHERE id = ?",
                    (user_id, _utc_now(), provider_id),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("Provider not found")
                conn.commit()
                linked = self._fetch_provider(conn, "id", provider_id)
        assert linked is not None
        return linked

    def list_unowned_providers(self) -> List[AdminProvider]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM providers WHERE user_id IS NULL ORDER BY created_at").fetchall()
            return self._rows_to_providers(conn, rows)

    def _write_columns(self, conn: sqlite3.Connection, provider_id: str, columns: Dict[str, Any]) -> None:
        values = dict(columns)
        services = values.pop("services", None)
        values["updated_at"] = _utc_now()
        assignments = ", ".join(f"{column} = ?" for column in values)
        conn.execute(
            f"UPDATE providers SET {assignments} WHERE id = ?",
            [*values.values(), provider_id],
        )
        if services is not None:
            self._replace_services(conn, provider_id, services)

    # -- reads -------------------------------------------------------------

    def get_provider_for_viewer(self, slug: str, viewer: Optional[User]) -> ProviderDetail:
        with self._connect() as conn:
            provider = self._fetch_provider(conn, "slug", (slug or "").strip())
        # Missing and hidden records must be indistinguishable.
        if provider is None or not visibility.can_view(provider.status, provider.owner_id, viewer):
            raise NotFoundError("Not found")
        return self.to_detail(provider)

    def get_active_provider_id(self, slug: str) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM providers WHERE slug = ? AND status = ?",
                ((slug or "").strip(), visibility.PUBLIC_LISTING_STATUS),
            ).fetchone()
        if not row:
            raise NotFoundError("Provider not found")
        return str(row["id"])

    def search(self, query: ListingQuery) -> Tuple[int, List[AdminProvider]]:
        where, params = query.where_clause()
        with self._connect() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM providers p WHERE {where}", params).fetchone()[0]
            if query.offset >= total:
                return int(total), []
            rows = conn.execute(
                f"SELECT p.* FROM providers p WHERE {where} ORDER BY {query.order_clause()} LIMIT ? OFFSET ?",
                [*params, query.limit, query.offset],
            ).fetchall()
            providers = self._rows_to_providers(conn, rows)
        return int(total), providers

    def _meta(self, query: ListingQuery, total: int) -> ListingMeta:
        return ListingMeta(
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=query.total_pages(total),
            sort=query.sort,
            order=query.order,
        )

    def list_public(self, query: PublicListingQuery) -> ProviderPage:
        total, providers = self.search(query)
        return ProviderPage(meta=self._meta(query, total), data=[self.to_summary(p) for p in providers])

    # -- admin -------------------------------------------------------------

    def list_admin(self, actor: Optional[User], query: ListingQuery) -> AdminProviderPage:
        visibility.require_admin(actor)
        total, providers = self.search(query)
        return AdminProviderPage(meta=self._meta(query, total), data=providers)

    def get_provider_admin(self, actor: Optional[User], provider_id: str) -> AdminProvider:
        visibility.require_admin(actor)
        with self._connect() as conn:
            provider = self._fetch_provider(conn, "id", provider_id)
        if provider is None:
            raise NotFoundError("Provider not found")
        return provider

    def stats(self, actor: Optional[User]) -> AdminStats:
        visibility.require_admin(actor)
        return self.count_by_status()

    def count_by_status(self) -> AdminStats:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(status = 'active'), 0) AS active,
                       COALESCE(SUM(status = 'pending'), 0) AS pending,
                       COALESCE(SUM(status = 'disabled'), 0) AS disabled,
                       COALESCE(SUM(verified = 1), 0) AS verified
                FROM providers
                """
            ).fetchone()
        return AdminStats(
            total=int(row["total"]),
            active=int(row["active"]),
            pending=int(row["pending"]),
            disabled=int(row["disabled"]),
            verified=int(row["verified"]),
        )

    def _transition(
        self,
        actor: Optional[User],
        provider_id: str,
        action: str,
        reason: Optional[str] = None,
    ) -> AdminProvider:
        admin = visibility.require_admin(actor)
        if visibility.TRANSITIONS[action].requires_reason:
            visibility.normalize_reason(reason)
        with self._lock:
            with self._connect() as conn:
                current = self._fetch_provider(conn, "id", provider_id)
                if current is None:
                    raise NotFoundError("Provider not found")
                change = visibility.plan_transition(action, current.status, reason)
                self._write_columns(
                    conn,
                    provider_id,
                    {"status": change.status, "disabled_reason": change.disabled_reason},
                )
                self._record_action(
                    conn,
                    admin_user_id=admin.id,
                    provider_id=provider_id,
                    action_type=change.audit_type,
                    metadata=change.metadata,
                )
                conn.commit()
                updated = self._fetch_provider(conn, "id", provider_id)
        assert updated is not None
        logger.info(
            "Provider %s by admin=%s provider=%s %s->%s",
            action,
            admin.id,
            provider_id,
            current.status,
            updated.status,
        )
        return updated

    def approve(self, actor: Optional[User], provider_id: str) -> AdminProvider:
        return self._transition(actor, provider_id, "approve")

    def disable(self, actor: Optional[User], provider_id: str, reason: Optional[str]) -> AdminProvider:
        return self._transition(actor, provider_id, "disable", reason=reason)

    def enable(self, actor: Optional[User], provider_id: str) -> AdminProvider:
        return self._transition(actor, provider_id, "enable")

    def set_pending(self, actor: Optional[User], provider_id: str) -> AdminProvider:
        return self._transition(actor, provider_id, "pending")

    def set_verified(self, actor: Optional[User], provider_id: str, value: Optional[bool] = None) -> AdminProvider:
        admin = visibility.require_admin(actor)
        with self._lock:
            with self._connect() as conn:
                current = self._fetch_provider(conn, "id", provider_id)
                if current is None:
                    raise NotFoundError("Provider not found")
                next_value = value if value is not None else not current.verified
                self._write_columns(conn, provider_id, {"verified": 1 if next_value else 0})
                self._record_action(
                    conn,
                    admin_user_id=admin.id,
                    provider_id=provider_id,
                    action_type=visibility.verify_audit_type(next_value),
                    metadata={"from": current.verified, "to": next_value},
                )
                conn.commit()
                updated = self._fetch_provider(conn, "id", provider_id)
        assert updated is not None
        logger.info("Provider verified=%s by admin=%s provider=%s", next_value, admin.id, provider_id)
        return updated

    def edit_provider(self, actor: Optional[User], provider_id: str, changes: Dict[str, Any]) -> AdminProvider:
        """Admin edit of descriptive and moderation fields, recorded as one EDIT action."""
        admin = visibility.require_admin(actor)
        if not changes:
            raise ValidationError("No fields to update")
        columns = self._clean_descriptive(changes)

        if "email" in changes:
            columns["email"] = require_email(changes["email"])
        if "slug" in changes:
            slug = (changes["slug"] or "").strip().lower()
            if not SLUG_PATTERN.match(slug):
                raise ValidationError("slug may only contain lowercase letters, digits and single hyphens")
            columns["slug"] = slug
        if "rating" in changes:
            rating = changes["rating"]
            if rating is None or not 0 <= float(rating) <= 5:
                raise ValidationError("rating must be between 0 and 5")
            columns["rating"] = float(rating)
        if "verified" in changes:
            if changes["verified"] is None:
                raise ValidationError("verified must be true or false")
            columns["verified"] = bool(changes["verified"])

        with self._lock:
            with self._connect() as conn:
                current = self._fetch_provider(conn, "id", provider_id)
                if current is None:
                    raise NotFoundError("Provider not found")

                if "status" in changes or "disabled_reason" in changes:
                    status, reason = visibility.resolve_status_edit(
                        current.status,
                        current.disabled_reason,
                        status=changes.get("status"),
                        disabled_reason=changes.get("disabled_reason"),
                        reason_given="disabled_reason" in changes,
                    )
                    columns["status"] = status
                    columns["disabled_reason"] = reason

                if "slug" in columns and columns["slug"] != current.slug:
                    taken = conn.execute(
                        "SELECT 1 FROM providers WHERE slug = ? AND id != ?",
                        (columns["slug"], provider_id),
                    ).fetchone()
                    if taken:
                        raise ConflictError("Slug is already in use")

                diff = self._diff(current, columns)
                if not diff:
                    return current

                written = {key: columns[key] for key in diff}
                if "verified" in written:
                    written["verified"] = 1 if written["verified"] else 0
                try:
                    self._write_columns(conn, provider_id, written)
                    self._record_action(
                        conn,
                        admin_user_id=admin.id,
                        provider_id=provider_id,
                        action_type="EDIT",
                        metadata={"changes": {API_FIELD_NAMES.get(key, key): value for key, value in diff.items()}},
                    )
                    conn.commit()
                except sqlite3.IntegrityError as exc:
                    conn.rollback()
                    raise ConflictError("A provider with this email or slug already exists.") from exc
                updated = self._fetch_provider(conn, "id", provider_id)
        assert updated is not None
        logger.info("Provider edited by admin=%s provider=%s fields=%s", admin.id, provider_id, sorted(diff))
        return updated

    @staticmethod
    def _diff(current: AdminProvider, columns: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        diff: Dict[str, Dict[str, Any]] = {}
        for key, value in columns.items():
            before = getattr(current, key)
            if key == "services":
                if sorted(before) == sorted(value):
                    continue
            elif before == value:
                continue
            diff[key] = {"from": before, "to": value}
        return diff

    def list_admin_actions(self, actor: Optional[User], provider_id: str) -> List[AdminActionRecord]:
        visibility.require_admin(actor)
        with self._connect() as conn:
            if not conn.execute("SELECT 1 FROM providers WHERE id = ?", (provider_id,)).fetchone():
                raise NotFoundError("Provider not found")
            rows = conn.execute(
                """
                SELECT * FROM admin_actions
                WHERE provider_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (provider_id,),
            ).fetchall()
        return [
            AdminActionRecord(
                id=row["id"],
                admin_user_id=row["admin_user_id"],
                provider_id=row["provider_id"],
                type=row["type"],
                metadata=json.loads(row["metadata_json"] or "{}"),
                created_at=row["created_at"],
            )
            for row in rows
        ]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes"}


default_db = str(Path(__file__).resolve().parents[2] / "data" / "marketlink.sqlite3")
provider_store = ProviderStore(
    db_path=os.getenv("MARKETLINK_DB_PATH", default_db),
    seed_demo=_env_flag("MARKETLINK_SEED_DEMO", True),
)
