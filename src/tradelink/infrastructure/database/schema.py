"""SQLAlchemy Core table definitions for the tradelink database.

Every edge endpoint is stored as an ``(id, kind)`` column pair. Uniqueness
of connection edges per unordered pair is enforced by the ``pair_key``
column, so two concurrent requests for the same pair cannot both insert.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Text, nullable=False),
    Column("kind", Text, nullable=False),  # individual | organization
    Column("first_name", Text, default="", server_default=""),
    Column("last_name", Text, default="", server_default=""),
    Column("username", Text, default="", server_default=""),
    Column("email", Text, default="", server_default=""),
    Column("phone", Text, default="", server_default=""),
    Column("avatar", Text, default="", server_default=""),
    Column("locality", Text, default="", server_default=""),
    Column("trade", Text, default="", server_default=""),
    Column("business_type", Text, default="", server_default=""),
    Column("owner_id", Text),  # organizations: owning individual
    Column("follow_policy", Text, default="anyone", server_default="anyone"),
    Column("blocked", Text, default="[]", server_default="[]"),  # JSON array of refs
    Column("created_at", Text, nullable=False),
    PrimaryKeyConstraint("id", "kind"),
)

connections = Table(
    "connections",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("requester_id", Text, nullable=False),
    Column("requester_kind", Text, nullable=False),
    Column("recipient_id", Text, nullable=False),
    Column("recipient_kind", Text, nullable=False),
    Column("status", Text, nullable=False, default="pending", server_default="pending"),
    Column("is_following", Integer, nullable=False, default=1, server_default="1"),
    Column("pair_key", Text, nullable=False, unique=True),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    UniqueConstraint("requester_id", "requester_kind", "recipient_id", "recipient_kind"),
)

follows = Table(
    "follows",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("follower_id", Text, nullable=False),
    Column("follower_kind", Text, nullable=False),
    Column("following_id", Text, nullable=False),
    Column("following_kind", Text, nullable=False),
    Column("status", Text, nullable=False, default="accepted", server_default="accepted"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    UniqueConstraint("follower_id", "follower_kind", "following_id", "following_kind"),
)

contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Text, nullable=False),  # always an individual
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("phone", Text, default="", server_default=""),
    Column("avatar", Text, default="", server_default=""),
    Column("contact_type", Text, default="client", server_default="client"),
    Column("status", Text, default="active", server_default="active"),
    Column("platform_user_id", Text),
    Column("is_platform_user", Integer, default=0, server_default="0"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    UniqueConstraint("owner_id", "email"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_accounts_locality", accounts.c.locality)
Index("ix_accounts_trade", accounts.c.trade)
Index("ix_connections_requester", connections.c.requester_id, connections.c.requester_kind)
Index("ix_connections_recipient", connections.c.recipient_id, connections.c.recipient_kind)
Index("ix_connections_status", connections.c.status)
Index("ix_follows_follower", follows.c.follower_id, follows.c.follower_kind)
Index("ix_follows_following", follows.c.following_id, follows.c.following_kind)
Index("ix_contacts_platform_user", contacts.c.owner_id, contacts.c.platform_user_id)
