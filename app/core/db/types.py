"""Column types shared by models (native JSONB on PostgreSQL, JSON elsewhere)."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")
