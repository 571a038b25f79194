"""seed suggestion categories

Revision ID: 8c47e2d15b03
Revises: 3a1f0c2b9d41
Create Date: 2026-10-17 09:20:11.504913

"""
from datetime import datetime,timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

now_ts = datetime.now(timezone.utc)

# revision identifiers, used by Alembic.
revision: str = '8c47e2d15b03'
down_revision: Union[str, Sequence[str], None] = '3a1f0c2b9d41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLE = "suggestioncategory"

# (name, slug, description, display_order)
CATEGORIES = [
    ("Workplace Improvement", "workplace-improvement", "Ideas to improve work environment, facilities, or processes", 0),
    ("Safety & Health", "safety-health", "Suggestions related to workplace safety and employee wellbeing", 1),
    ("Communication", "communication", "Ideas to improve internal communication and collaboration", 2),
    ("Training & Development", "training-development", "Suggestions for learning opportunities and skill development", 3),
    ("Employee Benefits", "employee-benefits", "Ideas related to employee benefits and welfare", 4),
    ("Operations & Efficiency", "operations-efficiency", "Suggestions to improve operational processes and efficiency", 5),
    ("Other", "other", "General suggestions that don't fit other categories", 99),
]


def upgrade() -> None:
    """Upgrade schema."""
    conn = op.get_bind()

    values_sql = ", ".join(
        "(:name_{i}, :slug_{i}, :desc_{i}, true, :order_{i}, :created_{i}, :updated_{i})".format(i=i)
        for i in range(len(CATEGORIES))
    )
    params = {}
    for i, (name, slug, desc, order) in enumerate(CATEGORIES):
        params[f"name_{i}"] = name
        params[f"slug_{i}"] = slug
        params[f"desc_{i}"] = desc
        params[f"order_{i}"] = order
        params[f"created_{i}"] = now_ts
        params[f"updated_{i}"] = now_ts

    # ON CONFLICT DO NOTHING keeps the seed idempotent (postgres and sqlite both accept it)
    insert_sql = f"""
        INSERT INTO {TABLE} (name, slug, description, is_active, display_order, created_at, updated_at)
        VALUES {values_sql}
        ON CONFLICT (slug) DO NOTHING
    """
    conn.execute(sa.text(insert_sql), params)


def downgrade() -> None:
    """Downgrade schema."""
    conn = op.get_bind()
    table = sa.table(TABLE, sa.column("slug"))
    # only seeded rows nothing references
    conn.execute(sa.delete(table).where(table.c.slug.in_([c[1] for c in CATEGORIES])
                                        & sa.text(f"NOT EXISTS (SELECT 1 FROM suggestion s WHERE s.category_id = {TABLE}.id)")))
