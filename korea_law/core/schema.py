"""
Table definitions for the local statute snapshot.

SQLAlchemy Core tables shared by the store and the test fixtures.
Created with ``metadata.create_all(engine)``; works on SQLite and PostgreSQL.
"""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

laws = Table(
    "laws",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("law_mst_id", String(40), nullable=False),
    Column("law_name", String(300), nullable=False),
    Column("law_name_normalized", String(300), nullable=False),
    Column("law_name_eng", String(300)),
    Column("law_type", String(50)),
    Column("ministry", String(200)),
    Column("promulgation_date", Date),
    Column("enforcement_date", Date),
    Column("status", String(20), nullable=False, default="ACTIVE"),
    Column("source_url", String(500)),
    Column("checksum", String(64)),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("law_mst_id", name="uq_laws_law_mst_id"),
)

Index("ix_laws_name_normalized", laws.c.law_name_normalized)
Index("ix_laws_enforcement_date", laws.c.enforcement_date)

articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("law_id", Integer, ForeignKey("laws.id", ondelete="CASCADE"), nullable=False),
    Column("article_no", String(40), nullable=False),
    Column("article_no_normalized", String(40), nullable=False),
    Column("article_title", String(300)),
    Column("content", Text, nullable=False, default=""),
    Column("content_hash", String(64)),
    Column("paragraph_count", Integer, default=1),
    Column("is_definition", Boolean, default=False),
    Column("effective_from", Date),
    Column("effective_until", Date),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("law_id", "article_no_normalized", name="uq_articles_law_article"),
)

Index("ix_articles_law_article", articles.c.law_id, articles.c.article_no_normalized)

diff_logs = Table(
    "diff_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("law_id", Integer, ForeignKey("laws.id", ondelete="CASCADE"), nullable=False),
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="SET NULL")),
    Column("change_type", String(20), nullable=False),
    Column("previous_content", Text),
    Column("current_content", Text),
    Column("diff_summary", Text),
    Column("is_critical", Boolean, nullable=False, default=False),
    Column("warning_message", Text),
    Column("effective_from", Date),
    Column("detected_at", Date, nullable=False),
    Column("created_at", DateTime),
)

Index("ix_diff_logs_detected_at", diff_logs.c.detected_at)
Index("ix_diff_logs_effective_from", diff_logs.c.effective_from)

precedents = Table(
    "precedents",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("case_id", String(100), nullable=False),
    Column("case_id_normalized", String(100), nullable=False),
    Column("court", String(100)),
    Column("case_type", String(50)),
    Column("decision_date", Date),
    Column("case_name", String(500)),
    Column("exists_verified", Boolean, nullable=False, default=True),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("case_id_normalized", name="uq_precedents_case_id"),
)

legal_terms = Table(
    "legal_terms",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("law_id", Integer, ForeignKey("laws.id", ondelete="CASCADE"), nullable=False),
    Column("term", String(200), nullable=False),
    Column("term_normalized", String(200), nullable=False),
    Column("definition", Text, nullable=False),
    Column("article_ref", String(400)),
    Column("confidence", Float, default=0.0),
    Column("created_at", DateTime),
    UniqueConstraint("law_id", "term_normalized", name="uq_legal_terms_law_term"),
)

Index("ix_legal_terms_term", legal_terms.c.term_normalized)

sync_metadata = Table(
    "sync_metadata",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sync_type", String(20), nullable=False),
    Column("started_at", DateTime, nullable=False),
    Column("completed_at", DateTime),
    Column("status", String(20), nullable=False),
    Column("statutes_added", Integer, default=0),
    Column("statutes_updated", Integer, default=0),
    Column("articles_added", Integer, default=0),
    Column("articles_updated", Integer, default=0),
    Column("diffs_detected", Integer, default=0),
    Column("errors", Integer, default=0),
    Column("warnings", Integer, default=0),
    Column("error_message", Text),
)
