"""
Database connection management and migrations.
"""
import asyncpg
import logging
from typing import Optional
from call_analysis.config import DATABASE_URL

logger = logging.getLogger(__name__)

# Global connection pool
_db_pool: Optional[asyncpg.Pool] = None


async def get_db_pool() -> asyncpg.Pool:
    """Get or create the database connection pool.

    Raises:
        RuntimeError: If DATABASE_URL is not set
    """
    global _db_pool
    if _db_pool is None:
        if not DATABASE_URL:
            raise RuntimeError("DATABASE_URL environment variable is required")

        # Accept SQLAlchemy-style URLs as well
        raw_url = DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")

        async def setup_connection(conn):
            """Validate connection on acquire so stale pooled connections are not handed out."""
            await conn.execute("SELECT 1")

        _db_pool = await asyncpg.create_pool(
            raw_url,
            min_size=2,
            max_size=10,
            command_timeout=60,
            max_inactive_connection_lifetime=300.0,
            setup=setup_connection,
        )
        logger.info("Database connection pool created (min=2, max=10, idle_lifetime=300s)")
    return _db_pool


async def close_db_pool():
    """Close the database connection pool."""
    global _db_pool
    if _db_pool is not None:
        await _db_pool.close()
        _db_pool = None
        logger.info("Database connection pool closed")


async def run_schema_migrations(pool: asyncpg.Pool):
    """Create the sales schema and its tables if they don't exist."""
    try:
        await pool.execute("CREATE SCHEMA IF NOT EXISTS sales;")
        logger.info("Database schema (sales) ensured")

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS sales.clients (
                client_id TEXT PRIMARY KEY,
                company_name TEXT NOT NULL,
                status TEXT DEFAULT 'active',
                offer_name TEXT,
                offer_price TEXT,
                offer_description TEXT,
                script_template TEXT,
                disqualification_criteria TEXT,
                common_objections TEXT,
                ai_prompt_overall TEXT,
                ai_prompt_discovery TEXT,
                ai_prompt_pitch TEXT,
                ai_prompt_close TEXT,
                ai_prompt_objections TEXT,
                ai_context_notes TEXT,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
                last_modified TIMESTAMP WITH TIME ZONE DEFAULT NOW()
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS sales.calls (
                call_id TEXT PRIMARY KEY,
                client_id TEXT NOT NULL REFERENCES sales.clients(client_id),
                closer_id TEXT,
                closer TEXT,
                prospect_name TEXT,
                prospect_email TEXT,
                call_type TEXT,
                duration_minutes DOUBLE PRECISION,
                attendance TEXT,
                call_outcome TEXT,
                processing_status TEXT DEFAULT 'pending',
                processing_error TEXT,
                ai_summary TEXT,
                ai_feedback TEXT,
                lost_reason TEXT,
                discovery_score DOUBLE PRECISION,
                pitch_score DOUBLE PRECISION,
                close_attempt_score DOUBLE PRECISION,
                objection_handling_score DOUBLE PRECISION,
                overall_call_score DOUBLE PRECISION,
                script_adherence_score DOUBLE PRECISION,
                prospect_fit_score DOUBLE PRECISION,
                transcript_text TEXT,
                created TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
                last_modified TIMESTAMP WITH TIME ZONE DEFAULT NOW()
            );
        """)
        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_calls_client_status
            ON sales.calls (client_id, processing_status);
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS sales.objections (
                objection_id TEXT PRIMARY KEY,
                call_id TEXT NOT NULL REFERENCES sales.calls(call_id) ON DELETE CASCADE,
                client_id TEXT NOT NULL,
                closer_id TEXT,
                objection_type TEXT NOT NULL,
                objection_text TEXT,
                resolved BOOLEAN DEFAULT FALSE,
                resolution_text TEXT,
                resolution_method TEXT,
                timestamp_seconds INTEGER,
                timestamp_minutes DOUBLE PRECISION,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
                last_modified TIMESTAMP WITH TIME ZONE DEFAULT NOW()
            );
        """)
        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_objections_call
            ON sales.objections (call_id, client_id);
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS sales.cost_tracking (
                cost_id TEXT PRIMARY KEY,
                timestamp TIMESTAMP WITH TIME ZONE NOT NULL,
                client_id TEXT NOT NULL,
                call_id TEXT NOT NULL,
                model TEXT NOT NULL,
                input_tokens INTEGER NOT NULL DEFAULT 0,
                output_tokens INTEGER NOT NULL DEFAULT 0,
                input_cost_usd DOUBLE PRECISION NOT NULL DEFAULT 0,
                output_cost_usd DOUBLE PRECISION NOT NULL DEFAULT 0,
                total_cost_usd DOUBLE PRECISION NOT NULL DEFAULT 0,
                processing_time_ms INTEGER
            );
        """)
        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_cost_tracking_timestamp
            ON sales.cost_tracking (timestamp, client_id);
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS sales.audit_log (
                audit_id TEXT PRIMARY KEY,
                timestamp TIMESTAMP WITH TIME ZONE NOT NULL,
                client_id TEXT,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                action TEXT NOT NULL,
                field_changed TEXT,
                old_value TEXT,
                new_value TEXT,
                trigger_source TEXT NOT NULL,
                trigger_detail TEXT,
                metadata JSONB
            );
        """)
        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_audit_log_entity
            ON sales.audit_log (entity_type, entity_id, timestamp);
        """)
        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_audit_log_client
            ON sales.audit_log (client_id, timestamp DESC);
        """)

        logger.info("Sales tables (clients, calls, objections, cost_tracking, audit_log) ensured")
    except Exception as e:
        logger.error(f"Schema migration failed: {e}")
        raise
