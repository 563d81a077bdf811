"""
db/init_db.py
-------------
Creates the database schema (tables and functions) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

-- Profiles: one row per user, keyed by the auth provider's opaque id
CREATE TABLE IF NOT EXISTS profiles (
    id              TEXT PRIMARY KEY,
    user_id         TEXT UNIQUE NOT NULL,
    display_name    VARCHAR(100),
    risk_profile    VARCHAR(30),
    currency        VARCHAR(5) DEFAULT 'INR',
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Transactions: every income/expense record; amount is always a magnitude
CREATE TABLE IF NOT EXISTS transactions (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    date            DATE NOT NULL,
    category        VARCHAR(50) NOT NULL DEFAULT 'Other',
    type            VARCHAR(10) NOT NULL CHECK (type IN ('expense', 'income')),
    amount          NUMERIC(14,2) NOT NULL CHECK (amount >= 0),
    description     VARCHAR(200),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Categorization rules: keyword → category, highest priority first
CREATE TABLE IF NOT EXISTS categorization_rules (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    keyword         VARCHAR(100) NOT NULL,
    category        VARCHAR(50) NOT NULL,
    priority        INT NOT NULL DEFAULT 0,
    is_active       BOOLEAN NOT NULL DEFAULT TRUE,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Recurring transactions: next_due_date is computed by the application
CREATE TABLE IF NOT EXISTS recurring_transactions (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    name            VARCHAR(200) NOT NULL,
    amount          NUMERIC(14,2) NOT NULL CHECK (amount >= 0),
    type            VARCHAR(10) NOT NULL CHECK (type IN ('expense', 'income')),
    category        VARCHAR(50) NOT NULL DEFAULT 'Other',
    frequency       VARCHAR(20) NOT NULL CHECK (frequency IN ('daily', 'weekly', 'monthly', 'yearly')),
    start_date      DATE NOT NULL,
    end_date        DATE,
    next_due_date   DATE NOT NULL,
    description     VARCHAR(500),
    is_active       BOOLEAN NOT NULL DEFAULT TRUE,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Budget goals: spending targets per category and period
CREATE TABLE IF NOT EXISTS budget_goals (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    category        VARCHAR(50) NOT NULL,
    target_amount   NUMERIC(14,2) NOT NULL,
    period          VARCHAR(20) NOT NULL DEFAULT 'monthly',
    is_active       BOOLEAN NOT NULL DEFAULT TRUE,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Portfolio holdings
CREATE TABLE IF NOT EXISTS portfolio_holdings (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    symbol          VARCHAR(20) NOT NULL,
    quantity        NUMERIC(18,6) NOT NULL,
    purchase_price  NUMERIC(14,2) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- AI chat history
CREATE TABLE IF NOT EXISTS chat_conversations (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    message         TEXT NOT NULL,
    response        TEXT NOT NULL,
    provider        VARCHAR(20),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Gamification rows are only carried through backups
CREATE TABLE IF NOT EXISTS user_achievements (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    achievement     VARCHAR(100) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS user_streaks (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         TEXT NOT NULL,
    current_streak  INT NOT NULL DEFAULT 0,
    longest_streak  INT NOT NULL DEFAULT 0,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Authoritative rate-limit ledger
CREATE TABLE IF NOT EXISTS rate_limits (
    id              BIGSERIAL PRIMARY KEY,
    user_id         TEXT NOT NULL,
    endpoint        VARCHAR(100) NOT NULL,
    requested_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE OR REPLACE FUNCTION check_rate_limit(
    _user_id TEXT, _endpoint TEXT, _max_requests INT, _window_minutes INT
) RETURNS BOOLEAN AS $$
DECLARE
    recent INT;
BEGIN
    DELETE FROM rate_limits
     WHERE requested_at < NOW() - make_interval(mins => _window_minutes);
    SELECT COUNT(*) INTO recent FROM rate_limits
     WHERE user_id = _user_id AND endpoint = _endpoint;
    IF recent >= _max_requests THEN
        RETURN FALSE;
    END IF;
    INSERT INTO rate_limits (user_id, endpoint) VALUES (_user_id, _endpoint);
    RETURN TRUE;
END;
$$ LANGUAGE plpgsql;

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date DESC);
CREATE INDEX IF NOT EXISTS idx_rules_user_priority ON categorization_rules(user_id, priority DESC) WHERE is_active = TRUE;
CREATE INDEX IF NOT EXISTS idx_recurring_user_due ON recurring_transactions(user_id, next_due_date) WHERE is_active = TRUE;
CREATE INDEX IF NOT EXISTS idx_chat_user ON chat_conversations(user_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_rate_limits_lookup ON rate_limits(user_id, endpoint, requested_at);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables and functions.
    Safe to call multiple times (uses IF NOT EXISTS / OR REPLACE).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
