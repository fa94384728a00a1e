#!/usr/bin/env python3
"""
Create the PostgreSQL schema used by the leaderboard service.
"""
import os
import psycopg2


def create_tables(conn):
    """Create the database schema"""
    with conn.cursor() as cur:
        cur.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

        # Create events table
        cur.execute("""
            CREATE TABLE IF NOT EXISTS events (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                name VARCHAR(200) NOT NULL,
                slug VARCHAR(200) UNIQUE NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """)

        # Create players table
        cur.execute("""
            CREATE TABLE IF NOT EXISTS players (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                event_id UUID NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                name VARCHAR(200) NOT NULL,
                handicap INTEGER NOT NULL DEFAULT 0 CHECK (handicap >= 0),
                starting_score INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """)

        # Create rounds table
        cur.execute("""
            CREATE TABLE IF NOT EXISTS rounds (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                event_id UUID NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                round_number INTEGER NOT NULL,
                course VARCHAR(200),
                date DATE,
                par INTEGER NOT NULL DEFAULT 72,
                handicap_enabled BOOLEAN NOT NULL DEFAULT FALSE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                UNIQUE (event_id, round_number)
            )
        """)

        # Create round_holes table (per-hole par overrides)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS round_holes (
                round_id UUID NOT NULL REFERENCES rounds(id) ON DELETE CASCADE,
                hole_number INTEGER NOT NULL CHECK (hole_number BETWEEN 1 AND 18),
                par INTEGER NOT NULL CHECK (par > 0),
                PRIMARY KEY (round_id, hole_number)
            )
        """)

        # Create scores table; one row per round, player and hole
        cur.execute("""
            CREATE TABLE IF NOT EXISTS scores (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                round_id UUID NOT NULL REFERENCES rounds(id) ON DELETE CASCADE,
                player_id UUID NOT NULL REFERENCES players(id) ON DELETE CASCADE,
                hole_number INTEGER NOT NULL CHECK (hole_number BETWEEN 1 AND 18),
                strokes INTEGER NOT NULL CHECK (strokes > 0),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                UNIQUE (round_id, player_id, hole_number)
            )
        """)

        cur.execute("CREATE INDEX IF NOT EXISTS idx_players_event ON players(event_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_rounds_event ON rounds(event_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_scores_player ON scores(player_id)")

    conn.commit()
    print("Database schema created successfully")


def main():
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise SystemExit("DATABASE_URL is required")
    conn = psycopg2.connect(url)
    try:
        create_tables(conn)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
