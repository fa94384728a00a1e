import os
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import pool as pg_pool
from psycopg2.extras import RealDictCursor


_POOL: Optional[pg_pool.AbstractConnectionPool] = None


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _connect_kwargs() -> Dict[str, Any]:
    """Common connection kwargs: connect_timeout + TCP keepalives.

    Defaults:
      - connect_timeout: 10 seconds (overridable via DB_CONNECT_TIMEOUT)
      - keepalives: enabled by default; can be disabled by DB_KEEPALIVES=0
      - keepalive tunables applied if provided (IDLE/INTERVAL/COUNT)
    """
    kwargs: Dict[str, Any] = {}
    ct_env = _env_int("DB_CONNECT_TIMEOUT")
    kwargs["connect_timeout"] = ct_env if ct_env is not None else 10

    ka_env = os.environ.get("DB_KEEPALIVES")
    if ka_env is None:
        kwargs["keepalives"] = 1
    else:
        kwargs["keepalives"] = 0 if str(ka_env).lower() in ("0", "false") else 1

    for env_name, key in (
        ("DB_KEEPALIVES_IDLE", "keepalives_idle"),
        ("DB_KEEPALIVES_INTERVAL", "keepalives_interval"),
        ("DB_KEEPALIVES_COUNT", "keepalives_count"),
    ):
        val = _env_int(env_name)
        if val is not None:
            kwargs[key] = val
    return kwargs


def init_pool(minconn: int = 1, maxconn: int = 10) -> None:
    """Initialize a global connection pool using DATABASE_URL.

    Safe to call multiple times; subsequent calls are ignored once a pool exists.
    """
    global _POOL
    if _POOL is not None:
        return
    url = os.environ.get("DATABASE_URL")
    if not url:
        # Callers fall back to direct connections
        return
    _POOL = pg_pool.ThreadedConnectionPool(minconn, maxconn, dsn=url, **_connect_kwargs())


def _ping(conn) -> bool:
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
        if not getattr(conn, "autocommit", False):
            conn.rollback()
    except (psycopg2.OperationalError, psycopg2.InterfaceError):
        return False
    return True


def _rollback_quietly(conn) -> None:
    # A broken connection must not mask the error being propagated
    try:
        conn.rollback()
    except psycopg2.Error:
        pass


@contextmanager
def _get_conn():
    """Yield a database connection from the pool if available, else direct.

    Pooled connections are pinged before use; a stale one is discarded and
    the checkout retried once. Any exception raised inside the block rolls
    the transaction back before it propagates.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL not set; configure a PostgreSQL connection string")
    if _POOL is None:
        conn = psycopg2.connect(url, **_connect_kwargs())
        try:
            try:
                yield conn
            except Exception:
                _rollback_quietly(conn)
                raise
        finally:
            conn.close()
        return

    conn = None
    for _attempt in range(2):
        candidate = _POOL.getconn()
        if _ping(candidate):
            conn = candidate
            break
        _POOL.putconn(candidate, close=True)
    if conn is None:
        raise psycopg2.OperationalError("Failed to acquire healthy DB connection after retry")
    try:
        try:
            yield conn
        except Exception:
            _rollback_quietly(conn)
            raise
    finally:
        try:
            # status 0 = idle, 1 = active, 2 = intrans, 3 = inerror
            if getattr(conn, "closed", 0) == 0 and not getattr(conn, "autocommit", False):
                if getattr(conn, "status", 0) in (1, 2, 3):
                    _rollback_quietly(conn)
        finally:
            _POOL.putconn(conn)


def _fetch_all(sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
    with _get_conn() as conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
        cur.execute(sql, params)
        return [dict(r) for r in cur.fetchall()]


def _fetch_one(sql: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
    with _get_conn() as conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
        cur.execute(sql, params)
        row = cur.fetchone()
        return dict(row) if row else None


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _round_out(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    row["id"] = str(row["id"])
    row["event_id"] = str(row["event_id"])
    row["par"] = row.get("par") or 0
    row["handicap_enabled"] = bool(row.get("handicap_enabled"))
    if row.get("date") is not None:
        row["date"] = row["date"].isoformat()
    return row


def list_events() -> List[Dict[str, Any]]:
    rows = _fetch_all("SELECT id, name, slug FROM events ORDER BY created_at, name")
    for r in rows:
        r["id"] = str(r["id"])
    return rows


def get_event(event_id: str) -> Optional[Dict[str, Any]]:
    if not _is_uuid(event_id):
        return None
    row = _fetch_one("SELECT id, name, slug FROM events WHERE id = %s", (event_id,))
    if row:
        row["id"] = str(row["id"])
    return row


def list_players(event_id: str) -> List[Dict[str, Any]]:
    """Return the event's players as dicts keyed like the scoring engine expects."""
    rows = _fetch_all(
        """
        SELECT id, event_id, name, handicap, starting_score
        FROM players
        WHERE event_id = %s
        ORDER BY name, id
        """,
        (event_id,),
    )
    for r in rows:
        r["id"] = str(r["id"])
        r["event_id"] = str(r["event_id"])
        r["handicap"] = r.get("handicap") or 0
        r["starting_score"] = r.get("starting_score") or 0
    return rows


def list_rounds(event_id: str) -> List[Dict[str, Any]]:
    rows = _fetch_all(
        """
        SELECT id, event_id, round_number, course, date, par, handicap_enabled
        FROM rounds
        WHERE event_id = %s
        ORDER BY round_number, id
        """,
        (event_id,),
    )
    return [_round_out(r) for r in rows]


def get_round(round_id: str) -> Optional[Dict[str, Any]]:
    # ids are UUID columns; anything else cannot match a row
    if not _is_uuid(round_id):
        return None
    row = _fetch_one(
        """
        SELECT id, event_id, round_number, course, date, par, handicap_enabled
        FROM rounds
        WHERE id = %s
        """,
        (round_id,),
    )
    return _round_out(row)


def list_hole_pars(round_id: str) -> Dict[int, int]:
    rows = _fetch_all(
        "SELECT hole_number, par FROM round_holes WHERE round_id = %s",
        (round_id,),
    )
    return {int(r["hole_number"]): int(r["par"]) for r in rows if r.get("par") is not None}


def list_scores(round_id: str) -> List[Dict[str, Any]]:
    rows = _fetch_all(
        """
        SELECT round_id, player_id, hole_number, strokes
        FROM scores
        WHERE round_id = %s
        ORDER BY player_id, hole_number
        """,
        (round_id,),
    )
    for r in rows:
        r["round_id"] = str(r["round_id"])
        r["player_id"] = str(r["player_id"])
    return rows


def list_event_scores(event_id: str) -> List[Dict[str, Any]]:
    rows = _fetch_all(
        """
        SELECT s.round_id, s.player_id, s.hole_number, s.strokes
        FROM scores s
        JOIN rounds r ON r.id = s.round_id
        WHERE r.event_id = %s
        ORDER BY s.round_id, s.player_id, s.hole_number
        """,
        (event_id,),
    )
    for r in rows:
        r["round_id"] = str(r["round_id"])
        r["player_id"] = str(r["player_id"])
    return rows


def upsert_score(round_id: str, player_id: str, hole_number: int, strokes: int) -> None:
    """Insert or overwrite one hole score; the latest write wins."""
    with _get_conn() as conn, conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO scores (round_id, player_id, hole_number, strokes, updated_at)
            VALUES (%s, %s, %s, %s, now())
            ON CONFLICT (round_id, player_id, hole_number) DO UPDATE SET
                strokes = EXCLUDED.strokes,
                updated_at = EXCLUDED.updated_at
            """,
            (round_id, player_id, int(hole_number), int(strokes)),
        )
        conn.commit()


def delete_score(round_id: str, player_id: str, hole_number: int) -> None:
    with _get_conn() as conn, conn.cursor() as cur:
        cur.execute(
            "DELETE FROM scores WHERE round_id = %s AND player_id = %s AND hole_number = %s",
            (round_id, player_id, int(hole_number)),
        )
        conn.commit()


def upsert_hole_par(round_id: str, hole_number: int, par: int) -> None:
    with _get_conn() as conn, conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO round_holes (round_id, hole_number, par)
            VALUES (%s, %s, %s)
            ON CONFLICT (round_id, hole_number) DO UPDATE SET par = EXCLUDED.par
            """,
            (round_id, int(hole_number), int(par)),
        )
        conn.commit()
