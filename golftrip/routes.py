from flask import Blueprint, abort, current_app, request
from werkzeug.exceptions import HTTPException
import os
import time

from .datastore import list_events as ds_list_events
from .notify import ChangeNotifier
from .service import LeaderboardService, ScoreValidationError


bp = Blueprint('main', __name__)

service = LeaderboardService()
notifier = ChangeNotifier()

# Simple in-process cache of rendered round leaderboards
_LEADERBOARD_CACHE: dict[str, tuple[float, int, dict]] = {}
_LEADERBOARD_TTL = int(os.environ.get('CACHE_TTL_LEADERBOARD', '30'))  # seconds
_CHANGES_MAX_WAIT = float(os.environ.get('CHANGES_MAX_WAIT', '25'))  # seconds


def _cache_get_leaderboard(round_id: str) -> dict | None:
    entry = _LEADERBOARD_CACHE.get(round_id)
    if not entry:
        return None
    exp, version, body = entry
    # A publish since caching means the entry is stale even before expiry
    if exp < time.time() or version != notifier.version(round_id):
        _LEADERBOARD_CACHE.pop(round_id, None)
        return None
    return body


def _cache_set_leaderboard(round_id: str, version: int, body: dict) -> None:
    _LEADERBOARD_CACHE[round_id] = (time.time() + _LEADERBOARD_TTL, version, body)


def _cache_delete_round(round_id: str) -> None:
    _LEADERBOARD_CACHE.pop(round_id or '', None)


def _json_object() -> dict | None:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


@bp.errorhandler(Exception)
def _unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    return {'error': 'Internal server error.'}, 500


def _round_or_404(round_id: str) -> dict:
    rnd = service.repository.get_round(round_id)
    if rnd is None:
        abort(404, description=f"Unknown round '{round_id}'.")
    return rnd


@bp.route('/health/db')
def health_db():
    """Database connectivity health check.

    Always returns HTTP 200 with a JSON body describing connection status.
    """
    url = os.environ.get('DATABASE_URL')
    if not url:
        return {
            'connected': False,
            'status': 'no_database_url',
            'message': 'DATABASE_URL is not set.',
        }
    try:
        import psycopg2  # type: ignore
        with psycopg2.connect(url, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute('SELECT current_user, current_database(), version()')
                user, db, ver = cur.fetchone()
            return {
                'connected': True,
                'status': 'ok',
                'user': user,
                'database': db,
                'server_version': (ver or '').split('\n')[0],
            }
    except Exception as e:  # pragma: no cover - best-effort health output
        return {
            'connected': False,
            'status': 'error',
            'error': str(e),
        }


@bp.route('/api/rounds/<round_id>/leaderboard')
def round_leaderboard(round_id):
    """Ranked leaderboard for one round."""
    cached = _cache_get_leaderboard(round_id)
    if cached is not None:
        current_app.logger.debug("leaderboard_cache hit round=%s", round_id)
        return cached
    current_app.logger.debug("leaderboard_cache miss round=%s", round_id)
    version = notifier.version(round_id)
    result = service.round_leaderboard(round_id)
    if result is None:
        abort(404, description=f"Unknown round '{round_id}'.")
    body = {
        'round': result['round'],
        'version': version,
        'leaderboard': [row.as_dict() for row in result['rows']],
    }
    _cache_set_leaderboard(round_id, version, body)
    return body


@bp.route('/api/events')
def events():
    return {'events': ds_list_events()}


@bp.route('/api/events/<event_id>/standings')
def trip_standings(event_id):
    """Standings across every round of an event."""
    result = service.trip_standings(event_id)
    if result is None:
        abort(404, description=f"Unknown event '{event_id}'.")
    return {
        'event': result['event'],
        'rounds': result['rounds'],
        'standings': [row.as_dict() for row in result['rows']],
    }


@bp.route('/api/rounds/<round_id>/scores', methods=['POST'])
def record_score(round_id):
    """Store or clear one hole score.

    Body: ``{"player_id": ..., "hole_number": 1-18, "strokes": n | null}``.
    """
    rnd = _round_or_404(round_id)
    data = _json_object()
    if data is None:
        return {'error': 'Expected a JSON object.'}, 400
    try:
        stored = service.record_score(
            rnd,
            data.get('player_id'),
            data.get('hole_number'),
            data.get('strokes'),
        )
    except ScoreValidationError as e:
        return {'error': str(e)}, 400
    current_app.logger.info(
        "score_write round=%s player=%s hole=%s strokes=%s",
        round_id, data.get('player_id'), data.get('hole_number'),
        'cleared' if stored is None else stored,
    )
    _cache_delete_round(round_id)
    version = notifier.publish(round_id)
    return {'status': 'ok', 'version': version}


@bp.route('/api/rounds/<round_id>/holes', methods=['POST'])
def set_hole_par(round_id):
    """Set the par for one hole of a round."""
    rnd = _round_or_404(round_id)
    data = _json_object()
    if data is None:
        return {'error': 'Expected a JSON object.'}, 400
    try:
        par = service.set_hole_par(rnd, data.get('hole_number'), data.get('par'))
    except ScoreValidationError as e:
        return {'error': str(e)}, 400
    current_app.logger.info("hole_par round=%s hole=%s par=%s", round_id, data.get('hole_number'), par)
    _cache_delete_round(round_id)
    version = notifier.publish(round_id)
    return {'status': 'ok', 'version': version}


@bp.route('/api/rounds/<round_id>/changes')
def round_changes(round_id):
    """Long-poll for a newer version of the round's scores.

    ``since`` is the version the client last rendered; without it the
    current version is returned immediately. ``timeout`` is capped by
    CHANGES_MAX_WAIT.
    """
    since = request.args.get('since', type=int)
    timeout = request.args.get('timeout', default=0.0, type=float)
    timeout = min(max(timeout, 0.0), _CHANGES_MAX_WAIT)
    version = notifier.wait_for_change(round_id, since, timeout)
    return {'round_id': round_id, 'version': version, 'changed': since is None or version != since}
