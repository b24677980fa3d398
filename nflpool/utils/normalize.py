"""
Normalization of raw pick and game documents into the canonical records.

Stored documents come from several generations of the pool: picks keyed by
``team`` or the legacy ``winner`` field, confidence stored as an int or a
string, games with long (``awayTeam``) or short (``a``/``h``) keys and ESPN
status strings in a dozen spellings. The scoring core only ever sees the
output of these functions.
"""

import logging
from datetime import datetime

from nflpool.utils.records import TIE, GameResult, GameStatus, PickEntry
from nflpool.utils.teams import normalize_team_name

logger = logging.getLogger(__name__)

FINAL_STATUSES = (
    "final",
    "final/ot",
    "status_final",
    "final_overtime",
    "completed",
    "post",
)  # anything else containing "final" also counts

IN_PROGRESS_STATUSES = (
    "in_progress",
    "in progress",
    "halftime",
    "half",
    "status_halftime",
    "status_in_progress",
    "status_end_period",
    "end_period",
    "in",
    "live",
)

TIE_MARKERS = ("tie", "tied", "draw")


def normalize_status(raw):
    """Map a raw status string onto GameStatus (unknown -> scheduled)"""
    if isinstance(raw, GameStatus):
        return raw
    if not raw:
        return GameStatus.SCHEDULED

    status = str(raw).strip().lower()
    if "final" in status or status in FINAL_STATUSES:
        return GameStatus.FINAL
    if status in IN_PROGRESS_STATUSES or "progress" in status:
        return GameStatus.IN_PROGRESS
    return GameStatus.SCHEDULED


def normalize_confidence(raw):
    """Coerce a stored confidence value to int.

    Returns None for missing, blank, non-numeric or negative values. Zero is
    kept as 0: it is a valid (if suspicious) pick worth nothing.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if isinstance(raw, float) and raw != value:
        return None
    if value < 0:
        return None
    return value


def normalize_score(raw):
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def normalize_winner(raw):
    if raw is None:
        return None
    cleaned = str(raw).strip()
    if not cleaned or cleaned.upper() == "TBD":
        return None
    if cleaned.lower() in TIE_MARKERS:
        return TIE
    return normalize_team_name(cleaned)


def normalize_pick(game_id, raw):
    """Build a PickEntry from a stored pick document"""
    if not isinstance(raw, dict):
        return PickEntry(game_id=str(game_id), team=None, confidence=None)

    team = raw.get("team") or raw.get("winner")
    return PickEntry(
        game_id=str(game_id),
        team=normalize_team_name(team),
        confidence=normalize_confidence(raw.get("confidence")),
    )


def _parse_kickoff(raw):
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable kickoff value: {raw!r}")
        return None


def normalize_game(game_id, raw):
    """Build a GameResult from a stored game document"""
    away = raw.get("awayTeam") or raw.get("away") or raw.get("a")
    home = raw.get("homeTeam") or raw.get("home") or raw.get("h")

    return GameResult(
        game_id=str(game_id),
        away_team=normalize_team_name(away),
        home_team=normalize_team_name(home),
        status=normalize_status(raw.get("status")),
        away_score=normalize_score(raw.get("awayScore", raw.get("away_score"))),
        home_score=normalize_score(raw.get("homeScore", raw.get("home_score"))),
        winner=normalize_winner(raw.get("winner")),
        kickoff=_parse_kickoff(raw.get("kickoff") or raw.get("dt") or raw.get("date")),
    )


def _is_metadata_key(key):
    return str(key).startswith("_")


def games_from_document(document):
    """Convert a week's games document ({game_id: game}) into GameResults"""
    games = {}
    for game_id, raw in (document or {}).items():
        if _is_metadata_key(game_id) or not isinstance(raw, dict):
            continue
        game = normalize_game(game_id, raw)
        if not game.away_team or not game.home_team:
            logger.warning(f"Skipping game {game_id}: missing team names")
            continue
        games[game.game_id] = game
    return games


def picks_from_document(document):
    """Convert one user's weekly picks document into PickEntries"""
    picks = {}
    for game_id, raw in (document or {}).items():
        if _is_metadata_key(game_id):
            continue
        # Submission metadata (userName, submittedAt ...) is stored alongside picks
        if not isinstance(raw, dict):
            continue
        pick = normalize_pick(game_id, raw)
        picks[pick.game_id] = pick
    return picks


def survivor_picks_from_document(document):
    """Convert a survivor picks document into {week: team}.

    Accepts ``{"picks": {"1": {"team": ...}}}`` or the inner mapping directly.
    """
    raw_picks = (document or {}).get("picks", document) or {}
    history = {}
    for week_key, raw in raw_picks.items():
        try:
            week = int(week_key)
        except (TypeError, ValueError):
            continue
        if isinstance(raw, dict):
            team = raw.get("team") or raw.get("winner")
        else:
            team = raw
        team = normalize_team_name(team)
        if team:
            history[week] = team
    return dict(sorted(history.items()))
