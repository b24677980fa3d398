import logging
import time
from datetime import datetime
from functools import wraps

import requests

from nflpool import db
from nflpool.models import Game
from nflpool.utils.normalize import normalize_score, normalize_status
from nflpool.utils.records import TIE, GameResult, GameStatus
from nflpool.utils.teams import normalize_team_name

logger = logging.getLogger(__name__)


def rate_limit_decorator(max_retries=3, base_delay=1.0, backoff_factor=2.0):
    """
    Decorator to handle API rate limiting with exponential backoff
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            for attempt in range(max_retries):
                try:
                    response = func(self, *args, **kwargs)

                    # Check for rate limiting
                    if hasattr(response, "status_code"):
                        if response.status_code == 429:  # Too Many Requests
                            retry_after = int(
                                response.headers.get(
                                    "Retry-After",
                                    base_delay * (backoff_factor**attempt),
                                )
                            )
                            logger.warning(
                                f"Rate limited. Waiting {retry_after}s before retry {attempt + 1}/{max_retries}"
                            )
                            time.sleep(retry_after)
                            continue
                        elif response.status_code >= 500:  # Server errors
                            delay = base_delay * (backoff_factor**attempt)
                            logger.warning(
                                f"Server error {response.status_code}. Waiting {delay}s before retry {attempt + 1}/{max_retries}"
                            )
                            time.sleep(delay)
                            continue

                    return response

                except requests.exceptions.RequestException as e:
                    delay = base_delay * (backoff_factor**attempt)
                    logger.warning(
                        f"Request failed: {e}. Waiting {delay}s before retry {attempt + 1}/{max_retries}"
                    )
                    if attempt < max_retries - 1:
                        time.sleep(delay)
                    else:
                        raise

            raise requests.exceptions.RetryError(f"Max retries ({max_retries}) exceeded")

        return wrapper

    return decorator


def _winner_from_competitors(competitors, status):
    """ESPN marks the winning competitor; a final with no winner flag is a tie"""
    if status != GameStatus.FINAL:
        return None
    for competitor in competitors:
        if competitor.get("winner"):
            return normalize_team_name(competitor.get("team", {}).get("displayName"))
    return TIE


def parse_scoreboard_event(event, game_id=None):
    """
    Convert one ESPN scoreboard event into a GameResult

    Returns None when the event has no usable competition data.
    """
    competitions = event.get("competitions", [])
    if not competitions:
        return None

    competition = competitions[0]
    competitors = competition.get("competitors", [])
    if len(competitors) != 2:
        return None

    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    if home is None or away is None:
        return None

    status_type = competition.get("status", event.get("status", {})).get("type", {})
    if status_type.get("completed"):
        status = GameStatus.FINAL
    else:
        status = normalize_status(status_type.get("name") or status_type.get("state"))

    kickoff = None
    if event.get("date"):
        try:
            kickoff = datetime.fromisoformat(event["date"].replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable event date: {event['date']!r}")

    # Scores are only meaningful once the game has started
    started = status != GameStatus.SCHEDULED

    return GameResult(
        game_id=game_id or "",
        away_team=normalize_team_name(away.get("team", {}).get("displayName")),
        home_team=normalize_team_name(home.get("team", {}).get("displayName")),
        status=status,
        away_score=normalize_score(away.get("score")) if started else None,
        home_score=normalize_score(home.get("score")) if started else None,
        winner=_winner_from_competitors(competitors, status),
        kickoff=kickoff,
    )


class DataSync:
    """
    Handles synchronization of NFL game results from the ESPN API with rate limiting
    """

    def __init__(self, api_base_url=None):
        self.api_base_url = (
            api_base_url or "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
        )
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "NFL-Pool/1.0"})

        # Rate limiting configuration
        self.request_count = 0
        self.last_request_time = 0
        self.min_request_interval = 0.5  # Minimum 500ms between requests
        self.max_requests_per_minute = 60
        self.request_timestamps = []

    def _enforce_rate_limit(self):
        """Enforce rate limiting before making requests"""
        current_time = time.time()

        # Remove timestamps older than 1 minute
        self.request_timestamps = [
            ts for ts in self.request_timestamps if current_time - ts < 60
        ]

        if len(self.request_timestamps) >= self.max_requests_per_minute:
            sleep_time = 60 - (current_time - self.request_timestamps[0])
            if sleep_time > 0:
                logger.info(f"Rate limit reached. Sleeping for {sleep_time:.1f}s")
                time.sleep(sleep_time)
                self.request_timestamps = []

        time_since_last = current_time - self.last_request_time
        if time_since_last < self.min_request_interval:
            time.sleep(self.min_request_interval - time_since_last)

        self.last_request_time = time.time()
        self.request_timestamps.append(self.last_request_time)
        self.request_count += 1

    @rate_limit_decorator(max_retries=3, base_delay=2.0)
    def _make_api_request(self, url, params=None):
        """Make API request with rate limiting and retry logic"""
        self._enforce_rate_limit()

        try:
            response = self.session.get(url, params=params, timeout=30)
            response.raise_for_status()
            return response

        except requests.exceptions.Timeout:
            logger.warning(f"Request timeout for {url}")
            raise
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {e.response.status_code}: {url}")
            raise

    def get_rate_limit_status(self):
        """Get current rate limit status"""
        current_time = time.time()
        self.request_timestamps = [
            ts for ts in self.request_timestamps if current_time - ts < 60
        ]

        return {
            "total_requests": self.request_count,
            "requests_last_minute": len(self.request_timestamps),
            "max_requests_per_minute": self.max_requests_per_minute,
        }

    def fetch_week_results(self, week):
        """Fetch a regular season week's scoreboard as (espn_id, GameResult) pairs"""
        url = f"{self.api_base_url}/scoreboard"
        params = {"seasontype": 2, "week": week}

        response = self._make_api_request(url, params=params)
        data = response.json()

        results = []
        for event in data.get("events", []):
            result = parse_scoreboard_event(event)
            if result is None or not result.away_team or not result.home_team:
                logger.debug(f"Skipping scoreboard event {event.get('id')}")
                continue
            results.append((str(event.get("id", "")), result))
        return results

    def _find_game(self, season, week, espn_id, result):
        game = None
        if espn_id:
            game = Game.query.filter_by(espn_id=espn_id).first()
        if game is None:
            game = Game.query.filter_by(
                season=season,
                week=week,
                away_team=result.away_team,
                home_team=result.home_team,
            ).first()
        return game

    def sync_week_games(self, season, week):
        """
        Sync one week's games and results into the database

        Returns:
            (success, message, newly_final_game_ids)
        """
        try:
            fetched = self.fetch_week_results(week)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching week {week} scoreboard: {e}")
            return False, str(e), []

        created = 0
        updated = 0
        newly_final = []

        try:
            for espn_id, result in fetched:
                game = self._find_game(season, week, espn_id, result)

                is_new = game is None
                if is_new:
                    game = Game(
                        season=season,
                        week=week,
                        game_id=Game.next_game_id(season, week),
                        away_team=result.away_team,
                        home_team=result.home_team,
                    )
                    db.session.add(game)
                    db.session.flush()
                    created += 1

                was_final = game.is_final
                if espn_id and game.espn_id != espn_id:
                    game.espn_id = espn_id

                if game.apply_result(result):
                    if not is_new:
                        updated += 1
                    if game.is_final and not was_final:
                        newly_final.append(game.game_id)
                        logger.info(
                            f"Game {game.game_id} final: {game.away_team} {game.away_score} "
                            f"@ {game.home_team} {game.home_score}"
                        )

            db.session.commit()

        except Exception as e:
            db.session.rollback()
            logger.error(f"Error syncing week {week} games: {e}", exc_info=True)
            return False, str(e), []

        message = (
            f"Week {week}: {created} games created, {updated} updated, "
            f"{len(newly_final)} newly final"
        )
        logger.info(message)
        return True, message, newly_final
