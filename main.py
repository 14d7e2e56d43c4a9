import argparse
import json
import logging
import sys

from core.config_loader import load_config
from core.exceptions import NotFoundError, ServiceException
from core.scorer import MatchingService
from core.tee_time_service import TeeTimeService
from core.utils import to_uuid
from database.database import db_session_scope, make_session_factory
from database.init_db import init_db
from database.repositories import UserRepository

logger = logging.getLogger(__name__)


def run_init_db(config, session_factory, args):
    init_db(bind=session_factory.kw["bind"])
    return {"initialized": True}


def run_recommend(config, session_factory, args):
    try:
        user_id = to_uuid(args.user_id)
    except ValueError:
        raise NotFoundError('User not found')

    with db_session_scope(session_factory) as session:
        user = UserRepository(session).get_by_id(user_id)
    if user is None:
        raise NotFoundError('User not found')

    matching = MatchingService(config.matching, session_factory=session_factory)
    ranked = matching.recommend_tee_times(user, limit=args.limit)

    return {
        "user_id": str(user.id),
        "tee_times": [
            TeeTimeService.format_tee_time(r.tee_time, distance_miles=r.distance_miles, match_score=r.score)
            for r in ranked
        ],
    }


def run_matches(config, session_factory, args):
    tee_times = TeeTimeService(config.tee_times, session_factory=session_factory)
    tee_time = tee_times.get_by_id(args.tee_time_id)

    matching = MatchingService(config.matching, session_factory=session_factory)
    matches = matching.find_matches_for_tee_time(tee_time, limit=args.limit, min_score=args.min_score)

    return {
        "tee_time_id": str(tee_time.id),
        "matches": [
            {
                "user_id": str(m.user_id),
                "score": m.score,
                "distance": round(m.distance_miles, 1),
                "score_breakdown": m.breakdown.to_dict(),
            }
            for m in matches
        ],
    }


COMMANDS = {
    'init-db': run_init_db,
    'recommend': run_recommend,
    'matches': run_matches,
}


def build_parser():
    parser = argparse.ArgumentParser(description="LinkUp Golf matching tools")
    parser.add_argument('--config', type=str, default='config.yaml', help='Path to config.yaml')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('init-db', help='Create tables (retries while the database starts)')

    recommend = subparsers.add_parser('recommend', help='Rank open tee times for a user')
    recommend.add_argument('--user-id', required=True)
    recommend.add_argument('--limit', type=int, default=None)

    matches = subparsers.add_parser('matches', help='Find users who would fit a tee time')
    matches.add_argument('--tee-time-id', required=True)
    matches.add_argument('--limit', type=int, default=None)
    matches.add_argument('--min-score', type=float, default=None)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    session_factory = make_session_factory(config.database.url, echo=config.database.echo)

    try:
        result = COMMANDS[args.command](config, session_factory, args)
    except ServiceException as e:
        logger.error(f"{args.command} failed: {e.message}")
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
