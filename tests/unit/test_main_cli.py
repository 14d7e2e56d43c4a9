#!/usr/bin/env python3
"""
Tests for the command line entry point.

The database layer is replaced by the in-memory SQLite session factory.
"""

import json
from unittest.mock import patch

import pytest

import main
from core.config_loader import AppConfig
from database.models import Industry, SkillLevel
from tests.fixtures.golf import BASE_LAT, BASE_LNG, seed_course, seed_tee_time, seed_user


@pytest.fixture
def run_cli(session_factory, capsys):
    config = AppConfig(database={"url": "sqlite://"})

    def run(*argv):
        with patch.object(main, 'load_config', return_value=config), \
                patch.object(main, 'make_session_factory', return_value=session_factory):
            code = main.main(list(argv))
        return code, json.loads(capsys.readouterr().out)

    return run


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


def test_recommend(run_cli, db_session):
    golfer = seed_user(
        db_session, industry=Industry.LEGAL, skill_level=SkillLevel.EXPERT,
        latitude=BASE_LAT, longitude=BASE_LNG,
    )
    host = seed_user(db_session)
    course = seed_course(db_session)
    # Relative to the real clock, so it is still upcoming when the command runs
    tee_time = seed_tee_time(db_session, host, course, hours_out=24 * 365 * 20)
    db_session.commit()

    code, output = run_cli('recommend', '--user-id', str(golfer.id))

    assert code == 0
    assert output['user_id'] == str(golfer.id)
    assert [tt['id'] for tt in output['tee_times']] == [str(tee_time.id)]
    assert 'match_score' in output['tee_times'][0]


def test_recommend_unknown_user(run_cli):
    code, output = run_cli('recommend', '--user-id', 'nobody')
    assert code == 1
    assert output['code'] == 'NOT_FOUND'


def test_matches(run_cli, db_session):
    host = seed_user(db_session, industry=Industry.LEGAL)
    candidate = seed_user(
        db_session, industry=Industry.LEGAL, skill_level=SkillLevel.EXPERT,
        latitude=BASE_LAT, longitude=BASE_LNG,
    )
    course = seed_course(db_session)
    tee_time = seed_tee_time(db_session, host, course, industry_preference=[Industry.LEGAL])
    db_session.commit()

    code, output = run_cli('matches', '--tee-time-id', str(tee_time.id), '--min-score', '0')

    assert code == 0
    assert output['tee_time_id'] == str(tee_time.id)
    assert [m['user_id'] for m in output['matches']] == [str(candidate.id)]


def test_init_db(run_cli):
    with patch.object(main, 'init_db') as init_db:
        code, output = run_cli('init-db')
    assert code == 0
    assert output == {"initialized": True}
    init_db.assert_called_once()
