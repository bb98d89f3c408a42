import pytest

from sword_shield.models import FINAL_STANDINGS, LOBBY, ROUND_INPUT, ROUND_RESOLUTION
from sword_shield.services.games.errors import (
    AuthorizationError, PhaseError, UnknownPlayerError, ValidationError,
)
from sword_shield.services.games.reaper import reap_stale_players
from conftest import ADMIN_SECRET


def test_join_broadcasts_immediately(game, emitted):
    game.join('  Alice ', 'sid-a')
    assert len(emitted) == 1
    assert emitted[0]['leaderboard'][0]['identity'] == 'Alice'
    assert emitted[0]['online_count'] == 1


def test_invalid_join_changes_nothing(game, emitted):
    with pytest.raises(ValidationError):
        game.join('   ', 'sid-a')
    assert len(game.directory) == 0
    assert emitted == []


def test_submissions_are_coalesced(game, emitted, scheduler):
    for i in range(10):
        game.join(f'p{i}', f'sid-{i}')
    game.admin('start_round', ADMIN_SECRET)
    emitted.clear()

    acks = [game.submit(f'sid-{i}', (i % 10) + 1, 50) for i in range(10)]
    assert acks[3] == {
        'round': 1, 'choice': 4, 'prediction': 50.0, 'message': 'Round 1 choice received.',
    }
    assert emitted == []
    scheduler.run_all()
    assert len(emitted) == 1
    assert emitted[0]['submitted_count'] == 10


def test_admin_action_inside_window_supersedes_pending(game, emitted, scheduler):
    game.join('Alice', 'sid-a')
    game.admin('start_round', ADMIN_SECRET)
    emitted.clear()

    game.submit('sid-a', 5, 50)
    game.admin('resolve_round', ADMIN_SECRET)
    assert len(emitted) == 1
    assert emitted[0]['phase'] == ROUND_RESOLUTION
    scheduler.run_all()
    assert len(emitted) == 1


def test_wrong_secret_leaves_state_untouched(game, emitted):
    game.join('Alice', 'sid-a')
    emitted.clear()
    with pytest.raises(AuthorizationError):
        game.admin('start_round', 'wrong')
    assert game.session.phase == LOBBY
    assert emitted == []


def test_wrong_secret_checked_before_action_name(game):
    with pytest.raises(AuthorizationError):
        game.admin('does_not_exist', 'wrong')


def test_phase_rejection_does_not_broadcast(game, emitted):
    with pytest.raises(PhaseError):
        game.admin('resolve_round', ADMIN_SECRET)
    assert emitted == []


def test_submit_without_join(game):
    game.admin('start_round', ADMIN_SECRET)
    with pytest.raises(UnknownPlayerError):
        game.submit('observer', 5, 50)


def test_reconnect_within_grace_keeps_score(game, scheduler):
    game.join('Alice', 'sid-1')
    game.join('Bob', 'sid-2')
    game.admin('start_round', ADMIN_SECRET)
    game.submit('sid-1', 8, 50)
    game.submit('sid-2', 2, 50)
    game.admin('resolve_round', ADMIN_SECRET)
    score = game.directory.get('Alice').cumulative_score

    game.admin('start_round', ADMIN_SECRET)
    game.submit('sid-1', 3, 20)
    game.disconnect('sid-1')
    assert not game.directory.get('Alice').online

    game.join('Alice', 'sid-9')
    alice = game.directory.get('Alice')
    assert alice.online
    assert alice.cumulative_score == score
    assert len(game.directory) == 2

    game.admin('resolve_round', ADMIN_SECRET)
    assert alice.pending_submission is None


def test_disconnect_of_observer_still_broadcasts(game, emitted):
    assert game.disconnect('observer') is None
    assert len(emitted) == 1


def test_full_game_to_final_standings(game, emitted):
    game.join('Alice', 'sid-a')
    game.admin('start_round', ADMIN_SECRET)
    for _ in range(3):
        game.submit('sid-a', 10, 100)
        game.admin('resolve_round', ADMIN_SECRET)
        game.admin('next_round', ADMIN_SECRET)
    assert emitted[-1]['phase'] == FINAL_STANDINGS
    assert emitted[-1]['round_results'][0]['identity'] == 'Alice'

    game.admin('reset', ADMIN_SECRET)
    assert emitted[-1]['phase'] == LOBBY
    assert emitted[-1]['current_round'] == 1
    assert emitted[-1]['round_results'] == []


def test_purge_past_grace_broadcasts(game, emitted):
    game.join('Alice', 'sid-a')
    game.join('Bob', 'sid-b')
    game.disconnect('sid-a')
    disconnected_at = game.directory.get('Alice').disconnected_at
    emitted.clear()

    assert reap_stale_players(game, now=disconnected_at + 600) == 0
    assert emitted == []
    assert reap_stale_players(game, now=disconnected_at + 600.001) == 1
    assert len(emitted) == 1
    assert [e['identity'] for e in emitted[0]['leaderboard']] == ['Bob']


def test_status_and_dump(game):
    game.join('Alice', 'sid-a')
    game.join('Bob', 'sid-b')
    game.disconnect('sid-b')
    game.admin('start_round', ADMIN_SECRET)
    game.submit('sid-a', 4, 12.5)

    assert game.status() == {
        'game': 'Sword & Shield',
        'status': 'online',
        'phase': ROUND_INPUT,
        'round': 1,
        'players': 1,
        'total_registered': 2,
    }
    dump = game.dump()
    assert dump['phase'] == ROUND_INPUT
    players = {p['identity']: p for p in dump['players']}
    assert players['Alice']['pending_submission'] == {'choice': 4, 'prediction': 12.5}
    assert players['Alice']['connection_ref'] == 'sid-a'
    assert players['Bob']['online'] is False
    assert players['Bob']['disconnected_at'] is not None
