import logging

from imposter.auth_utils import register_user
from imposter.schemas import GameResult, Player, StatsDelta, UserIdentity
from imposter.stats import TortoiseStatsStore, record_round_stats, round_deltas

PLAYERS = [
    Player(user_id="a", username="Alice", is_admin=True),
    Player(user_id="b", username="Bob"),
    Player(user_id="c", username="Cara"),
]


def result(imposter_id, voted_out_id):
    names = {p.user_id: p.username for p in PLAYERS}
    imposter = UserIdentity(user_id=imposter_id, username=names[imposter_id])
    voted_out = None
    if voted_out_id is not None:
        voted_out = UserIdentity(user_id=voted_out_id, username=names[voted_out_id])
    return GameResult(
        word="Zebra",
        imposter=imposter,
        voted_out=voted_out,
        imposter_won=voted_out_id != imposter_id,
        votes={},
    )


def test_deltas_when_imposter_is_caught():
    deltas = round_deltas(result("b", "b"), PLAYERS)
    assert deltas["a"] == StatsDelta(played=1, won=1)
    assert deltas["c"] == StatsDelta(played=1, won=1)
    assert deltas["b"] == StatsDelta(played=1, won=0, was_imposter=1, caught_as_imposter=1)


def test_deltas_when_imposter_escapes():
    deltas = round_deltas(result("b", "a"), PLAYERS)
    assert deltas["a"] == StatsDelta(played=1, won=0)
    assert deltas["b"] == StatsDelta(played=1, won=1, was_imposter=1, caught_as_imposter=0)


def test_deltas_when_nobody_is_voted_out():
    deltas = round_deltas(result("c", None), PLAYERS)
    assert deltas["c"].won == 1
    assert deltas["c"].caught_as_imposter == 0
    assert deltas["a"].won == 0


class FlakyStore:
    def __init__(self, failing):
        self.failing = failing
        self.applied = []

    async def apply_round_outcome(self, user_id, delta):
        if user_id == self.failing:
            raise RuntimeError("database is locked")
        self.applied.append(user_id)


async def test_failing_update_is_logged_and_others_still_recorded(caplog):
    store = FlakyStore(failing="b")
    with caplog.at_level(logging.ERROR, logger="imposter.stats"):
        await record_round_stats(store, result("b", "b"), PLAYERS)
    assert store.applied == ["a", "c"]
    assert "Failed to record stats for user b" in caplog.text


async def test_store_accumulates_and_reports_rates(db):
    store = TortoiseStatsStore()
    user = await register_user("alice", "secret123")
    user_id = str(user.id)

    await store.apply_round_outcome(user_id, StatsDelta(won=1))
    await store.apply_round_outcome(user_id, StatsDelta(won=1, was_imposter=1))
    await store.apply_round_outcome(user_id, StatsDelta(was_imposter=1, caught_as_imposter=1))

    stats = await store.read_stats(user_id)
    assert stats.games_played == 3
    assert stats.games_won == 2
    assert stats.win_rate == 67
    assert stats.times_imposter == 2
    assert stats.times_caught_imposter == 1
    assert stats.imposter_success_rate == 50


async def test_unknown_user_reads_as_zeros(db):
    store = TortoiseStatsStore()
    user_id = "00000000-0000-0000-0000-000000000000"
    await store.apply_round_outcome(user_id, StatsDelta(won=1))
    stats = await store.read_stats(user_id)
    assert stats.games_played == 0
    assert stats.win_rate == 0
    assert stats.imposter_success_rate == 0
