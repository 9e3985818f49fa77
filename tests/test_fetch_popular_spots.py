from datetime import timedelta

from core.domain.entities.leaderboard_entry_entity import LeaderboardEntryEntity
from core.domain.entities.user_entity import OwnerMetricsEntity, ViewerStateEntity
from tests.fakes import NOW, make_spot


def _entry(spot_id: str, score: float, rank: int, age: timedelta = timedelta(minutes=1)) -> LeaderboardEntryEntity:
    return LeaderboardEntryEntity(spot_id=spot_id, popularity_score=score, rank=rank, updated_at=NOW - age)


class TestFetchPopularSpots:

    async def test_reads_fresh_leaderboard_without_rebuild(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a"), "b": make_spot("b")}
        leaderboard_repo.entries = [_entry("a", 50, 1), _entry("b", 20, 2)]

        spots = await fetch_popular_uc.execute(limit=10)

        assert [s.id for s in spots] == ["a", "b"]
        assert [s.popularity_score for s in spots] == [50, 20]
        assert leaderboard_repo.writes == 0
        assert spot_repo.top_queries == []

    async def test_skips_entries_whose_spot_is_gone(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a"), "c": make_spot("c")}
        leaderboard_repo.entries = [_entry("a", 50, 1), _entry("deleted", 40, 2), _entry("c", 30, 3)]

        spots = await fetch_popular_uc.execute()
        assert [s.id for s in spots] == ["a", "c"]

    async def test_empty_leaderboard_triggers_rebuild(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {f"s{i}": make_spot(f"s{i}", likes=i) for i in range(3)}

        spots = await fetch_popular_uc.execute(limit=2)

        assert leaderboard_repo.writes == 1
        assert [s.id for s in spots] == ["s2", "s1"]
        # rebuild asks for the configured board size, not just `limit`
        assert ("likes", 100) in spot_repo.top_queries

    async def test_stale_leaderboard_triggers_rebuild(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {"fresh": make_spot("fresh", likes=100)}
        leaderboard_repo.entries = [_entry("old", 10, 1, age=timedelta(minutes=11))]

        spots = await fetch_popular_uc.execute()

        assert leaderboard_repo.writes == 1
        assert [s.id for s in spots] == ["fresh"]

    async def test_within_staleness_window_is_kept(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a")}
        leaderboard_repo.entries = [_entry("a", 10, 1, age=timedelta(minutes=9))]
        await fetch_popular_uc.execute()
        assert leaderboard_repo.writes == 0

    async def test_limit_is_clamped(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {f"s{i}": make_spot(f"s{i}") for i in range(60)}
        leaderboard_repo.entries = [_entry(f"s{i}", 100 - i, i + 1) for i in range(60)]

        assert len(await fetch_popular_uc.execute(limit=500)) == 50
        assert len(await fetch_popular_uc.execute(limit=0)) == 1

    async def test_owner_enrichment(self, fetch_popular_uc, spot_repo, user_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a", owner_id="u1")}
        user_repo.owners = {"u1": OwnerMetricsEntity(id="u1", display_name="Mika", phone_verified=True)}
        leaderboard_repo.entries = [_entry("a", 10, 1)]

        (spot,) = await fetch_popular_uc.execute()
        assert spot.owner_display_name == "Mika"
        assert spot.owner_phone_verified is True

    async def test_anonymous_viewer_has_no_flags(self, fetch_popular_uc, spot_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a")}
        leaderboard_repo.entries = [_entry("a", 10, 1)]

        (spot,) = await fetch_popular_uc.execute()
        assert spot.liked_by_viewer is None
        assert spot.followed_by_viewer is None

    async def test_viewer_flags(self, fetch_popular_uc, spot_repo, user_repo, leaderboard_repo):
        spot_repo.spots = {"a": make_spot("a", owner_id="u1"), "b": make_spot("b", owner_id="u2")}
        leaderboard_repo.entries = [_entry("a", 10, 1), _entry("b", 5, 2)]
        user_repo.viewers = {
            "viewer-1": ViewerStateEntity(
                viewer_id="viewer-1", liked_spot_ids=["a"], followed_owner_ids=["u2"], favorite_spot_ids=["b"]
            )
        }

        a, b = await fetch_popular_uc.execute(viewer_id="viewer-1")
        assert (a.liked_by_viewer, a.followed_by_viewer, a.favorited_by_viewer) == (True, False, False)
        assert (b.liked_by_viewer, b.followed_by_viewer, b.favorited_by_viewer) == (False, True, True)
