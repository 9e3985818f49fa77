import logging
import math
from datetime import datetime, timezone

from bson import ObjectId

from adapters.external.database.spot_repository_mongodb import SpotRepositoryMongoDB
from core.domain.entities.base_entity import as_counter
from core.domain.entities.spot_entity import SpotEntity
from core.domain.entities.user_entity import OwnerMetricsEntity
from core.services.owner_metadata_service import OwnerMetadataService
from tests.fakes import NOW, FakeUserRepository


class TestCounters:

    def test_as_counter(self):
        assert as_counter(None) == 0
        assert as_counter(-3) == 0
        assert as_counter("12") == 12
        assert as_counter("x") == 0
        assert as_counter(True) == 0
        assert as_counter(7.9) == 7


class TestSpotEntity:

    def test_from_mongo(self):
        oid = ObjectId()
        spot = SpotEntity.from_mongo(
            {
                "_id": oid,
                "title": "Rooftop jazz",
                "category": "LIVE",
                "lat": 35.66,
                "lng": 139.7,
                "owner_id": oid,
                "start_time": datetime(2026, 5, 1, 18, 0),
                "likes": -1,
            }
        )
        assert spot.id == str(oid)
        assert spot.category == "live"
        assert spot.owner_id == str(oid)
        assert spot.start_time.tzinfo == timezone.utc
        assert spot.likes == 0
        assert spot.view_count == 0

    def test_unknown_category_is_dropped(self):
        spot = SpotEntity(lat=0, lng=0, category="karaoke")
        assert spot.category is None

    def test_from_mongo_empty(self):
        assert SpotEntity.from_mongo(None) is None

    def test_malformed_fields_read_as_missing(self):
        spot = SpotEntity.from_mongo(
            {
                "_id": "s1",
                "title": None,
                "lat": 35.0,
                "start_time": "",
                "end_time": "not a date",
                "image_url": 5,
            }
        )
        assert spot.title == ""
        assert math.isnan(spot.lng)
        assert spot.has_coordinates is False
        assert spot.start_time is None
        assert spot.end_time is None
        assert spot.image_url is None
        assert spot.lifecycle(NOW) == "upcoming"

    def test_iso_time_string_is_utc(self):
        spot = SpotEntity.from_mongo({"_id": "s1", "start_time": "2026-05-01T21:00:00+09:00"})
        assert spot.start_time == datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_repository_skips_unreadable_documents(self, caplog):
        repo = SpotRepositoryMongoDB(None)
        docs = [
            {"_id": "ok", "title": "Fine", "lat": 35.0, "lng": 139.0},
            {"_id": "no-lng", "lat": 35.0},
            {"id": {"nested": 1}, "lat": 35.0, "lng": 139.0},
        ]
        with caplog.at_level(logging.WARNING):
            spots = repo._to_entities(docs)
        assert [s.id for s in spots] == ["ok"]
        assert "no-lng" in caplog.text
        assert "malformed" in caplog.text


class TestOwnerMetrics:

    def test_from_user_doc(self):
        owner = OwnerMetricsEntity.from_user_doc(
            {
                "_id": "u1",
                "poster_tier": "tier_a",
                "followers_count": 1200,
                "flags": {"is_sponsor": True},
                "phone_verified": True,
                "display_name": "Aki",
            }
        )
        assert owner.id == "u1"
        assert owner.tier == "tier_a"
        assert owner.followers_count == 1200
        assert owner.is_sponsor is True
        assert owner.phone_verified is True
        assert owner.photo_url is None

    def test_partial_doc_defaults_to_no_boost(self):
        owner = OwnerMetricsEntity.from_user_doc({"_id": "u2", "flags": "corrupt"})
        assert owner.tier == "tier_c"
        assert owner.followers_count == 0
        assert owner.is_sponsor is False
        assert owner.phone_verified is False


class TestOwnerMetadataService:

    async def test_dedupes_and_batches(self):
        repo = FakeUserRepository({"a": OwnerMetricsEntity(id="a", phone_verified=True)})
        svc = OwnerMetadataService(user_repository=repo)

        verified = await svc.phone_verified_by_owner(["a", "b", "a", ""])

        assert repo.metric_calls == [["a", "b"]]
        assert verified == {"a": True}

    async def test_no_owners_no_call(self):
        repo = FakeUserRepository()
        svc = OwnerMetadataService(user_repository=repo)
        assert await svc.owner_metrics([]) == {}
        assert repo.metric_calls == []

    async def test_failure_degrades_to_empty(self):
        repo = FakeUserRepository()
        repo.fail = True
        svc = OwnerMetadataService(user_repository=repo)
        assert await svc.owner_metrics(["a"]) == {}
