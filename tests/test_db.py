"""Tests for database persistence layer."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from weinkeller.core.enums import EventType, TagKind
from weinkeller.core.errors import DuplicateTagError
from weinkeller.core.schema import AssessmentInput, ProducerInput, WineInput
from weinkeller.db.engine import Database
from weinkeller.db.models import Base, InventoryEventDB
from weinkeller.db.repositories import (
    AssessmentRepository,
    InventoryRepository,
    ProducerRepository,
    TagRepository,
    WineRepository,
)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def engine(temp_db_path):
    """Create a test database engine."""
    url = f"sqlite:///{temp_db_path}"
    engine = create_engine(url, echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


def _count_events(session: Session) -> int:
    return session.execute(select(func.count()).select_from(InventoryEventDB)).scalar_one()


class TestDatabase:
    """Tests for the Database lifecycle object."""

    def test_open_and_close(self, temp_db_path: Path) -> None:
        db = Database(temp_db_path)
        assert not db.is_open

        db.open()
        assert db.is_open
        assert db.url == f"sqlite:///{temp_db_path.resolve()}"

        db.close()
        assert not db.is_open
        with pytest.raises(RuntimeError):
            _ = db.engine

    def test_context_manager(self, temp_db_path: Path) -> None:
        with Database(temp_db_path) as db:
            assert db.is_open
        assert not db.is_open

    def test_creates_parent_directory(self, temp_db_path: Path) -> None:
        nested = temp_db_path.parent / "nested" / "dir" / "cellar.db"
        with Database(nested) as db:
            db.init_schema()
        assert nested.exists()

    def test_db_path_from_environment(self, temp_db_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("DB_PATH", str(temp_db_path))
        assert Database().path == temp_db_path.resolve()

    def test_init_schema_seeds_default_tags_once(self, temp_db_path: Path) -> None:
        """Default occasion and food-pairing tags are seeded without duplicates."""
        with Database(temp_db_path) as db:
            db.init_schema()
            db.init_schema()
            with db.session() as session:
                repo = TagRepository(session)
                occasions = [t.name for t in repo.list_all(TagKind.OCCASION)]
                pairings = repo.list_all(TagKind.FOOD_PAIRING)

        assert occasions == ["Connoisseur", "Special", "Summer", "Winter"]
        assert len(pairings) == 8


class TestTagRepository:
    """Tests for TagRepository."""

    def test_seed_defaults_returns_inserted_count(self, session: Session) -> None:
        repo = TagRepository(session)
        assert repo.seed_defaults() == 12
        assert repo.seed_defaults() == 0

    def test_create_and_list_ordered_by_name(self, session: Session) -> None:
        repo = TagRepository(session)
        repo.create(TagKind.GRAPE, "Riesling")
        repo.create(TagKind.GRAPE, "Nebbiolo")
        session.commit()

        names = [t.name for t in repo.list_all(TagKind.GRAPE)]
        assert names == ["Nebbiolo", "Riesling"]
        assert repo.list_all(TagKind.REGION) == []

    def test_duplicate_name_raises(self, session: Session) -> None:
        repo = TagRepository(session)
        repo.create(TagKind.COUNTRY, "Italy")

        with pytest.raises(DuplicateTagError) as exc_info:
            repo.create(TagKind.COUNTRY, "Italy")
        assert "already exists" in exc_info.value.message

    def test_same_name_in_different_taxonomies(self, session: Session) -> None:
        repo = TagRepository(session)
        repo.create(TagKind.COUNTRY, "Douro")
        repo.create(TagKind.REGION, "Douro")
        session.commit()

        assert repo.get_by_name(TagKind.REGION, "Douro") is not None

    def test_find_missing(self, session: Session) -> None:
        repo = TagRepository(session)
        tag = repo.create(TagKind.GRAPE, "Syrah")

        assert repo.find_missing(TagKind.GRAPE, [tag.id]) == []
        assert repo.find_missing(TagKind.GRAPE, [tag.id, 99, 98]) == [98, 99]
        assert repo.find_missing(TagKind.GRAPE, []) == []

    def test_set_for_owner_replaces_full_set(self, session: Session) -> None:
        wine_id = WineRepository(session).upsert(WineInput(name="Barolo"))
        repo = TagRepository(session)
        a = repo.create(TagKind.GRAPE, "Nebbiolo")
        b = repo.create(TagKind.GRAPE, "Barbera")

        repo.set_for_owner(TagKind.GRAPE, wine_id, [a.id, b.id])
        assert {t.id for t in repo.get_for_owner(TagKind.GRAPE, wine_id)} == {a.id, b.id}

        repo.set_for_owner(TagKind.GRAPE, wine_id, [b.id])
        assert [t.id for t in repo.get_for_owner(TagKind.GRAPE, wine_id)] == [b.id]

    def test_set_for_owner_is_idempotent(self, session: Session) -> None:
        wine_id = WineRepository(session).upsert(WineInput(name="Barolo"))
        repo = TagRepository(session)
        a = repo.create(TagKind.OCCASION, "Winter")
        b = repo.create(TagKind.OCCASION, "Special")

        repo.set_for_owner(TagKind.OCCASION, wine_id, [a.id, b.id])
        first = repo.get_for_owner(TagKind.OCCASION, wine_id)
        repo.set_for_owner(TagKind.OCCASION, wine_id, [a.id, b.id, a.id])
        second = repo.get_for_owner(TagKind.OCCASION, wine_id)

        assert first == second
        assert len(second) == 2

    def test_clear_for_owner(self, session: Session) -> None:
        wine_id = WineRepository(session).upsert(WineInput(name="Barolo"))
        repo = TagRepository(session)
        tag = repo.create(TagKind.WINE_TYPE, "Red")
        repo.set_for_owner(TagKind.WINE_TYPE, wine_id, [tag.id])

        repo.clear_for_owner(TagKind.WINE_TYPE, wine_id)

        assert repo.get_for_owner(TagKind.WINE_TYPE, wine_id) == []


class TestWineRepository:
    """Tests for WineRepository."""

    def test_insert_assigns_id(self, session: Session) -> None:
        repo = WineRepository(session)
        wine_id = repo.upsert(WineInput(name="Barolo", year=2016, bottle_format="magnum"))
        session.commit()

        wine = repo.get_by_id(wine_id)
        assert wine is not None
        assert wine.name == "Barolo"
        assert wine.year == 2016
        assert wine.bottle_format.value == "magnum"
        assert wine.wishlist is False
        assert wine.grape_tags == []

    def test_upsert_updates_in_place(self, session: Session) -> None:
        repo = WineRepository(session)
        wine_id = repo.upsert(WineInput(name="Barolo"))
        session.commit()
        repo.get_by_id(wine_id)

        same_id = repo.upsert(WineInput(id=wine_id, name="Barolo Riserva", favorite=True))
        session.commit()

        assert same_id == wine_id
        wine = repo.get_by_id(wine_id)
        assert wine.name == "Barolo Riserva"
        assert wine.favorite is True
        assert len(repo.list_all()) == 1

    def test_upsert_with_explicit_new_id(self, session: Session) -> None:
        repo = WineRepository(session)
        assert repo.upsert(WineInput(id=42, name="Imported")) == 42
        assert repo.exists(42)
        assert not repo.exists(41)

    def test_producer_name_and_listing(self, session: Session) -> None:
        producer_id = ProducerRepository(session).upsert(ProducerInput(name="Vietti"))
        repo = WineRepository(session)
        repo.upsert(WineInput(name="Castiglione", producer_id=producer_id))
        repo.upsert(WineInput(name="Orphan"))
        session.commit()

        wines = repo.list_all()
        assert [w.name for w in wines] == ["Castiglione", "Orphan"]
        assert wines[0].producer_name == "Vietti"
        assert wines[1].producer_name is None
        assert [w.name for w in repo.list_by_producer(producer_id)] == ["Castiglione"]

    def test_list_by_tag(self, session: Session) -> None:
        tags = TagRepository(session)
        nebbiolo = tags.create(TagKind.GRAPE, "Nebbiolo")
        repo = WineRepository(session)
        barolo = repo.upsert(WineInput(name="Barolo"))
        repo.upsert(WineInput(name="Chablis"))
        tags.set_for_owner(TagKind.GRAPE, barolo, [nebbiolo.id])
        session.commit()

        result = repo.list_by_tag(TagKind.GRAPE, nebbiolo.id)

        assert [w.name for w in result] == ["Barolo"]
        assert result[0].grape_tags[0].name == "Nebbiolo"


class TestProducerRepository:
    """Tests for ProducerRepository."""

    def test_upsert_and_tags(self, session: Session) -> None:
        tags = TagRepository(session)
        italy = tags.create(TagKind.COUNTRY, "Italy")
        repo = ProducerRepository(session)
        producer_id = repo.upsert(ProducerInput(name="Vietti", region="Piedmont"))
        tags.set_for_owner(TagKind.COUNTRY, producer_id, [italy.id])
        session.commit()

        producer = repo.get_by_id(producer_id)
        assert producer.name == "Vietti"
        assert producer.region == "Piedmont"
        assert producer.country_tag.name == "Italy"
        assert producer.region_tag is None

    def test_get_missing_returns_none(self, session: Session) -> None:
        assert ProducerRepository(session).get_by_id(1) is None


class TestInventoryRepository:
    """Tests for the ledger and the stock projection."""

    def _wine(self, session: Session, name: str, producer_id: int | None = None) -> int:
        return WineRepository(session).upsert(WineInput(name=name, producer_id=producer_id))

    def test_acquisitions_only_sum(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        repo = InventoryRepository(session)
        for qty in (1, 2, 3):
            repo.add_acquisition(wine_id, qty)
        repo.add_acquisition(wine_id, 4, event_type=EventType.ADD, acquisition_type="gifted")
        session.commit()

        assert repo.get_stock_for_wine(wine_id) == 10

    def test_stock_for_unknown_wine_is_zero(self, session: Session) -> None:
        assert InventoryRepository(session).get_stock_for_wine(123) == 0

    def test_drink_subtracts(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        repo = InventoryRepository(session)
        repo.add_acquisition(wine_id, 6)
        repo.add_acquisition(wine_id, 3)
        event = repo.add_consumption_if_available(wine_id, 4, error_quantity=1)
        session.commit()

        assert event is not None
        assert event.event_type == EventType.DRINK
        assert event.quantity == 4
        assert event.error_quantity == 1
        assert repo.get_stock_for_wine(wine_id) == 5

    def test_consumption_beyond_stock_writes_nothing(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        repo = InventoryRepository(session)
        repo.add_acquisition(wine_id, 5)
        session.commit()
        before = _count_events(session)

        assert repo.add_consumption_if_available(wine_id, 6) is None
        session.commit()

        assert _count_events(session) == before
        assert repo.get_stock_for_wine(wine_id) == 5

    def test_consumption_of_exact_stock(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        repo = InventoryRepository(session)
        repo.add_acquisition(wine_id, 2)

        assert repo.add_consumption_if_available(wine_id, 2) is not None
        assert repo.get_stock_for_wine(wine_id) == 0
        assert repo.add_consumption_if_available(wine_id, 1) is None

    def test_current_stock_omits_empty_wines(self, session: Session) -> None:
        producer_id = ProducerRepository(session).upsert(
            ProducerInput(name="Vietti", country="Italy")
        )
        kept = self._wine(session, "Barolo", producer_id)
        emptied = self._wine(session, "Chablis")
        self._wine(session, "Never bought")
        repo = InventoryRepository(session)
        repo.add_acquisition(kept, 6)
        repo.add_acquisition(emptied, 2)
        repo.add_consumption_if_available(emptied, 2)
        session.commit()

        stock = repo.get_current_stock()

        assert [item.wine_id for item in stock] == [kept]
        assert stock[0].inventory == 6
        assert stock[0].producer_name == "Vietti"
        assert stock[0].country == "Italy"

    def test_current_stock_keeps_wines_without_producer(self, session: Session) -> None:
        first = self._wine(session, "Orphan")
        second = self._wine(session, "Another")
        repo = InventoryRepository(session)
        repo.add_acquisition(second, 1)
        repo.add_acquisition(first, 3)
        session.commit()

        stock = repo.get_current_stock()

        assert [item.wine_id for item in stock] == [first, second]
        assert stock[0].producer_id is None
        assert stock[0].producer_name is None

    def test_current_stock_attaches_tags(self, session: Session) -> None:
        tags = TagRepository(session)
        grape = tags.create(TagKind.GRAPE, "Nebbiolo")
        region = tags.create(TagKind.REGION, "Piedmont")
        producer_id = ProducerRepository(session).upsert(ProducerInput(name="Vietti"))
        tags.set_for_owner(TagKind.REGION, producer_id, [region.id])
        wine_id = self._wine(session, "Barolo", producer_id)
        tags.set_for_owner(TagKind.GRAPE, wine_id, [grape.id])
        InventoryRepository(session).add_acquisition(wine_id, 1)
        session.commit()

        item = InventoryRepository(session).get_current_stock()[0]

        assert [t.name for t in item.grape_tags] == ["Nebbiolo"]
        assert item.region_tag.name == "Piedmont"
        assert item.country_tag is None
        assert item.occasion_tags == []

    def test_history_newest_first(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        repo = InventoryRepository(session)
        old = datetime(2024, 1, 1, 12, 0)
        repo.add_acquisition(wine_id, 6, event_date=old)
        repo.add_consumption_if_available(wine_id, 1, event_date=old + timedelta(days=30))
        session.commit()

        history = repo.get_history()

        assert [h.event_type for h in history] == [EventType.DRINK, EventType.BUY]
        assert history[0].wine_name == "Barolo"
        assert [e.id for e in repo.get_wine_events(wine_id)] == [h.id for h in history]

    def test_aware_event_date_stored_as_utc(self, session: Session) -> None:
        wine_id = self._wine(session, "Barolo")
        cet = timezone(timedelta(hours=1))
        event = InventoryRepository(session).add_acquisition(
            wine_id, 1, event_date=datetime(2024, 3, 1, 13, 0, tzinfo=cet)
        )

        assert event.event_date == datetime(2024, 3, 1, 12, 0)


class TestAssessmentRepository:
    """Tests for AssessmentRepository."""

    def test_crud(self, session: Session) -> None:
        wine_id = WineRepository(session).upsert(WineInput(name="Barolo", year=2016))
        repo = AssessmentRepository(session)

        created = repo.create(
            AssessmentInput(wine_id=wine_id, nose_intensity="pronounced")
        )
        session.commit()
        assert created.wine_name == "Barolo"
        assert created.wine_year == 2016

        updated = repo.update(
            created.id, AssessmentInput(wine_id=wine_id, nose_intensity="medium")
        )
        assert updated.nose_intensity == "medium"
        assert [a.id for a in repo.list_by_wine(wine_id)] == [created.id]

        assert repo.delete(created.id) is True
        assert repo.delete(created.id) is False
        assert repo.get_by_id(created.id) is None

    def test_update_missing_returns_none(self, session: Session) -> None:
        assert AssessmentRepository(session).update(5, AssessmentInput(wine_id=1)) is None
