"""Shared fixtures: a small plant catalog in a temporary SQLite database."""
import pytest

from plantmatch.data.catalog import add_plant, link_synonym
from plantmatch.data.schema import init_db
from plantmatch.match.store import CatalogStore

CATALOG = [
    # (name, sv_name, plant_type)
    ("Pinus cembra", "Cembratall", "barrträd"),
    ("Pinus cembra 'Stricta'", None, "barrträd"),
    ("Rosa 'Queen Elizabeth'", "Floribundaros", "ros"),
    ("Rosa 'Queen Mother'", None, "ros"),
    ("Rosa glauca", "Daggros", "ros"),
    ("Tulipa 'Apeldoorn'", None, "lök"),
    ("Picea abies", "Gran", "barrträd"),
    ("Abies koreana", "Koreansk ädelgran", "barrträd"),
    ("Arctostaphylos uva-ursi", "Mjölon", "marktäckare"),
]

PINUS_MUGO_ID = 42
PINUS_MONTANA_ID = 43


@pytest.fixture
def catalog_db(tmp_path):
    """Path to a catalog with a Pinus mugo (id 42) carrying synonym Pinus montana (id 43)."""
    db_path = str(tmp_path / "catalog.db")
    conn = init_db(db_path)
    for name, sv_name, plant_type in CATALOG:
        add_plant(conn, name, sv_name=sv_name, plant_type=plant_type, source="test")
    conn.execute(
        "INSERT INTO plants (id, name, sv_name, plant_type) VALUES (?, ?, ?, ?)",
        (PINUS_MUGO_ID, "Pinus mugo", "Bergtall", "barrträd"),
    )
    conn.commit()
    montana_id = add_plant(conn, "Pinus montana", plant_type="barrträd")
    assert montana_id == PINUS_MONTANA_ID
    link_synonym(conn, montana_id, PINUS_MUGO_ID)
    conn.close()
    return db_path


@pytest.fixture
def store(catalog_db):
    s = CatalogStore(catalog_db)
    yield s
    s.close()
