"""
Tests for wine identity keys and duplicate detection.
"""

from cellarwise.identity import (
    family_identity,
    find_duplicate,
    identity_key,
    normalize_name,
    wine_similarity,
)
from cellarwise.schema import Wine


class TestNormalizeName:
    def test_lowercase_and_punctuation(self):
        assert normalize_name("  Saint-Estèphe!! ") == "saint-estèphe"

    def test_abbreviations(self):
        assert normalize_name("Chateau Montrose") == "ch montrose"
        assert normalize_name("Domaine Leflaive Premier Cru") == "dom leflaive pc"

    def test_articles_removed(self):
        assert normalize_name("The Prisoner") == "prisoner"

    def test_empty(self):
        assert normalize_name(None) == ""
        assert normalize_name("") == ""


class TestIdentityKeys:
    def test_family_identity(self):
        assert family_identity("Chateau X", "Grand Vin") == "chateau x::grand vin"
        assert family_identity(None, "Grand Vin") == "unknown::grand vin"

    def test_identity_key(self):
        assert identity_key("Chateau Montrose", "Saint-Estephe", 2015) == "ch montrose|saint-estephe|2015"
        assert identity_key("Chateau Montrose", "Saint-Estephe", None) == "ch montrose|saint-estephe|nv"


class TestFindDuplicate:
    def test_finds_normalised_match(self):
        existing = [
            Wine(producer="Cloudy Bay", name="Sauvignon Blanc", vintage=2023),
            Wine(producer="Chateau Montrose", name="Saint-Estephe", vintage=2015),
        ]
        candidate = Wine(producer="CHATEAU MONTROSE", name="Saint-Estephe.", vintage=2015)
        assert find_duplicate(candidate, existing) is existing[1]

    def test_different_vintage_is_not_duplicate(self):
        existing = [Wine(producer="Chateau Montrose", name="Saint-Estephe", vintage=2016)]
        candidate = Wine(producer="Chateau Montrose", name="Saint-Estephe", vintage=2015)
        assert find_duplicate(candidate, existing) is None

    def test_empty_candidate_never_matches(self):
        assert find_duplicate(Wine(), [Wine()]) is None


class TestSimilarity:
    def test_identical(self):
        wine = Wine(producer="Cloudy Bay", name="Sauvignon Blanc", vintage=2023)
        assert wine_similarity(wine, wine) == 1.0

    def test_partial_name_different_vintage(self):
        a = Wine(producer="Chateau Montrose", name="Saint-Estephe", vintage=2015)
        b = Wine(producer="Chateau Montrose", name="Saint-Estephe Reserve", vintage=2016)
        assert wine_similarity(a, b) == 0.6

    def test_unrelated(self):
        a = Wine(producer="Cloudy Bay", name="Sauvignon Blanc", vintage=2023)
        b = Wine(producer="Penfolds", name="Bin 389", vintage=2019)
        assert wine_similarity(a, b) == 0.0
