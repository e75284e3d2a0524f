"""Tests for similarity scoring."""
import pytest

from plantmatch.data.normalize import parse_plant_name
from plantmatch.match.models import CatalogEntry, MatchCandidate
from plantmatch.match.scorer import (
    best_signal,
    component_score,
    score_candidate,
    score_candidates,
    signal_scores,
    suggested_reason,
)


def _entry(id=1, name="Pinus cembra", **kwargs):
    return CatalogEntry(id=id, name=name, **kwargs)


class TestSignals:
    def test_exact(self):
        assert signal_scores("pinus cembra", "pinus cembra") == {"exact": 1.0}

    def test_prefix(self):
        signal, score = best_signal("pinus", "pinus cembra")
        assert signal == "prefix"
        assert score == pytest.approx(0.75 + 0.2 * 5 / 12)

    def test_prefix_either_direction(self):
        assert best_signal("pinus cembra", "pinus")[0] == "prefix"

    def test_contains(self):
        signal, score = best_signal("cembra", "pinus cembra")
        assert signal == "contains"
        assert score == pytest.approx(0.6 + 0.25 * 6 / 12)

    def test_word_order(self):
        signal, score = best_signal("cembra pinus", "pinus cembra")
        assert signal == "word_order"
        assert score == pytest.approx(0.95)

    def test_edit_distance(self):
        signal, score = best_signal("pinus cemba", "pinus cembra")
        assert signal == "edit_distance"
        assert score == pytest.approx(11 / 12)

    def test_word_order_only_for_multi_word(self):
        assert "word_order" not in signal_scores("rosa", "rose")

    def test_empty_strings(self):
        assert signal_scores("", "rosa") == {}
        assert best_signal("rosa", "") == ("none", 0.0)

    @pytest.mark.parametrize("query, target", [
        ("a", "abcdefghijklmnopqrstuvwxyz"),
        ("pinus", "picea"),
        ("rosa queen", "queen rosa mother"),
        ("x", "y"),
    ])
    def test_scores_in_unit_interval(self, query, target):
        for score in signal_scores(query, target).values():
            assert 0.0 <= score <= 1.0


class TestSuggestedReason:
    def test_synonym_exact(self):
        assert suggested_reason("synonym", "exact") == "matched via synonym"

    def test_name_exact(self):
        assert suggested_reason("name", "exact") == "exact match on scientific name"

    def test_near_common(self):
        assert suggested_reason("common_name", "edit_distance") == "near match on common name"

    def test_nothing(self):
        assert suggested_reason("none", "none") == "no comparable name"


class TestScoreCandidate:
    def test_exact_name_with_cultivar_quotes(self):
        m = score_candidate("pinus cembra stricta", _entry(name="Pinus cembra 'Stricta'"))
        assert m.similarity_score == 1.0
        assert m.is_strict_match
        assert m.match_details.target == "name"
        assert m.match_details.signal == "exact"
        assert m.suggested_reason == "exact match on scientific name"

    def test_common_name_with_diacritics(self):
        entry = _entry(name="Arctostaphylos uva-ursi", common_name="Mjölon")
        m = score_candidate("Mjolon", entry)
        assert m.similarity_score == 1.0
        assert m.match_details.target == "common_name"
        assert m.match_details.matched_value == "Mjölon"
        assert m.suggested_reason == "exact match on common name"

    def test_synonym_match_records_synonym(self):
        entry = _entry(
            id=42, name="Pinus mugo",
            synonym_names=("Pinus montana", "Pinus mughus"),
            synonym_ids=("43", "45"),
        )
        m = score_candidate("Pinus montana", entry)
        assert m.similarity_score == 1.0
        assert m.entry.id == 42
        assert m.match_details.target == "synonym"
        assert m.match_details.matched_synonym_name == "Pinus montana"
        assert m.match_details.matched_synonym_id == "43"
        assert m.suggested_reason == "matched via synonym"

        m = score_candidate("pinus mughus", entry)
        assert m.match_details.matched_synonym_id == "45"

    def test_synonym_without_id(self):
        entry = _entry(name="Pinus mugo", synonym_names=("Pinus montana",), synonym_ids=("",))
        m = score_candidate("Pinus montana", entry)
        assert m.match_details.matched_synonym_name == "Pinus montana"
        assert m.match_details.matched_synonym_id is None

    def test_name_preferred_on_tie(self):
        entry = _entry(name="Rosa glauca", common_name="Rosa glauca", synonym_names=("Rosa glauca",))
        m = score_candidate("rosa glauca", entry)
        assert m.match_details.target == "name"
        assert m.match_details.matched_synonym_name is None

    def test_near_match(self):
        m = score_candidate("Pinus cemba", _entry(name="Pinus cembra"))
        assert m.similarity_score == pytest.approx(11 / 12)
        assert m.suggested_reason == "near match on scientific name"
        assert m.match_details.query_length == len("pinus cemba")
        assert m.match_details.target_length == len("pinus cembra")

    def test_no_comparison_fields(self):
        m = score_candidate("rosa", _entry(name="''"))
        assert m.similarity_score == 0.0
        assert m.match_details.target == "none"
        assert m.suggested_reason == "no comparable name"

    def test_empty_term(self):
        assert score_candidate("  ", _entry()).similarity_score == 0.0

    def test_candidate_db_score_carried(self):
        m = score_candidate("pinus", MatchCandidate(entry=_entry(), db_score=0.9))
        assert m.db_score == 0.9

    def test_score_candidates_keeps_order(self):
        candidates = [
            MatchCandidate(entry=_entry(id=1, name="Rosa glauca"), db_score=0.5),
            MatchCandidate(entry=_entry(id=2, name="Rosa"), db_score=1.0),
        ]
        scored = score_candidates("Rosa", candidates)
        assert [m.entry.id for m in scored] == [1, 2]
        assert scored[1].similarity_score == 1.0


class TestComponentScore:
    def test_cultivar_without_species(self):
        score = component_score(
            parse_plant_name("Rosa 'Schneewittchen'"),
            parse_plant_name("Rosa glauca 'Schneewittchen'"),
        )
        assert score == pytest.approx(0.85)

    def test_trade_name_against_cultivar(self):
        query = parse_plant_name("Rosa KNOCK OUT")
        target = parse_plant_name("Rosa rugosa 'Knock Out'")
        assert component_score(query, target) == pytest.approx(0.85)
        assert component_score(target, query) == pytest.approx(0.85)

    def test_cultivars_decide_over_species(self):
        score = component_score(
            parse_plant_name("Rosa glauca 'Alba'"),
            parse_plant_name("Rosa glauca 'Nova'"),
        )
        assert score == pytest.approx(0.85 * 0.25)

    def test_species_when_no_cultivar(self):
        score = component_score(parse_plant_name("Rosa glauca"), parse_plant_name("Rosa glauka"))
        assert score == pytest.approx(0.85 * 5 / 6)

    def test_genus_similarity_scales(self):
        same = component_score(parse_plant_name("Rosa 'Alba'"), parse_plant_name("Rosa 'Alba'"))
        typo = component_score(parse_plant_name("Rose 'Alba'"), parse_plant_name("Rosa 'Alba'"))
        assert typo == pytest.approx(same * 0.75)

    def test_nothing_to_compare(self):
        assert component_score(parse_plant_name("Rosa"), parse_plant_name("Rosa glauca")) is None
        assert component_score(parse_plant_name(""), parse_plant_name("Rosa glauca")) is None


class TestComponentSignal:
    def test_cultivar_match_beats_whole_string(self):
        m = score_candidate("Rosa 'Schneewittchen'", _entry(name="Rosa glauca 'Schneewittchen'"))
        assert m.match_details.signal == "component"
        assert m.match_details.target == "name"
        assert m.similarity_score == pytest.approx(0.85)
        assert m.match_details.component_score == pytest.approx(0.85)
        assert m.suggested_reason == "name-part match on scientific name"
        assert not m.is_strict_match

    def test_trade_name_query(self):
        m = score_candidate("Rosa KNOCK OUT", _entry(name="Rosa rugosa 'Knock Out'"))
        assert m.match_details.signal == "component"
        assert m.similarity_score == pytest.approx(0.85)

    def test_synonym_target(self):
        entry = _entry(name="Picea abies", synonym_names=("Rosa glauca 'Schneewittchen'",))
        m = score_candidate("Rosa 'Schneewittchen'", entry)
        assert m.match_details.target == "synonym"
        assert m.match_details.signal == "component"
        assert m.suggested_reason == "name-part match via synonym"

    def test_not_used_for_common_name(self):
        entry = _entry(name="Abies koreana", common_name="Rosa glauca 'Schneewittchen'")
        m = score_candidate("Rosa 'Schneewittchen'", entry)
        assert m.match_details.target == "common_name"
        assert m.match_details.signal != "component"

    def test_exact_match_still_wins(self):
        m = score_candidate("Rosa glauca", _entry(name="Rosa glauca"))
        assert m.match_details.signal == "exact"
        assert m.similarity_score == 1.0
        assert m.match_details.component_score == pytest.approx(0.85)

    def test_in_details_dict(self):
        m = score_candidate("Rosa KNOCK OUT", _entry(name="Rosa rugosa 'Knock Out'"))
        assert m.match_details.to_dict()["component_score"] == pytest.approx(0.85)
