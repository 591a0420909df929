"""Test suite for localisation key folding."""

from techtree.core.types import Text
from techtree.services.folding import fold_localisation_map, stem_of, unquote


class TestStem:
    """Test stem inference."""

    def test_suffixes(self):
        assert stem_of("tech_lasers_1_name") == "tech_lasers_1"
        assert stem_of("tech_lasers_1_desc") == "tech_lasers_1"
        assert stem_of("tech_lasers_1.name") == "tech_lasers_1"
        assert stem_of("tech_lasers_1:desc") == "tech_lasers_1"
        assert stem_of("tech_lasers_1") == "tech_lasers_1"

    def test_trailing_separators(self):
        assert stem_of("key__") == "key"
        assert stem_of("key.") == "key"


class TestUnquote:

    def test_one_layer(self):
        assert unquote('"N"') == "N"
        assert unquote('""N""') == '"N"'
        assert unquote("N") == "N"
        assert unquote('"N') == "N"


class TestFold:
    """Test folding of key families."""

    def test_full_family(self):
        folded = fold_localisation_map({"a_name": '"N"', "a_desc": '"D"', "a": '"V"'})
        assert folded == {"a": Text(value="V", name="N", description="D")}

    def test_name_only_falls_back(self):
        folded = fold_localisation_map({"b_name": '"N"'})
        assert folded == {"b": Text(value="N", name="N", description=None)}

    def test_description_only_falls_back(self):
        folded = fold_localisation_map({"c_desc": "D"})
        assert folded == {"c": Text(value="D", description="D")}

    def test_dotted_variants(self):
        folded = fold_localisation_map({"d.name": "N", "d.desc": "D"})
        assert folded["d"] == Text(value="N", name="N", description="D")

    def test_underscore_variant_wins(self):
        folded = fold_localisation_map({"e_name": "under", "e.name": "dot"})
        assert folded["e"].name == "under"

    def test_bare_keys(self):
        folded = fold_localisation_map({"tech_a": "A", "tech_b": "B"})
        assert folded == {"tech_a": Text(value="A"), "tech_b": Text(value="B")}

    def test_stem_with_nothing_is_skipped(self):
        # "name" alone folds to the empty stem, which has no entries
        assert fold_localisation_map({"name": "x"}) == {}

    def test_sorted_by_stem(self):
        folded = fold_localisation_map({"z": "1", "a": "2", "m_name": "3"})
        assert list(folded) == ["a", "m", "z"]

    def test_serialization_omits_absent_fields(self):
        folded = fold_localisation_map({"f": "V"})
        assert folded["f"].model_dump() == {"value": "V"}
